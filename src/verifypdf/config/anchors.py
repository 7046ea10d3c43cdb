"""Loading trust anchor certificates from PEM or DER bytes."""

from __future__ import annotations

__all__ = ["load_certificates"]

import logging

from cryptography import x509

from ..errors import ConfigError

_logger = logging.getLogger(__name__)

_PEM_MARKER = b"-----BEGIN CERTIFICATE-----"


def load_certificates(data: bytes) -> list[x509.Certificate]:
    """
    Parse one or more X.509 certificates.

    Args:
        data: A PEM bundle (one or more ``CERTIFICATE`` blocks) or a single
            DER-encoded certificate.

    Returns:
        Certificates in the order they appear.

    Raises:
        ConfigError: If *data* is not bytes or holds no parsable certificate.
    """
    if isinstance(data, (bytearray, memoryview)):
        data = bytes(data)
    if not isinstance(data, bytes):
        raise ConfigError(f"Certificate data must be bytes, got {type(data).__name__}")

    if _PEM_MARKER in data:
        try:
            certs = x509.load_pem_x509_certificates(data)
        except ValueError as e:
            raise ConfigError(f"Invalid PEM certificate bundle: {e}") from e
    else:
        try:
            certs = [x509.load_der_x509_certificate(data)]
        except ValueError as e:
            raise ConfigError(f"Invalid DER certificate: {e}") from e

    _logger.debug("Loaded %d certificate(s)", len(certs))
    return certs
