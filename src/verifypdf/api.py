"""High-level convenience API for PDF signature verification.

Provides :func:`verify` and :func:`extract_certificates_info`, which accept
any byte buffer and resolve verification options from keyword arguments.

For lower-level control, use
:func:`~verifypdf.core.pdf.verify.verify_signatures` directly with a
:class:`~verifypdf.config.VerifyOptions`.
"""

from __future__ import annotations

__all__ = ["extract_certificates_info", "verify"]

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from .config import OPTIONS_FIELDS, VerifyOptions
from .core import ensure_bytes
from .core.pdf.verify import extract_certificates_info as _extract_certificates_info
from .core.pdf.verify import verify_signatures
from .errors import ConfigError

if TYPE_CHECKING:
    import datetime
    from collections.abc import Iterable

    from cryptography import x509

    from .core.cert_info import CertificateInfo
    from .core.pdf.verify import VerificationResult

_logger = logging.getLogger(__name__)


def _resolve_options(
    options: VerifyOptions | None,
    overrides: dict[str, object],
) -> VerifyOptions:
    """Merge explicit keyword arguments into an options instance.

    Arguments left as None keep the value from *options*.
    """
    if options is None:
        options = VerifyOptions()
    elif not isinstance(options, VerifyOptions):
        raise ConfigError(f"options must be VerifyOptions, got {type(options).__name__}")

    explicit = {k: v for k, v in overrides.items() if k in OPTIONS_FIELDS and v is not None}
    if not explicit:
        return options
    return replace(options, **explicit)


def verify(
    document: bytes,
    options: VerifyOptions | None = None,
    *,
    trust_anchors: Iterable[x509.Certificate] | None = None,
    verification_time: datetime.datetime | None = None,
    check_structure: bool | None = None,
) -> VerificationResult:
    """
    Verify every signature embedded in a PDF document.

    Args:
        document: The signed PDF (``bytes``, ``bytearray`` or ``memoryview``).
        options: Verification options; defaults to :class:`VerifyOptions()`.
        trust_anchors: Overrides ``options.trust_anchors``.
        verification_time: Overrides ``options.verification_time``.
        check_structure: Overrides ``options.check_structure``.

    Returns:
        VerificationResult with one SignatureResult per signature field.

    Raises:
        InvalidInputType: If *document* is not a byte buffer.
        ConfigError: If the options are invalid.
        MalformedDocument: If no signature field can be located.
        MalformedByteRange: If a /ByteRange is invalid.
        UnsupportedSubfilter: If any field uses an unsupported subfilter.
    """
    pdf_bytes = ensure_bytes(document)
    resolved = _resolve_options(
        options,
        {
            "trust_anchors": trust_anchors,
            "verification_time": verification_time,
            "check_structure": check_structure,
        },
    )
    _logger.debug(
        "Verifying %d-byte PDF with %d trust anchor(s)",
        len(pdf_bytes),
        len(resolved.trust_anchors),
    )
    return verify_signatures(pdf_bytes, resolved)


def extract_certificates_info(document: bytes) -> list[tuple[CertificateInfo, ...]]:
    """
    Describe the certificates of every signature in a PDF.

    Args:
        document: The signed PDF (``bytes``, ``bytearray`` or ``memoryview``).

    Returns:
        One tuple of CertificateInfo per signature field, in document
        order (empty for a container that cannot be decoded).

    Raises:
        InvalidInputType: If *document* is not a byte buffer.
        MalformedDocument: If the PDF has no signature field.
    """
    return _extract_certificates_info(ensure_bytes(document))
