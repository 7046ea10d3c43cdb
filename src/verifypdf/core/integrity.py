"""Integrity verification -- content digest and signature value checks."""

from __future__ import annotations

__all__ = ["IntegrityCheck", "check_integrity", "verify_signature_value"]

import hashlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed448, ed25519, padding, rsa

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.types import CertificatePublicKeyTypes

    from .pdf.container import SignatureContainer

_logger = logging.getLogger(__name__)

# hashlib name -> pyca hash class
_PYCA_HASHES: dict[str, type[hashes.HashAlgorithm]] = {
    "md5": hashes.MD5,
    "sha1": hashes.SHA1,
    "sha224": hashes.SHA224,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
    "sha3_224": hashes.SHA3_224,
    "sha3_256": hashes.SHA3_256,
    "sha3_384": hashes.SHA3_384,
    "sha3_512": hashes.SHA3_512,
}


@dataclass(frozen=True)
class IntegrityCheck:
    """Outcome of the two integrity checks of one signature.

    Attributes:
        digest_ok: The content digest matches the signed messageDigest
            (always True when the content digest is signed directly).
        signature_ok: The signature value verifies with the signer's key.
        details: Human-readable messages.
    """

    digest_ok: bool
    signature_ok: bool
    details: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.digest_ok and self.signature_ok


def _pyca_hash(name: str) -> hashes.HashAlgorithm:
    try:
        return _PYCA_HASHES[name]()
    except KeyError:
        raise ValueError(f"Hash algorithm {name} is not supported for signatures") from None


def verify_signature_value(
    public_key: CertificatePublicKeyTypes,
    signature: bytes,
    data: bytes,
    container: SignatureContainer,
) -> None:
    """Verify *signature* over *data* with the container's mechanism.

    Raises:
        InvalidSignature: If the signature does not verify.
        TypeError: If the key type does not fit the mechanism.
        ValueError: If the mechanism or its hash is not supported.
    """
    mechanism = container.signature_algorithm
    if mechanism == "rsassa_pkcs1v15":
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise TypeError(f"{mechanism} requires an RSA key")
        public_key.verify(signature, data, padding.PKCS1v15(), _pyca_hash(container.signature_hash))
    elif mechanism == "rsassa_pss":
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise TypeError(f"{mechanism} requires an RSA key")
        params = container.pss_parameters
        if params is None:
            raise ValueError("RSASSA-PSS signature without parameters")
        pss_padding = padding.PSS(
            mgf=padding.MGF1(_pyca_hash(params.mgf_hash_algorithm)),
            salt_length=params.salt_length,
        )
        public_key.verify(signature, data, pss_padding, _pyca_hash(params.hash_algorithm))
    elif mechanism == "dsa":
        if not isinstance(public_key, dsa.DSAPublicKey):
            raise TypeError(f"{mechanism} requires a DSA key")
        public_key.verify(signature, data, _pyca_hash(container.signature_hash))
    elif mechanism == "ecdsa":
        if not isinstance(public_key, ec.EllipticCurvePublicKey):
            raise TypeError(f"{mechanism} requires an EC key")
        public_key.verify(signature, data, ec.ECDSA(_pyca_hash(container.signature_hash)))
    elif mechanism == "ed25519":
        if not isinstance(public_key, ed25519.Ed25519PublicKey):
            raise TypeError(f"{mechanism} requires an Ed25519 key")
        public_key.verify(signature, data)
    elif mechanism == "ed448":
        if not isinstance(public_key, ed448.Ed448PublicKey):
            raise TypeError(f"{mechanism} requires an Ed448 key")
        public_key.verify(signature, data)
    else:
        raise ValueError(f"Signature mechanism {mechanism} is not supported")


def check_integrity(signed_content: bytes, container: SignatureContainer) -> IntegrityCheck:
    """Check that *signed_content* is what the signer signed.

    1. The digest of the content (``digest_algorithm``) must equal the
       messageDigest signed attribute.  Without signed attributes the
       content itself is the signed message and this check holds.
    2. The signature value must verify over the re-encoded signed
       attributes (or the content) with the signer certificate's key.

    Never raises on a verification failure -- returns a check with the
    failing flag cleared.
    """
    details: list[str] = []
    algo_upper = container.digest_algorithm.upper().replace("_", "-")
    actual_hash = hashlib.new(container.digest_algorithm, signed_content).digest()

    if container.message_digest is None or container.signed_attributes_der is None:
        digest_ok = True
        signed_message = signed_content
        details.append(
            f"No signed attributes -- content signed directly, {algo_upper}: {actual_hash.hex()}"
        )
    elif actual_hash == container.message_digest:
        digest_ok = True
        signed_message = container.signed_attributes_der
        details.append(f"Hash OK -- {algo_upper} matches CMS messageDigest: {actual_hash.hex()}")
    else:
        digest_ok = False
        signed_message = container.signed_attributes_der
        details.append(
            f"Hash MISMATCH!\n"
            f"  ByteRange {algo_upper}:   {actual_hash.hex()}\n"
            f"  CMS messageDigest:  {container.message_digest.hex()}"
        )

    signature_ok = False
    try:
        public_key = container.signer_certificate.public_key()
        verify_signature_value(public_key, container.signature_value, signed_message, container)
    except InvalidSignature:
        details.append(f"Signature value does NOT verify ({container.signature_algorithm})")
    except (TypeError, ValueError, UnsupportedAlgorithm) as e:
        details.append(f"Signature value cannot be verified with the signer key: {e}")
    else:
        signature_ok = True
        details.append(f"Signature value OK ({container.signature_algorithm})")

    _logger.debug("Integrity: digest_ok=%s signature_ok=%s", digest_ok, signature_ok)
    return IntegrityCheck(digest_ok, signature_ok, tuple(details))
