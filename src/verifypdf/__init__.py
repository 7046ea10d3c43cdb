"""
verifypdf -- Verification of digital signatures embedded in PDF documents.

Checks, for every signature of a document, that the signed bytes are
unaltered (integrity), that the signer chains to a configured trust anchor
(authenticity) and that no certificate of that chain is outside its
validity period (expiry).
"""

from __future__ import annotations

from .api import extract_certificates_info, verify
from .config import VerifyOptions, load_certificates
from .constants import __version__
from .core.cert_info import CertificateInfo
from .core.pdf import (
    SignatureMeta,
    SignatureResult,
    SubFilter,
    VerificationResult,
    verify_signatures,
)
from .errors import (
    ConfigError,
    InvalidInputType,
    MalformedByteRange,
    MalformedDocument,
    MalformedSignature,
    UnsupportedSubfilter,
    VerifyPDFError,
)

__all__ = [
    "CertificateInfo",
    "ConfigError",
    "InvalidInputType",
    "MalformedByteRange",
    "MalformedDocument",
    "MalformedSignature",
    "SignatureMeta",
    "SignatureResult",
    "SubFilter",
    "UnsupportedSubfilter",
    "VerificationResult",
    "VerifyOptions",
    "VerifyPDFError",
    "__version__",
    "extract_certificates_info",
    "load_certificates",
    "verify",
    "verify_signatures",
]
