"""
Package-wide constants for verifypdf.

Size limits and other magic numbers are centralized here for easy
maintenance.  Every limit bounds work driven by length fields read from
untrusted documents.
"""

from __future__ import annotations

import importlib.metadata

try:
    __version__ = importlib.metadata.version("verifypdf")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.3.0"

__all__ = [
    "ASN1_SEQUENCE_TAG",
    "MAX_ASN1_DEPTH",
    "MAX_CHAIN_LENGTH",
    "MAX_CMS_HEX_CHARS",
    "PDF_EOF_MARKER",
    "__version__",
]

# ── ASN.1 / CMS ──────────────────────────────────────────────────────

# ASN.1 SEQUENCE tag -- first byte of any valid CMS/PKCS#7 blob
ASN1_SEQUENCE_TAG = 0x30

# Maximum hex chars for a single CMS blob (16 MB DER = 32M hex chars).
# Protects against malformed length fields claiming absurd sizes.
MAX_CMS_HEX_CHARS = 32 * 1024 * 1024

# Maximum nesting of constructed DER elements.  Real CMS blobs stay well
# below 20 levels; anything deeper is hostile input.
MAX_ASN1_DEPTH = 64


# ── Certificate chains ───────────────────────────────────────────────

# Maximum number of certificates walked from the signer to a terminus
MAX_CHAIN_LENGTH = 16


# ── PDF markers ──────────────────────────────────────────────────────

# End of a PDF revision
PDF_EOF_MARKER = b"%%EOF"
