"""
Verification options and trust anchor loading.

Import from this package directly instead of the individual submodules.
"""

from __future__ import annotations

from .anchors import load_certificates
from .options import OPTIONS_FIELDS, VerifyOptions

__all__ = ["OPTIONS_FIELDS", "VerifyOptions", "load_certificates"]
