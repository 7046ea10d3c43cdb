"""Core signature extraction and verification."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import InvalidInputType, VerifyPDFError

if TYPE_CHECKING:
    import types

__all__: list[str] = []


def require_pikepdf() -> types.ModuleType:
    """Lazily import pikepdf to avoid loading the C extension at startup.

    pikepdf is a required dependency; this defers the import for
    startup performance, not optionality.
    """
    try:
        import pikepdf
    except ImportError as exc:
        raise VerifyPDFError(
            "pikepdf is required for this operation.\nInstall with: pip install pikepdf"
        ) from exc
    else:
        return pikepdf


def ensure_bytes(document: object) -> bytes:
    """Return *document* as immutable bytes, or raise InvalidInputType.

    Only the type is inspected; the contents are not touched.
    """
    if isinstance(document, bytes):
        return document
    if isinstance(document, (bytearray, memoryview)):
        return bytes(document)
    raise InvalidInputType(f"PDF expected as bytes, got {type(document).__name__}")
