"""Signed-content extraction from a signature field's /ByteRange."""

from __future__ import annotations

__all__ = ["extract_signed_content", "validate_byte_range"]

import logging
import re
from typing import TYPE_CHECKING

from ...constants import PDF_EOF_MARKER
from ...errors import MalformedByteRange

if TYPE_CHECKING:
    from .locator import SignatureField

_logger = logging.getLogger(__name__)

# A covered region shorter than the file must end a revision
_REVISION_END_RE = re.compile(re.escape(PDF_EOF_MARKER) + rb"[\r\n]*\Z")


def validate_byte_range(pdf_bytes: bytes, field: SignatureField) -> tuple[int, int, int, int]:
    """
    Check a /ByteRange against the document and its /Contents placeholder.

    ByteRange structure: [0 len1 off2 len2]
    chunk1 = pdf_bytes[0:len1], ends just before the '<' of /Contents
    chunk2 = pdf_bytes[off2:off2+len2], starts just after the closing '>'

    Returns:
        The validated (off1, len1, off2, len2) quad.

    Raises:
        MalformedByteRange: If the spans are not 4 non-negative integers,
            overlap, leave the document, do not sandwich exactly the
            placeholder, or stop short of a revision boundary.
    """
    prefix = f"Signature #{field.index}: ByteRange"
    if len(field.byte_range) != 4:
        raise MalformedByteRange(
            f"{prefix} must hold 4 integers, got {len(field.byte_range)}"
        )

    off1, len1, off2, len2 = field.byte_range
    if min(off1, len1, off2, len2) < 0:
        raise MalformedByteRange(f"{prefix} has negative entries: {list(field.byte_range)}")
    if off1 != 0:
        raise MalformedByteRange(f"{prefix} offset1 should be 0, got {off1}")
    if off2 < off1 + len1:
        raise MalformedByteRange(f"{prefix} offset2 ({off2}) < end of first span ({off1 + len1})")

    end = off2 + len2
    if end > len(pdf_bytes):
        raise MalformedByteRange(
            f"{prefix} extends beyond EOF: {off2}+{len2} > {len(pdf_bytes)}"
        )

    gap = (off1 + len1, off2)
    if gap != field.contents_span:
        raise MalformedByteRange(
            f"{prefix} gap {gap} is not the /Contents placeholder {field.contents_span}"
        )

    if end < len(pdf_bytes) and not _REVISION_END_RE.search(pdf_bytes, 0, end):
        raise MalformedByteRange(
            f"{prefix} stops at {end} of {len(pdf_bytes)} bytes, not at a revision boundary"
        )

    return off1, len1, off2, len2


def extract_signed_content(pdf_bytes: bytes, field: SignatureField) -> bytes:
    """Return the exact bytes that were hashed at signing time.

    Raises:
        MalformedByteRange: See :func:`validate_byte_range`.
    """
    off1, len1, off2, len2 = validate_byte_range(pdf_bytes, field)
    chunk1 = pdf_bytes[off1 : off1 + len1]
    chunk2 = pdf_bytes[off2 : off2 + len2]
    _logger.debug(
        "Signature #%d: signed content %d bytes (%d + %d)",
        field.index,
        len1 + len2,
        len1,
        len2,
    )
    return chunk1 + chunk2
