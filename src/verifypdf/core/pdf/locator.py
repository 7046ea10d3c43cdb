"""Signature dictionary discovery in raw PDF bytes.

Signature dictionaries are found by pattern matching rather than by a full
PDF object-model parse: only the keys needed for verification
(/ByteRange, /Contents, /SubFilter, /Filter) and the informational
metadata strings are recognised.
"""

from __future__ import annotations

__all__ = [
    "BYTERANGE_PATTERN",
    "SignatureField",
    "SignatureMeta",
    "decode_pdf_text",
    "locate_signature_fields",
    "parse_pdf_date",
]

import bisect
import datetime
import logging
import re
from dataclasses import dataclass, field

from ...errors import MalformedByteRange, MalformedDocument

_logger = logging.getLogger(__name__)

# Regex pattern to find ByteRange arrays in PDF.  Entries are validated
# after matching so that malformed arrays are reported, not skipped.
BYTERANGE_PATTERN = rb"/ByteRange\s*\[([^\]]*)\]"

# A PDF name ends at whitespace or a delimiter
_NAME_CHARS = rb"[^\s()<>\[\]{}/%]"

_MARKER_RE = re.compile(rb"/ByteRange\b|/Type\s*/Sig(?!" + _NAME_CHARS + rb")")
_OBJ_HEADER_RE = re.compile(rb"(?<![0-9])\d+\s+\d+\s+obj\b")
_BYTERANGE_RE = re.compile(BYTERANGE_PATTERN)
_CONTENTS_RE = re.compile(rb"/Contents\s*<(?!<)([^>]*)>")
_SUBFILTER_RE = re.compile(rb"/SubFilter\s*/(" + _NAME_CHARS + rb"+)")
_FILTER_RE = re.compile(rb"/Filter\s*/(" + _NAME_CHARS + rb"+)")
_NAME_ESCAPE_RE = re.compile(rb"#([0-9A-Fa-f]{2})")
_WHITESPACE_RE = re.compile(rb"\s+")

_ENDOBJ = b"endobj"

_META_KEYS = {
    "name": b"Name",
    "reason": b"Reason",
    "location": b"Location",
    "contact_info": b"ContactInfo",
    "signing_time": b"M",
}

# Escape sequences in PDF literal strings (PDF 1.7, Table 3)
_LITERAL_ESCAPES = {
    ord("n"): ord("\n"),
    ord("r"): ord("\r"),
    ord("t"): ord("\t"),
    ord("b"): ord("\b"),
    ord("f"): ord("\f"),
    ord("("): ord("("),
    ord(")"): ord(")"),
    ord("\\"): ord("\\"),
}

_PDF_DATE_RE = re.compile(
    r"(?:D:)?(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?"
    r"(?:([Zz])|([+\-])(\d{2})'?(\d{2})?'?)?"
)


@dataclass(frozen=True)
class SignatureMeta:
    """Informational entries of a signature dictionary."""

    name: str | None = None
    reason: str | None = None
    location: str | None = None
    contact_info: str | None = None
    signing_time: datetime.datetime | None = None


@dataclass(frozen=True)
class SignatureField:
    """One signature dictionary found in the document.

    Attributes:
        index: Position in discovery (byte stream) order.
        byte_range: /ByteRange entries as written (valid ones hold 4 ints).
        contents_hex: Raw text between the /Contents delimiters.
        contents_span: (offset of '<', offset just past '>').
        sub_filter: /SubFilter name without the leading slash, or None.
        filter_name: /Filter name (signature handler), or None.
        meta: Informational metadata (signer name, reason, ...).
    """

    index: int
    byte_range: tuple[int, ...]
    contents_hex: str
    contents_span: tuple[int, int]
    sub_filter: str | None
    filter_name: str | None = None
    meta: SignatureMeta = field(default_factory=SignatureMeta)


# ── PDF string helpers ───────────────────────────────────────────────


def _decode_name(raw: bytes) -> str:
    """Decode a PDF name token, resolving #xx escapes."""
    unescaped = _NAME_ESCAPE_RE.sub(lambda m: bytes([int(m.group(1), 16)]), raw)
    return unescaped.decode("latin-1")


def _read_literal_string(data: bytes, pos: int, limit: int) -> bytes:
    """Read a balanced-parenthesis literal string starting at '(' (``data[pos]``)."""
    out = bytearray()
    depth = 0
    i = pos
    while i < limit:
        c = data[i]
        if c == 0x5C:  # backslash
            i += 1
            if i >= limit:
                break
            e = data[i]
            if e in _LITERAL_ESCAPES:
                out.append(_LITERAL_ESCAPES[e])
                i += 1
            elif 0x30 <= e <= 0x37:
                j = i
                while j < min(i + 3, limit) and 0x30 <= data[j] <= 0x37:
                    j += 1
                out.append(int(data[i:j], 8) & 0xFF)
                i = j
            elif e == 0x0D:
                # Line continuation: backslash + EOL is dropped
                i += 2 if data[i + 1 : i + 2] == b"\n" else 1
            elif e == 0x0A:
                i += 1
            else:
                out.append(e)
                i += 1
            continue
        if c == 0x28:
            depth += 1
            if depth > 1:
                out.append(c)
        elif c == 0x29:
            depth -= 1
            if depth == 0:
                return bytes(out)
            out.append(c)
        else:
            out.append(c)
        i += 1
    raise ValueError(f"Unterminated literal string at offset {pos}")


def _read_hex_string(data: bytes, pos: int, limit: int) -> bytes:
    """Read a hex string starting at '<' (``data[pos]``)."""
    end = data.find(b">", pos, limit)
    if end < 0:
        raise ValueError(f"Unterminated hex string at offset {pos}")
    hex_text = _WHITESPACE_RE.sub(b"", data[pos + 1 : end]).decode("ascii")
    if len(hex_text) % 2:
        # A missing final digit is taken as 0
        hex_text += "0"
    return bytes.fromhex(hex_text)


def decode_pdf_text(raw: bytes) -> str:
    """Decode a PDF text string (UTF-16BE or UTF-8 with BOM, else PDFDocEncoding)."""
    if raw.startswith(b"\xfe\xff"):
        return raw[2:].decode("utf-16-be", errors="replace")
    if raw.startswith(b"\xef\xbb\xbf"):
        return raw[3:].decode("utf-8", errors="replace")
    # PDFDocEncoding agrees with Latin-1 on the printable range
    return raw.decode("latin-1")


def parse_pdf_date(text: str) -> datetime.datetime | None:
    """Parse a PDF date string (``D:YYYYMMDDHHmmSSOHH'mm'``).

    Missing components default to their minimum; a missing offset is taken
    as UTC.  Returns None if the string is not a PDF date.
    """
    m = _PDF_DATE_RE.match(text.strip())
    if not m:
        return None
    year, month, day, hour, minute, second, zulu, sign, off_h, off_m = m.groups()
    try:
        if sign:
            offset = datetime.timedelta(hours=int(off_h), minutes=int(off_m or 0))
            tz = datetime.timezone(-offset if sign == "-" else offset)
        else:
            tz = datetime.timezone.utc
        return datetime.datetime(
            int(year),
            int(month or 1),
            int(day or 1),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
            tzinfo=tz,
        )
    except ValueError:
        _logger.debug("Invalid PDF date: %r", text)
        return None


def _read_text_entry(data: bytes, key: bytes, start: int, end: int) -> str | None:
    m = re.compile(rb"/" + key + rb"\s*(\(|<(?!<))").search(data, start, end)
    if not m:
        return None
    pos = m.start(1)
    try:
        if m.group(1) == b"(":
            raw = _read_literal_string(data, pos, end)
        else:
            raw = _read_hex_string(data, pos, end)
    except ValueError:
        _logger.debug("Skipping unreadable /%s entry at offset %d", key.decode(), pos)
        return None
    return decode_pdf_text(raw)


def _read_meta(data: bytes, start: int, end: int) -> SignatureMeta:
    values = {attr: _read_text_entry(data, key, start, end) for attr, key in _META_KEYS.items()}
    signing_time = values.pop("signing_time")
    return SignatureMeta(
        signing_time=parse_pdf_date(signing_time) if signing_time else None,
        **values,
    )


# ── Field discovery ──────────────────────────────────────────────────


def _object_span(data: bytes, obj_starts: list[int], pos: int) -> tuple[int, int]:
    """Return the (start, end) of the indirect object enclosing *pos*."""
    idx = bisect.bisect_right(obj_starts, pos) - 1
    start = obj_starts[idx] if idx >= 0 else 0
    # The nearest header may belong to an object that already ended
    prev_end = data.rfind(_ENDOBJ, start, pos)
    if prev_end >= 0:
        start = prev_end + len(_ENDOBJ)
    end = data.find(_ENDOBJ, pos)
    if end < 0:
        end = len(data)
    return start, end


def _parse_byte_range(raw: bytes, index: int) -> tuple[int, ...]:
    entries: list[int] = []
    for token in raw.split():
        try:
            entries.append(int(token))
        except ValueError as e:
            raise MalformedByteRange(
                f"Signature #{index}: /ByteRange entry {token!r} is not an integer"
            ) from e
    return tuple(entries)


def _parse_field(data: bytes, index: int, start: int, end: int) -> SignatureField:
    br_match = _BYTERANGE_RE.search(data, start, end)
    if br_match is None:
        raise MalformedDocument(
            f"Signature #{index} at offset {start} has no /ByteRange array"
        )
    contents_match = _CONTENTS_RE.search(data, start, end)
    if contents_match is None:
        raise MalformedDocument(
            f"Signature #{index} at offset {start} has no /Contents hex string"
        )

    sub_filter_match = _SUBFILTER_RE.search(data, start, end)
    filter_match = _FILTER_RE.search(data, start, end)

    return SignatureField(
        index=index,
        byte_range=_parse_byte_range(br_match.group(1), index),
        contents_hex=contents_match.group(1).decode("latin-1"),
        contents_span=(contents_match.start(1) - 1, contents_match.end(1) + 1),
        sub_filter=_decode_name(sub_filter_match.group(1)) if sub_filter_match else None,
        filter_name=_decode_name(filter_match.group(1)) if filter_match else None,
        meta=_read_meta(data, start, end),
    )


def locate_signature_fields(pdf_bytes: bytes) -> list[SignatureField]:
    """
    Find every signature dictionary in a PDF, in byte-stream order.

    A dictionary is recognised by a /ByteRange key or a /Type /Sig entry;
    markers inside the same indirect object describe one field.

    Args:
        pdf_bytes: Complete PDF file bytes.

    Returns:
        One SignatureField per signature dictionary.

    Raises:
        MalformedDocument: If no signature dictionary is found, or one
            lacks /ByteRange or /Contents.
        MalformedByteRange: If a /ByteRange entry is not an integer.
    """
    obj_starts = [m.start() for m in _OBJ_HEADER_RE.finditer(pdf_bytes)]

    spans: list[tuple[int, int]] = []
    for marker in _MARKER_RE.finditer(pdf_bytes):
        span = _object_span(pdf_bytes, obj_starts, marker.start())
        if span not in spans:
            spans.append(span)

    if not spans:
        raise MalformedDocument("No signature dictionary found in PDF -- not a signed PDF?")

    fields = [_parse_field(pdf_bytes, i, start, end) for i, (start, end) in enumerate(spans)]
    _logger.debug("Located %d signature field(s)", len(fields))
    return fields
