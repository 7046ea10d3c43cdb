"""ASN.1/DER parsing utilities for CMS signature extraction.

Two layers:

* :func:`extract_der_from_padded_hex` turns the zero-padded hex text of a
  PDF ``/Contents`` entry into the exact DER blob.
* :func:`decode_der` is a recursive-descent decoder producing an owned
  :class:`Asn1Node` tree.  Every tag and length read is bounds-checked
  against the enclosing element, so truncated blobs and absurd length
  prefixes fail with ``ValueError`` instead of reading past the buffer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ...constants import ASN1_SEQUENCE_TAG, MAX_ASN1_DEPTH, MAX_CMS_HEX_CHARS

__all__ = [
    "TAG_CLASS_CONTEXT",
    "TAG_CLASS_UNIVERSAL",
    "TAG_OBJECT_IDENTIFIER",
    "TAG_SEQUENCE",
    "Asn1Node",
    "decode_der",
    "extract_der_from_padded_hex",
]

TAG_CLASS_UNIVERSAL = 0
TAG_CLASS_CONTEXT = 2

TAG_OBJECT_IDENTIFIER = 0x06
TAG_SEQUENCE = 0x10

# More than 4 length octets would describe a blob of at least 4 GB
_MAX_LENGTH_OCTETS = 4
_MAX_TAG_NUMBER_OCTETS = 4

_WHITESPACE_RE = re.compile(r"\s+")
_HEX_RE = re.compile(r"[0-9A-Fa-f]*")


@dataclass(frozen=True)
class Asn1Node:
    """One decoded TLV element.

    Attributes:
        tag_class: One of the ``TAG_CLASS_*`` constants.
        constructed: Whether the element holds nested elements.
        tag_number: Tag number within its class.
        offset: Offset of the identifier octet in the decoded buffer.
        header_length: Size of the identifier and length octets.
        length: Size of the content octets.
        children: Nested elements (constructed elements only).
        value: Content octets (primitive elements only).
    """

    tag_class: int
    constructed: bool
    tag_number: int
    offset: int
    header_length: int
    length: int
    children: tuple[Asn1Node, ...] = ()
    value: bytes = b""

    @property
    def end(self) -> int:
        """Offset just past this element."""
        return self.offset + self.header_length + self.length

    def is_universal(self, tag_number: int) -> bool:
        return self.tag_class == TAG_CLASS_UNIVERSAL and self.tag_number == tag_number

    def child(self, index: int) -> Asn1Node:
        """Return the child at *index*, raising ValueError if it is missing."""
        if index >= len(self.children):
            raise ValueError(
                f"ASN.1 element at offset {self.offset} has {len(self.children)} "
                f"children, expected at least {index + 1}"
            )
        return self.children[index]


def _read_header(data: bytes, offset: int, limit: int) -> tuple[int, bool, int, int, int]:
    """Read identifier and length octets of the element starting at *offset*.

    Returns:
        (tag_class, constructed, tag_number, header_length, content_length)

    Raises:
        ValueError: If the header is truncated, uses indefinite length,
            or the content would run past *limit*.
    """
    pos = offset
    if pos >= limit:
        raise ValueError(f"Truncated ASN.1 element at offset {offset}: missing tag")

    first = data[pos]
    pos += 1
    tag_class = first >> 6
    constructed = bool(first & 0x20)
    tag_number = first & 0x1F

    if tag_number == 0x1F:
        # High tag number form: base-128, high bit set on all but the last octet
        tag_number = 0
        for count in range(_MAX_TAG_NUMBER_OCTETS + 1):
            if count == _MAX_TAG_NUMBER_OCTETS:
                raise ValueError(f"ASN.1 tag number too large at offset {offset}")
            if pos >= limit:
                raise ValueError(f"Truncated ASN.1 tag at offset {offset}")
            octet = data[pos]
            pos += 1
            tag_number = (tag_number << 7) | (octet & 0x7F)
            if not octet & 0x80:
                break

    if pos >= limit:
        raise ValueError(f"Truncated ASN.1 element at offset {offset}: missing length")

    length_byte = data[pos]
    pos += 1

    if length_byte < 0x80:
        # Short form: length_byte IS the length
        length = length_byte
    elif length_byte == 0x80:
        # Indefinite length -- not valid in DER
        raise ValueError(f"Indefinite length encoding at offset {offset} is not valid in DER")
    else:
        # Long form: lower 7 bits = number of length bytes
        num_len_bytes = length_byte & 0x7F
        if num_len_bytes > _MAX_LENGTH_OCTETS:
            raise ValueError(f"ASN.1 length field too large: {num_len_bytes} bytes")
        if pos + num_len_bytes > limit:
            raise ValueError(f"Truncated ASN.1 length field at offset {offset}")
        length = int.from_bytes(data[pos : pos + num_len_bytes], "big")
        pos += num_len_bytes

    if pos + length > limit:
        raise ValueError(
            f"ASN.1 length ({length} bytes) at offset {offset} exceeds "
            f"available data ({limit - pos} bytes)"
        )

    return tag_class, constructed, tag_number, pos - offset, length


def _decode_element(data: bytes, offset: int, limit: int, depth: int) -> Asn1Node:
    if depth > MAX_ASN1_DEPTH:
        raise ValueError(f"ASN.1 nesting deeper than {MAX_ASN1_DEPTH} levels")

    tag_class, constructed, tag_number, header_length, length = _read_header(
        data, offset, limit
    )
    start = offset + header_length
    end = start + length

    if not constructed:
        return Asn1Node(
            tag_class, False, tag_number, offset, header_length, length, value=data[start:end]
        )

    children: list[Asn1Node] = []
    pos = start
    while pos < end:
        child = _decode_element(data, pos, end, depth + 1)
        children.append(child)
        pos = child.end

    return Asn1Node(tag_class, True, tag_number, offset, header_length, length, tuple(children))


def decode_der(data: bytes) -> Asn1Node:
    """Decode a complete DER blob into an :class:`Asn1Node` tree.

    The blob must consist of exactly one top-level element.

    Raises:
        ValueError: If the encoding is truncated, malformed, too deep,
            or followed by trailing bytes.
    """
    root = _decode_element(data, 0, len(data), 0)
    if root.end != len(data):
        raise ValueError(f"Trailing data after ASN.1 element: {len(data) - root.end} bytes")
    return root


def extract_der_from_padded_hex(hex_str: str) -> bytes:
    """Extract exact DER blob from zero-padded hex string.

    Parses the ASN.1 TLV header to determine exact DER length, avoiding
    the rstrip("0") approach which corrupts blobs ending in 0x00 bytes.
    Whitespace is ignored; every other character (padding included) must
    be a hex digit.

    Args:
        hex_str: Hex-encoded DER data, potentially right-padded with zeros.

    Returns:
        Exact DER-encoded bytes without padding.

    Raises:
        ValueError: If the hex string is invalid or ASN.1 header is malformed.
    """
    hex_str = _WHITESPACE_RE.sub("", hex_str)
    if not _HEX_RE.fullmatch(hex_str):
        raise ValueError("Non-hex characters in signature contents")

    if len(hex_str) < 4:
        raise ValueError("Hex string too short for ASN.1 TLV header")

    # Parse first two bytes (tag + length start) from hex
    tag = int(hex_str[0:2], 16)
    if tag != ASN1_SEQUENCE_TAG:
        raise ValueError(f"Expected ASN.1 SEQUENCE (0x30), got 0x{tag:02x}")

    length_byte = int(hex_str[2:4], 16)
    header_bytes = 2  # tag + initial length byte

    if length_byte < 0x80:
        content_len = length_byte
    elif length_byte == 0x80:
        raise ValueError("Indefinite length encoding is not valid in DER")
    else:
        num_len_bytes = length_byte & 0x7F
        if num_len_bytes > _MAX_LENGTH_OCTETS:
            raise ValueError(f"ASN.1 length field too large: {num_len_bytes} bytes")
        header_bytes += num_len_bytes
        needed_hex = 4 + num_len_bytes * 2
        if len(hex_str) < needed_hex:
            raise ValueError("Hex string too short for ASN.1 length field")
        content_len = int(hex_str[4:needed_hex], 16)

    total_der_bytes = header_bytes + content_len
    total_hex_chars = total_der_bytes * 2

    if total_hex_chars > MAX_CMS_HEX_CHARS:
        raise ValueError(
            f"ASN.1 claims {total_der_bytes} bytes, exceeds maximum "
            f"({MAX_CMS_HEX_CHARS // 2} bytes)"
        )

    if total_hex_chars > len(hex_str):
        raise ValueError(
            f"ASN.1 length ({total_der_bytes} bytes) exceeds available hex data "
            f"({len(hex_str) // 2} bytes)"
        )

    return bytes.fromhex(hex_str[:total_hex_chars])
