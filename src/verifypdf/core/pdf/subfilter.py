"""Subfilter policy gate -- which signature container encodings we decode."""

from __future__ import annotations

__all__ = ["SUPPORTED_SUB_FILTERS", "SubFilter", "check_sub_filter"]

import enum
import logging
from typing import TYPE_CHECKING

from ...errors import UnsupportedSubfilter

if TYPE_CHECKING:
    from .locator import SignatureField

_logger = logging.getLogger(__name__)


class SubFilter(enum.Enum):
    """Container encodings named by a signature dictionary's /SubFilter."""

    ADBE_PKCS7_DETACHED = "adbe.pkcs7.detached"
    ETSI_CADES_DETACHED = "etsi.cades.detached"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def parse(cls, raw: str | None) -> SubFilter:
        """Map a raw /SubFilter name (case-insensitive) to a member; never raises."""
        if raw is None:
            return cls.UNRECOGNIZED
        name = raw.lstrip("/").lower()
        for member in cls:
            if member is not cls.UNRECOGNIZED and member.value == name:
                return member
        return cls.UNRECOGNIZED

    @property
    def is_supported(self) -> bool:
        if self is SubFilter.ADBE_PKCS7_DETACHED or self is SubFilter.ETSI_CADES_DETACHED:
            return True
        if self is SubFilter.UNRECOGNIZED:
            return False
        raise AssertionError(f"Unhandled subfilter {self!r}")


SUPPORTED_SUB_FILTERS = frozenset(member for member in SubFilter if member.is_supported)


def check_sub_filter(field: SignatureField) -> SubFilter:
    """Return the field's container encoding, or abort if it is unsupported.

    Raises:
        UnsupportedSubfilter: If /SubFilter is missing or not in
            :data:`SUPPORTED_SUB_FILTERS`.
    """
    sub_filter = SubFilter.parse(field.sub_filter)
    if not sub_filter.is_supported:
        _logger.debug("Signature #%d: unsupported subfilter %r", field.index, field.sub_filter)
        shown = f"/{field.sub_filter}" if field.sub_filter is not None else "(missing)"
        raise UnsupportedSubfilter(
            f"Signature #{field.index} uses unsupported subfilter {shown}",
            sub_filter=field.sub_filter,
            field_index=field.index,
        )
    return sub_filter
