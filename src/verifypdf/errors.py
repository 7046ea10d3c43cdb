"""verifypdf error types.

Fatal errors (bad input, unlocatable or malformed signature fields,
unsupported subfilters) propagate out of :func:`verifypdf.verify`.
:class:`MalformedSignature` is the one non-fatal kind: the orchestrator
folds it into an *unknown* per-signature result.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "ConfigError",
    "InvalidInputType",
    "MalformedByteRange",
    "MalformedDocument",
    "MalformedSignature",
    "UnsupportedSubfilter",
    "VerifyPDFError",
]


class VerifyPDFError(Exception):
    """Base error for verifypdf operations.

    Attributes:
        type: Stable machine-readable error code, shared by all instances
            of a class.
    """

    TYPE_UNKNOWN = "TYPE_UNKNOWN"
    TYPE_INPUT = "TYPE_INPUT"
    TYPE_PARSE = "TYPE_PARSE"
    TYPE_BYTE_RANGE = "TYPE_BYTE_RANGE"
    VERIFY_SIGNATURE = "VERIFY_SIGNATURE"
    UNSUPPORTED_SUBFILTER = "UNSUPPORTED_SUBFILTER"
    TYPE_CONFIG = "TYPE_CONFIG"

    type: str = TYPE_UNKNOWN


class InvalidInputType(VerifyPDFError, TypeError):
    """Input is not a byte buffer."""

    type = VerifyPDFError.TYPE_INPUT


class MalformedDocument(VerifyPDFError):
    """No usable signature field could be located in the document."""

    type = VerifyPDFError.TYPE_PARSE


class MalformedByteRange(MalformedDocument):
    """A /ByteRange array violates the signed-span invariants."""

    type = VerifyPDFError.TYPE_BYTE_RANGE


class MalformedSignature(VerifyPDFError):
    """The signature container cannot be decoded, so it cannot be evaluated."""

    type = VerifyPDFError.VERIFY_SIGNATURE


class UnsupportedSubfilter(VerifyPDFError):
    """A signature field declares a container encoding we cannot decode.

    Args:
        message: Human-readable error description.
        sub_filter: The rejected /SubFilter value (None if the key is missing).
        field_index: Position of the offending field in discovery order.
    """

    type = VerifyPDFError.UNSUPPORTED_SUBFILTER

    def __init__(
        self,
        message: str,
        *,
        sub_filter: str | None = None,
        field_index: int | None = None,
    ) -> None:
        super().__init__(message)
        self.sub_filter = sub_filter
        self.field_index = field_index

    def __reduce__(self) -> tuple[Any, tuple[str], dict[str, Any]]:
        """Preserve sub_filter and field_index across pickle/unpickle."""
        return (
            type(self),
            (str(self),),
            {"sub_filter": self.sub_filter, "field_index": self.field_index},
        )

    def __setstate__(self, state: dict[str, Any] | None) -> None:
        if state is None:
            return
        self.sub_filter = state.get("sub_filter")
        self.field_index = state.get("field_index")


class ConfigError(VerifyPDFError):
    """Verification options validation error."""

    type = VerifyPDFError.TYPE_CONFIG
