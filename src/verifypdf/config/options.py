"""
Per-call verification options.

There is no configuration file and no global trust store: every call to
:func:`verifypdf.verify` carries its own :class:`VerifyOptions`.
"""

from __future__ import annotations

__all__ = ["OPTIONS_FIELDS", "VerifyOptions"]

import datetime
from collections.abc import Iterable
from dataclasses import dataclass, field

from cryptography import x509

from ..errors import ConfigError


@dataclass(frozen=True)
class VerifyOptions:
    """Options for signature verification.

    Attributes:
        trust_anchors: Certificates a chain must end at to be authentic.
            Any iterable of certificates is accepted and frozen.  With no
            anchors no signature is authentic.
        verification_time: Instant at which certificate validity periods
            are checked.  Must be timezone-aware; None means "now" (UTC),
            resolved once per verification.
        check_structure: Run the informational pikepdf structural check.
    """

    trust_anchors: frozenset[x509.Certificate] = field(default_factory=frozenset)
    verification_time: datetime.datetime | None = None
    check_structure: bool = True

    def __post_init__(self) -> None:
        anchors = self.trust_anchors
        if isinstance(anchors, (str, bytes)) or not isinstance(anchors, Iterable):
            raise ConfigError(
                f"trust_anchors must be an iterable of certificates, got {type(anchors).__name__}"
            )
        anchors = frozenset(anchors)
        for cert in anchors:
            if not isinstance(cert, x509.Certificate):
                raise ConfigError(
                    f"trust_anchors must hold x509.Certificate objects, got {type(cert).__name__}"
                )
            try:
                cert.subject.rfc4514_string()
                cert.issuer.rfc4514_string()
            except ValueError as e:
                raise ConfigError(f"Trust anchor has an undecodable name: {e}") from e
        object.__setattr__(self, "trust_anchors", anchors)

        moment = self.verification_time
        if moment is not None:
            if not isinstance(moment, datetime.datetime):
                raise ConfigError(
                    f"verification_time must be a datetime, got {type(moment).__name__}"
                )
            if moment.tzinfo is None or moment.utcoffset() is None:
                raise ConfigError("verification_time must be timezone-aware")

        if not isinstance(self.check_structure, bool):
            raise ConfigError(
                f"check_structure must be a bool, got {type(self.check_structure).__name__}"
            )

    def resolved_time(self) -> datetime.datetime:
        """Return the verification instant in UTC (now, if unset)."""
        if self.verification_time is None:
            return datetime.datetime.now(datetime.timezone.utc)
        return self.verification_time.astimezone(datetime.timezone.utc)


OPTIONS_FIELDS = frozenset(("trust_anchors", "verification_time", "check_structure"))
