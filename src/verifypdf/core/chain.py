"""Certificate chain building, trust anchoring and validity-period checks."""

from __future__ import annotations

__all__ = [
    "AuthenticityCheck",
    "CertificateChain",
    "build_chain",
    "check_authenticity",
    "is_self_signed",
    "is_valid_at",
]

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from ..constants import MAX_CHAIN_LENGTH

if TYPE_CHECKING:
    import datetime

    from .pdf.container import SignatureContainer

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CertificateChain:
    """Certificates from the signer towards a terminus.

    Attributes:
        certificates: Signer first; each next certificate issued the previous.
        links_valid: Every link (and a self-signed terminus) verifies.
        complete: The walk reached a self-signed certificate or an anchor.
        anchored: The walk reached a configured trust anchor.
    """

    certificates: tuple[x509.Certificate, ...]
    links_valid: bool
    complete: bool
    anchored: bool


@dataclass(frozen=True)
class AuthenticityCheck:
    """Outcome of the authenticity and expiry checks of one signature."""

    authenticity: bool
    expired: bool
    chain: CertificateChain
    details: tuple[str, ...] = ()


def _subject(cert: x509.Certificate) -> str:
    try:
        return cert.subject.rfc4514_string()
    except ValueError:
        return f"<undecodable subject, serial {cert.serial_number:x}>"


def _issued_by(child: x509.Certificate, issuer: x509.Certificate) -> bool:
    """True if *issuer*'s name and key account for *child*'s signature."""
    try:
        child.verify_directly_issued_by(issuer)
    except (InvalidSignature, ValueError, TypeError, UnsupportedAlgorithm):
        return False
    return True


def is_self_signed(cert: x509.Certificate) -> bool:
    return cert.issuer == cert.subject and _issued_by(cert, cert)


def is_valid_at(cert: x509.Certificate, moment: datetime.datetime) -> bool:
    """True if *moment* lies within ``[notBefore, notAfter]``."""
    return cert.not_valid_before_utc <= moment <= cert.not_valid_after_utc


def build_chain(
    signer: x509.Certificate,
    certificates: Iterable[x509.Certificate],
    trust_anchors: Iterable[x509.Certificate] = (),
) -> CertificateChain:
    """Walk issuer links from *signer* through *certificates* and the anchors.

    A candidate issuer must carry the child's issuer name as its subject
    and verify the child's signature.  The walk stops at a trust anchor,
    at a self-issued certificate, when no issuer is found, or after
    :data:`MAX_CHAIN_LENGTH` certificates.
    """
    anchors = frozenset(trust_anchors)
    # Anchors first, in a stable order
    pool = sorted(anchors, key=lambda c: c.public_bytes(serialization.Encoding.DER))
    pool += [c for c in certificates if c not in anchors]

    chain = [signer]
    links_valid = True
    complete = False
    anchored = False
    current = signer

    while True:
        if current in anchors:
            complete = anchored = True
            break
        if current.issuer == current.subject:
            complete = True
            if not _issued_by(current, current):
                _logger.debug("Self-issued certificate does not verify: %s", _subject(current))
                links_valid = False
            break
        if len(chain) >= MAX_CHAIN_LENGTH:
            _logger.debug("Chain longer than %d certificates, giving up", MAX_CHAIN_LENGTH)
            break

        candidates = [c for c in pool if c.subject == current.issuer and c not in chain]
        issuer = next((c for c in candidates if _issued_by(current, c)), None)
        if issuer is None:
            if candidates:
                # Name matches, but no candidate key verifies the signature
                links_valid = False
            _logger.debug("No issuer found for %s", _subject(current))
            break
        chain.append(issuer)
        current = issuer

    return CertificateChain(tuple(chain), links_valid, complete, anchored)


def check_authenticity(
    container: SignatureContainer,
    trust_anchors: Iterable[x509.Certificate],
    verification_time: datetime.datetime,
) -> AuthenticityCheck:
    """Check that the signer chains to a trust anchor and is time-valid.

    ``authenticity`` requires every link to verify and the chain to end at
    a configured anchor; an unanchored self-signed root is not trusted.
    ``expired`` is True if *verification_time* falls outside the validity
    period of any certificate in the chain.
    """
    chain = build_chain(container.signer_certificate, container.certificates, trust_anchors)
    details: list[str] = []

    path = " -> ".join(_subject(c) for c in chain.certificates)
    details.append(f"Chain ({len(chain.certificates)}): {path}")
    if not chain.links_valid:
        details.append("Chain: a certificate signature does NOT verify")
    elif chain.anchored:
        details.append("Chain: ends at a trust anchor")
    elif chain.complete:
        details.append("Chain: self-signed root is not a configured trust anchor")
    else:
        details.append("Chain: incomplete -- issuer certificate not available")

    authenticity = chain.links_valid and chain.anchored

    expired = False
    for cert in chain.certificates:
        if not is_valid_at(cert, verification_time):
            expired = True
            details.append(
                f"Certificate {_subject(cert)} not valid at {verification_time.isoformat()} "
                f"(valid {cert.not_valid_before_utc.isoformat()} to "
                f"{cert.not_valid_after_utc.isoformat()})"
            )

    _logger.debug("Authenticity=%s expired=%s", authenticity, expired)
    return AuthenticityCheck(authenticity, expired, chain, tuple(details))
