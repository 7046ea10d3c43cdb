# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""
Certificate information extraction from decoded signature containers.

Pure data-parsing functions used to report who signed a document and
with which certificates, independently of whether the signature verifies.
"""

from __future__ import annotations

__all__ = [
    "CertificateInfo",
    "describe_certificate",
    "describe_container",
]

import datetime
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from asn1crypto import x509 as asn1_x509
from cryptography.hazmat.primitives import hashes, serialization

from .chain import is_self_signed

if TYPE_CHECKING:
    from cryptography import x509

    from .pdf.container import SignatureContainer

_logger = logging.getLogger(__name__)


# OIDs for common subject fields
_OID_CN = "2.5.4.3"
_OID_EMAIL = "1.2.840.113549.1.9.1"
_OID_ORG = "2.5.4.10"


@dataclass(frozen=True)
class CertificateInfo:
    """Plain-data description of one certificate.

    Attributes:
        name: Subject common name.
        email: Subject e-mail address.
        organization: Subject organization.
        dn: Full subject, human friendly.
        issuer_dn: Full issuer, human friendly.
        serial_number: Serial number as lowercase hex.
        not_before: Start of the validity period (UTC).
        not_after: End of the validity period (UTC).
        fingerprint_sha256: SHA-256 of the DER encoding, lowercase hex.
        self_signed: Issuer equals subject and the signature verifies.
        is_signer: This certificate produced the document signature.
        pem: PEM encoding.
    """

    name: str | None
    email: str | None
    organization: str | None
    dn: str
    issuer_dn: str
    serial_number: str
    not_before: datetime.datetime
    not_after: datetime.datetime
    fingerprint_sha256: str
    self_signed: bool
    is_signer: bool
    pem: str


def _subject_fields(cert: asn1_x509.Certificate) -> dict[str, str | None]:
    """Extract CN, email, org from an asn1crypto certificate object."""
    fields: dict[str, str | None] = {"name": None, "email": None, "organization": None}
    oid_map = {_OID_CN: "name", _OID_EMAIL: "email", _OID_ORG: "organization"}

    for rdn in cert.subject.chosen:
        for attr in rdn:
            oid = attr["type"].dotted
            if oid not in oid_map:
                continue
            try:
                fields[oid_map[oid]] = attr["value"].native
            except ValueError:
                _logger.debug("Undecodable %s in certificate subject", oid_map[oid])
    return fields


def describe_certificate(cert: x509.Certificate, *, is_signer: bool = False) -> CertificateInfo:
    """
    Describe a certificate for reporting.

    Names are read with ``asn1crypto`` for lenient handling of legacy
    string types (e.g. BMPString-encoded DN fields).
    """
    der = cert.public_bytes(serialization.Encoding.DER)
    asn1_cert = asn1_x509.Certificate.load(der)
    fields = _subject_fields(asn1_cert)

    return CertificateInfo(
        name=fields["name"],
        email=fields["email"],
        organization=fields["organization"],
        dn=asn1_cert.subject.human_friendly,
        issuer_dn=asn1_cert.issuer.human_friendly,
        serial_number=format(cert.serial_number, "x"),
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
        fingerprint_sha256=cert.fingerprint(hashes.SHA256()).hex(),
        self_signed=is_self_signed(cert),
        is_signer=is_signer,
        pem=cert.public_bytes(serialization.Encoding.PEM).decode("ascii"),
    )


def describe_container(container: SignatureContainer) -> tuple[CertificateInfo, ...]:
    """Describe every certificate of a container, flagging the signer's."""
    return tuple(
        describe_certificate(cert, is_signer=i == container.signer_index)
        for i, cert in enumerate(container.certificates)
    )
