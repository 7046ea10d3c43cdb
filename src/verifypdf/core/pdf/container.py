# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""CMS/PKCS#7 signature container decoding.

The hex text of /Contents is first decoded into an :class:`Asn1Node` tree
(grammar and bounds), then mapped onto the CMS SignedData structure with
``asn1crypto``.  Any failure raises :class:`MalformedSignature`: the
signature cannot be evaluated at all.
"""

from __future__ import annotations

__all__ = [
    "SUPPORTED_SIGNATURE_MECHANISMS",
    "PssParameters",
    "SignatureContainer",
    "SignedAttribute",
    "decode_container",
    "resolve_hash_algo",
]

import datetime
import hashlib
import logging
from dataclasses import dataclass

from asn1crypto import algos as asn1_algos
from asn1crypto import cms as asn1_cms
from asn1crypto import core as asn1_core
from asn1crypto import x509 as asn1_x509
from cryptography import x509

from ...errors import MalformedSignature
from .asn1 import (
    TAG_CLASS_CONTEXT,
    TAG_OBJECT_IDENTIFIER,
    TAG_SEQUENCE,
    Asn1Node,
    decode_der,
    extract_der_from_padded_hex,
)

_logger = logging.getLogger(__name__)

# OIDs of signed attributes in CMS SignerInfo
_OID_MESSAGE_DIGEST = "1.2.840.113549.1.9.4"
_OID_SIGNING_TIME = "1.2.840.113549.1.9.5"

# Map non-standard CMS digest algorithm identifiers to hashlib names.
# Some signers put sha*WithRSAEncryption in the digestAlgorithm field.
_DIGEST_ALGO_MAP: dict[str, str] = {
    "sha1_rsa": "sha1",
    "sha256_rsa": "sha256",
    "sha384_rsa": "sha384",
    "sha512_rsa": "sha512",
    "1.2.840.113549.1.1.5": "sha1",  # sha1WithRSAEncryption OID
    "1.2.840.113549.1.1.11": "sha256",  # sha256WithRSAEncryption OID
    "1.2.840.113549.1.1.12": "sha384",  # sha384WithRSAEncryption OID
    "1.2.840.113549.1.1.13": "sha512",  # sha512WithRSAEncryption OID
}

# Signature mechanisms as named by asn1crypto's SignedDigestAlgorithm.signature_algo
SUPPORTED_SIGNATURE_MECHANISMS = frozenset(
    {"rsassa_pkcs1v15", "rsassa_pss", "dsa", "ecdsa", "ed25519", "ed448"}
)


def resolve_hash_algo(algo_raw: str) -> str | None:
    """Resolve a CMS digest algorithm identifier to a hashlib-compatible name.

    Args:
        algo_raw: Algorithm name or OID from asn1crypto (.native or .dotted).

    Returns:
        hashlib algorithm name, or None if unrecognized.
    """
    if algo_raw in hashlib.algorithms_available:
        return algo_raw
    return _DIGEST_ALGO_MAP.get(algo_raw)


@dataclass(frozen=True)
class SignedAttribute:
    """One authenticated attribute of a SignerInfo.

    Attributes:
        oid: Dotted attribute type OID.
        name: asn1crypto name of the type (the dotted OID if unknown).
        values: DER encoding of each attribute value, in order.
    """

    oid: str
    name: str
    values: tuple[bytes, ...]


@dataclass(frozen=True)
class PssParameters:
    """RSASSA-PSS parameters of a signature algorithm identifier."""

    hash_algorithm: str
    mgf_hash_algorithm: str
    salt_length: int


@dataclass(frozen=True)
class SignatureContainer:
    """Decoded CMS SignedData of one signature field.

    Attributes:
        digest_algorithm: hashlib name of SignerInfo.digestAlgorithm.
        signature_algorithm: Signature mechanism (see
            :data:`SUPPORTED_SIGNATURE_MECHANISMS`).
        signature_hash: hashlib name of the hash used by the mechanism.
        signature_value: Raw signature bytes.
        signed_attributes: Signed attributes in encoded order, or None
            if the content digest was signed directly.
        signed_attributes_der: Signed attributes re-encoded as a universal
            SET OF -- the exact bytes covered by the signature.
        message_digest: Value of the messageDigest signed attribute.
        signing_time: Value of the signingTime signed attribute.
        certificates: Certificates embedded in the container, in order.
        signer_index: Index of the signer's certificate in ``certificates``.
        pss_parameters: Parameters for ``rsassa_pss``, else None.
        der: The exact DER blob (padding removed).
    """

    digest_algorithm: str
    signature_algorithm: str
    signature_hash: str
    signature_value: bytes
    signed_attributes: tuple[SignedAttribute, ...] | None
    signed_attributes_der: bytes | None
    message_digest: bytes | None
    signing_time: datetime.datetime | None
    certificates: tuple[x509.Certificate, ...]
    signer_index: int
    pss_parameters: PssParameters | None
    der: bytes

    @property
    def signer_certificate(self) -> x509.Certificate:
        return self.certificates[self.signer_index]


def _check_content_info_shape(tree: Asn1Node) -> None:
    """ContentInfo ::= SEQUENCE { contentType OID, content [0] EXPLICIT SignedData }."""
    if not (tree.constructed and tree.is_universal(TAG_SEQUENCE)):
        raise ValueError("ContentInfo is not a SEQUENCE")
    if not tree.child(0).is_universal(TAG_OBJECT_IDENTIFIER):
        raise ValueError("ContentInfo does not start with a content type OID")
    content = tree.child(1)
    if not (content.tag_class == TAG_CLASS_CONTEXT and content.tag_number == 0):
        raise ValueError("ContentInfo content is not tagged [0]")
    signed_data = content.child(0)
    if not signed_data.is_universal(TAG_SEQUENCE) or len(signed_data.children) < 4:
        raise ValueError("SignedData is not a SEQUENCE of at least 4 elements")


def _find_signer_index(
    signer_info: asn1_cms.SignerInfo, asn1_certs: list[asn1_x509.Certificate]
) -> int:
    """Locate the certificate named by SignerInfo.sid, defaulting to the first."""
    sid = signer_info["sid"]
    if sid.name == "issuer_and_serial_number":
        issuer = sid.chosen["issuer"]
        serial = sid.chosen["serial_number"].native
        for i, cert in enumerate(asn1_certs):
            if cert.serial_number == serial and cert.issuer == issuer:
                return i
    elif sid.name == "subject_key_identifier":
        ski = sid.chosen.native
        for i, cert in enumerate(asn1_certs):
            if cert.key_identifier == ski:
                return i
    _logger.debug("SignerInfo sid matches no embedded certificate, using the first one")
    return 0


def _certificate_names(
    asn1_cert: asn1_x509.Certificate, cert: x509.Certificate
) -> tuple[str, str]:
    """Decode the subject and issuer strings of an embedded certificate.

    Both libraries decode name strings lazily; an undecodable one raises
    ValueError here instead of later, while the certificate is reported.
    """
    cert.subject.rfc4514_string()
    cert.issuer.rfc4514_string()
    return asn1_cert.subject.human_friendly, asn1_cert.issuer.human_friendly


def _read_pss_parameters(sig_algo: asn1_algos.SignedDigestAlgorithm) -> PssParameters:
    params = sig_algo["parameters"]
    hash_name = resolve_hash_algo(params["hash_algorithm"]["algorithm"].native)
    mgf = params["mask_gen_algorithm"]
    if mgf["algorithm"].native != "mgf1":
        raise MalformedSignature(f"Unsupported PSS mask generation: {mgf['algorithm'].native}")
    mgf_hash_name = resolve_hash_algo(mgf["parameters"]["algorithm"].native)
    if hash_name is None or mgf_hash_name is None:
        raise MalformedSignature("Unsupported hash algorithm in PSS parameters")
    return PssParameters(hash_name, mgf_hash_name, params["salt_length"].native)


def _read_signed_attributes(
    signer_info: asn1_cms.SignerInfo,
) -> tuple[
    tuple[SignedAttribute, ...] | None, bytes | None, bytes | None, datetime.datetime | None
]:
    """Return (attributes, re-encoded SET, message digest, signing time)."""
    signed_attrs = signer_info["signed_attrs"]
    if isinstance(signed_attrs, asn1_core.Void):
        return None, None, None, None

    attributes = tuple(
        SignedAttribute(
            oid=attr["type"].dotted,
            name=str(attr["type"].native),
            values=tuple(value.dump() for value in attr["values"]),
        )
        for attr in signed_attrs
    )

    # signed_attrs comes with context-specific [0] tagging; the signature
    # covers the universal SET OF encoding.
    signed_attrs_der = signed_attrs.untag().dump()

    digests = [attr for attr in signed_attrs if attr["type"].dotted == _OID_MESSAGE_DIGEST]
    if len(digests) != 1 or len(digests[0]["values"]) != 1:
        raise MalformedSignature("Signed attributes must hold exactly one messageDigest value")
    message_digest = digests[0]["values"][0].native

    signing_time = None
    for attr in signed_attrs:
        if attr["type"].dotted == _OID_SIGNING_TIME and len(attr["values"]) > 0:
            signing_time = attr["values"][0].native
            break

    return attributes, signed_attrs_der, message_digest, signing_time


def _map_signed_data(der: bytes) -> SignatureContainer:
    content_info = asn1_cms.ContentInfo.load(der)
    content_type = content_info["content_type"].native
    if content_type != "signed_data":
        raise MalformedSignature(f"Expected CMS signed_data, got {content_type}")

    signed_data = content_info["content"]
    signer_infos = signed_data["signer_infos"]
    if len(signer_infos) == 0:
        raise MalformedSignature("CMS SignedData has no SignerInfo")
    if len(signer_infos) > 1:
        _logger.debug("CMS holds %d SignerInfos, evaluating the first", len(signer_infos))
    signer_info = signer_infos[0]

    # Digest algorithm: try .native first (e.g. "sha256"), then .dotted OID
    algo_id = signer_info["digest_algorithm"]["algorithm"]
    digest_algorithm = resolve_hash_algo(algo_id.native) or resolve_hash_algo(algo_id.dotted)
    if digest_algorithm is None:
        raise MalformedSignature(
            f"Unsupported digest algorithm: {algo_id.native} ({algo_id.dotted})"
        )

    sig_algo = signer_info["signature_algorithm"]
    mechanism = sig_algo.signature_algo
    if mechanism not in SUPPORTED_SIGNATURE_MECHANISMS:
        raise MalformedSignature(f"Unsupported signature mechanism: {mechanism}")

    pss_parameters = _read_pss_parameters(sig_algo) if mechanism == "rsassa_pss" else None
    try:
        signature_hash = resolve_hash_algo(sig_algo.hash_algo) or digest_algorithm
    except ValueError:
        # Plain rsaEncryption and friends do not name a hash
        signature_hash = digest_algorithm

    attributes, signed_attrs_der, message_digest, signing_time = _read_signed_attributes(
        signer_info
    )

    cert_choices = signed_data["certificates"]
    asn1_certs: list[asn1_x509.Certificate] = []
    if not isinstance(cert_choices, asn1_core.Void):
        asn1_certs = [choice.chosen for choice in cert_choices if choice.name == "certificate"]
    if not asn1_certs:
        raise MalformedSignature("CMS SignedData embeds no X.509 certificate")
    certificates = tuple(x509.load_der_x509_certificate(cert.dump()) for cert in asn1_certs)
    for asn1_cert, cert in zip(asn1_certs, certificates, strict=True):
        subject, issuer = _certificate_names(asn1_cert, cert)
        _logger.debug("Embedded certificate: %s (issuer: %s)", subject, issuer)

    return SignatureContainer(
        digest_algorithm=digest_algorithm,
        signature_algorithm=mechanism,
        signature_hash=signature_hash,
        signature_value=signer_info["signature"].native,
        signed_attributes=attributes,
        signed_attributes_der=signed_attrs_der,
        message_digest=message_digest,
        signing_time=signing_time,
        certificates=certificates,
        signer_index=_find_signer_index(signer_info, asn1_certs),
        pss_parameters=pss_parameters,
        der=der,
    )


def decode_container(contents_hex: str) -> SignatureContainer:
    """Decode the hex /Contents of a signature field.

    Args:
        contents_hex: Raw text between the /Contents delimiters
            (zero padding and whitespace allowed).

    Returns:
        The decoded SignatureContainer.

    Raises:
        MalformedSignature: If the hex, the DER grammar or the CMS
            structure is invalid, or uses unsupported algorithms.
    """
    try:
        der = extract_der_from_padded_hex(contents_hex)
        tree = decode_der(der)
        _check_content_info_shape(tree)
    except ValueError as e:
        raise MalformedSignature(f"Invalid signature container: {e}") from e

    try:
        container = _map_signed_data(der)
    except (ValueError, TypeError, KeyError, IndexError, AttributeError) as e:
        raise MalformedSignature(f"Cannot decode CMS SignedData: {e}") from e

    _logger.debug(
        "Decoded CMS: %d bytes, %s/%s, %d certificate(s), signed attributes: %s",
        len(der),
        container.digest_algorithm,
        container.signature_algorithm,
        len(container.certificates),
        "yes" if container.signed_attributes is not None else "no",
    )
    return container
