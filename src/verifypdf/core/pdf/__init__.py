"""PDF signature location, extraction, decoding and verification."""

from .asn1 import Asn1Node, decode_der, extract_der_from_padded_hex
from .container import (
    SUPPORTED_SIGNATURE_MECHANISMS,
    PssParameters,
    SignatureContainer,
    SignedAttribute,
    decode_container,
    resolve_hash_algo,
)
from .extraction import extract_signed_content, validate_byte_range
from .locator import (
    BYTERANGE_PATTERN,
    SignatureField,
    SignatureMeta,
    decode_pdf_text,
    locate_signature_fields,
    parse_pdf_date,
)
from .subfilter import SUPPORTED_SUB_FILTERS, SubFilter, check_sub_filter
from .verify import (
    SignatureResult,
    VerificationResult,
    extract_certificates_info,
    verify_signatures,
)

__all__ = [
    "BYTERANGE_PATTERN",
    "SUPPORTED_SIGNATURE_MECHANISMS",
    "SUPPORTED_SUB_FILTERS",
    "Asn1Node",
    "PssParameters",
    "SignatureContainer",
    "SignatureField",
    "SignatureMeta",
    "SignatureResult",
    "SignedAttribute",
    "SubFilter",
    "VerificationResult",
    "check_sub_filter",
    "decode_container",
    "decode_der",
    "decode_pdf_text",
    "extract_certificates_info",
    "extract_der_from_padded_hex",
    "extract_signed_content",
    "locate_signature_fields",
    "parse_pdf_date",
    "resolve_hash_algo",
    "validate_byte_range",
    "verify_signatures",
]
