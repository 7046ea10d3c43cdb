"""
Verification of embedded PDF signatures.

Locates every signature field, applies the subfilter policy to all of
them, then checks integrity, authenticity and certificate expiry of each
signature in document order.  Supports multi-signature PDFs.
"""

from __future__ import annotations

__all__ = [
    "SignatureResult",
    "VerificationResult",
    "extract_certificates_info",
    "verify_signatures",
]

import io
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ...errors import MalformedSignature
from .. import require_pikepdf as _require_pikepdf
from ..cert_info import CertificateInfo, describe_container
from ..chain import check_authenticity
from ..integrity import check_integrity
from .container import decode_container
from .extraction import extract_signed_content
from .locator import SignatureField, SignatureMeta, locate_signature_fields
from .subfilter import check_sub_filter

if TYPE_CHECKING:
    import datetime

    from ...config import VerifyOptions

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignatureResult:
    """Result of verifying one signature field.

    ``integrity``, ``authenticity`` and ``expired`` are ``None`` when the
    signature container could not be decoded (see :meth:`unknown`).

    Attributes:
        index: Position of the field in document order.
        integrity: The signed bytes are unaltered and the signature verifies.
        authenticity: The signer chains to a configured trust anchor.
        expired: A chain certificate is outside its validity period at the
            verification instant.
        sub_filter: /SubFilter of the field as written.
        byte_range: /ByteRange of the field.
        meta: Signature dictionary metadata.
        certificates: Certificates of the container (empty if undecodable).
        error: Why the signature could not be evaluated, else None.
        details: Human-readable messages.
    """

    index: int
    integrity: bool | None
    authenticity: bool | None
    expired: bool | None
    sub_filter: str | None
    byte_range: tuple[int, ...]
    meta: SignatureMeta = field(default_factory=SignatureMeta)
    certificates: tuple[CertificateInfo, ...] = ()
    error: str | None = None
    details: tuple[str, ...] = ()

    @classmethod
    def evaluated(
        cls,
        sig_field: SignatureField,
        *,
        integrity: bool,
        authenticity: bool,
        expired: bool,
        certificates: tuple[CertificateInfo, ...] = (),
        details: tuple[str, ...] = (),
    ) -> SignatureResult:
        """Build the result of a signature whose checks all ran."""
        return cls(
            index=sig_field.index,
            integrity=integrity,
            authenticity=authenticity,
            expired=expired,
            sub_filter=sig_field.sub_filter,
            byte_range=sig_field.byte_range,
            meta=sig_field.meta,
            certificates=certificates,
            details=details,
        )

    @classmethod
    def unknown(
        cls, sig_field: SignatureField, error: str, *, details: tuple[str, ...] = ()
    ) -> SignatureResult:
        """Build the result of a signature that could not be evaluated."""
        return cls(
            index=sig_field.index,
            integrity=None,
            authenticity=None,
            expired=None,
            sub_filter=sig_field.sub_filter,
            byte_range=sig_field.byte_range,
            meta=sig_field.meta,
            error=error,
            details=details,
        )

    @property
    def verified(self) -> bool:
        return self.integrity is True and self.authenticity is True and self.expired is False

    @property
    def degraded(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class VerificationResult:
    """Result of verifying a whole document.

    ``integrity``, ``authenticity`` and ``expired`` mirror the first
    signature; ``verified`` holds only if every signature verifies.
    """

    verified: bool
    integrity: bool | None
    authenticity: bool | None
    expired: bool | None
    signatures: tuple[SignatureResult, ...]

    @classmethod
    def aggregate(cls, signatures: tuple[SignatureResult, ...]) -> VerificationResult:
        if not signatures:
            return cls(False, None, None, None, ())
        first = signatures[0]
        return cls(
            verified=all(sig.verified for sig in signatures),
            integrity=first.integrity,
            authenticity=first.authenticity,
            expired=first.expired,
            signatures=signatures,
        )


def _check_pdf_structure(pdf_bytes: bytes) -> str:
    """Open the document with pikepdf and describe the outcome.

    Informational only: some validly signed PDFs have page trees pikepdf
    rejects, so the result never changes a verdict.
    """
    pikepdf = _require_pikepdf()
    try:
        with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
            page_count = len(pdf.pages)
    except (ValueError, RuntimeError, OSError, pikepdf.PdfError) as e:
        _logger.warning("pikepdf structural check failed (non-fatal): %s", e)
        return f"pikepdf: structural warning -- {e}"
    return f"pikepdf: valid PDF, {page_count} page(s)"


def _verify_field(
    pdf_bytes: bytes,
    sig_field: SignatureField,
    options: VerifyOptions,
    verification_time: datetime.datetime,
    extra_details: tuple[str, ...],
) -> SignatureResult:
    """Run extraction, decoding and the three checks for one field."""
    # ── 1. Signed content (fatal on a bad ByteRange) ─────────────
    signed_content = extract_signed_content(pdf_bytes, sig_field)
    details = [f"ByteRange OK -- signed data: {len(signed_content)} bytes"]

    # ── 2. Container ─────────────────────────────────────────────
    try:
        container = decode_container(sig_field.contents_hex)
    except MalformedSignature as e:
        _logger.warning("Signature #%d cannot be evaluated: %s", sig_field.index, e)
        details.append(f"Container error: {e}")
        return SignatureResult.unknown(sig_field, str(e), details=(*details, *extra_details))

    details.append(f"CMS blob: {len(container.der)} bytes")
    certificates = describe_container(container)
    signer = certificates[container.signer_index]
    if signer.name:
        details.append(f"Signer: {signer.name}")

    # ── 3. Integrity ─────────────────────────────────────────────
    integrity = check_integrity(signed_content, container)
    details.extend(integrity.details)

    # ── 4. Authenticity and expiry ───────────────────────────────
    if not integrity.ok:
        details.append("Authenticity and expiry not evaluated: integrity check failed")
        authenticity = expired = False
    else:
        auth = check_authenticity(container, options.trust_anchors, verification_time)
        details.extend(auth.details)
        authenticity = auth.authenticity
        expired = auth.expired

    _logger.debug(
        "Signature #%d: integrity=%s authenticity=%s expired=%s",
        sig_field.index,
        integrity.ok,
        authenticity,
        expired,
    )
    return SignatureResult.evaluated(
        sig_field,
        integrity=integrity.ok,
        authenticity=authenticity,
        expired=expired,
        certificates=certificates,
        details=(*details, *extra_details),
    )


def verify_signatures(pdf_bytes: bytes, options: VerifyOptions) -> VerificationResult:
    """
    Verify ALL embedded signatures in a PDF.

    Every field passes the subfilter policy before any container is
    decoded.  A container that cannot be decoded yields an *unknown*
    result for that field; the remaining fields are still verified.
    When integrity fails, authenticity and expiry are recorded as False
    without being evaluated.

    Args:
        pdf_bytes: The signed PDF.
        options: Trust anchors, verification instant and structure check.

    Returns:
        VerificationResult with one SignatureResult per field, in
        document order.

    Raises:
        MalformedDocument: If no signature field can be located.
        MalformedByteRange: If a /ByteRange violates the span invariants.
        UnsupportedSubfilter: If any field uses an unsupported subfilter.
    """
    fields = locate_signature_fields(pdf_bytes)
    for sig_field in fields:
        check_sub_filter(sig_field)

    verification_time = options.resolved_time()
    extra_details: tuple[str, ...] = ()
    if options.check_structure:
        extra_details = (_check_pdf_structure(pdf_bytes),)

    results = tuple(
        _verify_field(pdf_bytes, sig_field, options, verification_time, extra_details)
        for sig_field in fields
    )
    result = VerificationResult.aggregate(results)
    _logger.debug("Verified %d signature(s): verified=%s", len(results), result.verified)
    return result


def extract_certificates_info(pdf_bytes: bytes) -> list[tuple[CertificateInfo, ...]]:
    """
    Extract certificate info from ALL signatures in a signed PDF.

    Does not verify anything and does not apply the subfilter policy:
    every container that decodes is described.

    Args:
        pdf_bytes: Raw bytes of a signed PDF.

    Returns:
        One tuple per signature field, in document order; the tuple is
        empty when that field's container cannot be decoded.

    Raises:
        MalformedDocument: If the PDF has no signature field.
    """
    results: list[tuple[CertificateInfo, ...]] = []
    for sig_field in locate_signature_fields(pdf_bytes):
        try:
            container = decode_container(sig_field.contents_hex)
        except MalformedSignature as exc:  # noqa: PERF203 -- each iteration parses an independent CMS blob
            _logger.debug("Skipping signature #%d (decoding failed): %s", sig_field.index, exc)
            results.append(())
            continue
        results.append(describe_container(container))
    return results
