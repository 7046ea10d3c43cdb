"""Tests for verifypdf.core.pdf.verify -- end-to-end signature verification."""

from __future__ import annotations

import datetime
from unittest.mock import patch

import pikepdf
import pytest

from verifypdf.config import VerifyOptions
from verifypdf.core.pdf.locator import locate_signature_fields
from verifypdf.core.pdf.verify import (
    SignatureResult,
    VerificationResult,
    _check_pdf_structure,
    extract_certificates_info,
    verify_signatures,
)
from verifypdf.errors import MalformedByteRange, MalformedDocument, UnsupportedSubfilter

from .pdf_samples import (
    NOT_AFTER,
    NOT_BEFORE,
    PAGE_MEDIA_BOX,
    SIGNING_TIME,
    VERIFY_TIME,
    Signer,
    corrupt_container,
    rewrite_byte_range,
    sign_pdf,
    tamper_signature_value,
    with_undecodable_name,
)

_NO_STRUCTURE = {"check_structure": False}


def _verify(pdf, *anchors, at=VERIFY_TIME, **kwargs):
    options = VerifyOptions(trust_anchors=anchors, verification_time=at, **kwargs)
    return verify_signatures(pdf, options)


def _triad(sig):
    return sig.integrity, sig.authenticity, sig.expired


# ── Single signature ─────────────────────────────────────────────────


def test_self_signed_without_anchors(signed_pdf):
    result = _verify(signed_pdf)
    assert len(result.signatures) == 1
    sig = result.signatures[0]
    assert _triad(sig) == (True, False, False)
    assert not sig.verified
    assert not result.verified
    assert any("not a configured trust anchor" in d for d in sig.details)


def test_self_signed_with_anchor(signed_pdf, self_signed_cert):
    result = _verify(signed_pdf, self_signed_cert)
    assert result.verified
    assert (result.integrity, result.authenticity, result.expired) == (True, True, False)


def test_anchored_chain(chain_signed_pdf, root_cert):
    result = _verify(chain_signed_pdf, root_cert)
    sig = result.signatures[0]
    assert result.verified
    assert sig.verified
    assert not sig.degraded
    assert sig.error is None
    assert sig.details[0].startswith("ByteRange OK -- signed data:")
    assert "Signer: Jane Signer" in sig.details
    assert "Chain: ends at a trust anchor" in sig.details
    assert sig.details[-1] == "pikepdf: valid PDF, 1 page(s)"


def test_anchor_at_intermediate(chain_signed_pdf, intermediate_cert):
    assert _verify(chain_signed_pdf, intermediate_cert).verified


def test_unrelated_anchor(chain_signed_pdf, self_signed_cert):
    sig = _verify(chain_signed_pdf, self_signed_cert).signatures[0]
    assert _triad(sig) == (True, False, False)


def test_result_carries_metadata(chain_signed_pdf, root_cert):
    sig = _verify(chain_signed_pdf, root_cert).signatures[0]
    assert sig.index == 0
    assert sig.sub_filter == "adbe.pkcs7.detached"
    assert len(sig.byte_range) == 4
    assert sig.meta.name == "Jane Signer"
    assert sig.meta.reason == "Approval"
    assert sig.meta.signing_time == SIGNING_TIME
    assert {c.name for c in sig.certificates} == {
        "Jane Signer",
        "Test Intermediate CA",
        "Test Root CA",
    }
    assert [c.name for c in sig.certificates if c.is_signer] == ["Jane Signer"]


def test_cades_subfilter_accepted(base_pdf, self_signer, self_signed_cert):
    pdf = sign_pdf(base_pdf, self_signer, sub_filter="ETSI.CAdES.detached")
    result = _verify(pdf, self_signed_cert)
    assert result.verified
    assert result.signatures[0].sub_filter == "ETSI.CAdES.detached"


def test_ecdsa_signature(base_pdf, ec_signer, ec_cert):
    assert _verify(sign_pdf(base_pdf, ec_signer), ec_cert).verified


# ── Tampering ────────────────────────────────────────────────────────


def test_modified_signed_bytes(chain_signed_pdf, root_cert):
    tampered = chain_signed_pdf.replace(PAGE_MEDIA_BOX, PAGE_MEDIA_BOX.replace(b"612", b"613"), 1)
    assert tampered != chain_signed_pdf
    result = _verify(tampered, root_cert)
    sig = result.signatures[0]
    assert _triad(sig) == (False, False, False)
    assert not result.verified
    assert any("Hash MISMATCH!" in d for d in sig.details)
    assert "Authenticity and expiry not evaluated: integrity check failed" in sig.details


def test_tampered_signature_value(chain_signed_pdf, root_cert):
    sig = _verify(tamper_signature_value(chain_signed_pdf), root_cert).signatures[0]
    assert _triad(sig) == (False, False, False)
    assert not sig.degraded


def test_corrupt_container_is_unknown(signed_pdf, self_signed_cert):
    result = _verify(corrupt_container(signed_pdf), self_signed_cert)
    sig = result.signatures[0]
    assert _triad(sig) == (None, None, None)
    assert sig.degraded
    assert sig.error
    assert sig.certificates == ()
    assert not sig.verified
    assert not result.verified
    assert (result.integrity, result.authenticity, result.expired) == (None, None, None)
    assert any(d.startswith("Container error:") for d in sig.details)


def test_unknown_field_does_not_stop_others(two_signature_pdf, root_cert, self_signed_cert):
    # The first revision does not cover the second signature's container
    result = _verify(corrupt_container(two_signature_pdf, 1), root_cert, self_signed_cert)
    first, second = result.signatures
    assert first.verified
    assert _triad(second) == (None, None, None)
    assert result.integrity is True
    assert not result.verified


def test_undecodable_certificate_name_is_unknown(
    base_pdf, self_signer, self_signed_cert, leaf_cert
):
    broken = with_undecodable_name(leaf_cert, "Example Org")
    pdf = sign_pdf(base_pdf, Signer(self_signer.key, self_signer.certificate, (broken,)))
    result = _verify(pdf, self_signed_cert)
    sig = result.signatures[0]
    assert _triad(sig) == (None, None, None)
    assert sig.degraded
    assert not result.verified
    assert extract_certificates_info(pdf) == [()]


def test_out_of_range_date_offset_is_ignored(signed_pdf):
    # Same length as the original /M entry
    pdf = signed_pdf.replace(b"/M (D:20260101120000Z)", b"/M (D:20260101+99'00')", 1)
    assert pdf != signed_pdf
    sig = _verify(pdf).signatures[0]
    assert sig.meta.signing_time is None
    # /M lies inside the signed bytes
    assert _triad(sig) == (False, False, False)


# ── Fatal errors ─────────────────────────────────────────────────────


def test_unsigned_pdf(base_pdf):
    with pytest.raises(MalformedDocument, match="No signature dictionary"):
        _verify(base_pdf)


def test_unsupported_subfilter(base_pdf, self_signer):
    pdf = sign_pdf(base_pdf, self_signer, sub_filter="adbe.pkcs7.sha1")
    with pytest.raises(UnsupportedSubfilter) as exc:
        _verify(pdf)
    assert exc.value.sub_filter == "adbe.pkcs7.sha1"
    assert exc.value.field_index == 0


def test_unsupported_subfilter_on_later_field(chain_signed_pdf, self_signer, root_cert):
    pdf = sign_pdf(chain_signed_pdf, self_signer, sub_filter="adbe.x509.rsa_sha1")
    with pytest.raises(UnsupportedSubfilter) as exc:
        _verify(pdf, root_cert)
    assert exc.value.field_index == 1


def test_missing_subfilter(base_pdf, self_signer):
    pdf = sign_pdf(base_pdf, self_signer, sub_filter=None)
    with pytest.raises(UnsupportedSubfilter) as exc:
        _verify(pdf)
    assert exc.value.sub_filter is None


def test_subfilter_checked_before_decoding(base_pdf, self_signer):
    pdf = corrupt_container(sign_pdf(base_pdf, self_signer, sub_filter="adbe.pkcs7.sha1"))
    with pytest.raises(UnsupportedSubfilter):
        _verify(pdf)


def test_bad_byte_range(signed_pdf):
    _, len1, off2, len2 = locate_signature_fields(signed_pdf)[0].byte_range
    pdf = rewrite_byte_range(signed_pdf, 0, (0, len1, off2 + 1, len2 - 1))
    with pytest.raises(MalformedByteRange):
        _verify(pdf)


# ── Multiple signatures ──────────────────────────────────────────────


def test_two_signatures_all_anchored(two_signature_pdf, root_cert, self_signed_cert):
    result = _verify(two_signature_pdf, root_cert, self_signed_cert)
    assert [sig.index for sig in result.signatures] == [0, 1]
    assert all(sig.verified for sig in result.signatures)
    assert result.verified
    assert result.signatures[1].meta.name == "Second Signer"


def test_two_signatures_one_anchored(two_signature_pdf, root_cert):
    result = _verify(two_signature_pdf, root_cert)
    first, second = result.signatures
    assert first.verified
    assert _triad(second) == (True, False, False)
    assert not result.verified
    # The top-level fields mirror the first signature
    assert (result.integrity, result.authenticity, result.expired) == (True, True, False)


def test_first_signature_survives_incremental_update(
    chain_signed_pdf, two_signature_pdf, root_cert
):
    before = _verify(chain_signed_pdf, root_cert).signatures[0]
    after = _verify(two_signature_pdf, root_cert).signatures[0]
    assert _triad(after) == _triad(before) == (True, True, False)
    assert after.byte_range == before.byte_range


# ── Expiry ───────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "moment",
    [NOT_AFTER + datetime.timedelta(days=1), NOT_BEFORE - datetime.timedelta(days=1)],
)
def test_expired_chain(chain_signed_pdf, root_cert, moment):
    result = _verify(chain_signed_pdf, root_cert, at=moment)
    sig = result.signatures[0]
    assert _triad(sig) == (True, True, True)
    assert not result.verified
    assert any("not valid at" in d for d in sig.details)


def test_verification_time_defaults_to_now(chain_signed_pdf, root_cert):
    result = verify_signatures(chain_signed_pdf, VerifyOptions(trust_anchors=[root_cert]))
    assert result.signatures[0].integrity is True


# ── Determinism and structure check ──────────────────────────────────


def test_deterministic(two_signature_pdf, root_cert):
    assert _verify(two_signature_pdf, root_cert) == _verify(two_signature_pdf, root_cert)


def test_structure_check_disabled(signed_pdf):
    sig = _verify(signed_pdf, **_NO_STRUCTURE).signatures[0]
    assert not any(d.startswith("pikepdf:") for d in sig.details)


def test_structure_check_on_every_signature(two_signature_pdf):
    for sig in _verify(two_signature_pdf).signatures:
        assert sig.details[-1] == "pikepdf: valid PDF, 1 page(s)"


def test_structure_warning_does_not_change_verdict(chain_signed_pdf, root_cert):
    with patch("pikepdf.open", side_effect=pikepdf.PdfError("broken page tree")):
        result = _verify(chain_signed_pdf, root_cert)
    sig = result.signatures[0]
    assert result.verified
    assert sig.details[-1] == "pikepdf: structural warning -- broken page tree"


def test_check_pdf_structure_on_garbage():
    assert _check_pdf_structure(b"not a pdf").startswith("pikepdf: structural warning --")


# ── Result types ─────────────────────────────────────────────────────


def test_aggregate_of_nothing():
    result = VerificationResult.aggregate(())
    assert not result.verified
    assert result.integrity is None


def test_signature_result_unknown_constructor(signed_pdf):
    field = locate_signature_fields(signed_pdf)[0]
    sig = SignatureResult.unknown(field, "bad container")
    assert sig.error == "bad container"
    assert sig.degraded
    assert not sig.verified
    assert sig.meta == field.meta
