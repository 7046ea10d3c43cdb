"""Tests for verifypdf.core.pdf.subfilter -- the subfilter policy gate."""

from __future__ import annotations

import pytest

from verifypdf.core.pdf.locator import SignatureField
from verifypdf.core.pdf.subfilter import SUPPORTED_SUB_FILTERS, SubFilter, check_sub_filter
from verifypdf.errors import UnsupportedSubfilter


def _field(sub_filter: str | None, index: int = 0) -> SignatureField:
    return SignatureField(
        index=index,
        byte_range=(0, 1, 2, 3),
        contents_hex="",
        contents_span=(1, 2),
        sub_filter=sub_filter,
    )


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("adbe.pkcs7.detached", SubFilter.ADBE_PKCS7_DETACHED),
        ("ETSI.CAdES.detached", SubFilter.ETSI_CADES_DETACHED),
        ("etsi.cades.detached", SubFilter.ETSI_CADES_DETACHED),
        ("/adbe.pkcs7.detached", SubFilter.ADBE_PKCS7_DETACHED),
        ("adbe.pkcs7.sha1", SubFilter.UNRECOGNIZED),
        ("adbe.x509.rsa_sha1", SubFilter.UNRECOGNIZED),
        ("ETSI.RFC3161", SubFilter.UNRECOGNIZED),
        ("unrecognized", SubFilter.UNRECOGNIZED),
        ("", SubFilter.UNRECOGNIZED),
        (None, SubFilter.UNRECOGNIZED),
    ],
)
def test_parse(raw, expected):
    assert SubFilter.parse(raw) is expected


def test_supported_set():
    assert SUPPORTED_SUB_FILTERS == {
        SubFilter.ADBE_PKCS7_DETACHED,
        SubFilter.ETSI_CADES_DETACHED,
    }
    assert not SubFilter.UNRECOGNIZED.is_supported


def test_check_accepts_supported():
    assert check_sub_filter(_field("adbe.pkcs7.detached")) is SubFilter.ADBE_PKCS7_DETACHED
    assert check_sub_filter(_field("ETSI.CAdES.detached")) is SubFilter.ETSI_CADES_DETACHED


def test_check_rejects_unknown():
    with pytest.raises(UnsupportedSubfilter, match=r"Signature #2 .*/adbe\.pkcs7\.sha1") as exc:
        check_sub_filter(_field("adbe.pkcs7.sha1", index=2))
    assert exc.value.sub_filter == "adbe.pkcs7.sha1"
    assert exc.value.field_index == 2


def test_check_rejects_missing():
    with pytest.raises(UnsupportedSubfilter, match="missing") as exc:
        check_sub_filter(_field(None))
    assert exc.value.sub_filter is None
    assert exc.value.field_index == 0
