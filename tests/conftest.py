"""Shared test fixtures for the verifypdf test suite."""

from __future__ import annotations

import pytest

from .pdf_samples import (
    Signer,
    make_certificate,
    make_ec_key,
    make_rsa_key,
    sign_pdf,
    unsigned_pdf,
)

# ── Keys and certificates (generated once per session) ──────────────


@pytest.fixture(scope="session")
def root_key():
    return make_rsa_key()


@pytest.fixture(scope="session")
def root_cert(root_key):
    return make_certificate("Test Root CA", root_key, serial=100, ca=True, organization="Test PKI")


@pytest.fixture(scope="session")
def intermediate_key():
    return make_rsa_key()


@pytest.fixture(scope="session")
def intermediate_cert(intermediate_key, root_cert, root_key):
    return make_certificate(
        "Test Intermediate CA",
        intermediate_key,
        issuer=root_cert,
        issuer_key=root_key,
        serial=200,
        ca=True,
        organization="Test PKI",
    )


@pytest.fixture(scope="session")
def leaf_key():
    return make_rsa_key()


@pytest.fixture(scope="session")
def leaf_cert(leaf_key, intermediate_cert, intermediate_key):
    return make_certificate(
        "Jane Signer",
        leaf_key,
        issuer=intermediate_cert,
        issuer_key=intermediate_key,
        serial=300,
        organization="Example Org",
        email="jane@example.com",
    )


@pytest.fixture(scope="session")
def self_signed_key():
    return make_rsa_key()


@pytest.fixture(scope="session")
def self_signed_cert(self_signed_key):
    return make_certificate("Self Signer", self_signed_key, serial=400)


@pytest.fixture(scope="session")
def ec_key():
    return make_ec_key()


@pytest.fixture(scope="session")
def ec_cert(ec_key):
    return make_certificate("EC Signer", ec_key, serial=500)


# ── Signers ──────────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def self_signer(self_signed_key, self_signed_cert):
    return Signer(self_signed_key, self_signed_cert)


@pytest.fixture(scope="session")
def chain_signer(leaf_key, leaf_cert, intermediate_cert, root_cert):
    return Signer(leaf_key, leaf_cert, (intermediate_cert, root_cert))


@pytest.fixture(scope="session")
def ec_signer(ec_key, ec_cert):
    return Signer(ec_key, ec_cert)


# ── Documents ────────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def base_pdf():
    """A one-page PDF with no signature."""
    return unsigned_pdf()


@pytest.fixture(scope="session")
def signed_pdf(base_pdf, self_signer):
    """One signature by a self-signed certificate."""
    return sign_pdf(base_pdf, self_signer)


@pytest.fixture(scope="session")
def chain_signed_pdf(base_pdf, chain_signer):
    """One signature by a leaf certificate shipped with its full chain."""
    return sign_pdf(base_pdf, chain_signer, name="Jane Signer", reason="Approval")


@pytest.fixture(scope="session")
def two_signature_pdf(chain_signed_pdf, self_signer):
    """The chain-signed PDF with a second, incremental self-signed signature."""
    return sign_pdf(chain_signed_pdf, self_signer, name="Second Signer")
