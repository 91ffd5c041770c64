"""Shared fixtures for vcjwt tests."""

import json
from pathlib import Path

import pytest

from vcjwt.keys import (
    did_key_verification_method,
    generate_ed25519_keypair,
    generate_p256_keypair,
    public_key_to_did_key,
)
from vcjwt.models import Credential, Presentation
from vcjwt.tokens import Signer, Verifier

FIXTURES_DIR = Path(__file__).parent / "fixtures"

VERIFIER_DID = "did:web:verifier.example.com"
VERIFIER_KID = "did:web:verifier.example.com#key-1"


# ---------------------------------------------------------------------------
# Key pairs
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def ed25519_keypair():
    return generate_ed25519_keypair()


@pytest.fixture(scope="session")
def ed25519_private_key(ed25519_keypair):
    return ed25519_keypair[0]


@pytest.fixture(scope="session")
def ed25519_public_key(ed25519_keypair):
    return ed25519_keypair[1]


@pytest.fixture(scope="session")
def p256_keypair():
    return generate_p256_keypair()


@pytest.fixture(scope="session")
def p256_private_key(p256_keypair):
    return p256_keypair[0]


@pytest.fixture(scope="session")
def p256_public_key(p256_keypair):
    return p256_keypair[1]


# ---------------------------------------------------------------------------
# Issuer (P-256 did:key)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def issuer_did(p256_public_key):
    return public_key_to_did_key(p256_public_key)


@pytest.fixture(scope="session")
def issuer_kid(issuer_did):
    """A did:key verification method ID (did:key:zDn...#zDn...)."""
    return did_key_verification_method(issuer_did)


@pytest.fixture(scope="session")
def issuer_signer(issuer_did, issuer_kid, p256_private_key):
    return Signer(id=issuer_did, private_key=p256_private_key, kid=issuer_kid)


@pytest.fixture(scope="session")
def issuer_verifier(issuer_did, issuer_kid, p256_public_key):
    return Verifier(id=issuer_did, public_key=p256_public_key, kid=issuer_kid)


# ---------------------------------------------------------------------------
# Holder (Ed25519 did:key)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def holder_did(ed25519_public_key):
    return public_key_to_did_key(ed25519_public_key)


@pytest.fixture(scope="session")
def holder_kid(holder_did):
    return did_key_verification_method(holder_did)


@pytest.fixture(scope="session")
def holder_signer(holder_did, holder_kid, ed25519_private_key):
    return Signer(id=holder_did, private_key=ed25519_private_key, kid=holder_kid)


@pytest.fixture()
def presentation_verifier(ed25519_public_key):
    """The relying party checking the holder's VP signature."""
    return Verifier(id=VERIFIER_DID, public_key=ed25519_public_key, kid=VERIFIER_KID)


# ---------------------------------------------------------------------------
# Sample credentials
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_vc():
    """A minimal unsigned VC dict (W3C VC Data Model 1.1 structure)."""
    with open(FIXTURES_DIR / "sample-vc.json") as f:
        return json.load(f)


@pytest.fixture()
def sample_credential(sample_vc):
    return Credential.from_dict(sample_vc)


@pytest.fixture()
def issued_credential(sample_vc, issuer_did):
    """The sample credential, issued by the did:key issuer."""
    credential = Credential.from_dict(sample_vc)
    credential.issuer = issuer_did
    return credential


@pytest.fixture()
def sample_presentation(holder_did):
    return Presentation(
        context=["https://www.w3.org/2018/credentials/v1"],
        id="urn:uuid:7f0c1a52-2c7e-4a54-9b1c-1f6a3e1c2b9d",
        holder=holder_did,
        type=["VerifiablePresentation"],
    )
