"""Tests for VC/VP JWT verification."""

import pytest

from vcjwt.errors import (
    AudienceMismatchError,
    CredentialVerificationError,
    PreconditionError,
    ResolutionError,
    TokenParseError,
    VerificationError,
)
from vcjwt.keys import (
    did_key_verification_method,
    generate_p256_keypair,
    public_key_to_did_key,
)
from vcjwt.models import Presentation
from vcjwt.resolver import KeyResolver, ResolutionContext
from vcjwt.signer import VPParameters, sign_vc_jwt, sign_vp_jwt
from vcjwt.tokens import Signer, Verifier
from vcjwt.verifier import (
    parse_vc_jwt,
    parse_vp_jwt,
    verify_credential_signature,
    verify_vc_jwt,
    verify_vp_jwt,
)

VERIFIER_DID = "did:web:verifier.example.com"
VERIFIER_KID = "did:web:verifier.example.com#key-1"


class SpyResolver(KeyResolver):
    """Records every identifier it is asked to resolve."""

    def __init__(self):
        self.calls = []

    def resolve(self, ctx, did):
        self.calls.append(did)
        return super().resolve(ctx, did)


# ---------------------------------------------------------------------------
# VC verification
# ---------------------------------------------------------------------------


def test_verify_vc_jwt_p256(issued_credential, issuer_signer, issuer_verifier):
    token = sign_vc_jwt(issuer_signer, issued_credential)
    result = verify_vc_jwt(issuer_verifier, token)

    assert result.credential.issuer == issued_credential.issuer
    assert result.credential.id == issued_credential.id
    assert result.credential.credential_subject == issued_credential.credential_subject
    assert result.headers["typ"] == "JWT"


def test_verify_vc_jwt_ed25519(sample_credential, ed25519_private_key, ed25519_public_key):
    signer = Signer(id="did:example:123", private_key=ed25519_private_key)
    verifier = Verifier(id="did:example:123", public_key=ed25519_public_key)
    token = sign_vc_jwt(signer, sample_credential)
    result = verify_vc_jwt(verifier, token)
    assert result.credential.issuer == "did:example:123"


def test_verify_vc_jwt_wrong_key(issued_credential, issuer_signer):
    _, other_public = generate_p256_keypair()
    verifier = Verifier(id="did:example:other", public_key=other_public)
    token = sign_vc_jwt(issuer_signer, issued_credential)
    with pytest.raises(VerificationError):
        verify_vc_jwt(verifier, token)


def test_verify_vc_jwt_key_type_mismatch(issued_credential, issuer_signer, ed25519_public_key):
    verifier = Verifier(id="did:example:other", public_key=ed25519_public_key)
    token = sign_vc_jwt(issuer_signer, issued_credential)
    with pytest.raises(VerificationError):
        verify_vc_jwt(verifier, token)


def test_parse_vc_jwt_does_not_check_signature(issued_credential, issuer_signer):
    token = sign_vc_jwt(issuer_signer, issued_credential)
    header, payload, _ = token.split(".")
    result = parse_vc_jwt(f"{header}.{payload}.AAAA")
    assert result.credential.id == issued_credential.id


def test_verify_vc_jwt_non_object_subject(issuer_signer, issuer_verifier):
    claims = {
        "vc": {"type": ["VerifiableCredential"], "credentialSubject": [{"name": "x"}]},
        "iss": issuer_signer.id,
        "sub": "did:example:456",
    }
    token = issuer_signer.sign(claims, {"alg": issuer_signer.alg, "typ": "JWT"})
    with pytest.raises(TokenParseError, match="credentialSubject"):
        verify_vc_jwt(issuer_verifier, token)


def test_parse_vc_jwt_malformed():
    with pytest.raises(TokenParseError):
        parse_vc_jwt("not-a-jwt")


# ---------------------------------------------------------------------------
# VP verification
# ---------------------------------------------------------------------------


def test_verify_vp_jwt_roundtrip(
    issued_credential, issuer_signer, sample_presentation, holder_signer, presentation_verifier
):
    vc_token = sign_vc_jwt(issuer_signer, issued_credential)
    sample_presentation.verifiable_credential = [vc_token]
    params = VPParameters(audience=[VERIFIER_DID])
    vp_token = sign_vp_jwt(holder_signer, params, sample_presentation)

    result = verify_vp_jwt(None, presentation_verifier, KeyResolver(), vp_token)

    presentation = result.presentation
    assert presentation.holder == sample_presentation.holder
    assert presentation.id == sample_presentation.id
    assert presentation.verifiable_credential == [vc_token]
    assert result.token.audience == [VERIFIER_DID]


def test_verify_vp_jwt_preserves_credential_order(
    issued_credential, issuer_signer, sample_presentation, holder_signer, presentation_verifier
):
    tokens = []
    for i in range(3):
        issued_credential.id = f"urn:uuid:credential-{i}"
        tokens.append(sign_vc_jwt(issuer_signer, issued_credential))
    sample_presentation.verifiable_credential = tokens
    vp_token = sign_vp_jwt(holder_signer, None, sample_presentation)

    result = verify_vp_jwt(None, presentation_verifier, KeyResolver(), vp_token)
    ids = [parse_vc_jwt(t).credential.id for t in result.presentation.verifiable_credential]
    assert ids == ["urn:uuid:credential-0", "urn:uuid:credential-1", "urn:uuid:credential-2"]


def test_verify_vp_jwt_empty_credential_list(
    sample_presentation, holder_signer, presentation_verifier
):
    vp_token = sign_vp_jwt(holder_signer, None, sample_presentation)
    result = verify_vp_jwt(None, presentation_verifier, KeyResolver(), vp_token)
    assert result.presentation.verifiable_credential == []


def test_verify_vp_jwt_requires_resolver(
    sample_presentation, holder_signer, presentation_verifier
):
    vp_token = sign_vp_jwt(holder_signer, None, sample_presentation)
    with pytest.raises(PreconditionError, match="resolver"):
        verify_vp_jwt(None, presentation_verifier, None, vp_token)


def test_verify_vp_jwt_bad_signature(sample_presentation, holder_signer, p256_public_key):
    verifier = Verifier(id=VERIFIER_DID, public_key=p256_public_key)
    vp_token = sign_vp_jwt(holder_signer, None, sample_presentation)
    with pytest.raises(VerificationError, match="verifying JWT"):
        verify_vp_jwt(None, verifier, KeyResolver(), vp_token)


def test_verify_vp_jwt_requires_iss(presentation_verifier, ed25519_private_key):
    # no holder, so no iss claim is written
    signer = Signer(id="did:example:anonymous", private_key=ed25519_private_key)
    presentation = Presentation(type=["VerifiablePresentation"])
    vp_token = sign_vp_jwt(signer, None, presentation)
    with pytest.raises(TokenParseError, match="did not find iss property"):
        verify_vp_jwt(None, presentation_verifier, KeyResolver(), vp_token)


class TestAudience:
    def _sign(self, holder_signer, sample_presentation, audience):
        return sign_vp_jwt(holder_signer, VPParameters(audience=audience), sample_presentation)

    def test_mismatch(self, holder_signer, sample_presentation, presentation_verifier):
        vp_token = self._sign(holder_signer, sample_presentation, ["did:web:someone-else"])
        with pytest.raises(AudienceMismatchError, match="audience mismatch") as exc_info:
            verify_vp_jwt(None, presentation_verifier, KeyResolver(), vp_token)

        err = exc_info.value
        assert err.expected_id == VERIFIER_DID
        assert err.expected_kid == VERIFIER_KID
        assert err.audience == ["did:web:someone-else"]

    def test_match_by_id(self, holder_signer, sample_presentation, presentation_verifier):
        vp_token = self._sign(holder_signer, sample_presentation, ["did:web:x", VERIFIER_DID])
        verify_vp_jwt(None, presentation_verifier, KeyResolver(), vp_token)

    def test_match_by_kid(self, holder_signer, sample_presentation, presentation_verifier):
        vp_token = self._sign(holder_signer, sample_presentation, [VERIFIER_KID])
        verify_vp_jwt(None, presentation_verifier, KeyResolver(), vp_token)

    def test_no_audience_skips_check(
        self, holder_signer, sample_presentation, presentation_verifier
    ):
        vp_token = sign_vp_jwt(holder_signer, None, sample_presentation)
        verify_vp_jwt(None, presentation_verifier, KeyResolver(), vp_token)

    @pytest.mark.parametrize(
        "audience",
        [[123], {"x": "did:web:other"}, [VERIFIER_DID, None]],
        ids=["ints", "object", "mixed"],
    )
    def test_malformed_audience_rejected(
        self, audience, holder_signer, sample_presentation, presentation_verifier
    ):
        # set_claim refuses these, so sign the claim set directly
        claims = {
            "vp": {"type": ["VerifiablePresentation"]},
            "iss": holder_signer.id,
            "aud": audience,
        }
        vp_token = holder_signer.sign(claims, {"alg": holder_signer.alg, "typ": "JWT"})
        with pytest.raises(TokenParseError, match="aud claim"):
            verify_vp_jwt(None, presentation_verifier, KeyResolver(), vp_token)


# ---------------------------------------------------------------------------
# Embedded credentials
# ---------------------------------------------------------------------------


def test_first_failing_credential_stops_verification(
    issued_credential, issuer_signer, sample_presentation, holder_signer, presentation_verifier
):
    # Second credential claims the issuer's DID but is signed with another key
    other_private, _ = generate_p256_keypair()
    forger = Signer(
        id=issuer_signer.id, private_key=other_private, kid=issuer_signer.kid
    )
    good = sign_vc_jwt(issuer_signer, issued_credential)
    forged = sign_vc_jwt(forger, issued_credential)
    sample_presentation.verifiable_credential = [good, forged, good]
    vp_token = sign_vp_jwt(holder_signer, None, sample_presentation)

    resolver = SpyResolver()
    with pytest.raises(CredentialVerificationError, match="verifying credential 1") as exc_info:
        verify_vp_jwt(None, presentation_verifier, resolver, vp_token)

    assert exc_info.value.index == 1
    assert isinstance(exc_info.value.__cause__, VerificationError)
    assert len(resolver.calls) == 2


def test_unresolvable_issuer(sample_credential, sample_presentation, holder_signer,
                             presentation_verifier, p256_private_key):
    # did:example cannot be resolved by the did:key resolver
    signer = Signer(id="did:example:123", private_key=p256_private_key)
    sample_presentation.verifiable_credential = [sign_vc_jwt(signer, sample_credential)]
    vp_token = sign_vp_jwt(holder_signer, None, sample_presentation)

    with pytest.raises(CredentialVerificationError) as exc_info:
        verify_vp_jwt(None, presentation_verifier, KeyResolver(), vp_token)
    assert exc_info.value.index == 0
    assert isinstance(exc_info.value.__cause__, ResolutionError)


def test_unknown_kid(issued_credential, issuer_signer, sample_presentation, holder_signer,
                     presentation_verifier, p256_private_key):
    signer = Signer(id=issuer_signer.id, private_key=p256_private_key, kid="#missing")
    sample_presentation.verifiable_credential = [sign_vc_jwt(signer, issued_credential)]
    vp_token = sign_vp_jwt(holder_signer, None, sample_presentation)

    with pytest.raises(CredentialVerificationError, match="not found"):
        verify_vp_jwt(None, presentation_verifier, KeyResolver(), vp_token)


def test_credential_without_kid_uses_first_method(
    issued_credential, sample_presentation, holder_signer, presentation_verifier,
    p256_private_key, issuer_did,
):
    signer = Signer(id=issuer_did, private_key=p256_private_key)
    sample_presentation.verifiable_credential = [sign_vc_jwt(signer, issued_credential)]
    vp_token = sign_vp_jwt(holder_signer, None, sample_presentation)
    verify_vp_jwt(None, presentation_verifier, KeyResolver(), vp_token)


def test_credential_object_is_rejected(
    sample_credential, sample_presentation, holder_signer, presentation_verifier
):
    sample_presentation.verifiable_credential = [sample_credential]
    vp_token = sign_vp_jwt(holder_signer, None, sample_presentation)

    with pytest.raises(CredentialVerificationError, match="must have a proof") as exc_info:
        verify_vp_jwt(None, presentation_verifier, KeyResolver(), vp_token)
    assert exc_info.value.index == 0


@pytest.mark.parametrize(
    "ctx_factory",
    [
        pytest.param(lambda: _cancelled_context(), id="cancelled"),
        pytest.param(lambda: ResolutionContext(timeout=0), id="expired"),
    ],
)
def test_done_context_fails_credential_resolution(
    ctx_factory, issued_credential, issuer_signer, sample_presentation, holder_signer,
    presentation_verifier,
):
    sample_presentation.verifiable_credential = [sign_vc_jwt(issuer_signer, issued_credential)]
    vp_token = sign_vp_jwt(holder_signer, None, sample_presentation)

    with pytest.raises(CredentialVerificationError) as exc_info:
        verify_vp_jwt(ctx_factory(), presentation_verifier, KeyResolver(), vp_token)
    assert exc_info.value.index == 0
    assert isinstance(exc_info.value.__cause__, ResolutionError)


def test_parse_vp_jwt(sample_presentation, holder_signer):
    vp_token = sign_vp_jwt(holder_signer, None, sample_presentation)
    result = parse_vp_jwt(vp_token)
    assert result.presentation.holder == holder_signer.id
    assert result.token.kid == holder_signer.kid


# ---------------------------------------------------------------------------
# verify_credential_signature
# ---------------------------------------------------------------------------


class TestVerifyCredentialSignature:
    def test_valid_jwt(self, issued_credential, issuer_signer):
        token = sign_vc_jwt(issuer_signer, issued_credential)
        assert verify_credential_signature(None, token, KeyResolver()) is True

    def test_fragment_kid(self, issued_credential, p256_keypair):
        private_key, public_key = p256_keypair
        did = public_key_to_did_key(public_key)
        # fragment-only kid still matches the did:key method
        kid = "#" + did_key_verification_method(did).split("#", 1)[1]
        signer = Signer(id=did, private_key=private_key, kid=kid)
        issued_credential.issuer = did
        token = sign_vc_jwt(signer, issued_credential)
        assert verify_credential_signature(None, token, KeyResolver())

    def test_token_without_issuer(self, sample_credential, p256_private_key):
        sample_credential.issuer = ""
        signer = Signer(id="did:example:123", private_key=p256_private_key)
        token = sign_vc_jwt(signer, sample_credential)
        with pytest.raises(VerificationError, match="no issuer"):
            verify_credential_signature(None, token, KeyResolver())

    def test_dict_without_proof(self, sample_vc):
        with pytest.raises(VerificationError, match="must have a proof"):
            verify_credential_signature(None, sample_vc, KeyResolver())

    def test_dict_with_proof(self, sample_vc):
        sample_vc["proof"] = {"type": "Ed25519Signature2018"}
        with pytest.raises(VerificationError, match="unsupported proof type"):
            verify_credential_signature(None, sample_vc, KeyResolver())

    def test_unsupported_type(self):
        with pytest.raises(VerificationError, match="unsupported credential type"):
            verify_credential_signature(None, 42, KeyResolver())


def _cancelled_context():
    ctx = ResolutionContext()
    ctx.cancel()
    return ctx
