"""Verify VC and VP JWTs and reconstruct the credential/presentation.

Presentation verification runs in a fixed order and stops at the first
failure:

1. a resolver must be supplied;
2. the outer JWS signature must verify;
3. the ``vp`` and ``iss`` claims must be present;
4. if the token names an audience, the verifier must be part of it;
5. every embedded credential must verify, checked in presentation order.

Expiration and revocation are not checked here.
"""

import logging
from dataclasses import dataclass
from typing import Any

from vcjwt.claims import vc_from_jwt_claims, vp_from_jwt_claims
from vcjwt.errors import (
    AudienceMismatchError,
    CredentialVerificationError,
    PreconditionError,
    VerificationError,
)
from vcjwt.models import Credential, Presentation
from vcjwt.resolver import ResolutionContext, Resolver
from vcjwt.tokens import ParsedToken, Verifier, parse_token

logger = logging.getLogger(__name__)


@dataclass
class VerifiedCredential:
    """Result of decoding a VC JWT."""

    headers: dict[str, Any]
    token: ParsedToken
    credential: Credential


@dataclass
class VerifiedPresentation:
    """Result of decoding a VP JWT."""

    headers: dict[str, Any]
    token: ParsedToken
    presentation: Presentation


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


def verify_vc_jwt(verifier: Verifier, token: str) -> VerifiedCredential:
    """Verify a VC JWT signature and reconstruct the credential.

    Raises:
        VerificationError: If the signature is invalid.
        TokenParseError: If the token is malformed or has no ``vc`` claim.
    """
    _verify_signature(verifier, token)
    return parse_vc_jwt(token)


def parse_vc_jwt(token: str) -> VerifiedCredential:
    """Decode a VC JWT without checking its signature."""
    parsed = parse_token(token)
    credential = vc_from_jwt_claims(parsed.claims)
    return VerifiedCredential(
        headers=parsed.headers, token=parsed, credential=credential
    )


def verify_credential_signature(
    ctx: ResolutionContext | None,
    credential: Any,
    resolver: Resolver,
) -> bool:
    """Verify the signature of a credential embedded in a presentation.

    JWT credentials are checked against the key their issuer's DID
    Document lists under the header ``kid``. A credential without a
    ``kid`` header is accepted against the document's first verification
    method; stricter verifiers that require a ``kid`` reject such tokens.

    Returns True if valid, raises if invalid.

    Raises:
        VerificationError: If the credential cannot be verified.
        ResolutionError: If the issuer cannot be resolved.
    """
    if isinstance(credential, str):
        return _verify_credential_jwt(ctx, credential, resolver)

    if isinstance(credential, Credential):
        proof = credential.proof
    elif isinstance(credential, dict):
        proof = credential.get("proof")
    else:
        raise VerificationError(
            f"unsupported credential type: {type(credential).__name__}"
        )

    if proof is None:
        raise VerificationError("credential must have a proof")
    proof_type = proof.get("type") if isinstance(proof, dict) else None
    raise VerificationError(f"unsupported proof type: {proof_type!r}")


# ---------------------------------------------------------------------------
# Presentations
# ---------------------------------------------------------------------------


def verify_vp_jwt(
    ctx: ResolutionContext | None,
    verifier: Verifier,
    resolver: Resolver,
    token: str,
) -> VerifiedPresentation:
    """Verify a VP JWT and every credential it carries.

    Args:
        ctx: Deadline/cancellation for resolver calls. None means no limit.
        verifier: Checks the outer signature; its id and kid form the
            acceptable audience.
        resolver: Resolves credential issuers to their DID Documents.
        token: The compact VP JWT.

    Raises:
        PreconditionError: If no resolver is given.
        VerificationError: If the outer signature is invalid.
        TokenParseError: If the ``vp`` or ``iss`` claim is missing.
        AudienceMismatchError: If the verifier is not in a non-empty ``aud``.
        CredentialVerificationError: For the first embedded credential
            that fails; ``index`` identifies it.
    """
    if resolver is None:
        raise PreconditionError("resolver cannot be empty")

    _verify_signature(verifier, token)
    result = parse_vp_jwt(token)

    audience = result.token.audience
    if audience:
        if not any(aud in (verifier.id, verifier.kid) for aud in audience):
            raise AudienceMismatchError(verifier.id, verifier.kid, audience)
        logger.debug("audience matched for %s", verifier.id)

    for i, credential in enumerate(result.presentation.verifiable_credential):
        logger.debug("verifying credential %d of presentation", i)
        try:
            verify_credential_signature(ctx, credential, resolver)
        except Exception as e:
            raise CredentialVerificationError(i, str(e)) from e

    return result


def parse_vp_jwt(token: str) -> VerifiedPresentation:
    """Decode a VP JWT without checking its signature."""
    parsed = parse_token(token)
    presentation = vp_from_jwt_claims(parsed.claims)
    return VerifiedPresentation(
        headers=parsed.headers, token=parsed, presentation=presentation
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _verify_signature(verifier: Verifier, token: str) -> None:
    try:
        verifier.verify(token)
    except Exception as e:
        raise VerificationError(f"verifying JWT: {e}") from e
    logger.debug("signature verified against %s", verifier.id)


def _verify_credential_jwt(
    ctx: ResolutionContext | None, token: str, resolver: Resolver
) -> bool:
    decoded = parse_vc_jwt(token)
    issuer = decoded.credential.issuer
    if not issuer:
        raise VerificationError("credential has no issuer")

    doc = resolver.resolve(ctx, issuer)

    kid = decoded.token.kid
    if kid:
        method = doc.get_verification_method(kid)
        if method is None:
            raise VerificationError(f"verification method {kid} not found for {issuer}")
    elif doc.verification_methods:
        method = doc.verification_methods[0]
    else:
        raise VerificationError(f"no verification methods found for {issuer}")

    if not method.public_key_jwk:
        raise VerificationError(f"verification method {method.id} has no public key")
    try:
        issuer_verifier = Verifier.from_jwk(issuer, method.public_key_jwk, kid=method.id)
    except ValueError as e:
        raise VerificationError(f"verification method {method.id}: {e}") from e

    issuer_verifier.verify(token)
    return True
