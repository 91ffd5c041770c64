"""vcjwt - Verifiable Credentials and Presentations as signed JWTs.

This package encodes, signs and verifies W3C Verifiable Credentials:
- Claim mapping between VC/VP objects and JWT claim sets
- VC/VP signing (compact JWS)
- VC/VP verification, including every credential inside a presentation
- did:key resolution and Ed25519 / P-256 key handling

Usage:
    from vcjwt import Signer, Verifier, sign_vc_jwt, verify_vc_jwt
    from vcjwt import KeyResolver, VPParameters, sign_vp_jwt, verify_vp_jwt
"""

from vcjwt.claims import jwt_claims_from_vc, vc_from_jwt_claims, vp_from_jwt_claims
from vcjwt.errors import (
    AudienceMismatchError,
    ClaimError,
    CredentialVerificationError,
    PreconditionError,
    ResolutionError,
    SigningError,
    TokenParseError,
    VCJWTError,
    VerificationError,
)
from vcjwt.keys import (
    did_key_to_public_key,
    generate_ed25519_keypair,
    generate_p256_keypair,
    public_key_to_did_key,
)
from vcjwt.models import Credential, Presentation
from vcjwt.resolver import (
    DIDDocument,
    KeyResolver,
    ResolutionContext,
    Resolver,
    VerificationMethod,
)
from vcjwt.signer import VPParameters, sign_vc_jwt, sign_vp_jwt
from vcjwt.tokens import ParsedToken, Signer, Verifier, parse_token
from vcjwt.verifier import (
    VerifiedCredential,
    VerifiedPresentation,
    parse_vc_jwt,
    parse_vp_jwt,
    verify_credential_signature,
    verify_vc_jwt,
    verify_vp_jwt,
)

__all__ = [
    # Models
    "Credential",
    "Presentation",
    # Claim mapping
    "jwt_claims_from_vc",
    "vc_from_jwt_claims",
    "vp_from_jwt_claims",
    # Collaborators
    "Signer",
    "Verifier",
    "ParsedToken",
    "parse_token",
    # Signing
    "VPParameters",
    "sign_vc_jwt",
    "sign_vp_jwt",
    # Verification
    "VerifiedCredential",
    "VerifiedPresentation",
    "verify_vc_jwt",
    "verify_vp_jwt",
    "parse_vc_jwt",
    "parse_vp_jwt",
    "verify_credential_signature",
    # Resolution
    "Resolver",
    "KeyResolver",
    "ResolutionContext",
    "DIDDocument",
    "VerificationMethod",
    # Keys
    "generate_ed25519_keypair",
    "generate_p256_keypair",
    "public_key_to_did_key",
    "did_key_to_public_key",
    # Errors
    "VCJWTError",
    "PreconditionError",
    "ClaimError",
    "SigningError",
    "VerificationError",
    "TokenParseError",
    "AudienceMismatchError",
    "CredentialVerificationError",
    "ResolutionError",
]
