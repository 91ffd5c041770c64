"""Sign Verifiable Credentials and Presentations as JWTs.

Credentials and presentations are encoded per the VC Data Model 1.1 JWT
profile (see :mod:`vcjwt.claims`) and signed as compact JWS by a
:class:`~vcjwt.tokens.Signer`. The JWS signature is the proof, so objects
that already carry an embedded proof are rejected.
"""

import logging
import time
from copy import deepcopy
from dataclasses import dataclass

from vcjwt._crypto import resolve_signing_alg
from vcjwt.claims import (
    AUDIENCE,
    EXPIRATION,
    ISSUED_AT,
    ISSUER,
    JWT_ID,
    NONCE_CLAIM,
    NOT_BEFORE,
    VP_CLAIM,
    jwt_claims_from_vc,
    new_nonce,
    set_claim,
)
from vcjwt.errors import PreconditionError, SigningError
from vcjwt.models import Credential, Presentation
from vcjwt.tokens import Signer

logger = logging.getLogger(__name__)


@dataclass
class VPParameters:
    """Presentation-only JWT parameters.

    Attributes:
        audience: Intended audience (verifier DIDs or key IDs). Optional;
            no ``aud`` claim is written when None.
        expiration: ``exp`` as seconds since epoch. Ignored unless positive.
    """

    audience: list[str] | None = None
    expiration: int = 0


def sign_vc_jwt(signer: Signer, credential: Credential) -> str:
    """Sign a credential as a VC JWT.

    Args:
        signer: Holds the issuer's key, key ID and algorithm label.
        credential: The credential to sign. Must not carry a proof.

    Returns:
        Compact JWS string (header.payload.signature).

    Raises:
        PreconditionError: If the credential is empty or already has a proof.
        ClaimError: If a field cannot be set as its JWT claim.
        SigningError: If the signer fails.
    """
    claims = jwt_claims_from_vc(credential)
    headers = _build_header(signer)
    logger.debug("signing credential as %s (alg=%s)", signer.id, headers["alg"])
    try:
        return signer.sign(claims, headers)
    except Exception as e:
        raise SigningError(f"signing credential: {e}") from e


def sign_vp_jwt(
    signer: Signer,
    params: VPParameters | None,
    presentation: Presentation,
) -> str:
    """Sign a presentation as a VP JWT.

    ``iat`` and ``nbf`` are set to the current time. A non-empty holder is
    promoted to ``iss`` and must be the signer's own identity.

    Args:
        signer: Holds the holder's key, key ID and algorithm label.
        params: Optional audience and expiration.
        presentation: The presentation to sign. Must not carry a proof.

    Returns:
        Compact JWS string (header.payload.signature).

    Raises:
        PreconditionError: If the presentation is empty, already has a proof,
            or names a holder other than the signer.
        ClaimError: If a field cannot be set as its JWT claim.
        SigningError: If the signer fails.
    """
    if presentation.is_empty():
        raise PreconditionError("presentation cannot be empty")
    if presentation.proof is not None:
        raise PreconditionError("presentation cannot have a proof")

    pres = deepcopy(presentation)
    claims: dict = {}

    # aud is optional here even though the VC JWT encoding rules require it
    if params is not None and params.audience is not None:
        set_claim(claims, AUDIENCE, params.audience)

    now = int(time.time())
    set_claim(claims, ISSUED_AT, now)
    set_claim(claims, NOT_BEFORE, now)
    set_claim(claims, NONCE_CLAIM, new_nonce())

    if params is not None and params.expiration > 0:
        set_claim(claims, EXPIRATION, params.expiration)

    if pres.id:
        set_claim(claims, JWT_ID, pres.id)
        pres.id = ""

    if pres.holder:
        if pres.holder != signer.id:
            raise PreconditionError("holder must be the same as the signer")
        set_claim(claims, ISSUER, pres.holder)
        pres.holder = ""

    set_claim(claims, VP_CLAIM, pres.to_dict())

    headers = _build_header(signer)
    logger.debug(
        "signing presentation as %s with %d credential(s)",
        signer.id,
        len(pres.verifiable_credential),
    )
    try:
        return signer.sign(claims, headers)
    except Exception as e:
        raise SigningError(f"signing presentation: {e}") from e


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_header(signer: Signer) -> dict[str, object]:
    """Build a JOSE protected header for the signer."""
    header = {"alg": resolve_signing_alg(signer.alg), "typ": "JWT"}
    if signer.kid:
        header["kid"] = signer.kid
    return header
