"""Bidirectional mapping between VC/VP objects and JWT claim sets.

Encoding follows the VC Data Model 1.1 JWT profile: fields that have a
registered JWT claim are promoted to that claim and removed from the
nested ``vc`` / ``vp`` object, so no value is ever carried twice.

    Credential field          JWT claim
    ----------------          ---------
    expirationDate            exp
    issuer                    iss
    issuanceDate              iat, nbf
    id                        jti
    credentialSubject.id      sub
    (remaining object)        vc

    Presentation field        JWT claim
    ------------------        ---------
    id                        jti
    holder                    iss
    (remaining object)        vp

Every claim set also receives a fresh random ``nonce``.

Decoding is lenient: an optional claim that is absent or of the wrong
type is treated as not present. Only the ``vc`` / ``vp`` payload (and the
``iss`` claim of a presentation) are mandatory.
"""

import uuid
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any

from vcjwt.errors import ClaimError, PreconditionError, TokenParseError
from vcjwt.models import SUBJECT_ID_PROPERTY, Credential, Presentation

# Registered JWT claims (RFC 7519 §4.1)
ISSUER = "iss"
SUBJECT = "sub"
AUDIENCE = "aud"
EXPIRATION = "exp"
NOT_BEFORE = "nbf"
ISSUED_AT = "iat"
JWT_ID = "jti"

# Custom claims
VC_CLAIM = "vc"
VP_CLAIM = "vp"
NONCE_CLAIM = "nonce"

_TIME_CLAIMS = (EXPIRATION, NOT_BEFORE, ISSUED_AT)
_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def new_nonce() -> str:
    """Mint a fresh, never-reused nonce value."""
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Credential
# ---------------------------------------------------------------------------


def jwt_claims_from_vc(credential: Credential) -> dict[str, Any]:
    """Build a JWT claim set from a credential.

    The caller's object is left untouched; promotion happens on a copy.

    Raises:
        PreconditionError: If the credential is empty or carries a proof.
        ClaimError: If a field cannot be expressed as its JWT claim.
    """
    if credential.is_empty():
        raise PreconditionError("credential cannot be empty")
    if credential.proof is not None:
        raise PreconditionError("credential cannot already have a proof")

    cred = deepcopy(credential)
    claims: dict[str, Any] = {}

    if cred.expiration_date:
        set_claim(claims, EXPIRATION, cred.expiration_date)
        cred.expiration_date = ""

    set_claim(claims, NONCE_CLAIM, new_nonce())

    if cred.issuer:
        set_claim(claims, ISSUER, cred.issuer)
    cred.issuer = ""

    if cred.issuance_date:
        set_claim(claims, ISSUED_AT, cred.issuance_date)
        set_claim(claims, NOT_BEFORE, cred.issuance_date)
    cred.issuance_date = ""

    if cred.id:
        set_claim(claims, JWT_ID, cred.id)
        cred.id = ""

    subject_id = cred.subject_id
    if subject_id:
        set_claim(claims, SUBJECT, subject_id)
        del cred.credential_subject[SUBJECT_ID_PROPERTY]

    set_claim(claims, VC_CLAIM, cred.to_dict())
    return claims


def vc_from_jwt_claims(claims: dict[str, Any]) -> Credential:
    """Reconstruct a credential from a (possibly unverified) JWT claim set.

    Raises:
        TokenParseError: If the ``vc`` claim is absent or not an object.
    """
    if VC_CLAIM not in claims:
        raise TokenParseError(f"did not find {VC_CLAIM} property in token")
    try:
        cred = Credential.from_dict(claims[VC_CLAIM])
    except TypeError as e:
        raise TokenParseError(f"reconstructing Verifiable Credential: {e}") from e

    jti = get_string_claim(claims, JWT_ID)
    if jti:
        cred.id = jti

    iat = get_time_claim(claims, ISSUED_AT)
    if iat is not None:
        cred.issuance_date = format_timestamp(iat)

    exp = get_time_claim(claims, EXPIRATION)
    if exp is not None:
        cred.expiration_date = format_timestamp(exp)

    # Object-form issuers cannot be represented in a JWT
    iss = get_string_claim(claims, ISSUER)
    if iss:
        cred.issuer = iss

    sub = get_string_claim(claims, SUBJECT)
    if sub:
        if cred.credential_subject is None:
            cred.credential_subject = {}
        cred.credential_subject[SUBJECT_ID_PROPERTY] = sub

    return cred


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------


def vp_from_jwt_claims(claims: dict[str, Any]) -> Presentation:
    """Reconstruct a presentation from a (possibly unverified) JWT claim set.

    Raises:
        TokenParseError: If the ``vp`` claim is absent, or ``iss`` is absent
            or not a string.
    """
    if VP_CLAIM not in claims:
        raise TokenParseError(f"did not find {VP_CLAIM} property in token")
    try:
        pres = Presentation.from_dict(claims[VP_CLAIM])
    except TypeError as e:
        raise TokenParseError(f"reconstructing Verifiable Presentation: {e}") from e

    if ISSUER not in claims:
        raise TokenParseError(f"did not find {ISSUER} property in token")
    iss = claims[ISSUER]
    if not isinstance(iss, str):
        raise TokenParseError("issuer property is not a string")
    pres.holder = iss

    jti = get_string_claim(claims, JWT_ID)
    if jti:
        pres.id = jti

    return pres


# ---------------------------------------------------------------------------
# Claim access
# ---------------------------------------------------------------------------


def set_claim(claims: dict[str, Any], name: str, value: Any) -> None:
    """Set a claim, normalising registered time claims to a NumericDate.

    Raises:
        ClaimError: If the value does not fit the claim.
    """
    if name in _TIME_CLAIMS:
        value = to_numeric_date(name, value)
    elif name in (ISSUER, SUBJECT, JWT_ID) and not isinstance(value, str):
        raise ClaimError(name, f"expected a string, got {type(value).__name__}")
    elif name == AUDIENCE:
        if not is_valid_audience(value):
            raise ClaimError(name, "expected a list of strings")
        if isinstance(value, str):
            value = [value]
    claims[name] = value


def get_string_claim(claims: dict[str, Any], name: str) -> str | None:
    """Return a string claim, or None if absent or not a string."""
    value = claims.get(name)
    return value if isinstance(value, str) else None


def get_time_claim(claims: dict[str, Any], name: str) -> datetime | None:
    """Return a NumericDate claim as a UTC datetime, or None if absent or mistyped."""
    value = claims.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def is_valid_audience(value: Any) -> bool:
    """True for a single string or a list of strings (RFC 7519 §4.1.3)."""
    if isinstance(value, str):
        return True
    return isinstance(value, list) and all(isinstance(a, str) for a in value)


def get_audience(claims: dict[str, Any]) -> list[str]:
    """Return the ``aud`` claim as a list (RFC 7519 allows a single string)."""
    aud = claims.get(AUDIENCE)
    if isinstance(aud, str):
        return [aud]
    if isinstance(aud, list):
        return [a for a in aud if isinstance(a, str)]
    return []


def to_numeric_date(name: str, value: Any) -> int:
    """Convert a timestamp string, datetime or number to seconds since epoch."""
    if isinstance(value, bool):
        raise ClaimError(name, "expected a date")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        value = _parse_timestamp(name, value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp())
    raise ClaimError(name, f"expected a date, got {type(value).__name__}")


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(_TIMESTAMP_FORMAT)


def _parse_timestamp(name: str, value: str) -> datetime:
    text = value.strip()
    if text.isdigit():
        return datetime.fromtimestamp(int(text), tz=timezone.utc)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ClaimError(name, f"invalid date {value!r}") from e
