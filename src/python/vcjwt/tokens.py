"""Compact JWS signing, verification and parse-only decoding.

``Signer`` and ``Verifier`` are the key-holding collaborators used by
:mod:`vcjwt.signer` and :mod:`vcjwt.verifier`. Any object exposing the
same attributes and ``sign`` / ``verify`` methods can stand in for them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from joserfc import jws

from vcjwt._crypto import import_private_key as _import_private_key
from vcjwt._crypto import import_public_key as _import_public_key
from vcjwt._crypto import private_key_from_jwk, public_key_from_jwk
from vcjwt._crypto import resolve_private_key_alg as _resolve_alg
from vcjwt._crypto import resolve_public_key_algs as _algs_for_key
from vcjwt.claims import AUDIENCE, get_audience, is_valid_audience
from vcjwt.errors import TokenParseError, VerificationError
from vcjwt.keys import PrivateKey, PublicKeyType


@dataclass
class Signer:
    """Signs JWT claim sets on behalf of an identity.

    Attributes:
        id: Identity (DID) of the signer.
        private_key: ES256 (P-256) or EdDSA (Ed25519) private key.
        kid: Optional key ID placed in the protected header.
        alg: Algorithm label. Default: ES256 for P-256, EdDSA for Ed25519.
    """

    id: str
    private_key: PrivateKey = field(repr=False)
    kid: str | None = None
    alg: str | None = None

    def __post_init__(self):
        self.alg = _resolve_alg(self.private_key, self.alg)

    @classmethod
    def from_jwk(cls, id: str, jwk: dict, kid: str | None = None) -> Signer:
        """Create a signer from a private JWK dict."""
        private_key, alg = private_key_from_jwk(jwk)
        return cls(id=id, private_key=private_key, kid=kid, alg=alg)

    def sign(self, claims: dict[str, Any], headers: dict[str, Any]) -> str:
        """Return the compact JWS over ``claims`` with protected ``headers``.

        ``headers`` must carry the ``alg`` to sign with.
        """
        alg = headers["alg"]
        payload = json.dumps(claims, ensure_ascii=False).encode("utf-8")
        key = _import_private_key(self.private_key)
        return jws.serialize_compact(headers, payload, key, algorithms=[alg])


@dataclass
class Verifier:
    """Checks JWT signatures for an identity.

    Attributes:
        id: Identity (DID) of the verifying party, matched against ``aud``.
        public_key: Public key the signature must verify against.
        kid: Optional key ID, also accepted as an audience value.
    """

    id: str
    public_key: PublicKeyType = field(repr=False)
    kid: str | None = None

    @classmethod
    def from_jwk(cls, id: str, jwk: dict, kid: str | None = None) -> Verifier:
        """Create a verifier from a public JWK dict."""
        return cls(id=id, public_key=public_key_from_jwk(jwk), kid=kid)

    def verify(self, token: str) -> None:
        """Verify the signature on a compact JWS.

        Raises:
            VerificationError: If the signature is invalid or the token is malformed.
        """
        key = _import_public_key(self.public_key)
        algorithms = _algs_for_key(self.public_key)
        try:
            jws.deserialize_compact(token, key, algorithms=algorithms)
        except Exception as e:
            raise VerificationError(f"JWS verification failed: {e}") from e


@dataclass
class ParsedToken:
    """A decoded JWT: protected headers plus its claim set."""

    raw: str
    headers: dict[str, Any]
    claims: dict[str, Any]

    @property
    def algorithm(self) -> str | None:
        return self.headers.get("alg")

    @property
    def kid(self) -> str | None:
        return self.headers.get("kid")

    @property
    def audience(self) -> list[str]:
        return get_audience(self.claims)

    def get(self, name: str, default: Any = None) -> Any:
        return self.claims.get(name, default)


def parse_token(token: str) -> ParsedToken:
    """Decode a compact JWT without checking its signature.

    Raises:
        TokenParseError: If the token is not a compact JWS with a JSON
            object payload.
    """
    try:
        result = jws.extract_compact(token.encode("ascii"))
    except Exception as e:
        raise TokenParseError(f"parsing token: {e}") from e

    try:
        claims = json.loads(result.payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TokenParseError(f"Invalid payload JSON: {e}") from e
    if not isinstance(claims, dict):
        raise TokenParseError("token payload is not a JSON object")
    if not is_valid_audience(claims.get(AUDIENCE, [])):
        raise TokenParseError("aud claim must be a string or a list of strings")

    return ParsedToken(raw=token, headers=dict(result.headers()), claims=claims)
