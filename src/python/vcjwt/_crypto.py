"""Shared cryptographic helpers for JOSE key import and algorithm resolution.

Internal module, used by tokens and signer.
"""

from cryptography.hazmat.primitives.asymmetric.ec import (
    SECP256R1,
    EllipticCurvePrivateKey,
    EllipticCurvePrivateNumbers,
    EllipticCurvePublicKey,
    EllipticCurvePublicNumbers,
)
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from joserfc import jws
from joserfc.jwk import ECKey, OKPKey

from vcjwt.keys import (
    PrivateKey,
    PublicKeyType,
    _b64url_decode,
    keypair_to_jwk,
    p256_keypair_to_jwk,
    p256_public_key_to_jwk,
    public_key_to_jwk,
)

# Edwards-curve label -> name registered by joserfc. Only consulted when the
# label itself is unknown to the registry.
_EDWARDS_ALG_ALIASES = {"Ed25519": "EdDSA"}

# Both names joserfc may use for Ed25519 signatures
_ED25519_ALGS = ("EdDSA", "Ed25519")


def import_private_key(private_key: PrivateKey) -> ECKey | OKPKey:
    """Import a cryptography private key into a joserfc JWK."""
    if isinstance(private_key, EllipticCurvePrivateKey):
        return ECKey.import_key(p256_keypair_to_jwk(private_key))
    elif isinstance(private_key, Ed25519PrivateKey):
        return OKPKey.import_key(keypair_to_jwk(private_key))
    raise TypeError(f"Unsupported key type: {type(private_key)}")


def import_public_key(public_key: PublicKeyType) -> ECKey | OKPKey:
    """Import a cryptography public key into a joserfc JWK."""
    if isinstance(public_key, EllipticCurvePublicKey):
        return ECKey.import_key(p256_public_key_to_jwk(public_key))
    elif isinstance(public_key, Ed25519PublicKey):
        return OKPKey.import_key(public_key_to_jwk(public_key))
    raise TypeError(f"Unsupported key type: {type(public_key)}")


def resolve_private_key_alg(private_key: PrivateKey, alg: str | None) -> str:
    """Determine the JWS algorithm label from a private key type."""
    if alg is not None:
        return alg
    if isinstance(private_key, EllipticCurvePrivateKey):
        return "ES256"
    if isinstance(private_key, Ed25519PrivateKey):
        return "EdDSA"
    raise TypeError(f"Unsupported key type: {type(private_key)}")


def resolve_public_key_algs(public_key: PublicKeyType) -> list[str]:
    """Determine the JWS algorithms acceptable for a public key type."""
    if isinstance(public_key, EllipticCurvePublicKey):
        return ["ES256"]
    if isinstance(public_key, Ed25519PublicKey):
        return [name for name in _ED25519_ALGS if name in jws.JWSRegistry.algorithms]
    raise TypeError(f"Unsupported key type: {type(public_key)}")


def resolve_signing_alg(label: str) -> str:
    """Map a signer's algorithm label to a name the JWS registry knows.

    Only the Edwards-curve label is aliased; every other label is passed
    through unchanged and rejected later by the registry if unknown.
    """
    if label in jws.JWSRegistry.algorithms:
        return label
    return _EDWARDS_ALG_ALIASES.get(label, label)


def private_key_from_jwk(jwk: dict) -> tuple[PrivateKey, str]:
    """Load a private key from a JWK dict and return (key, alg)."""
    if jwk.get("kty") == "EC" and jwk.get("crv") == "P-256":
        x = int.from_bytes(_b64url_decode(jwk["x"]), "big")
        y = int.from_bytes(_b64url_decode(jwk["y"]), "big")
        d = int.from_bytes(_b64url_decode(jwk["d"]), "big")
        pub_nums = EllipticCurvePublicNumbers(x, y, SECP256R1())
        priv_nums = EllipticCurvePrivateNumbers(d, pub_nums)
        return priv_nums.private_key(), "ES256"
    elif jwk.get("kty") == "OKP" and jwk.get("crv") == "Ed25519":
        d_bytes = _b64url_decode(jwk["d"])
        return Ed25519PrivateKey.from_private_bytes(d_bytes), "EdDSA"
    else:
        raise ValueError(f"Unsupported key type: {jwk.get('kty')}/{jwk.get('crv')}")


def public_key_from_jwk(jwk: dict) -> PublicKeyType:
    """Load a public key from a JWK dict."""
    if jwk.get("kty") == "EC" and jwk.get("crv") == "P-256":
        x = int.from_bytes(_b64url_decode(jwk["x"]), "big")
        y = int.from_bytes(_b64url_decode(jwk["y"]), "big")
        numbers = EllipticCurvePublicNumbers(x, y, SECP256R1())
        return numbers.public_key()
    elif jwk.get("kty") == "OKP" and jwk.get("crv") == "Ed25519":
        x_bytes = _b64url_decode(jwk["x"])
        return Ed25519PublicKey.from_public_bytes(x_bytes)
    else:
        raise ValueError(f"Unsupported key type: {jwk.get('kty')}/{jwk.get('crv')}")
