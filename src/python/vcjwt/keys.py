"""Key generation, DID-key encoding, and JWK export for Ed25519 and P-256."""

import base64

import base58
from cryptography.hazmat.primitives.asymmetric.ec import (
    SECP256R1,
    EllipticCurvePrivateKey,
    EllipticCurvePublicKey,
    generate_private_key,
)
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

# Multicodec prefixes (varint-encoded)
_ED25519_MULTICODEC_PREFIX = b"\xed\x01"  # ed25519-pub 0xed
_P256_MULTICODEC_PREFIX = b"\x80\x24"  # p256-pub 0x1200

DID_KEY_PREFIX = "did:key:"

# Union type for keys supported by this module
PrivateKey = Ed25519PrivateKey | EllipticCurvePrivateKey
PublicKeyType = Ed25519PublicKey | EllipticCurvePublicKey


# ---------------------------------------------------------------------------
# Ed25519 keys
# ---------------------------------------------------------------------------


def generate_ed25519_keypair() -> tuple[Ed25519PrivateKey, Ed25519PublicKey]:
    """Generate a fresh Ed25519 key pair."""
    private_key = Ed25519PrivateKey.generate()
    return private_key, private_key.public_key()


def public_key_to_multibase(public_key: Ed25519PublicKey) -> str:
    """Encode an Ed25519 public key as multibase base58btc (z6Mk...)."""
    raw = public_key.public_bytes(Encoding.Raw, PublicFormat.Raw)
    return "z" + base58.b58encode(_ED25519_MULTICODEC_PREFIX + raw).decode()


def keypair_to_jwk(private_key: Ed25519PrivateKey) -> dict:
    """Export an Ed25519 private key as a JWK dict (OKP/Ed25519)."""
    raw_private = private_key.private_bytes(
        Encoding.Raw, PrivateFormat.Raw, NoEncryption()
    )
    jwk = public_key_to_jwk(private_key.public_key())
    jwk["d"] = _b64url(raw_private)
    return jwk


def public_key_to_jwk(public_key: Ed25519PublicKey) -> dict:
    """Export an Ed25519 public key as a JWK dict (OKP/Ed25519)."""
    raw_public = public_key.public_bytes(Encoding.Raw, PublicFormat.Raw)
    return {
        "kty": "OKP",
        "crv": "Ed25519",
        "x": _b64url(raw_public),
    }


# ---------------------------------------------------------------------------
# P-256 (ES256) keys
# ---------------------------------------------------------------------------


def generate_p256_keypair() -> tuple[EllipticCurvePrivateKey, EllipticCurvePublicKey]:
    """Generate a fresh P-256 (secp256r1) key pair."""
    private_key = generate_private_key(SECP256R1())
    return private_key, private_key.public_key()


def p256_keypair_to_jwk(private_key: EllipticCurvePrivateKey) -> dict:
    """Export a P-256 private key as a JWK dict (EC/P-256)."""
    numbers = private_key.private_numbers()
    jwk = p256_public_key_to_jwk(private_key.public_key())
    jwk["d"] = _b64url(numbers.private_value.to_bytes(32, "big"))
    return jwk


def p256_public_key_to_jwk(public_key: EllipticCurvePublicKey) -> dict:
    """Export a P-256 public key as a JWK dict (EC/P-256)."""
    numbers = public_key.public_numbers()
    return {
        "kty": "EC",
        "crv": "P-256",
        "x": _b64url(numbers.x.to_bytes(32, "big")),
        "y": _b64url(numbers.y.to_bytes(32, "big")),
    }


def p256_public_key_to_multibase(public_key: EllipticCurvePublicKey) -> str:
    """Encode a P-256 public key as multibase base58btc (zDn...)."""
    # Compressed SEC1 encoding (33 bytes)
    compressed = public_key.public_bytes(Encoding.X962, PublicFormat.CompressedPoint)
    return "z" + base58.b58encode(_P256_MULTICODEC_PREFIX + compressed).decode()


# ---------------------------------------------------------------------------
# did:key
# ---------------------------------------------------------------------------


def public_key_to_did_key(public_key: PublicKeyType) -> str:
    """Derive a did:key identifier from an Ed25519 or P-256 public key."""
    if isinstance(public_key, Ed25519PublicKey):
        return DID_KEY_PREFIX + public_key_to_multibase(public_key)
    if isinstance(public_key, EllipticCurvePublicKey):
        return DID_KEY_PREFIX + p256_public_key_to_multibase(public_key)
    raise TypeError(f"Unsupported key type: {type(public_key)}")


def did_key_to_public_key(did: str) -> PublicKeyType:
    """Decode the public key embedded in a did:key identifier.

    Accepts an optional ``#fragment``. Raises ``ValueError`` for anything
    that is not an Ed25519 or P-256 did:key.
    """
    if not did.startswith(DID_KEY_PREFIX):
        raise ValueError(f"Not a did:key identifier: {did}")
    mb = did[len(DID_KEY_PREFIX) :].split("#", 1)[0]
    if not mb.startswith("z"):
        raise ValueError(f"Unsupported multibase encoding: {mb[:1]!r}")
    raw = base58.b58decode(mb[1:])

    if raw.startswith(_ED25519_MULTICODEC_PREFIX):
        return Ed25519PublicKey.from_public_bytes(raw[2:])
    if raw.startswith(_P256_MULTICODEC_PREFIX):
        return EllipticCurvePublicKey.from_encoded_point(SECP256R1(), raw[2:])
    raise ValueError(f"Unsupported multicodec prefix: {raw[:2].hex()}")


def did_key_verification_method(did: str) -> str:
    """Return the conventional verification method id (did:key:z..#z..)."""
    base = did.split("#", 1)[0]
    return f"{base}#{base.split(':')[-1]}"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _b64url(data: bytes) -> str:
    """Base64url encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _b64url_decode(s: str) -> bytes:
    """Base64url decode with padding restoration."""
    s += "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode(s)
