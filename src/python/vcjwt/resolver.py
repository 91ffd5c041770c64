"""DID resolution for embedded credential verification.

A resolver maps an issuer identifier to its DID Document, from which the
verification key for a credential JWT is selected. Resolution is bounded
by a caller-supplied :class:`ResolutionContext`.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from vcjwt.errors import ResolutionError
from vcjwt.keys import (
    DID_KEY_PREFIX,
    did_key_to_public_key,
    did_key_verification_method,
    p256_public_key_to_jwk,
    public_key_to_jwk,
)

logger = logging.getLogger(__name__)


class ResolutionContext:
    """Deadline and cancellation signal passed to resolver calls.

    Args:
        timeout: Seconds from now after which resolution must fail.
        deadline: Absolute ``time.monotonic()`` deadline. Overrides ``timeout``.
    """

    def __init__(self, timeout: float | None = None, deadline: float | None = None):
        if deadline is None and timeout is not None:
            deadline = time.monotonic() + timeout
        self.deadline = deadline
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(self) -> None:
        """Raise ResolutionError if the context is cancelled or past its deadline."""
        if self.cancelled:
            raise ResolutionError("context cancelled")
        if self.expired:
            raise ResolutionError("context deadline exceeded")


@dataclass
class VerificationMethod:
    """DID Document verification method."""

    id: str
    type: str
    controller: str
    public_key_jwk: dict[str, Any] | None = None


@dataclass
class DIDDocument:
    """W3C DID Document (the parts needed for signature verification)."""

    id: str
    verification_methods: list[VerificationMethod] = field(default_factory=list)

    def get_verification_method(self, method_id: str) -> VerificationMethod | None:
        """Get a verification method by full ID or by ``#fragment``."""
        for vm in self.verification_methods:
            if vm.id == method_id:
                return vm
            if method_id.startswith("#") and vm.id.endswith(method_id):
                return vm
        return None


class Resolver(Protocol):
    """Anything that can resolve an identifier to a DID Document."""

    def resolve(self, ctx: ResolutionContext | None, did: str) -> DIDDocument: ...


class KeyResolver:
    """Resolver for the did:key method (Ed25519 and P-256).

    did:key documents are derived from the identifier itself, so no
    network access is needed.
    """

    def resolve(self, ctx: ResolutionContext | None, did: str) -> DIDDocument:
        """Resolve a did:key identifier to its single-key DID Document.

        Raises:
            ResolutionError: If the context is done or the DID is unsupported.
        """
        if ctx is not None:
            ctx.check()

        base_did = did.split("#", 1)[0]
        if not base_did.startswith(DID_KEY_PREFIX):
            raise ResolutionError(f"unsupported DID method: {did}")

        try:
            public_key = did_key_to_public_key(base_did)
        except ValueError as e:
            raise ResolutionError(f"resolving {did}: {e}") from e

        if isinstance(public_key, Ed25519PublicKey):
            jwk = public_key_to_jwk(public_key)
        else:
            jwk = p256_public_key_to_jwk(public_key)

        logger.debug("resolved %s", base_did)
        return DIDDocument(
            id=base_did,
            verification_methods=[
                VerificationMethod(
                    id=did_key_verification_method(base_did),
                    type="JsonWebKey2020",
                    controller=base_did,
                    public_key_jwk=jwk,
                )
            ],
        )
