"""Exceptions raised while encoding, signing and verifying VC/VP JWTs."""


class VCJWTError(Exception):
    """Base class for all vcjwt errors."""


class PreconditionError(VCJWTError, ValueError):
    """Raised before any cryptographic work when the input cannot be signed
    or verified (empty object, existing proof, holder mismatch, missing
    resolver)."""


class ClaimError(VCJWTError, ValueError):
    """Raised when a claim cannot be set on a JWT claim set."""

    def __init__(self, claim: str, reason: str | None = None):
        self.claim = claim
        message = f"setting {claim} value"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SigningError(VCJWTError):
    """Raised when the signer fails to produce a token."""


class VerificationError(VCJWTError):
    """Raised when a VC/VP JWT fails verification."""


class TokenParseError(VerificationError):
    """Raised when a token is malformed or lacks a mandatory claim."""


class AudienceMismatchError(VerificationError):
    """Raised when a presentation is addressed to someone else."""

    def __init__(
        self, expected_id: str, expected_kid: str | None, audience: list[str]
    ):
        self.expected_id = expected_id
        self.expected_kid = expected_kid
        self.audience = audience
        super().__init__(
            f"audience mismatch: expected [{expected_id}] or [{expected_kid or ''}], "
            f"got {audience}"
        )


class CredentialVerificationError(VerificationError):
    """Raised when an embedded credential of a presentation fails.

    The underlying failure is available as ``__cause__``.
    """

    def __init__(self, index: int, reason: str):
        self.index = index
        super().__init__(f"verifying credential {index}: {reason}")


class ResolutionError(VCJWTError):
    """Raised when an identifier cannot be resolved to verification material."""
