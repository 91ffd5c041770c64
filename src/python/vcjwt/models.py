"""Verifiable Credential and Verifiable Presentation value types.

Both types are flat records mirroring the W3C VC Data Model 1.1 JSON
properties. ``to_dict`` / ``from_dict`` convert to and from the JSON-LD
form that travels inside the ``vc`` and ``vp`` JWT claims.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field, fields
from typing import Any

SUBJECT_ID_PROPERTY = "id"


@dataclass
class Credential:
    """A W3C Verifiable Credential.

    Attributes:
        context: JSON-LD ``@context`` entries.
        id: Credential identifier (``id``).
        type: Credential types (``type``).
        issuer: Issuer identity. Only the string form is carried in JWTs.
        issuance_date: ``issuanceDate`` timestamp string.
        expiration_date: ``expirationDate`` timestamp string.
        credential_subject: Subject claims, with an optional ``id`` entry.
        proof: Embedded proof; must be absent when signing as a JWT.
    """

    context: Any = None
    id: str = ""
    type: Any = None
    issuer: str = ""
    issuance_date: str = ""
    expiration_date: str = ""
    credential_status: Any = None
    credential_subject: dict[str, Any] = field(default_factory=dict)
    credential_schema: Any = None
    refresh_service: Any = None
    terms_of_use: Any = None
    evidence: Any = None
    proof: Any = None

    _JSON_NAMES = {
        "context": "@context",
        "issuance_date": "issuanceDate",
        "expiration_date": "expirationDate",
        "credential_status": "credentialStatus",
        "credential_subject": "credentialSubject",
        "credential_schema": "credentialSchema",
        "refresh_service": "refreshService",
        "terms_of_use": "termsOfUse",
    }

    @property
    def subject_id(self) -> str:
        """The ``id`` entry of the credential subject, or ``""``."""
        value = (self.credential_subject or {}).get(SUBJECT_ID_PROPERTY, "")
        return value if isinstance(value, str) else ""

    def is_empty(self) -> bool:
        return _is_empty(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON-LD dict form, omitting empty fields."""
        return _to_dict(self, self._JSON_NAMES)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Credential:
        """Create from the JSON-LD dict form. Unknown keys are ignored."""
        credential = _from_dict(cls, data, cls._JSON_NAMES)
        if credential.credential_subject is None:
            credential.credential_subject = {}
        elif not isinstance(credential.credential_subject, dict):
            raise TypeError(
                "credentialSubject must be a JSON object, got "
                f"{type(credential.credential_subject).__name__}"
            )
        return credential


@dataclass
class Presentation:
    """A W3C Verifiable Presentation.

    ``verifiable_credential`` keeps its order; entries are compact JWT
    strings or credential objects (dicts or :class:`Credential`).
    """

    context: Any = None
    id: str = ""
    holder: str = ""
    type: Any = None
    presentation_submission: Any = None
    verifiable_credential: list[Any] = field(default_factory=list)
    proof: Any = None

    _JSON_NAMES = {
        "context": "@context",
        "presentation_submission": "presentation_submission",
        "verifiable_credential": "verifiableCredential",
    }

    def is_empty(self) -> bool:
        return _is_empty(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON-LD dict form, omitting empty fields."""
        data = _to_dict(self, self._JSON_NAMES)
        if "verifiableCredential" in data:
            data["verifiableCredential"] = [
                vc.to_dict() if isinstance(vc, Credential) else vc
                for vc in data["verifiableCredential"]
            ]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Presentation:
        """Create from the JSON-LD dict form. Unknown keys are ignored."""
        presentation = _from_dict(cls, data, cls._JSON_NAMES)
        if presentation.verifiable_credential is None:
            presentation.verifiable_credential = []
        elif not isinstance(presentation.verifiable_credential, list):
            presentation.verifiable_credential = [presentation.verifiable_credential]
        return presentation


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_empty(obj) -> bool:
    return all(_empty(getattr(obj, f.name)) for f in fields(obj))


def _empty(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list, dict)) and not value)


def _to_dict(obj, names: dict[str, str]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if not _empty(value):
            data[names.get(f.name, f.name)] = deepcopy(value)
    return data


def _from_dict(cls, data: dict[str, Any], names: dict[str, str]):
    if not isinstance(data, dict):
        raise TypeError(f"Expected a JSON object, got {type(data).__name__}")
    kwargs = {}
    for f in fields(cls):
        key = names.get(f.name, f.name)
        if key in data:
            kwargs[f.name] = deepcopy(data[key])
    return cls(**kwargs)
