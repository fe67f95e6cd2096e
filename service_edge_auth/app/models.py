"""
Data model shared by the JWKS and validation packages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class KeyRecord:
    """A public signing key as published in the key set.

    ``jwk`` keeps the raw key entry so callers can display or re-import
    the exact material that verified a token.
    """

    key_id: str
    algorithm: Optional[str]
    jwk: Mapping[str, Any]
    fetched_at: datetime

    @classmethod
    def from_jwk(cls, jwk: Mapping[str, Any], fetched_at: Optional[datetime] = None) -> "KeyRecord":
        return cls(
            key_id=jwk["kid"],
            algorithm=jwk.get("alg"),
            jwk=MappingProxyType(dict(jwk)),
            fetched_at=fetched_at or datetime.now(timezone.utc),
        )

    @property
    def key_type(self) -> Optional[str]:
        return self.jwk.get("kty")

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.jwk)


@dataclass(frozen=True)
class CacheEntry:
    record: KeyRecord
    expires_at: float


@dataclass(frozen=True)
class TokenHeader:
    """Unverified JOSE header of a token."""

    algorithm: Optional[str]
    key_id: Optional[str]
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, header: Mapping[str, Any]) -> "TokenHeader":
        return cls(
            algorithm=header.get("alg"),
            key_id=header.get("kid"),
            raw=MappingProxyType(dict(header)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.raw)


def _timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


@dataclass(frozen=True)
class Claims:
    """Read-only view over a verified token payload."""

    raw: Mapping[str, Any]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Claims":
        return cls(raw=MappingProxyType(dict(payload)))

    @property
    def issuer(self) -> Optional[str]:
        return self.raw.get("iss")

    @property
    def subject(self) -> Optional[str]:
        return self.raw.get("sub")

    @property
    def audience(self) -> Tuple[str, ...]:
        aud = self.raw.get("aud")
        if aud is None:
            return ()
        if isinstance(aud, (list, tuple)):
            return tuple(str(item) for item in aud)
        return (str(aud),)

    @property
    def issued_at(self) -> Optional[datetime]:
        return _timestamp(self.raw.get("iat"))

    @property
    def expires_at(self) -> Optional[datetime]:
        return _timestamp(self.raw.get("exp"))

    @property
    def not_before(self) -> Optional[datetime]:
        return _timestamp(self.raw.get("nbf"))

    def get(self, name: str, default: Any = None) -> Any:
        return self.raw.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.raw)


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a successful verification, owned by the caller."""

    claims: Claims
    header: TokenHeader
    signing_key: KeyRecord
    jwks_source: str


@dataclass(frozen=True)
class ExtractedToken:
    """Raw token plus where it was found (``header:<name>`` or ``cookie:<name>``)."""

    token: str
    source: str
