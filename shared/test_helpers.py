"""
Test helper functions and factory methods for the Edge Auth service.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from jose import jwk, jwt

TEST_ISSUER = "https://team.cloudflareaccess.com"
TEST_AUDIENCE = "83fc9be602db641e15bd3a5dd3e229be29a2ba44b778892490cb82939c43129e"
TEST_JWKS_URI = "https://team.cloudflareaccess.com/cdn-cgi/access/certs"


@dataclass
class TestSigningKey:
    """Private key used to sign test tokens plus its published JWK."""
    __test__ = False

    kid: str
    algorithm: str
    private_pem: bytes
    public_jwk: Dict[str, Any] = field(default_factory=dict)

    def sign(self, claims: Dict[str, Any], headers: Optional[Dict[str, Any]] = None,
             algorithm: Optional[str] = None) -> str:
        """Sign ``claims``; the header carries this key's kid unless overridden."""
        token_headers = {"kid": self.kid}
        token_headers.update(headers or {})
        return jwt.encode(claims, self.private_pem, algorithm=algorithm or self.algorithm,
                          headers=token_headers)


def _public_jwk(public_pem: bytes, kid: str, algorithm: str) -> Dict[str, Any]:
    key_data = jwk.construct(public_pem.decode(), algorithm).to_dict()
    key_data.update({"kid": kid, "use": "sig", "alg": algorithm})
    return key_data


def create_rsa_signing_key(kid: Optional[str] = None, algorithm: str = "RS256") -> TestSigningKey:
    """Generate an RSA key pair for signing test tokens."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return _signing_key(private_key, kid or f"rsa-{uuid.uuid4().hex[:8]}", algorithm)


def create_ec_signing_key(kid: Optional[str] = None, algorithm: str = "ES256") -> TestSigningKey:
    """Generate a P-256 key pair for signing test tokens."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    return _signing_key(private_key, kid or f"ec-{uuid.uuid4().hex[:8]}", algorithm)


def _signing_key(private_key, kid: str, algorithm: str) -> TestSigningKey:
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return TestSigningKey(
        kid=kid,
        algorithm=algorithm,
        private_pem=private_pem,
        public_jwk=_public_jwk(public_pem, kid, algorithm),
    )


def create_jwks(*keys: TestSigningKey) -> Dict[str, List[Dict[str, Any]]]:
    """Build the JWKS document publishing ``keys``."""
    return {"keys": [dict(key.public_jwk) for key in keys]}


def create_access_claims(
    subject: str = "user@example.com",
    issuer: str = TEST_ISSUER,
    audience: Any = TEST_AUDIENCE,
    expires_in: int = 3600,
    now: Optional[float] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Create the claim set an identity-aware proxy would issue."""
    issued_at = int(now if now is not None else time.time())
    claims = {
        "sub": subject,
        "iss": issuer,
        "aud": audience,
        "iat": issued_at,
        "nbf": issued_at,
        "exp": issued_at + expires_in,
        "email": subject,
        "type": "app",
    }
    claims.update(extra)
    return claims
