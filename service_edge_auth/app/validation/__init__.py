"""
Token validation package.

Validates identity tokens injected by the upstream identity-aware proxy:

- extractor: finds the raw token (trusted header first, cookie fallback).
- token_verifier: decodes the header, enforces the algorithm allow-list,
  resolves the signing key, verifies the signature and checks claims.

Only standard JOSE/JWT behaviors are assumed so the proxy can be switched
with configuration.
"""

from .extractor import TokenExtractor
from .token_verifier import TokenVerifier

__all__ = [
    "TokenExtractor",
    "TokenVerifier",
]
