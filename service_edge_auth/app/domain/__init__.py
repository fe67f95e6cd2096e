"""
Domain utilities for the Edge Auth service.

Includes cross-cutting middleware and request processing helpers that do
not belong to the JWKS or validation packages.
"""

from .auth_middleware import AuthMiddleware, get_verification
from .logout import LogoutHandler, build_logout_url

__all__ = [
    "AuthMiddleware",
    "LogoutHandler",
    "build_logout_url",
    "get_verification",
]
