"""
Error taxonomy for edge token verification.

Fetch errors describe the JWKS endpoint; verification failures describe
the outcome of one `verify` call. Every verification failure carries a
stable ``kind`` code that the auth middleware maps to a response status.
"""

from typing import Any, Dict, Optional

from shared.errors import EdgeAuthException


class ConfigurationError(EdgeAuthException):
    """Invalid validator or service configuration."""

    default_error = "Invalid configuration"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class JwksFetchError(EdgeAuthException):
    """The key set could not be retrieved."""

    default_error = "JWKS fetch failed"


class FetchTimeout(JwksFetchError):
    """The JWKS endpoint did not answer within the fetch timeout."""

    def __init__(self, uri: str, timeout: float):
        super().__init__(
            "FETCH_TIMEOUT",
            f"JWKS fetch timeout after {timeout:g}s",
            {"jwks_uri": uri, "timeout_seconds": timeout},
        )


class FetchFailed(JwksFetchError):
    """The JWKS endpoint answered with an error status or an unusable body."""

    def __init__(self, uri: str, message: str, status_code: Optional[int] = None):
        details: Dict[str, Any] = {"jwks_uri": uri}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__("FETCH_FAILED", message, details)


class VerificationFailure(EdgeAuthException):
    """Base class of the typed verification failures."""

    kind = "VERIFICATION_FAILED"
    default_error = "Invalid token"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(self.kind, message, details)


class TokenMissing(VerificationFailure):
    kind = "TOKEN_MISSING"
    default_error = "Missing token"

    def __init__(self, message: str = "Missing token", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class MalformedToken(VerificationFailure):
    kind = "MALFORMED_TOKEN"


class KidMissing(VerificationFailure):
    kind = "KID_MISSING"

    def __init__(self, message: str = "JWT header missing kid", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class AlgorithmNotAllowed(VerificationFailure):
    kind = "ALG_NOT_ALLOWED"

    def __init__(self, algorithm: Any):
        super().__init__(f"Disallowed alg: {algorithm}", {"alg": algorithm})


class KeyNotFound(VerificationFailure):
    kind = "KEY_NOT_FOUND"

    def __init__(self, kid: str, message: Optional[str] = None):
        super().__init__(message or f"Key not found in JWKS for kid={kid}", {"kid": kid})


class JwksUnavailable(VerificationFailure):
    kind = "JWKS_UNAVAILABLE"
    default_error = "JWKS unavailable, retry later"


class SignatureInvalid(VerificationFailure):
    kind = "SIGNATURE_INVALID"

    def __init__(self, message: str = "Signature verification failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class ClaimsInvalid(VerificationFailure):
    """A claim check failed; ``reason`` names which one."""

    kind = "CLAIMS_INVALID"

    EXPIRED = "expired"
    NOT_YET_VALID = "not_yet_valid"
    ISSUER_MISMATCH = "issuer_mismatch"
    AUDIENCE_MISMATCH = "audience_mismatch"

    def __init__(self, reason: str, message: str):
        self.reason = reason
        super().__init__(message, {"reason": reason})
