"""
Authentication middleware for the Edge Auth service.
"""

import math
from typing import Awaitable, Callable, Dict, Iterable, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from shared.logging import get_logger, get_request_id, set_user_context

from ..errors import (
    AlgorithmNotAllowed,
    ClaimsInvalid,
    JwksUnavailable,
    KeyNotFound,
    KidMissing,
    MalformedToken,
    SignatureInvalid,
    TokenMissing,
    VerificationFailure,
)
from ..models import ExtractedToken, VerificationResult
from ..validator import AccessValidator

STATUS_BY_KIND: Dict[str, int] = {
    TokenMissing.kind: 401,
    MalformedToken.kind: 401,
    KidMissing.kind: 401,
    AlgorithmNotAllowed.kind: 401,
    KeyNotFound.kind: 401,
    SignatureInvalid.kind: 401,
    ClaimsInvalid.kind: 401,
    JwksUnavailable.kind: 503,
}

MISSING_TOKEN_ERROR = "Missing Cloudflare Access token"


class AuthMiddleware:
    """Extracts and verifies the proxy token before protected handlers run.

    On success the verification result is attached to ``request.state``;
    on failure the request is answered here and never reaches the handler.
    This is the only place where a failure kind becomes a status code.
    """

    def __init__(self, validator: AccessValidator, protected_paths: Iterable[str] = ("/protected",)):
        self.validator = validator
        self.protected_paths = tuple(protected_paths)
        self.logger = get_logger("edge_auth.middleware")

    def protects(self, path: str) -> bool:
        return any(
            path == prefix or path.startswith(prefix.rstrip("/") + "/")
            for prefix in self.protected_paths
        )

    async def __call__(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        if not self.protects(request.url.path):
            return await call_next(request)

        rejection = await self.process_request(request)
        if rejection is not None:
            return rejection
        return await call_next(request)

    async def process_request(self, request: Request) -> Optional[JSONResponse]:
        """Authenticate ``request``; return a response only when it must be rejected."""
        extracted = self.validator.get_token_from_request(request)
        if extracted is None:
            self.logger.info("Request without access token", path=request.url.path)
            return self._json(
                401,
                error=MISSING_TOKEN_ERROR,
                detail=self.validator.extractor.describe_expected(),
                code=TokenMissing.kind,
            )

        try:
            result = await self.validator.validate_jwt(extracted.token)
        except VerificationFailure as exc:
            return self.failure_response(exc)

        self.attach(request, result, extracted)
        return None

    def failure_response(self, failure: VerificationFailure) -> JSONResponse:
        status_code = STATUS_BY_KIND.get(failure.kind, 401)
        body = failure.to_response(
            error="JWKS unavailable, retry later" if status_code == 503 else "Invalid token",
            request_id=get_request_id(),
        )
        headers = None
        if status_code == 503:
            headers = {"Retry-After": str(max(1, math.ceil(self.validator.config.fetch_timeout)))}
        return JSONResponse(
            status_code=status_code,
            content=body.model_dump(exclude_none=True),
            headers=headers,
        )

    def attach(self, request: Request, result: VerificationResult, extracted: ExtractedToken) -> None:
        state = request.state
        state.verification = result
        state.user_claims = result.claims.to_dict()
        state.jwt_header = result.header.to_dict()
        state.jwt_signing_key = result.signing_key.to_dict()
        state.jwks_uri = result.jwks_source
        state.token_source = extracted.source

        set_user_context(user_id=result.claims.subject)
        self.logger.info(
            "Request authenticated",
            sub=result.claims.subject,
            token_source=extracted.source,
        )

    @staticmethod
    def _json(status_code: int, **content: str) -> JSONResponse:
        request_id = get_request_id()
        if request_id:
            content["request_id"] = request_id
        return JSONResponse(status_code=status_code, content=content)


def get_verification(request: Request) -> VerificationResult:
    """FastAPI dependency returning the result attached by `AuthMiddleware`."""
    result = getattr(request.state, "verification", None)
    if result is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return result
