"""
Edge Auth service: verifies identity-aware proxy tokens in front of protected routes.
"""

import os
import platform
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from fastapi import Depends, Request

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config, split_csv

from .config import ValidatorConfig
from .domain import AuthMiddleware, LogoutHandler, get_verification
from .models import VerificationResult
from .validator import AccessValidator

SERVICE_NAME = "edge_auth"
DEFAULT_PORT = 3000


def _iso(value: Optional[datetime]) -> str:
    return value.isoformat() if value else "—"


class EdgeAuthService(BaseService):
    """Edge Auth service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._http_client = http_client
        super().__init__(SERVICE_NAME, DEFAULT_PORT, config=config)
        self._setup_edge_routes()

    def _setup_service_middleware(self):
        """Build the validator and guard the protected paths."""
        self.validator = AccessValidator(
            ValidatorConfig.from_settings(self.config),
            http_client=self._http_client,
            metrics=self.metrics,
        )
        self.auth_middleware = AuthMiddleware(
            self.validator,
            protected_paths=split_csv(self.config.protected_paths) or ["/protected"],
        )
        self.app.middleware("http")(self.auth_middleware)

    async def _shutdown(self):
        """Close the validator's HTTP client."""
        await self.validator.aclose()

    def _setup_edge_routes(self):
        """Set up edge-auth routes."""

        logout = LogoutHandler(
            app_domain=self.config.app_domain,
            team_name=self.config.team_name,
            redirect_after=self.config.logout_redirect,
            cookie_name=self.config.token_cookie,
        ) if (self.config.app_domain or self.config.team_name) else None

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": SERVICE_NAME,
                "message": "Edge Auth - identity-aware proxy token verification",
                "version": "1.0.0"
            }

        @self.app.get("/status")
        async def status():
            """Process status."""
            return {
                "uptime_seconds": self._get_uptime(),
                "python_version": platform.python_version(),
                "environment": self.config.env,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

        @self.app.get("/protected")
        async def protected(request: Request, result: VerificationResult = Depends(get_verification)):
            """Display the verified identity."""
            claims = result.claims
            return {
                "subject": claims.subject or "—",
                "issuer": claims.issuer or "—",
                "audience": ", ".join(claims.audience) or "—",
                "expires_at": _iso(claims.expires_at),
                "issued_at": _iso(claims.issued_at),
                "now_utc": datetime.now(timezone.utc).isoformat(),
                "claims": claims.to_dict(),
                "jwt_header": result.header.to_dict(),
                "signing_key": result.signing_key.to_dict(),
                "jwks_uri": result.jwks_source,
                "token_source": request.state.token_source,
            }

        if logout is not None:
            @self.app.get("/logout")
            async def logout_route(request: Request):
                """Leave the proxy session."""
                return await logout(request)

        @self.app.get("/debug/headers")
        async def debug_headers(request: Request):
            """Echo the proxy-related headers and cookies."""
            header_name = self.config.token_header
            cookie_name = self.config.token_cookie
            headers = {key: value for key, value in request.headers.items() if key != "cookie"}
            return {
                "cloudflare_access": {
                    "jwt_assertion_header": request.headers.get(header_name),
                    "authorization_cookie": request.cookies.get(cookie_name),
                    "has_authorization_cookie": cookie_name in request.cookies,
                },
                "headers": headers,
                "raw_cookie_header": request.headers.get("cookie"),
                "cookies": dict(request.cookies),
            }

    async def _check_dependencies(self) -> Dict[str, Any]:
        """Report validator state without calling the JWKS endpoint."""
        state = self.validator.status()
        state["status"] = "error" if state["last_fetch_error"] else "ok"
        return {"jwks": state}


def create_app(config: Optional[ServiceConfig] = None, http_client: Optional[httpx.AsyncClient] = None):
    """Create FastAPI application."""
    service = EdgeAuthService(config, http_client=http_client)
    return service.app


if __name__ == "__main__":
    service = EdgeAuthService(get_config(SERVICE_NAME, int(os.getenv("PORT", DEFAULT_PORT))))
    service.run()
