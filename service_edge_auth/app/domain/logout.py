"""
Logout through the identity-aware proxy.
"""

from typing import Optional
from urllib.parse import urlencode

from fastapi import Request
from starlette.responses import RedirectResponse

from ..config import DEFAULT_TOKEN_COOKIE
from ..errors import ConfigurationError

LOGOUT_PATH = "/cdn-cgi/access/logout"


def build_logout_url(
    app_domain: Optional[str] = None,
    team_name: Optional[str] = None,
    redirect_after: str = "/",
) -> str:
    """Return the proxy logout URL.

    The application domain is preferred because logging out there removes
    the application cookie immediately; the team domain is the fallback.
    """
    if app_domain:
        base = f"{app_domain.rstrip('/')}{LOGOUT_PATH}"
    elif team_name:
        base = f"https://{team_name}.cloudflareaccess.com{LOGOUT_PATH}"
    else:
        raise ConfigurationError("Either app_domain or team_name is required for logout")
    return f"{base}?{urlencode({'redirect_url': redirect_after})}"


class LogoutHandler:
    """Redirects the browser to the proxy logout endpoint and drops the token cookie."""

    def __init__(
        self,
        app_domain: Optional[str] = None,
        team_name: Optional[str] = None,
        redirect_after: str = "/",
        cookie_name: str = DEFAULT_TOKEN_COOKIE,
    ) -> None:
        self.logout_url = build_logout_url(app_domain, team_name, redirect_after)
        self.cookie_name = cookie_name

    async def __call__(self, request: Request) -> RedirectResponse:
        response = RedirectResponse(url=self.logout_url, status_code=302)
        response.delete_cookie(self.cookie_name)
        return response
