"""
Locates the raw token in an incoming request.
"""

from typing import Optional

from starlette.requests import HTTPConnection

from ..config import DEFAULT_TOKEN_COOKIE, DEFAULT_TOKEN_HEADER
from ..models import ExtractedToken


class TokenExtractor:
    """Applies the token location policy.

    The trusted header injected by the identity-aware proxy wins; clients
    cannot forge it through a cookie. The cookie is only consulted when
    cookie fallback is enabled. Absence is a normal outcome, not an error.
    """

    def __init__(
        self,
        header_name: str = DEFAULT_TOKEN_HEADER,
        cookie_name: str = DEFAULT_TOKEN_COOKIE,
        allow_cookie_fallback: bool = True,
    ) -> None:
        self.header_name = header_name
        self.cookie_name = cookie_name
        self.allow_cookie_fallback = allow_cookie_fallback

    @property
    def header_source(self) -> str:
        return f"header:{self.header_name}"

    @property
    def cookie_source(self) -> str:
        return f"cookie:{self.cookie_name}"

    def extract_token(self, request: HTTPConnection) -> Optional[ExtractedToken]:
        header_token = (request.headers.get(self.header_name) or "").strip()
        if header_token:
            return ExtractedToken(token=header_token, source=self.header_source)

        if self.allow_cookie_fallback:
            cookie_token = (request.cookies.get(self.cookie_name) or "").strip()
            if cookie_token:
                return ExtractedToken(token=cookie_token, source=self.cookie_source)

        return None

    def describe_expected(self) -> str:
        """Human readable hint of where a token was expected."""
        if self.allow_cookie_fallback:
            return (
                f"Expected {self.header_name} header (preferred) "
                f"or {self.cookie_name} cookie (fallback)."
            )
        return f"Expected {self.header_name} header."
