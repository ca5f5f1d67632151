"""
Inkwell Backend — Session Cookie Transport
============================================

What:  Carries the session token between client and server in a cookie.
How:   attach() sets the cookie on login, clear() overwrites it with an empty,
       immediately expiring value on logout, read() pulls it off a request.

There is no server-side session store and no deny-list: logging out only
removes the cookie from the browser. A copied token stays valid until the
expiry the token service enforces (none by default).
"""

from typing import Literal, Optional

from starlette.requests import Request
from starlette.responses import Response


class SessionTransport:
    """Cookie settings for the session token."""

    def __init__(
        self,
        cookie_name: str = "token",
        secure: bool = False,
        samesite: Literal["lax", "strict", "none"] = "lax",
        domain: Optional[str] = None,
        max_age: Optional[int] = None,
    ):
        self.cookie_name = cookie_name
        self.secure = secure
        self.samesite = samesite
        self.domain = domain
        self.max_age = max_age

    def attach(self, response: Response, token: str) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=token,
            max_age=self.max_age,
            path="/",
            domain=self.domain,
            secure=self.secure,
            httponly=True,
            samesite=self.samesite,
        )

    def clear(self, response: Response) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value="",
            max_age=0,
            expires=0,
            path="/",
            domain=self.domain,
            secure=self.secure,
            httponly=True,
            samesite=self.samesite,
        )

    def read(self, request: Request) -> Optional[str]:
        """Return the token from the request cookies, or None when absent/empty."""
        return request.cookies.get(self.cookie_name) or None
