"""
Inkwell Backend — Session Cookie Transport Unit Tests
=======================================================
"""

from starlette.requests import Request
from starlette.responses import Response

from inkwell.services.session import SessionTransport


def _request_with_cookie(header: bytes = b"") -> Request:
    headers = [(b"cookie", header)] if header else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


class TestSessionTransport:

    def test_attach_sets_http_only_cookie(self):
        response = Response()
        SessionTransport().attach(response, "abc.def.ghi")

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("token=abc.def.ghi")
        assert "httponly" in cookie.lower()
        assert "path=/" in cookie.lower()
        assert "samesite=lax" in cookie.lower()
        assert "secure" not in cookie.lower()
        assert "max-age" not in cookie.lower()

    def test_attach_honours_settings(self):
        response = Response()
        transport = SessionTransport(cookie_name="sid", secure=True, samesite="strict", max_age=3600)
        transport.attach(response, "tok")

        cookie = response.headers["set-cookie"].lower()
        assert cookie.startswith("sid=tok")
        assert "secure" in cookie
        assert "samesite=strict" in cookie
        assert "max-age=3600" in cookie

    def test_clear_expires_cookie(self):
        response = Response()
        SessionTransport().clear(response)

        cookie = response.headers["set-cookie"].lower()
        assert cookie.startswith("token=")
        assert "max-age=0" in cookie
        assert "path=/" in cookie

    def test_read_returns_cookie_value(self):
        assert SessionTransport().read(_request_with_cookie(b"token=abc")) == "abc"

    def test_read_ignores_other_cookies(self):
        assert SessionTransport().read(_request_with_cookie(b"other=1")) is None

    def test_read_missing_or_empty(self):
        assert SessionTransport().read(_request_with_cookie()) is None
        assert SessionTransport().read(_request_with_cookie(b"token=")) is None
