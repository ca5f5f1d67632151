"""
Inkwell Backend — Request Dependencies
========================================

What:  FastAPI dependencies that hand route handlers the components built by
       create_app() and the identity of the requester.
How:   Components live on app.state (one instance per app, built from that
       app's Settings); handlers reach them through Depends().
"""

from fastapi import Depends, Request

from inkwell.services.auth_service import AuthService
from inkwell.services.cover_storage import CoverStorage
from inkwell.services.post_service import PostService
from inkwell.services.session import SessionTransport
from inkwell.services.tokens import TokenClaims, TokenService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


def get_session_transport(request: Request) -> SessionTransport:
    return request.app.state.session_transport


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_cover_storage(request: Request) -> CoverStorage:
    return request.app.state.cover_storage


def get_current_claims(
    request: Request,
    transport: SessionTransport = Depends(get_session_transport),
    tokens: TokenService = Depends(get_token_service),
) -> TokenClaims:
    """
    Verify the session cookie and return the requester's claims.

    Raises:
        InvalidTokenError: cookie missing, empty or failing verification (→ 401)
    """
    return tokens.verify(transport.read(request))
