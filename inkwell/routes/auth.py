"""
Inkwell Backend — Auth Route Handlers
=======================================

What:  POST /register, POST /login, GET /profile, POST /logout.
How:   Thin handlers: parse the body, call AuthService, set or clear the
       session cookie. Errors are raised as application exceptions and
       formatted by the global handlers in main.py.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.database import get_db_session
from inkwell.dependencies import get_auth_service, get_current_claims, get_session_transport
from inkwell.schemas.auth import Credentials, LoginResponse, ProfileResponse, RegisteredUser
from inkwell.schemas.common import ErrorResponse
from inkwell.services.auth_service import AuthService
from inkwell.services.session import SessionTransport
from inkwell.services.tokens import TokenClaims

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/register",
    response_model=RegisteredUser,
    responses={
        400: {"description": "Duplicate username or invalid input", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def register(
    body: Credentials,
    db: AsyncSession = Depends(get_db_session),
    auth: AuthService = Depends(get_auth_service),
) -> RegisteredUser:
    user = await auth.register(db, body.username, body.password)
    return RegisteredUser.model_validate(user)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Wrong credentials", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Log in and receive a session cookie",
)
async def login(
    body: Credentials,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    auth: AuthService = Depends(get_auth_service),
    transport: SessionTransport = Depends(get_session_transport),
) -> LoginResponse:
    user, token = await auth.login(db, body.username, body.password)
    transport.attach(response, token)
    return LoginResponse(id=user.id, username=user.username)


@router.get(
    "/profile",
    response_model=ProfileResponse,
    responses={401: {"description": "Missing or invalid session", "model": ErrorResponse}},
    summary="Identity carried by the session cookie",
)
async def profile(
    claims: TokenClaims = Depends(get_current_claims),
    auth: AuthService = Depends(get_auth_service),
) -> ProfileResponse:
    return auth.profile(claims)


@router.post("/logout", response_model=str, summary="Clear the session cookie")
async def logout(
    response: Response,
    transport: SessionTransport = Depends(get_session_transport),
) -> str:
    transport.clear(response)
    return "ok"
