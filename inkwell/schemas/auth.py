"""
Inkwell Backend — Auth Request/Response Schemas
=================================================

What:  Pydantic models for /register, /login and /profile.
Why:   Keeps the API contract separate from the ORM model and lets FastAPI
       validate request bodies before any hashing work is done.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from inkwell.services.passwords import MAX_PASSWORD_BYTES


class Credentials(BaseModel):
    """Body of POST /register and POST /login."""

    username: str = Field(min_length=1, max_length=64, description="Login name")
    password: str = Field(min_length=1, description="Plaintext password (max 72 bytes)")

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("username must not be blank")
        return stripped

    @field_validator("password")
    @classmethod
    def check_password_length(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class RegisteredUser(BaseModel):
    """
    What:  The created user record returned by POST /register.
    Note:  Returns the stored record, including the bcrypt hash. The
           plaintext password is never stored or returned.
    """

    id: uuid.UUID
    username: str
    password_hash: str

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    id: uuid.UUID
    username: str


class ProfileResponse(BaseModel):
    """Identity recovered from the session cookie by GET /profile."""

    username: str
    user_id: uuid.UUID
    issued_at: datetime
    expires_at: Optional[datetime] = None
