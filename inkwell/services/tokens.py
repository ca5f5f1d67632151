"""
Inkwell Backend — Session Token Issuer / Verifier
===================================================

What:  Creates and validates signed, stateless session tokens (JWT).
How:   PyJWT with an HMAC secret held only by the server. The token embeds
       the username, user id and issue time; an expiry claim is added only
       when a TTL is configured.
Who:   AuthService.login() issues; the get_current_claims dependency verifies.

Token payload:
    {
        "username": "alice",
        "user_id": "0c0f4c1e-...",
        "iat": 1760000000,
        "exp": 1760086400        # only when token_ttl_seconds is set
    }

Verification trusts the signature alone: it does not look the user up in
the store, so a token stays valid for as long as its signature (and expiry,
if any) holds.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from inkwell.exceptions import InvalidTokenError, TokenSigningError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    """Identity recovered from a verified token."""

    username: str
    user_id: uuid.UUID
    issued_at: datetime
    expires_at: Optional[datetime] = None


class TokenService:
    """
    Issues and verifies session tokens.

    Args:
        secret:     HMAC signing secret. An empty secret makes issue() raise
                    TokenSigningError and verify() raise InvalidTokenError.
        algorithm:  JWT HMAC algorithm (HS256 by default).
        ttl:        Token lifetime; None issues tokens without an expiry.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: Optional[timedelta] = None,
    ):
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, username: str, user_id: uuid.UUID) -> str:
        """
        Sign a token for the given identity.

        Raises:
            TokenSigningError: no secret configured or the JWT library failed
        """
        if not self._secret:
            raise TokenSigningError(context={"reason": "signing secret not configured"})

        now = datetime.now(timezone.utc)
        payload = {
            "username": username,
            "user_id": str(user_id),
            "iat": now,
        }
        if self.ttl is not None:
            payload["exp"] = now + self.ttl

        try:
            return jwt.encode(payload, self._secret, algorithm=self.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            logger.error("Token signing failed: %s", e)
            raise TokenSigningError(context={"error_type": type(e).__name__})

    def verify(self, token: Optional[str]) -> TokenClaims:
        """
        Validate a token and return its claims.

        Any problem (missing token, bad signature, wrong algorithm, expired,
        malformed payload) raises InvalidTokenError.
        """
        if not token:
            raise InvalidTokenError(context={"reason": "missing"})
        if not self._secret:
            raise InvalidTokenError(context={"reason": "signing secret not configured"})

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError(message="Session has expired", context={"reason": "expired"})
        except jwt.PyJWTError as e:
            raise InvalidTokenError(context={"reason": type(e).__name__})

        username = payload.get("username")
        raw_user_id = payload.get("user_id")
        if not isinstance(username, str) or not username or not isinstance(raw_user_id, str):
            raise InvalidTokenError(context={"reason": "malformed claims"})
        try:
            user_id = uuid.UUID(raw_user_id)
        except ValueError:
            raise InvalidTokenError(context={"reason": "malformed user_id"})

        exp = payload.get("exp")
        return TokenClaims(
            username=username,
            user_id=user_id,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc) if exp is not None else None,
        )
