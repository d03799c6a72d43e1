"""
application.services.authentication - Bearer token issue and verification.

The chat API trusts a JWT whose `sub` claim names the principal. Accounts
and passwords live elsewhere; this service only signs and checks tokens.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class AuthenticationService:
    """Handles JWT creation and verification."""

    def __init__(
        self,
        jwt_secret: str,
        jwt_expiry_hours: int = 24,
        jwt_algorithm: str = "HS256",
    ):
        self._jwt_secret = jwt_secret
        self._jwt_expiry_hours = jwt_expiry_hours
        self._jwt_algorithm = jwt_algorithm

    def create_token(self, principal: str, expiry_hours: Optional[int] = None) -> str:
        """Sign a token for principal (CLI helper, tests, trusted front-ends)."""
        if not principal:
            raise AuthenticationError("Principal must not be empty.")
        hours = self._jwt_expiry_hours if expiry_hours is None else expiry_hours
        payload = {
            "sub": principal,
            "exp": datetime.now(timezone.utc) + timedelta(hours=hours),
        }
        return jwt.encode(payload, self._jwt_secret, algorithm=self._jwt_algorithm)

    def verify_token(self, token: str) -> str:
        """Decode and validate a JWT. Returns the principal (`sub` claim)."""
        try:
            payload = jwt.decode(
                token, self._jwt_secret, algorithms=[self._jwt_algorithm],
            )
        except JWTError as exc:
            raise AuthenticationError(f"Token verification failed: {exc}")

        principal = payload.get("sub")
        if not principal or not isinstance(principal, str):
            raise AuthenticationError("Invalid token payload.")
        return principal
