"""HS256 access tokens.

A token identifies its user by ``sub`` (duplicated as ``user_id``) and
carries the email the user had when it was issued. Authentication always
reloads the user, so a stale email claim is harmless.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt


class JWTError(Exception):
    pass


class TokenExpiredError(JWTError):
    pass


class InvalidTokenError(JWTError):
    pass


class JWTService:
    ALGORITHM = "HS256"
    ISSUER = "dataplayground"
    TOKEN_TYPE = "access"

    def __init__(self, secret_key: str, access_token_expire_minutes: int) -> None:
        if not secret_key:
            raise ValueError("JWT secret key is required")
        self.secret_key = secret_key
        self.lifetime = timedelta(minutes=access_token_expire_minutes)

    def create_access_token(
        self,
        user_id: str,
        email: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Sign a token for ``user_id``; ``expires_delta`` overrides the configured lifetime."""
        issued_at = datetime.now(timezone.utc)
        claims = {
            "iss": self.ISSUER,
            "iat": issued_at,
            "exp": issued_at + (self.lifetime if expires_delta is None else expires_delta),
            "sub": user_id,
            "user_id": user_id,
            "email": email,
            "type": self.TOKEN_TYPE,
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.ALGORITHM)

    def decode_token(self, token: str) -> dict[str, Any]:
        """Verify signature, issuer and expiry, and return the claims.

        Raises:
            TokenExpiredError: ``exp`` is in the past.
            InvalidTokenError: Anything else is wrong with the token.
        """
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.ALGORITHM],
                issuer=self.ISSUER,
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("Token has expired") from exc
        except jwt.PyJWTError as exc:
            raise InvalidTokenError("Invalid token") from exc

    def validate_access_token(self, token: str) -> dict[str, Any]:
        claims = self.decode_token(token)
        if claims.get("type") != self.TOKEN_TYPE:
            raise InvalidTokenError("Not an access token")
        return claims

    def get_expires_in(self) -> int:
        """Configured token lifetime in seconds."""
        return int(self.lifetime.total_seconds())
