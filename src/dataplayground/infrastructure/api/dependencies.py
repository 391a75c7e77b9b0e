"""Request-scoped dependencies: the database session, the caller and the services.

Settings and the JWT service come from ``app.state``, where
:func:`~dataplayground.infrastructure.api.app.create_app` put them.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from dataplayground.core.config import Settings
from dataplayground.core.logging import get_logger
from dataplayground.domain.services import AuthService, CollectionService
from dataplayground.infrastructure.auth import JWTError, JWTService, TokenExpiredError
from dataplayground.infrastructure.persistence.database import get_db_session
from dataplayground.infrastructure.persistence.repositories import UserRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    """The caller, as stored right now (not as the token remembers them)."""

    user_id: str
    username: str
    email: str


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_jwt_service(request: Request) -> JWTService:
    return request.app.state.jwt_service


DbSession = Annotated[AsyncSession, Depends(get_db_session)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Tokens = Annotated[JWTService, Depends(get_jwt_service)]


class NotAuthenticated(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


def _bearer_token(authorization: str | None) -> str:
    if authorization is None:
        raise NotAuthenticated("Authentication required")
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        raise NotAuthenticated("Invalid authorization header")
    return token


async def get_current_user(
    jwt_service: Tokens,
    session: DbSession,
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """Authenticate the ``Authorization: Bearer <token>`` header.

    The user is reloaded on every request, so tokens of deleted accounts
    stop working at once and profile changes are visible immediately.

    Raises:
        HTTPException: 401 when the header is missing or malformed, the
            token does not verify, or its user no longer exists.
    """
    token = _bearer_token(authorization)

    try:
        claims = jwt_service.validate_access_token(token)
    except TokenExpiredError:
        raise NotAuthenticated("Token has expired")
    except JWTError as exc:
        logger.info("Rejected bearer token", reason=str(exc))
        raise NotAuthenticated("Invalid token")

    user_id = claims.get("user_id") or claims["sub"]
    user = await UserRepository(session).get_by_id(user_id)
    if user is None:
        logger.info("Token for a deleted user", user_id=user_id)
        raise NotAuthenticated("User not found")

    return CurrentUser(user_id=user.id, username=user.username, email=user.email)


AuthenticatedUser = Annotated[CurrentUser, Depends(get_current_user)]


def get_collection_service(session: DbSession, settings: AppSettings) -> CollectionService:
    return CollectionService(session, max_page_size=settings.max_page_size)


def get_auth_service(session: DbSession, settings: AppSettings, jwt_service: Tokens) -> AuthService:
    return AuthService(
        session,
        jwt_service=jwt_service,
        registration_code=settings.registration_code,
    )
