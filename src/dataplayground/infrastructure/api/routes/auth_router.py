"""Authentication API routes.

Provides endpoints for user registration, login, and profile management.
Domain errors raised by the service are turned into responses by the
application's exception handlers.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from dataplayground.core.logging import get_logger
from dataplayground.domain.entities import User
from dataplayground.domain.services import AuthResult, AuthService
from dataplayground.infrastructure.api.dependencies import (
    AuthenticatedUser,
    DbSession,
    get_auth_service,
)
from dataplayground.infrastructure.api.schemas import (
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    UserResponse,
)

logger = get_logger(__name__)

router = APIRouter()

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


def _user_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, username=user.username, email=user.email)


def _auth_response(result: AuthResult, message: str) -> AuthResponse:
    return AuthResponse(
        message=message,
        token=result.token,
        expires_in=result.expires_in,
        user=_user_response(result.user),
    )


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=AuthResponse,
    responses={
        400: {"description": "Validation error"},
        409: {"description": "Username or email already exists"},
    },
)
async def register(
    request: RegisterRequest,
    auth_service: AuthServiceDep,
    session: DbSession,
) -> AuthResponse:
    """Register a new user and return an access token."""
    result = await auth_service.register(
        username=request.username,
        email=request.email,
        password=request.password,
        registration_code=request.registration_code,
    )
    await session.commit()
    return _auth_response(result, "User registered successfully")


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid credentials"}},
)
async def login(
    request: LoginRequest,
    auth_service: AuthServiceDep,
    session: DbSession,
) -> AuthResponse:
    """Authenticate with email and password."""
    result = await auth_service.login(request.email, request.password)
    # login may have upgraded the stored hash
    await session.commit()
    return _auth_response(result, "Login successful")


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: AuthenticatedUser) -> ProfileResponse:
    """Return the authenticated user's profile."""
    return ProfileResponse(
        user=UserResponse(
            id=current_user.user_id,
            username=current_user.username,
            email=current_user.email,
        )
    )


@router.api_route(
    "/profile",
    methods=["PUT", "PATCH"],
    response_model=ProfileResponse,
    responses={
        400: {"description": "Validation error or wrong current password"},
        409: {"description": "Username or email already in use"},
    },
)
async def update_profile(
    request: ProfileUpdateRequest,
    current_user: AuthenticatedUser,
    auth_service: AuthServiceDep,
    session: DbSession,
) -> ProfileResponse:
    """Update username, email and/or password."""
    update = await auth_service.update_profile(
        current_user.user_id,
        username=request.username,
        email=request.email,
        current_password=request.current_password,
        new_password=request.new_password,
    )
    await session.commit()
    return ProfileResponse(message=update.message, user=_user_response(update.user))
