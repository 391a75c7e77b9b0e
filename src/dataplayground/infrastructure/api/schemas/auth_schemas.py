"""Pydantic schemas for authentication endpoints."""

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Request body for user registration."""

    username: str = Field(..., min_length=3, max_length=64, description="Unique username")
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, description="User's password")
    registration_code: str | None = Field(
        None,
        alias="registrationCode",
        description="Registration code, required when the server is configured with one",
    )

    model_config = {"populate_by_name": True}


class LoginRequest(BaseModel):
    """Request body for user login."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, description="User's password")


class ProfileUpdateRequest(BaseModel):
    """Request body for profile updates. Every field is optional."""

    username: str | None = Field(None, min_length=3, max_length=64)
    email: EmailStr | None = None
    current_password: str | None = Field(None, alias="currentPassword")
    new_password: str | None = Field(None, alias="newPassword", min_length=8)

    model_config = {"populate_by_name": True}


class UserResponse(BaseModel):
    """User information in auth responses."""

    id: str = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    email: str = Field(..., description="User's email address")

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Response for successful registration or login."""

    success: bool = True
    message: str
    token: str = Field(..., description="JWT access token")
    expires_in: int = Field(
        ...,
        serialization_alias="expiresIn",
        description="Access token expiration time in seconds",
    )
    user: UserResponse


class ProfileResponse(BaseModel):
    """Response for profile reads and updates."""

    success: bool = True
    message: str | None = None
    user: UserResponse
