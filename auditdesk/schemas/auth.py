"""Pydantic schemas for registration and login endpoints."""

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Request schema for account registration.

    Used for POST /auth/register endpoint. Registration never grants any
    role or the super-admin flag.
    """

    email: EmailStr = Field(..., description="Email address (used as login)")
    password: str = Field(..., min_length=8, description="Account password")
    full_name: str | None = Field(None, max_length=255, description="Display name")


class LoginRequest(BaseModel):
    """Request schema for user login.

    Used for POST /auth/login endpoint.
    """

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")


class TokenResponse(BaseModel):
    """Response schema for POST /auth/login.

    The access token is the bearer session credential for every
    authenticated endpoint, including POST /admin-setup.
    """

    access_token: str = Field(..., description="JWT access token for API authentication")
    token_type: str = Field(default="bearer", description="Token type (always 'bearer')")
    expires_in: int | None = Field(default=None, description="Seconds until access token expires")
