"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Credentials for login. login accepts a slug or an email address."""

    login: str = Field(..., min_length=1, max_length=255, description="Slug or email")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class TokenResponse(BaseModel):
    """JWT access token returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class CurrentUser(BaseModel):
    """Authenticated account (id, slug, role) for dependency injection."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    name: str
    role: str
