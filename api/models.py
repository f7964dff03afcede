"""
API request and response models for authgate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request fields are all Optional: a missing field is a business-level
ValidationError raised by the flow (400 with a specific message), not a
schema failure.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/register."""

    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = Field(default=None, alias="confirmPassword")


class LoginRequest(BaseModel):
    """Request body for POST /api/login."""

    username: Optional[str] = None
    password: Optional[str] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    """Plain {message} envelope used for successes and every error."""

    model_config = ConfigDict(frozen=True)

    message: str


class PublicUser(BaseModel):
    """The only user fields ever echoed after login."""

    model_config = ConfigDict(frozen=True)

    username: str


class LoginResponse(BaseModel):
    """Response for POST /api/login. The token itself travels in the cookie."""

    model_config = ConfigDict(frozen=True)

    message: str = "login success"
    user: PublicUser


class VerifyResponse(BaseModel):
    """Response for GET /api/verify-auth: the decoded token claims."""

    model_config = ConfigDict(frozen=True)

    user: dict


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    components: dict[str, str]
