"""
API request and response models for WordGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/verify.

    StrictStr: a number or list is rejected rather than coerced, so
    {"password": 123} is a 400 and never reaches the issuer.
    """

    password: StrictStr


class TTSRequest(BaseModel):
    """Request body for POST /api/tts.

    Whitespace is stripped; an empty result is a 400 from the route, not a 422.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(default="", max_length=5000)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    """Response body for POST /api/verify and POST /api/logout."""

    model_config = ConfigDict(frozen=True)

    success: bool = True


class WordLookupResponse(BaseModel):
    """Response body for POST /api/word."""

    model_config = ConfigDict(frozen=True)

    result: str


class SessionResponse(BaseModel):
    """Response body for GET /api/session.

    last_login is the epoch-millis lastLogin cookie, or None when the cookie
    is missing or not a number. It is display-only.
    """

    model_config = ConfigDict(frozen=True)

    authenticated: bool = True
    last_login: Optional[int] = None


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail
