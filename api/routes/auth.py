"""
api/routes/auth.py -- Login, logout, and session endpoints.

Routes:
  POST /api/verify   -- password login; sets the session cookies (exempt from the gate)
  POST /api/logout   -- clears the session cookies
  GET  /api/session  -- session status and last login time

Security:
  POST /verify is rate-limited per IP (LOGIN_RATE_LIMIT, default 10/minute).
  Wrong password and empty allow-list are distinct AuthError kinds, but the
  response bodies are generic and never mention configuration.
  Cache-Control: no-store on every verify response.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, SessionResponse
from auth.dependencies import require_session
from auth.models import AuthError, AuthErrorKind
from auth.tokens import LAST_LOGIN_COOKIE, CredentialIssuer, clear_session_cookies, set_session_cookies
from core.config import get_settings

# Auth policy:
# - POST /api/verify:   public -- exempt from the gate, it is how a session starts
# - POST /api/logout:   requires a session (gate + require_session)
# - GET  /api/session:  requires a session (gate + require_session)
router = APIRouter()


# @router must be outermost so FastAPI registers the rate-limited wrapper;
# slowapi's middleware skips endpoints that carry their own limit decorator.
@router.post("/verify", response_model=LoginResponse)
@limiter.limit(get_settings().login_rate_limit)
async def verify(request: Request) -> JSONResponse:
    """Check a password against the allow-list; on success set the session cookies.

    The body is parsed by hand rather than declared as a LoginRequest
    parameter so that a missing, non-string, or unparseable password is a 400
    (invalid_input) instead of FastAPI's 422.
    """
    try:
        body = LoginRequest.model_validate(await request.json())
    except ValueError:
        # JSONDecodeError and pydantic's ValidationError are both ValueErrors.
        raise AuthError(AuthErrorKind.invalid_input) from None

    issuer: CredentialIssuer = request.app.state.issuer
    issued = issuer.issue(body.password)

    settings = request.app.state.settings
    resp = JSONResponse(status_code=200, content=LoginResponse().model_dump())
    set_session_cookies(resp, issued, max_age=settings.session_max_age, secure=settings.secure_cookies)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/logout", response_model=LoginResponse)
async def logout(request: Request, _session: str = Depends(require_session)) -> JSONResponse:
    """Clear both session cookies.

    There is no server-side record to revoke: a copy of the credential held
    elsewhere stays usable until its cookie would have expired.
    """
    resp = JSONResponse(content=LoginResponse().model_dump())
    clear_session_cookies(resp, secure=request.app.state.settings.secure_cookies)
    return resp


@router.get("/session", response_model=SessionResponse)
async def session_status(request: Request, _session: str = Depends(require_session)) -> SessionResponse:
    """Report that the caller holds a session, and when they last logged in."""
    raw = request.cookies.get(LAST_LOGIN_COOKIE, "")
    return SessionResponse(last_login=int(raw) if raw.isdigit() else None)
