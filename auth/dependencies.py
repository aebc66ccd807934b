"""
auth/dependencies.py -- FastAPI Depends() helpers for the session credential.

The access gate already rejects requests without a well-shaped credential
before routing. Downstream API routes still declare Depends(require_session)
so they stay safe if mounted on an app without the gate. Both paths use the
same is_valid_session_shape() predicate.

try_get_session() is the soft variant (returns None on failure).
require_session() wraps it and raises AuthError(unauthorized).

Layer rule: no imports from api/ or web/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import AuthError, AuthErrorKind
from auth.tokens import SESSION_COOKIE, is_valid_session_shape


def try_get_session(request: Request) -> str | None:
    """Return the caller's session credential if it has a valid shape, else None."""
    token = request.cookies.get(SESSION_COOKIE)
    if is_valid_session_shape(token):
        return token
    return None


def require_session(request: Request) -> str:
    """Require a session credential. Raises AuthError(unauthorized) if absent or malformed.

    Use as a FastAPI dependency:
        @router.post("/tts")
        def route(session: str = Depends(require_session)): ...
    """
    token = try_get_session(request)
    if token is None:
        raise AuthError(AuthErrorKind.unauthorized)
    return token
