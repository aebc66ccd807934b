"""
auth/gate.py -- The access gate: wrap a request handler with the session check.

protect(handler) returns a new handler that, per request:
  1. delegates straight away for exempt paths (login page, verify endpoint);
  2. otherwise reads the "authenticated" cookie and applies the shape check;
  3. on failure answers 401 JSON under /api/, or redirects pages to the login page;
  4. on success delegates with the request untouched.

The handler may be sync or async. Awaitables are awaited and exceptions raised
by the handler propagate unchanged. Nothing is remembered between requests.

api/main.py installs the gate around the whole app:
    @app.middleware("http")
    async def access_gate(request, call_next):
        return await protect(call_next)(request)

Layer rule: no imports from api/ or web/.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Awaitable, Callable, Collection
from typing import Union

from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from auth.tokens import SESSION_COOKIE, is_valid_session_shape

logger = logging.getLogger("wordgate.gate")

LOGIN_PATH = "/login.html"
VERIFY_PATH = "/api/verify"
EXEMPT_PATHS: frozenset[str] = frozenset({LOGIN_PATH, VERIFY_PATH})
API_PREFIX = "/api/"

RequestHandler = Callable[[Request], Union[Response, Awaitable[Response]]]


def _unauthorized() -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"error": {"code": "unauthorized", "message": "Authentication required."}},
    )


def protect(
    handler: RequestHandler,
    *,
    exempt_paths: Collection[str] = EXEMPT_PATHS,
    login_path: str = LOGIN_PATH,
    api_prefix: str = API_PREFIX,
) -> Callable[[Request], Awaitable[Response]]:
    """Return handler wrapped with the session gate.

    Matching is on the URL path only, so /login.html?next=/ is still exempt.
    Wrapping an already-protected handler adds a second identical check and
    changes no decision.
    """
    exempt = frozenset(exempt_paths)

    @functools.wraps(handler)
    async def gated(request: Request) -> Response:
        path = request.url.path
        if path not in exempt:
            token = request.cookies.get(SESSION_COOKIE)
            if not is_valid_session_shape(token):
                if path.startswith(api_prefix):
                    logger.debug("Rejected unauthenticated API request to %s", path)
                    return _unauthorized()
                logger.debug("Redirecting unauthenticated page request for %s", path)
                return RedirectResponse(login_path, status_code=302)

        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    return gated
