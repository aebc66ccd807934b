"""
web/routes.py -- Jinja2 template routes for the WordGate web UI.

These routes serve server-rendered HTML. The pages call the JSON API from the
browser (/api/verify, /api/word, /api/tts, /api/logout); the session cookies
are httpOnly, so page scripts never see the credential itself.

Routes:
  GET /login.html   -- login form (exempt from the access gate)
  GET /             -- word lookup page (gated: redirect to /login.html)
  GET /index.html   -- same page under its static-site name
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from auth.dependencies import try_get_session
from auth.tokens import LAST_LOGIN_COOKIE

logger = logging.getLogger("wordgate.web")

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def _last_login_text(raw: Optional[str]) -> Optional[str]:
    """Format the lastLogin cookie (epoch millis) for display, or None if unusable."""
    if not raw or not raw.isdigit():
        return None
    try:
        when = datetime.fromtimestamp(int(raw) / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    return when.strftime("%Y-%m-%d %H:%M UTC")


@router.get("/login.html", response_class=HTMLResponse)
def login_page(request: Request):
    """Render the login form, or skip it when the caller already holds a session."""
    if try_get_session(request) is not None:
        return RedirectResponse("/", status_code=302)
    return templates.TemplateResponse(request, "login.html")


@router.get("/", response_class=HTMLResponse)
@router.get("/index.html", response_class=HTMLResponse)
def index_page(request: Request) -> HTMLResponse:
    """Render the word lookup page. Only reachable past the access gate."""
    last_login = _last_login_text(request.cookies.get(LAST_LOGIN_COOKIE))
    return templates.TemplateResponse(request, "index.html", {"last_login": last_login})
