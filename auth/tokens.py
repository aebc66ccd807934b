"""
auth/tokens.py -- Password checking, session credential minting, and cookie helpers.

Security design decisions:
  Passwords: the allow-list holds plaintext shared secrets from configuration.
       Submissions are compared as SHA-256 digests with hmac.compare_digest,
       and every entry is checked without an early exit, so the time taken
       does not reveal which (or whether an) entry matched.

  Session credential: secrets.token_hex(32) gives 256 bits of entropy as 64
       hex characters. No server-side record exists; the only validation is
       is_valid_session_shape(). A forged string of the right length passes.
       This is the accepted trade-off of running without a session store.

  Cookies: httponly, samesite=strict, secure, path=/, max_age=SESSION_MAX_AGE.
       The browser drops them after 24h by default; the server never checks
       expiry itself.

Layer rule: no imports from api/ or web/. Import from core/ is allowed.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import time
from datetime import datetime, timezone

from auth.models import AllowList, AuthError, AuthErrorKind, IssuedCredential

logger = logging.getLogger("wordgate.auth")

SESSION_COOKIE = "authenticated"
LAST_LOGIN_COOKIE = "lastLogin"
SESSION_TOKEN_BYTES = 32
SESSION_TOKEN_LENGTH = SESSION_TOKEN_BYTES * 2


# ---------------------------------------------------------------------------
# Shape check -- the one predicate shared by the gate and downstream handlers
# ---------------------------------------------------------------------------


def is_valid_session_shape(token: object) -> bool:
    """Return True if token looks like a session credential (a 64-char string).

    Shape only: no allow-list lookup, no expiry, no signature.
    """
    return isinstance(token, str) and len(token) == SESSION_TOKEN_LENGTH


# ---------------------------------------------------------------------------
# Hashing and token generation
# ---------------------------------------------------------------------------


def hash_secret(plain: str) -> str:
    """Return the SHA-256 hex digest of a password."""
    # surrogatepass: a lone surrogate from a JSON \uD800 escape still hashes (and fails to match).
    return hashlib.sha256(plain.encode("utf-8", errors="surrogatepass")).hexdigest()


def generate_session_token() -> str:
    """Generate a new session credential: 32 random bytes as 64 hex chars."""
    return secrets.token_hex(SESSION_TOKEN_BYTES)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Credential Issuer
# ---------------------------------------------------------------------------


class CredentialIssuer:
    """Validates a submitted password and mints a session credential.

    The allow-list is injected at construction rather than read from the
    environment per call; api/main.py builds it from Settings at startup and
    tests pass their own. Digests of the entries are computed once here.
    """

    def __init__(self, allow_list: AllowList) -> None:
        self._allowed_digests = tuple(hash_secret(p) for p in allow_list.passwords)

    @property
    def configured(self) -> bool:
        return bool(self._allowed_digests)

    def _matches(self, password: str) -> bool:
        submitted = hash_secret(password)
        matched = False
        for allowed in self._allowed_digests:
            # Non-short-circuit OR: every entry is compared on every call.
            matched |= hmac.compare_digest(submitted, allowed)
        return matched

    def issue(self, password: object) -> IssuedCredential:
        """Return a new IssuedCredential if password is on the allow-list.

        Raises:
            AuthError(invalid_input):        password is not a non-empty string.
            AuthError(server_misconfigured): the allow-list is empty.
            AuthError(invalid_credentials):  no allow-list entry matches.
        """
        if not isinstance(password, str) or not password:
            raise AuthError(AuthErrorKind.invalid_input)

        if not self.configured:
            # Server-side only. The caller sees a generic server error.
            logger.error("ACCESS_PASSWORDS is not set; refusing all logins")
            raise AuthError(AuthErrorKind.server_misconfigured)

        if not self._matches(password):
            logger.warning("Failed login attempt at %s", _now_iso())
            raise AuthError(AuthErrorKind.invalid_credentials)

        issued = IssuedCredential(
            credential=generate_session_token(),
            issued_at=int(time.time() * 1000),
        )
        logger.info("Successful login at %s", _now_iso())
        return issued


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookies(response, issued: IssuedCredential, max_age: int, secure: bool = True) -> None:
    """Write the session credential and login timestamp as cookies on the response.

    Both cookies: Path=/; HttpOnly; SameSite=Strict; Max-Age=max_age; Secure
    (when secure is True). They share one lifetime so the timestamp never
    outlives the credential it describes.

    Args:
        response: FastAPI/Starlette response object.
        issued:   The credential returned by CredentialIssuer.issue().
        max_age:  Cookie lifetime in seconds (Settings.session_max_age).
        secure:   Settings.secure_cookies. Only disable for plain-HTTP local dev.
    """
    for key, value in ((SESSION_COOKIE, issued.credential), (LAST_LOGIN_COOKIE, str(issued.issued_at))):
        response.set_cookie(
            key,
            value=value,
            max_age=max_age,
            path="/",
            httponly=True,
            samesite="strict",
            secure=secure,
        )


def clear_session_cookies(response, secure: bool = True) -> None:
    """Expire both session cookies on the client."""
    for key in (SESSION_COOKIE, LAST_LOGIN_COOKIE):
        response.delete_cookie(key, path="/", httponly=True, samesite="strict", secure=secure)
