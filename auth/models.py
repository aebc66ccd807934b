"""
auth/models.py -- Domain dataclasses and error kinds for authentication.

Pattern: Data class (pure data container, almost no logic). The issuer and
the gate do the work; these types only carry shape.

Layer rule: no imports from api/ or web/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class AllowList:
    """The configured set of acceptable login passwords.

    Entries are trimmed of surrounding whitespace and empty entries are
    dropped, so ACCESS_PASSWORDS=" , " yields an empty (misconfigured) list
    rather than one that accepts nothing but still looks configured.

    Frozen: built once at startup and shared read-only across requests.
    """

    passwords: tuple[str, ...] = ()

    @classmethod
    def from_csv(cls, raw: str | None) -> AllowList:
        """Parse a comma-separated password list, e.g. the ACCESS_PASSWORDS setting."""
        if not raw:
            return cls()
        entries = (part.strip() for part in raw.split(","))
        return cls(passwords=tuple(p for p in entries if p))

    def __len__(self) -> int:
        return len(self.passwords)


@dataclass(frozen=True)
class IssuedCredential:
    """A freshly minted session credential and the login time it was minted at.

    credential is 64 lowercase hex chars (32 random bytes). issued_at is epoch
    milliseconds and is informational only -- it never gates access.
    """

    credential: str
    issued_at: int


class AuthErrorKind(str, Enum):
    invalid_input = "invalid_input"
    invalid_credentials = "invalid_credentials"
    server_misconfigured = "server_misconfigured"
    unauthorized = "unauthorized"
    method_not_allowed = "method_not_allowed"


# HTTP status and the only message a caller ever sees for each kind.
# server_misconfigured deliberately reads like any other server fault.
_KIND_RESPONSES: dict[AuthErrorKind, tuple[int, str]] = {
    AuthErrorKind.invalid_input: (400, "A valid password is required."),
    AuthErrorKind.invalid_credentials: (401, "Incorrect password."),
    AuthErrorKind.server_misconfigured: (500, "Internal server error."),
    AuthErrorKind.unauthorized: (401, "Authentication required."),
    AuthErrorKind.method_not_allowed: (405, "Method not allowed."),
}


class AuthError(Exception):
    """Terminal authentication failure for the current request.

    Raised by the issuer and the session dependency; api/main.py turns it into
    a status code and an ErrorResponse body. str(exc) is the public message.
    """

    def __init__(self, kind: AuthErrorKind) -> None:
        self.kind = kind
        self.status_code, self.message = _KIND_RESPONSES[kind]
        super().__init__(self.message)
