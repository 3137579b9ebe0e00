"""Authentication error taxonomy.

Every error carries a stable machine-readable ``code`` which is the only
thing returned to the client; ``detail`` is for logs.
"""

from __future__ import annotations

from fastapi import HTTPException


class AuthError(HTTPException):
    """Base class for failures raised by the auth handshake and guard."""

    status: int = 401
    code: str = "auth_failed"

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(status_code=self.status, detail=detail)


class MissingInitData(AuthError):
    status = 400
    code = "initData required"


class MalformedPayload(AuthError):
    """initData is not a query string or lacks the ``hash`` field."""


class SignatureMismatch(AuthError):
    """Recomputed initData hash differs from the claimed one."""


class StalePayload(AuthError):
    """``auth_date`` is outside the configured freshness window."""


class MalformedIdentityClaim(AuthError):
    """Verified fields carry no usable ``user`` object."""


class StoreUnavailable(AuthError):
    status = 503
    code = "store_unavailable"


class MissingCredential(AuthError):
    code = "unauthorized"


class InvalidOrExpiredCredential(AuthError):
    code = "invalid_token"


class AuthNotConfigured(AuthError):
    status = 500
    code = "auth_not_configured"
