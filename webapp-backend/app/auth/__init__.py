"""Authentication helpers for the mini-app backend."""

from .errors import (
    AuthError,
    AuthNotConfigured,
    InvalidOrExpiredCredential,
    MalformedIdentityClaim,
    MalformedPayload,
    MissingCredential,
    MissingInitData,
    SignatureMismatch,
    StalePayload,
    StoreUnavailable,
)
from .identity import TelegramUserClaim, VerifiedIdentity, parse_user_claim, resolve_identity
from .session import (
    SessionClaims,
    create_session_token,
    decode_session_token,
    extract_credential,
    require_session,
)
from .telegram import (
    build_data_check_string,
    compute_init_data_hash,
    derive_secret_key,
    parse_init_data,
    verify_init_data,
)

__all__ = [
    "AuthError",
    "AuthNotConfigured",
    "InvalidOrExpiredCredential",
    "MalformedIdentityClaim",
    "MalformedPayload",
    "MissingCredential",
    "MissingInitData",
    "SessionClaims",
    "SignatureMismatch",
    "StalePayload",
    "StoreUnavailable",
    "TelegramUserClaim",
    "VerifiedIdentity",
    "build_data_check_string",
    "compute_init_data_hash",
    "create_session_token",
    "decode_session_token",
    "derive_secret_key",
    "extract_credential",
    "parse_init_data",
    "parse_user_claim",
    "require_session",
    "resolve_identity",
    "verify_init_data",
]
