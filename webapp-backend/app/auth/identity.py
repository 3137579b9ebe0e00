"""Turn verified initData fields into a user identity and persist it."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError

from .errors import MalformedIdentityClaim

if TYPE_CHECKING:
    from app.store import UserRecord, UserStore

log = logging.getLogger("app.auth")


class TelegramUserClaim(BaseModel):
    """Schema of the JSON object carried in the ``user`` initData field."""

    model_config = ConfigDict(extra="ignore")

    id: StrictInt
    first_name: Optional[StrictStr] = None
    last_name: Optional[StrictStr] = None
    username: Optional[StrictStr] = None
    language_code: Optional[StrictStr] = None


@dataclass(frozen=True)
class VerifiedIdentity:
    external_id: str
    display_name: str
    username: Optional[str] = None
    language_code: Optional[str] = None


def _display_name(claim: TelegramUserClaim) -> str:
    full = f"{claim.first_name or ''} {claim.last_name or ''}".strip()
    return full or claim.username or ""


def parse_user_claim(fields: Dict[str, str]) -> VerifiedIdentity:
    """Build a :class:`VerifiedIdentity` from already verified fields."""

    raw_user = fields.get("user")
    if not raw_user:
        raise MalformedIdentityClaim("Missing user in initData")

    try:
        payload = json.loads(raw_user)
    except json.JSONDecodeError as exc:
        raise MalformedIdentityClaim("Malformed user payload") from exc

    if not isinstance(payload, dict):
        raise MalformedIdentityClaim("user payload is not an object")

    try:
        claim = TelegramUserClaim.model_validate(payload)
    except ValidationError as exc:
        raise MalformedIdentityClaim(f"Invalid user payload: {exc.error_count()} error(s)") from exc

    return VerifiedIdentity(
        external_id=str(claim.id),
        display_name=_display_name(claim),
        username=claim.username,
        language_code=claim.language_code,
    )


def resolve_identity(fields: Dict[str, str], store: "UserStore") -> Tuple[VerifiedIdentity, "UserRecord"]:
    """Parse the identity claim and insert the user unless already known."""

    identity = parse_user_claim(fields)
    record, created = store.insert_user_if_absent(identity)
    if created:
        log.info("Registered user tg_id=%s id=%s", record.tg_id, record.id)
    return identity, record
