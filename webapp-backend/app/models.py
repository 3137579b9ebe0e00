"""Pydantic models used by the FastAPI routes."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TelegramAuthRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    init_data: Optional[str] = Field(default=None, alias="initData")


class TokenResponse(BaseModel):
    ok: bool = True
    token: str


class SessionResponse(BaseModel):
    uid: str
    name: str
    exp: int


class ClientIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = None
    stage: Optional[str] = None
    owner: Optional[str] = None
    value: Optional[str] = None


class TaskIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    title: Optional[str] = None
    tag: Optional[str] = None
    due: Optional[str] = None
    status: Optional[str] = None


class CreatedResponse(BaseModel):
    id: int
