"""Wire models exchanged over the HTTP API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class User(BaseModel):
    id: int | None = None
    email: str
    name: str
    surname: str
    account_ids: list[int] = Field(default_factory=list, alias="accountIds")

    class Config:
        populate_by_name = True


class Account(BaseModel):
    id: int | None = None
    name: str
    industry: str | None = None
    user_ids: list[int] = Field(default_factory=list, alias="userIds")

    class Config:
        populate_by_name = True


class ErrorResponse(BaseModel):
    """Body returned for every non-2xx response produced by the service."""

    error: str
    detail: Any = None
