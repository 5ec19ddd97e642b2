from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AuthProxyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: str | None = None
    email: str | None = None
    password: str | None = None
    options: dict[str, Any] | None = None
    access_token: str | None = Field(default=None, alias="accessToken")
