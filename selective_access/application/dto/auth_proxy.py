from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class AuthAction(str, Enum):
    PING = "ping"
    SIGNUP = "signup"
    SIGNIN = "signin"
    SIGNOUT = "signout"
    RESET = "reset"


@dataclass(frozen=True)
class AuthProxyInput:
    action: str | None
    email: str | None = None
    password: str | None = None
    options: dict[str, Any] | None = None
    access_token: str | None = None


@dataclass(frozen=True)
class AuthProxyOutput:
    status_code: int
    body: Any


@dataclass(frozen=True)
class AuthForwardResult:
    status_code: int
    body: Any
