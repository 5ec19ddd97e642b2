from __future__ import annotations

from typing import Any, Protocol

from selective_access.application.dto.auth_proxy import AuthForwardResult


class SupabaseAuthPort(Protocol):
    def forward(
        self,
        *,
        endpoint: str,
        payload: dict[str, Any],
        access_token: str | None = None,
    ) -> AuthForwardResult:
        ...
