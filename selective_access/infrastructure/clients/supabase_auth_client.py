from __future__ import annotations

import logging
from typing import Any

import httpx

from selective_access.application.dto.auth_proxy import AuthForwardResult
from selective_access.application.ports.supabase_auth_port import SupabaseAuthPort
from selective_access.domain.exceptions import AuthProxyError


logger = logging.getLogger(__name__)


class SupabaseAuthClient(SupabaseAuthPort):
    def __init__(
        self,
        *,
        supabase_url: str,
        anon_key: str,
        timeout_seconds: float,
        transport: httpx.BaseTransport | None = None,
    ):
        self._base_url = supabase_url.rstrip("/")
        self._anon_key = anon_key
        self._timeout = timeout_seconds
        self._transport = transport

    def forward(
        self,
        *,
        endpoint: str,
        payload: dict[str, Any],
        access_token: str | None = None,
    ) -> AuthForwardResult:
        headers = {"Content-Type": "application/json", "apikey": self._anon_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        url = f"{self._base_url}{endpoint}"
        logger.info("supabase_auth_client: forwarding url=%s", url)
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise AuthProxyError(f"Supabase auth request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text} if response.text else {}
        return AuthForwardResult(status_code=response.status_code, body=body)
