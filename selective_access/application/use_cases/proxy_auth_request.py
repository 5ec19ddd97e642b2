from __future__ import annotations

import logging
from typing import Any, Callable

from selective_access.application.dto.auth_proxy import AuthAction, AuthProxyInput, AuthProxyOutput
from selective_access.application.ports.supabase_auth_port import SupabaseAuthPort
from selective_access.domain.exceptions import InvalidRequestError

from .common import Clock, utcnow


logger = logging.getLogger(__name__)


def _signup_payload(command: AuthProxyInput) -> dict[str, Any]:
    return {"email": command.email, "password": command.password, "options": command.options}


def _signin_payload(command: AuthProxyInput) -> dict[str, Any]:
    return {"email": command.email, "password": command.password}


def _signout_payload(command: AuthProxyInput) -> dict[str, Any]:
    _ = command
    return {}


def _reset_payload(command: AuthProxyInput) -> dict[str, Any]:
    return {"email": command.email, "options": command.options}


FORWARDED_ACTIONS: dict[AuthAction, tuple[str, Callable[[AuthProxyInput], dict[str, Any]]]] = {
    AuthAction.SIGNUP: ("/auth/v1/signup", _signup_payload),
    AuthAction.SIGNIN: ("/auth/v1/token?grant_type=password", _signin_payload),
    AuthAction.SIGNOUT: ("/auth/v1/logout", _signout_payload),
    AuthAction.RESET: ("/auth/v1/recover", _reset_payload),
}

LOCAL_ACTIONS = frozenset({AuthAction.PING})

if set(FORWARDED_ACTIONS) | LOCAL_ACTIONS != set(AuthAction):
    raise RuntimeError("Every AuthAction must be either forwarded or answered locally.")


def parse_action(value: str | None) -> AuthAction:
    try:
        return AuthAction((value or "").strip().lower())
    except ValueError as exc:
        raise InvalidRequestError("Invalid action specified") from exc


class ProxyAuthRequestUseCase:
    def __init__(self, *, auth_port: SupabaseAuthPort, clock: Clock = utcnow):
        self._auth_port = auth_port
        self._clock = clock

    def execute(self, command: AuthProxyInput) -> AuthProxyOutput:
        action = parse_action(command.action)
        logger.info("auth_proxy: processing action=%s", action.value)

        if action in LOCAL_ACTIONS:
            return AuthProxyOutput(
                status_code=200,
                body={
                    "status": "ok",
                    "message": "Auth proxy is working",
                    "timestamp": self._clock().isoformat(),
                },
            )

        endpoint, build_payload = FORWARDED_ACTIONS[action]
        result = self._auth_port.forward(
            endpoint=endpoint,
            payload=build_payload(command),
            access_token=command.access_token,
        )
        logger.info("auth_proxy: upstream action=%s status=%s", action.value, result.status_code)
        return AuthProxyOutput(status_code=result.status_code, body=result.body)
