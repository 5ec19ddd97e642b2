from __future__ import annotations

from selective_access.application.dto.reconciliation import UserAccessOutput
from selective_access.application.ports.identity_store_port import IdentityStorePort
from selective_access.domain.exceptions import InvalidRequestError

from .common import Clock, clean_optional, utcnow


class CheckUserAccessUseCase:
    def __init__(self, *, identity_store: IdentityStorePort, clock: Clock = utcnow):
        self._identity_store = identity_store
        self._clock = clock

    def execute(self, *, user_id: str) -> UserAccessOutput:
        user_id = clean_optional(user_id)
        if not user_id:
            raise InvalidRequestError("user_id is required.")
        has_access = self._identity_store.user_has_valid_access(user_id=user_id)
        return UserAccessOutput(user_id=user_id, has_access=has_access, checked_at=self._clock())
