from __future__ import annotations

import logging

from selective_access.application.best_effort import run_best_effort
from selective_access.application.dto.reconciliation import DailyPaymentCheckOutput
from selective_access.application.ports.identity_store_port import IdentityStorePort
from selective_access.domain.entities.access_grant import GRANT_REASON_DAILY_FALLBACK
from selective_access.domain.services.access import fallback_cutoff, is_fallback_candidate

from .common import Clock, utcnow


logger = logging.getLogger(__name__)


class RunDailyPaymentCheckUseCase:
    def __init__(
        self,
        *,
        identity_store: IdentityStorePort,
        temporary_access_hours: int = 24,
        pending_grace_hours: int = 24,
        clock: Clock = utcnow,
    ):
        self._identity_store = identity_store
        self._temporary_access_hours = temporary_access_hours
        self._pending_grace_hours = pending_grace_hours
        self._clock = clock

    def execute(self) -> DailyPaymentCheckOutput:
        now = self._clock()
        cutoff = fallback_cutoff(now=now, grace_hours=self._pending_grace_hours)
        logger.info("daily_payment_check: start cutoff=%s", cutoff.isoformat())

        # StoreError from the query aborts the run.
        profiles = self._identity_store.list_pending_profiles(created_before=cutoff)
        candidates = [profile for profile in profiles if is_fallback_candidate(profile, cutoff=cutoff)]

        processed_count = 0
        for profile in candidates:
            outcome = run_best_effort(
                "grant_temporary_access",
                self._identity_store.grant_temporary_access,
                user_id=profile.user_id,
                hours=self._temporary_access_hours,
                reason=GRANT_REASON_DAILY_FALLBACK,
            )
            if outcome.ok:
                processed_count += 1
            else:
                logger.warning("daily_payment_check: grant_skipped user_id=%s", profile.user_id)

        cleanup = run_best_effort(
            "cleanup_expired_temporary_access",
            self._identity_store.cleanup_expired_temporary_access,
        )

        logger.info(
            "daily_payment_check: completed processed=%s candidates=%s cleanup_ok=%s",
            processed_count,
            len(candidates),
            cleanup.ok,
        )
        return DailyPaymentCheckOutput(
            processed_count=processed_count,
            candidate_count=len(candidates),
            cleanup_ok=cleanup.ok,
            ran_at=now,
        )
