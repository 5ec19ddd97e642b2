from __future__ import annotations

import json
import logging
import sys

from selective_access.application.use_cases.run_daily_payment_check import RunDailyPaymentCheckUseCase
from selective_access.domain.exceptions import ConfigurationError, StoreError
from selective_access.infrastructure.store_factory import build_identity_store
from selective_access.shared.logging_config import configure_logging
from selective_access.shared.config import Settings, get_settings


logger = logging.getLogger(__name__)


def run(settings: Settings) -> int:
    try:
        identity_store = build_identity_store(settings)
    except ConfigurationError as exc:
        logger.error("daily_payment_check: configuration_error error=%s", exc)
        print(json.dumps({"error": str(exc)}))
        return 2

    use_case = RunDailyPaymentCheckUseCase(
        identity_store=identity_store,
        temporary_access_hours=settings.temporary_access_hours,
        pending_grace_hours=settings.pending_grace_hours,
    )
    try:
        output = use_case.execute()
    except StoreError as exc:
        logger.error("daily_payment_check: failed error=%s", exc)
        print(json.dumps({"error": str(exc)}))
        return 1

    print(
        json.dumps(
            {
                "success": True,
                "processedCount": output.processed_count,
                "message": "Daily payment check completed",
            }
        )
    )
    return 0


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    sys.exit(run(settings))


if __name__ == "__main__":
    main()
