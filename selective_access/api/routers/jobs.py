from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from selective_access.api.deps import get_run_daily_payment_check_use_case, require_cron_secret
from selective_access.api.schemas.reconciliation import DailyPaymentCheckResponse
from selective_access.application.use_cases.run_daily_payment_check import RunDailyPaymentCheckUseCase
from selective_access.domain.exceptions import StoreError


router = APIRouter()


@router.post(
    "/v1/jobs/daily-payment-check",
    response_model=DailyPaymentCheckResponse,
    dependencies=[Depends(require_cron_secret)],
)
def daily_payment_check(
    use_case: RunDailyPaymentCheckUseCase = Depends(get_run_daily_payment_check_use_case),
):
    try:
        output = use_case.execute()
    except StoreError as exc:
        return JSONResponse(status_code=500, content={"error": str(exc)})
    return DailyPaymentCheckResponse(processed_count=output.processed_count)
