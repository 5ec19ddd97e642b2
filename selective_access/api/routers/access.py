from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from selective_access.api.deps import get_check_user_access_use_case
from selective_access.api.schemas.reconciliation import UserAccessResponse
from selective_access.application.use_cases.check_user_access import CheckUserAccessUseCase
from selective_access.domain.exceptions import InvalidRequestError, StoreError


router = APIRouter()


@router.get("/v1/access/{user_id}", response_model=UserAccessResponse)
def get_user_access(
    user_id: str,
    use_case: CheckUserAccessUseCase = Depends(get_check_user_access_use_case),
):
    try:
        output = use_case.execute(user_id=user_id)
    except InvalidRequestError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except StoreError as exc:
        return JSONResponse(status_code=500, content={"error": "Failed to check access", "message": str(exc)})
    return UserAccessResponse(
        user_id=output.user_id,
        has_access=output.has_access,
        checked_at=output.checked_at,
    )
