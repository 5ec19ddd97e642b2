from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from selective_access.api.deps import get_proxy_auth_request_use_case
from selective_access.api.schemas.auth_proxy import AuthProxyRequest
from selective_access.application.dto.auth_proxy import AuthProxyInput
from selective_access.application.use_cases.proxy_auth_request import ProxyAuthRequestUseCase
from selective_access.domain.exceptions import AuthProxyError, InvalidRequestError


router = APIRouter()


@router.post("/v1/auth/proxy")
def auth_proxy(
    req: AuthProxyRequest,
    use_case: ProxyAuthRequestUseCase = Depends(get_proxy_auth_request_use_case),
):
    try:
        output = use_case.execute(
            AuthProxyInput(
                action=req.action,
                email=req.email,
                password=req.password,
                options=req.options,
                access_token=req.access_token,
            )
        )
    except InvalidRequestError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except AuthProxyError as exc:
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": str(exc)},
        )
    return JSONResponse(status_code=output.status_code, content=output.body)
