from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class DailyPaymentCheckResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    processed_count: int = Field(..., alias="processedCount")
    message: str = "Daily payment check completed"


class UserAccessResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    has_access: bool = Field(..., alias="hasAccess")
    checked_at: datetime = Field(..., alias="checkedAt")
