"""Pydantic schemas for approval endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ─── Status update ───

class StatusUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: int = Field(alias="orderId")
    new_status_id: int = Field(alias="newStatusId")
    user_level: int = Field(alias="userLevel")
    user_id: int = Field(alias="userID")
    auth_date: datetime | None = Field(default=None, alias="authDate")
    rejection_reason: str | None = None


class StatusUpdateResponse(BaseModel):
    success: bool = True
    message: str
    new_status: int
    required_level: int
    is_terminal: bool


# ─── Progress ───

class LevelStepOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level: int
    name: str
    approver_user_id: int
    approver_name: str
    approver_email: str
    approver_display_name: str
    status: str
    completed: bool
    current: bool
    rejected_here: bool
    acted_at: datetime | None


class CreatorOut(BaseModel):
    id: int
    name: str
    email: str
    plant: str | None


class OrderProgressOut(BaseModel):
    success: bool = True
    order_id: int
    creator: CreatorOut
    act_approv: int
    required_level: int
    state: str
    percentage: float
    rejection_reason: str | None
    rejected_level: int | None
    levels: list[LevelStepOut]


# ─── Email link decision ───

class EmailDecisionResponse(BaseModel):
    success: bool = True
    message: str
    order_id: int
    new_status: int
    is_terminal: bool
