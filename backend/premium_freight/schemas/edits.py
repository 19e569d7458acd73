"""Pydantic schemas for the edit-request workflow."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from premium_freight.schemas.orders import OrderOut


class EditRequestCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: int = Field(alias="orderId")
    reason: str = Field(min_length=1)


class EditTokenOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    requester_id: int
    status: str
    expires_at: datetime
    released_by: int | None
    released_at: datetime | None
    used_at: datetime | None
    created_at: datetime


class TokenValidationOut(BaseModel):
    valid: bool = True
    token_id: int
    order_id: int
    expires_at: datetime


class OrderChanges(BaseModel):
    """Editable fields; only the ones sent are applied."""

    description: str | None = None
    area: str | None = Field(default=None, max_length=100)
    transport: str | None = Field(default=None, max_length=50)
    in_out_bound: str | None = Field(default=None, max_length=20)
    category_cause: str | None = Field(default=None, max_length=100)
    carrier: str | None = Field(default=None, max_length=255)
    quoted_cost: Decimal | None = Field(default=None, gt=0, decimal_places=2)
    currency: str | None = Field(default=None, min_length=3, max_length=3)


class EditSubmitRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: int = Field(alias="orderId")
    token: str = Field(min_length=1)
    changes: OrderChanges


class ResumePointOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    scenario: str
    act_approv: int
    required_level: int
    next_level: int | None
    notify: str


class EditSubmitResponse(BaseModel):
    success: bool = True
    order: OrderOut
    resume_point: ResumePointOut
    changed_fields: list[str]
    previous_required_level: int


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    actor_id: int | None
    actor_email: str | None
    action: str
    entity_type: str
    entity_id: int | None
    before_state: str | None
    after_state: str | None
    notes: str | None
    created_at: datetime
