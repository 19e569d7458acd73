"""Pydantic schemas for order endpoints."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class OrderCreate(BaseModel):
    quoted_cost: Decimal = Field(gt=0, decimal_places=2)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    reference_number: str | None = Field(default=None, max_length=50)
    description: str | None = None
    area: str | None = Field(default=None, max_length=100)
    transport: str | None = Field(default=None, max_length=50)
    in_out_bound: str | None = Field(default=None, max_length=20)
    category_cause: str | None = Field(default=None, max_length=100)
    carrier: str | None = Field(default=None, max_length=255)


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reference_number: str | None
    creator_id: int
    plant: str | None
    description: str | None
    area: str | None
    transport: str | None
    in_out_bound: str | None
    category_cause: str | None
    carrier: str | None
    quoted_cost: Decimal
    currency: str
    cost_euros: Decimal
    required_auth_level: int
    status: str
    act_approv: int
    created_at: datetime


# ─── Orders-by-approval-level listing ───

class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int


class OrderListResponse(BaseModel):
    status: str = "success"
    data: list[OrderOut]
    pagination: Pagination
    filter: dict
