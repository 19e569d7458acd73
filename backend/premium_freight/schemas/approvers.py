from pydantic import BaseModel, ConfigDict, Field

from premium_freight.models.approver import MAX_APPROVAL_LEVEL, MIN_APPROVAL_LEVEL


class ApproverOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    approval_level: int
    plant: str | None
    charge_name: str
    display_name: str


class ApproverCreate(BaseModel):
    user_id: int
    approval_level: int = Field(ge=MIN_APPROVAL_LEVEL, le=MAX_APPROVAL_LEVEL)
    plant: str | None = Field(default=None, max_length=50)
