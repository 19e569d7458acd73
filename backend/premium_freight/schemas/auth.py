from pydantic import BaseModel


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserOut(BaseModel):
    id: int
    email: str
    name: str
    role: str
    plant: str | None
    authorization_level: int
    is_active: bool

    model_config = {"from_attributes": True}
