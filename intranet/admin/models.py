from typing import Optional
from pydantic import BaseModel, Field
from intranet.schema.full_schema import AdminRole


class AdminCreateIn(BaseModel):
    phone: str = Field(..., min_length=1, max_length=32)
    name: str = Field(..., min_length=1, max_length=128)
    email: Optional[str] = Field(None, max_length=320)
    role: AdminRole = AdminRole.ADMIN
    department: Optional[str] = Field(None, max_length=128)

    model_config = {"extra": "forbid"}


class AdminActiveIn(BaseModel):
    is_active: bool
