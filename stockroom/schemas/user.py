from __future__ import annotations

from pydantic import BaseModel, Field

from ..core.enums import UserRole


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1)


class CategoryOut(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True
