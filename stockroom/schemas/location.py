from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LocationCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    capacity: Optional[int] = Field(default=None, ge=0)
    responsible: Optional[str] = None


class LocationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    responsible: Optional[str] = None


class LocationOut(BaseModel):
    id: str
    name: str
    description: str
    capacity: Optional[int] = None
    responsible: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LocationUsage(BaseModel):
    location_id: str
    item_count: int
    capacity: Optional[int] = None
    over_capacity: bool = False
