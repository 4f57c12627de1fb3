from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..core.enums import MovementReason, MovementType
from .snapshots import ItemSnapshot, UserSnapshot


class MovementCreate(BaseModel):
    item_id: str
    type: MovementType
    reason: MovementReason
    quantity: int = Field(gt=0)
    notes: Optional[str] = None


class MovementOut(BaseModel):
    id: str
    item_id: str
    item: ItemSnapshot
    type: MovementType
    reason: MovementReason
    quantity: int
    responsible_user: UserSnapshot
    loan_id: Optional[str] = None
    date: datetime
    notes: Optional[str] = None

    class Config:
        from_attributes = True
