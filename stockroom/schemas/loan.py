from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .item import ItemOut
from .movement import MovementOut
from .snapshots import ItemSnapshot, UserSnapshot


class LoanCreate(BaseModel):
    item_id: str
    borrower_id: str
    quantity: int
    borrow_date: datetime
    expected_return_date: datetime
    notes: Optional[str] = None


class LoanOut(BaseModel):
    id: str
    item_id: str
    item: ItemSnapshot
    borrower_id: str
    borrower: UserSnapshot
    quantity: int
    borrow_date: datetime
    expected_return_date: datetime
    actual_return_date: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LoanTransitionOut(BaseModel):
    """What a create or return did: the loan, its ledger entry and the item after the change."""

    loan: LoanOut
    movement: Optional[MovementOut] = None
    item: Optional[ItemOut] = None
    item_missing: bool = False
