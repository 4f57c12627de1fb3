from __future__ import annotations

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Integer, String, Text

from ..db.session import Base
from ._ids import new_id


class Loan(Base):
    """Quantity of an item withdrawn for a borrower until it is returned.

    A loan without ``actual_return_date`` is active. Once stamped the return
    date never changes.
    """

    __tablename__ = "loans"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_loans_quantity_positive"),)

    id = Column(String(32), primary_key=True, default=new_id)
    item_id = Column(String(32), nullable=False, index=True)
    item = Column(JSON, nullable=False)
    borrower_id = Column(String(32), nullable=False, index=True)
    borrower = Column(JSON, nullable=False)
    quantity = Column(Integer, nullable=False)
    borrow_date = Column(DateTime, nullable=False)
    expected_return_date = Column(DateTime, nullable=False)
    actual_return_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    @property
    def is_active(self) -> bool:
        return self.actual_return_date is None
