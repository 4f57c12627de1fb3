from __future__ import annotations

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Integer, String, Text

from ..db.session import Base
from ._ids import new_id


class Movement(Base):
    """An immutable ledger entry recording one quantity change of one item.

    ``item`` and ``responsible_user`` hold snapshots taken when the entry was
    written; ``item_id`` is kept alongside for lookups and survives deletion
    of the item. Rows are never updated or deleted.
    """

    __tablename__ = "movements"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_movements_quantity_positive"),)

    id = Column(String(32), primary_key=True, default=new_id)
    item_id = Column(String(32), nullable=False, index=True)
    item = Column(JSON, nullable=False)
    type = Column(Text, nullable=False)
    reason = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    responsible_user_id = Column(String(32), nullable=False, index=True)
    responsible_user = Column(JSON, nullable=False)
    loan_id = Column(String(32), nullable=True, index=True)
    date = Column(DateTime, nullable=False, index=True)
    notes = Column(Text, nullable=True)
