from __future__ import annotations

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text

from ..db.session import Base
from ._ids import new_id


class Item(Base):
    """A trackable asset or supply type.

    ``category`` is embedded by value (``{"id": ..., "name": ...}``) so a
    renamed category does not rewrite existing items. ``quantity`` is only
    changed by the stock service; the check constraint is a last line of
    defence against a negative count reaching the table.
    """

    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
        CheckConstraint("min_quantity >= 0", name="ck_items_min_quantity_non_negative"),
    )

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(JSON, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    min_quantity = Column(Integer, nullable=False, default=0)
    unit = Column(Text, nullable=False, default="unit")
    location_id = Column(String(32), ForeignKey("locations.id"), nullable=False, index=True)
    status = Column(Text, nullable=False, default="Available")
    image_url = Column(Text, nullable=True)
    documents = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    @property
    def category_name(self) -> str:
        return (self.category or {}).get("name") or ""

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_quantity
