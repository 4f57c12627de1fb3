from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text

from ..db.session import Base
from ._ids import new_id


class Location(Base):
    """A place that holds items.

    ``capacity`` is a soft cap on the number of items kept there; it is shown
    as usage but never blocks an assignment.
    """

    __tablename__ = "locations"
    __table_args__ = (CheckConstraint("capacity IS NULL OR capacity >= 0", name="ck_locations_capacity"),)

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    capacity = Column(Integer, nullable=True)
    responsible = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
