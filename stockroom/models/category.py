from __future__ import annotations

from sqlalchemy import Column, String, Text

from ..db.session import Base
from ._ids import new_id


class ItemCategory(Base):
    __tablename__ = "categories"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(Text, nullable=False, unique=True)
