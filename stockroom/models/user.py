from __future__ import annotations

from sqlalchemy import Column, DateTime, String, Text

from ..core.clock import utcnow
from ..db.session import Base
from ._ids import new_id


class User(Base):
    """Reference data: people who move stock or borrow items.

    ``role`` only decides which actions a client offers; nothing in the core
    enforces it.
    """

    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True, index=True)
    role = Column(Text, nullable=False, default="member")
    created_at = Column(DateTime, nullable=False, default=utcnow)
