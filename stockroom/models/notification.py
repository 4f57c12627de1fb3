from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, String, Text, UniqueConstraint

from ..db.session import Base
from ._ids import new_id


class Notification(Base):
    """Advisory message shown to users.

    Derived alerts are keyed by ``(type, subject_id)`` where the subject is an
    item id for low stock and a loan id for overdue returns. Free-form
    notifications leave ``subject_id`` empty.
    """

    __tablename__ = "notifications"
    __table_args__ = (UniqueConstraint("type", "subject_id", name="uq_notifications_type_subject"),)

    id = Column(String(32), primary_key=True, default=new_id)
    type = Column(Text, nullable=False, index=True)
    subject_id = Column(String(32), nullable=True)
    title = Column(Text, nullable=False)
    item_name = Column(Text, nullable=True)
    message = Column(Text, nullable=False)
    action_link = Column(Text, nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False)
