"""Advisory notifications derived from items and loans.

``derive_alerts`` is a pure function of the current items, the active loans
and the time. ``sync_notifications`` compares its output with the stored
notifications and only writes the difference, so calling it repeatedly on
the same state changes nothing. Its own previous output is never an input to
the derivation.

Low-stock alerts are withdrawn once the item is restocked above its minimum.
Overdue alerts stay after the loan is returned; they are history, and a
returned loan can never be overdue again so they cannot be duplicated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from sqlalchemy import desc, func, select, update
from sqlalchemy.orm import Session

from ..core.context import OperatorContext
from ..core.enums import NotificationType
from ..core.errors import NotFoundError, StoreIOError
from ..crud.items import list_items
from ..crud.loans import list_loans
from ..db.transaction import commit_or_raise
from ..models.item import Item
from ..models.loan import Loan
from ..models.notification import Notification

logger = logging.getLogger(__name__)

DERIVED_TYPES = (NotificationType.LOW_STOCK, NotificationType.OVERDUE_RETURN)
# Derived alerts that disappear once their condition is false again.
RETRACTABLE_TYPES = frozenset({NotificationType.LOW_STOCK})


@dataclass(frozen=True)
class Alert:
    type: NotificationType
    subject_id: str
    title: str
    item_name: str
    message: str
    action_link: str

    @property
    def key(self) -> tuple[NotificationType, str]:
        return (self.type, self.subject_id)


@dataclass(frozen=True)
class SyncResult:
    created: list[Notification]
    retracted: list[str]


def derive_alerts(items: Iterable[Item], loans: Iterable[Loan], now: datetime) -> dict[tuple[NotificationType, str], Alert]:
    alerts: dict[tuple[NotificationType, str], Alert] = {}
    for item in items:
        if item.quantity <= item.min_quantity:
            alert = Alert(
                type=NotificationType.LOW_STOCK,
                subject_id=item.id,
                title="Low stock",
                item_name=item.name,
                message=f"Item {item.name} is low on stock ({item.quantity} {item.unit}).",
                action_link="/",
            )
            alerts[alert.key] = alert
    for loan in loans:
        if loan.actual_return_date is None and loan.expected_return_date < now:
            item_name = (loan.item or {}).get("name") or loan.item_id
            borrower_name = (loan.borrower or {}).get("name") or loan.borrower_id
            alert = Alert(
                type=NotificationType.OVERDUE_RETURN,
                subject_id=loan.id,
                title="Overdue return",
                item_name=item_name,
                message=f"The loan of {item_name} to {borrower_name} is overdue.",
                action_link="/loans",
            )
            alerts[alert.key] = alert
    return alerts


def _derived_rows(db: Session) -> dict[tuple[NotificationType, str], Notification]:
    stmt = select(Notification).where(Notification.type.in_([t.value for t in DERIVED_TYPES]))
    rows = db.execute(stmt).scalars().all()
    return {(NotificationType(row.type), row.subject_id): row for row in rows}


def sync_notifications(db: Session, ctx: OperatorContext) -> SyncResult:
    """Bring stored alerts in line with the current items and active loans."""

    now = ctx.now()
    alerts = derive_alerts(list_items(db), list_loans(db, active=True), now)
    existing = _derived_rows(db)

    created: list[Notification] = []
    for key, alert in alerts.items():
        if key in existing:
            continue
        row = Notification(
            type=alert.type.value,
            subject_id=alert.subject_id,
            title=alert.title,
            item_name=alert.item_name,
            message=alert.message,
            action_link=alert.action_link,
            read=False,
            created_at=now,
        )
        db.add(row)
        created.append(row)

    retracted: list[str] = []
    for key, row in existing.items():
        if key[0] in RETRACTABLE_TYPES and key not in alerts:
            retracted.append(row.id)
            db.delete(row)

    if created or retracted:
        commit_or_raise(db, "sync_notifications")
        logger.info(
            "notifications.synced",
            extra={"extra_data": {"created": len(created), "retracted": len(retracted)}},
        )
    return SyncResult(created=created, retracted=retracted)


def add_notification(db: Session, ctx: OperatorContext, payload: dict) -> Notification:
    notification_type = NotificationType(payload.get("type") or NotificationType.SYSTEM)
    if notification_type in DERIVED_TYPES:
        raise ValueError(f"{notification_type.value} notifications are derived automatically")
    title = (payload.get("title") or "").strip()
    message = (payload.get("message") or "").strip()
    if not title or not message:
        raise ValueError("title and message are required")
    row = Notification(
        type=notification_type.value,
        subject_id=None,
        title=title,
        item_name=(payload.get("item_name") or "").strip() or None,
        message=message,
        action_link=(payload.get("action_link") or "").strip() or None,
        read=False,
        created_at=ctx.now(),
    )
    db.add(row)
    commit_or_raise(db, "add_notification")
    db.refresh(row)
    return row


def list_notifications(db: Session, unread_only: bool = False) -> list[Notification]:
    stmt = select(Notification).order_by(desc(Notification.created_at), desc(Notification.id))
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    return db.execute(stmt).scalars().all()


def unread_count(db: Session) -> int:
    stmt = select(func.count(Notification.id)).where(Notification.read.is_(False))
    return int(db.execute(stmt).scalar_one())


def mark_as_read(db: Session, notification_id: str) -> Notification:
    row = db.get(Notification, notification_id)
    if not row:
        raise NotFoundError("Notification", notification_id)
    if not row.read:
        row.read = True
        commit_or_raise(db, "mark_notification_read")
        db.refresh(row)
    return row


def mark_all_as_read(db: Session) -> int:
    result = db.execute(update(Notification).where(Notification.read.is_(False)).values(read=True))
    commit_or_raise(db, "mark_all_notifications_read")
    return result.rowcount or 0


def refresh_after_change(db: Session, ctx: OperatorContext) -> None:
    """Re-derive alerts after a committed change to items or loans.

    The change itself is already durable at this point. Alerts are advisory
    and re-derived on the next call, so a failure here is logged rather than
    reported as a failure of the change.
    """

    try:
        sync_notifications(db, ctx)
    except StoreIOError:
        logger.warning("notifications.sync_failed", exc_info=True)
