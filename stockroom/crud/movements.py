"""Ledger storage. Movements are appended and read, never updated or deleted."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..core.enums import MovementReason, MovementType
from ..models.movement import Movement
from ..schemas.snapshots import ItemSnapshot, UserSnapshot, to_document


def list_movements(
    db: Session,
    *,
    item_id: str | None = None,
    movement_type: MovementType | None = None,
    since: datetime | None = None,
    limit: int | None = 100,
    offset: int = 0,
) -> list[Movement]:
    """Fetch ledger entries ordered by recency."""

    stmt = select(Movement).order_by(desc(Movement.date), desc(Movement.id))
    if item_id is not None:
        stmt = stmt.where(Movement.item_id == item_id)
    if movement_type is not None:
        stmt = stmt.where(Movement.type == movement_type.value)
    if since is not None:
        stmt = stmt.where(Movement.date >= since)
    if limit is not None:
        stmt = stmt.limit(limit)
    if offset:
        stmt = stmt.offset(offset)
    return db.execute(stmt).scalars().all()


def get_movement(db: Session, movement_id: str) -> Movement | None:
    return db.get(Movement, movement_id)


def movements_for_loan(db: Session, loan_id: str) -> list[Movement]:
    stmt = select(Movement).where(Movement.loan_id == loan_id).order_by(Movement.date, Movement.id)
    return db.execute(stmt).scalars().all()


def append_movement(
    db: Session,
    *,
    item: ItemSnapshot,
    movement_type: MovementType,
    reason: MovementReason,
    quantity: int,
    responsible_user: UserSnapshot,
    date: datetime,
    notes: str | None = None,
    loan_id: str | None = None,
) -> Movement:
    """Stage a new ledger row on the session; the caller owns the commit."""

    movement = Movement(
        item_id=item.id,
        item=to_document(item),
        type=movement_type.value,
        reason=reason.value,
        quantity=quantity,
        responsible_user_id=responsible_user.id,
        responsible_user=to_document(responsible_user),
        loan_id=loan_id,
        date=date,
        notes=notes,
    )
    db.add(movement)
    return movement
