"""Movement ledger: the append-only record of every stock change."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from ..core.context import OperatorContext
from ..core.enums import MovementReason, MovementType, StockCause
from ..core.errors import InvalidRangeError
from ..crud.items import require_item
from ..crud.movements import append_movement
from ..db.transaction import commit_or_raise, unit_of_work
from ..models.movement import Movement
from ..schemas.snapshots import ItemSnapshot, UserSnapshot
from .stock import StockChange, apply_quantity_delta

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MovementResult:
    movement: Movement
    change: StockChange


def record_movement(
    db: Session,
    ctx: OperatorContext,
    item: ItemSnapshot,
    movement_type: MovementType,
    reason: MovementReason,
    quantity: int,
    responsible_user: UserSnapshot,
    notes: str | None = None,
    *,
    loan_id: str | None = None,
    commit: bool = True,
) -> Movement:
    """Append one ledger entry. The item row is not touched here.

    Callers must already have applied the matching quantity change through
    ``services.stock.apply_quantity_delta``.
    """

    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidRangeError("movement quantity must be a positive integer", details={"quantity": quantity})

    movement = append_movement(
        db,
        item=item,
        movement_type=movement_type,
        reason=reason,
        quantity=quantity,
        responsible_user=responsible_user,
        date=ctx.now(),
        notes=(notes or "").strip() or None,
        loan_id=loan_id,
    )
    if commit:
        commit_or_raise(db, "record_movement")
    logger.info(
        "ledger.movement_recorded",
        extra={
            "extra_data": {
                "item_id": item.id,
                "type": movement_type.value,
                "reason": reason.value,
                "quantity": quantity,
                "loan_id": loan_id,
            }
        },
    )
    return movement


def register_movement(
    db: Session,
    ctx: OperatorContext,
    item_id: str,
    movement_type: MovementType,
    reason: MovementReason,
    quantity: int,
    notes: str | None = None,
) -> MovementResult:
    """Handle a direct stock entry or withdrawal made by the acting user."""

    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidRangeError("movement quantity must be a positive integer", details={"quantity": quantity})
    item = require_item(db, item_id)

    with unit_of_work(db, "register_movement") as uow:
        with uow.step("apply_quantity_delta"):
            change = apply_quantity_delta(
                db, ctx, item.id, movement_type.sign * quantity, StockCause.MOVEMENT, commit=False
            )
        with uow.step("record_movement"):
            movement = record_movement(
                db,
                ctx,
                ItemSnapshot.from_item(change.item),
                movement_type,
                reason,
                quantity,
                ctx.user,
                notes,
                commit=False,
            )
    return MovementResult(movement=movement, change=change)


def ledger_net_change(db: Session, item_id: str) -> int:
    """Signed sum of every ledger entry for an item."""

    signed = case((Movement.type == MovementType.INPUT.value, Movement.quantity), else_=-Movement.quantity)
    stmt = select(func.coalesce(func.sum(signed), 0)).where(Movement.item_id == item_id)
    return int(db.execute(stmt).scalar_one())
