"""Quantity and status rules for items.

``apply_quantity_delta`` is the only code path that changes ``Item.quantity``
and the only one that derives ``Item.status`` from it. Callers that also
append a ledger entry or a loan pass ``commit=False`` and run inside
``db.transaction.unit_of_work`` so the quantity write and the dependent write
land together.

Status policy:

* an outbound loan that leaves the item at zero marks it ``Borrowed``;
* a loan return that leaves a ``Borrowed`` item above zero makes it
  ``Available`` again. Direct movements never change the status;
* ``Damaged`` and ``Maintenance`` are manual states. Stock changes never set
  or clear them; only an explicit item edit does.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..core.context import OperatorContext
from ..core.enums import MANUAL_STATUSES, ItemStatus, StockCause
from ..core.errors import InsufficientStockError, InvalidRangeError
from ..crud.items import require_item
from ..db.transaction import commit_or_raise
from ..models.item import Item

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockChange:
    item: Item
    previous_quantity: int
    new_quantity: int
    previous_status: ItemStatus
    new_status: ItemStatus
    cause: StockCause

    @property
    def delta(self) -> int:
        return self.new_quantity - self.previous_quantity

    @property
    def status_changed(self) -> bool:
        return self.previous_status is not self.new_status


def next_status(current: ItemStatus, new_quantity: int, cause: StockCause) -> ItemStatus:
    if current in MANUAL_STATUSES:
        return current
    if cause is StockCause.LOAN_OUT and new_quantity == 0:
        return ItemStatus.BORROWED
    if cause is StockCause.LOAN_RETURN and current is ItemStatus.BORROWED and new_quantity > 0:
        return ItemStatus.AVAILABLE
    return current


def apply_quantity_delta(
    db: Session,
    ctx: OperatorContext,
    item_id: str,
    signed_delta: int,
    cause: StockCause,
    *,
    commit: bool = True,
) -> StockChange:
    """Add ``signed_delta`` to an item's quantity and re-derive its status.

    Raises ``InvalidRangeError`` for a zero delta, ``NotFoundError`` for an
    unknown item and ``InsufficientStockError`` when the result would be
    negative. Nothing is written when any of them is raised.
    """

    if isinstance(signed_delta, bool) or not isinstance(signed_delta, int) or signed_delta == 0:
        raise InvalidRangeError("quantity change must be a non-zero integer", details={"delta": signed_delta})

    item = require_item(db, item_id)
    previous_quantity = item.quantity
    new_quantity = previous_quantity + signed_delta
    if new_quantity < 0:
        raise InsufficientStockError(item.id, previous_quantity, -signed_delta)

    previous_status = ItemStatus(item.status)
    new_status = next_status(previous_status, new_quantity, cause)

    item.quantity = new_quantity
    item.status = new_status.value
    item.updated_at = ctx.now()
    if commit:
        commit_or_raise(db, "apply_quantity_delta")

    logger.info(
        "stock.delta_applied",
        extra={
            "extra_data": {
                "item_id": item.id,
                "delta": signed_delta,
                "quantity": new_quantity,
                "status": new_status.value,
                "cause": cause.value,
            }
        },
    )
    return StockChange(
        item=item,
        previous_quantity=previous_quantity,
        new_quantity=new_quantity,
        previous_status=previous_status,
        new_status=new_status,
        cause=cause,
    )
