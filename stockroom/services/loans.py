"""Loan lifecycle: Active -> Returned, with no way back.

Each transition is one unit of work made of an item quantity change, one
ledger entry and the loan write. Validation happens before the transaction
opens, so a rejected request leaves no trace.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from ..core.clock import as_naive_utc
from ..core.context import OperatorContext
from ..core.enums import MovementReason, MovementType, StockCause
from ..core.errors import AlreadyReturnedError, InsufficientStockError, InvalidRangeError
from ..crud.items import get_item, require_item
from ..crud.loans import add_loan, require_loan, stamp_returned
from ..crud.users import require_user
from ..db.transaction import unit_of_work
from ..models._ids import new_id
from ..models.loan import Loan
from ..models.movement import Movement
from ..schemas.snapshots import ItemSnapshot, UserSnapshot
from .ledger import record_movement
from .stock import StockChange, apply_quantity_delta

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoanTransition:
    loan: Loan
    movement: Movement | None
    change: StockChange | None

    @property
    def item_missing(self) -> bool:
        return self.change is None


def create_loan(
    db: Session,
    ctx: OperatorContext,
    item_id: str,
    borrower_id: str,
    quantity: int,
    borrow_date: datetime,
    expected_return_date: datetime,
    notes: str | None = None,
) -> LoanTransition:
    item = require_item(db, item_id)
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidRangeError("loan quantity must be a positive integer", details={"quantity": quantity})
    if quantity > item.quantity:
        raise InsufficientStockError(item.id, item.quantity, quantity)
    borrower = UserSnapshot.from_user(require_user(db, borrower_id))
    borrow_date = as_naive_utc(borrow_date)
    expected_return_date = as_naive_utc(expected_return_date)
    if expected_return_date < borrow_date:
        raise InvalidRangeError(
            "expected return date is before the borrow date",
            details={
                "borrow_date": borrow_date.isoformat(),
                "expected_return_date": expected_return_date.isoformat(),
            },
        )

    loan_id = new_id()
    with unit_of_work(db, "create_loan") as uow:
        with uow.step("apply_quantity_delta"):
            change = apply_quantity_delta(db, ctx, item.id, -quantity, StockCause.LOAN_OUT, commit=False)
        with uow.step("record_movement"):
            movement = record_movement(
                db,
                ctx,
                ItemSnapshot.from_item(change.item),
                MovementType.OUTPUT,
                MovementReason.USE,
                quantity,
                borrower,
                f"Loan to {borrower.name}",
                loan_id=loan_id,
                commit=False,
            )
        with uow.step("create_loan"):
            loan = add_loan(
                db,
                loan_id=loan_id,
                item=ItemSnapshot.from_item(change.item),
                borrower=borrower,
                quantity=quantity,
                borrow_date=borrow_date,
                expected_return_date=expected_return_date,
                notes=(notes or "").strip() or None,
                now=ctx.now(),
            )

    logger.info(
        "loan.created",
        extra={"extra_data": {"loan_id": loan.id, "item_id": item.id, "borrower_id": borrower.id, "quantity": quantity}},
    )
    return LoanTransition(loan=loan, movement=movement, change=change)


def return_loan(db: Session, ctx: OperatorContext, loan_id: str) -> LoanTransition:
    """Close an active loan and put its quantity back on the shelf.

    When the item was deleted in the meantime the loan is still closed, but
    there is nothing to restock and no ledger entry is written.
    """

    loan = require_loan(db, loan_id)
    if not loan.is_active:
        raise AlreadyReturnedError(loan.id)
    item = get_item(db, loan.item_id)
    borrower_name = (loan.borrower or {}).get("name") or loan.borrower_id

    change: StockChange | None = None
    movement: Movement | None = None
    with unit_of_work(db, "return_loan") as uow:
        with uow.step("stamp_return"):
            stamp_returned(loan, ctx.now())
        if item is not None:
            with uow.step("apply_quantity_delta"):
                change = apply_quantity_delta(db, ctx, item.id, loan.quantity, StockCause.LOAN_RETURN, commit=False)
            with uow.step("record_movement"):
                movement = record_movement(
                    db,
                    ctx,
                    ItemSnapshot.from_item(change.item),
                    MovementType.INPUT,
                    MovementReason.OTHER,
                    loan.quantity,
                    ctx.user,
                    f"Return of loan by {borrower_name}",
                    loan_id=loan.id,
                    commit=False,
                )

    if item is None:
        logger.warning(
            "loan.returned_without_item",
            extra={"extra_data": {"loan_id": loan.id, "item_id": loan.item_id}},
        )
    else:
        logger.info(
            "loan.returned",
            extra={"extra_data": {"loan_id": loan.id, "item_id": loan.item_id, "quantity": loan.quantity}},
        )
    return LoanTransition(loan=loan, movement=movement, change=change)
