"""Loan storage helpers. The lifecycle rules live in ``services.loans``."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError
from ..models.loan import Loan
from ..schemas.snapshots import ItemSnapshot, UserSnapshot, to_document


def list_loans(
    db: Session,
    *,
    active: bool | None = None,
    item_id: str | None = None,
    borrower_id: str | None = None,
    overdue_at: datetime | None = None,
) -> list[Loan]:
    stmt = select(Loan).order_by(desc(Loan.borrow_date), desc(Loan.id))
    if active is True:
        stmt = stmt.where(Loan.actual_return_date.is_(None))
    elif active is False:
        stmt = stmt.where(Loan.actual_return_date.is_not(None))
    if item_id is not None:
        stmt = stmt.where(Loan.item_id == item_id)
    if borrower_id is not None:
        stmt = stmt.where(Loan.borrower_id == borrower_id)
    if overdue_at is not None:
        stmt = stmt.where(Loan.actual_return_date.is_(None), Loan.expected_return_date < overdue_at)
    return db.execute(stmt).scalars().all()


def get_loan(db: Session, loan_id: str) -> Loan | None:
    return db.get(Loan, loan_id)


def require_loan(db: Session, loan_id: str) -> Loan:
    loan = get_loan(db, loan_id)
    if not loan:
        raise NotFoundError("Loan", loan_id)
    return loan


def add_loan(
    db: Session,
    *,
    loan_id: str,
    item: ItemSnapshot,
    borrower: UserSnapshot,
    quantity: int,
    borrow_date: datetime,
    expected_return_date: datetime,
    notes: str | None,
    now: datetime,
) -> Loan:
    """Stage a new active loan on the session; the caller owns the commit."""

    loan = Loan(
        id=loan_id,
        item_id=item.id,
        item=to_document(item),
        borrower_id=borrower.id,
        borrower=to_document(borrower),
        quantity=quantity,
        borrow_date=borrow_date,
        expected_return_date=expected_return_date,
        actual_return_date=None,
        notes=notes,
        created_at=now,
        updated_at=now,
    )
    db.add(loan)
    return loan


def stamp_returned(loan: Loan, when: datetime) -> Loan:
    if loan.actual_return_date is not None:
        raise ValueError("actual_return_date is already set")
    loan.actual_return_date = when
    loan.updated_at = when
    return loan
