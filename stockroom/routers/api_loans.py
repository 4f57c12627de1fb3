from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.context import OperatorContext
from ..crud.loans import list_loans, require_loan
from ..db.session import get_db
from ..deps.operator import get_operator
from ..schemas.item import ItemOut
from ..schemas.loan import LoanCreate, LoanOut, LoanTransitionOut
from ..schemas.movement import MovementOut
from ..services.loans import LoanTransition, create_loan, return_loan
from ..services.notifications import refresh_after_change

router = APIRouter(prefix="/api/v1/loans", tags=["loans"])


def _serialize_transition(transition: LoanTransition) -> LoanTransitionOut:
    return LoanTransitionOut(
        loan=LoanOut.model_validate(transition.loan),
        movement=MovementOut.model_validate(transition.movement) if transition.movement else None,
        item=ItemOut.model_validate(transition.change.item) if transition.change else None,
        item_missing=transition.item_missing,
    )


@router.get("", response_model=list[LoanOut])
def api_list(
    active: bool | None = Query(default=None),
    item_id: str | None = Query(default=None),
    borrower_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return list_loans(db, active=active, item_id=item_id, borrower_id=borrower_id)


@router.get("/overdue", response_model=list[LoanOut])
def api_list_overdue(db: Session = Depends(get_db), ctx: OperatorContext = Depends(get_operator)):
    return list_loans(db, overdue_at=ctx.now())


@router.get("/{loan_id}", response_model=LoanOut)
def api_get(loan_id: str, db: Session = Depends(get_db)):
    return require_loan(db, loan_id)


@router.post("", response_model=LoanTransitionOut, status_code=201)
def api_create(
    payload: LoanCreate,
    db: Session = Depends(get_db),
    ctx: OperatorContext = Depends(get_operator),
):
    transition = create_loan(
        db,
        ctx,
        payload.item_id,
        payload.borrower_id,
        payload.quantity,
        payload.borrow_date,
        payload.expected_return_date,
        payload.notes,
    )
    refresh_after_change(db, ctx)
    return _serialize_transition(transition)


@router.post("/{loan_id}/return", response_model=LoanTransitionOut)
def api_return(
    loan_id: str,
    db: Session = Depends(get_db),
    ctx: OperatorContext = Depends(get_operator),
):
    transition = return_loan(db, ctx, loan_id)
    refresh_after_change(db, ctx)
    return _serialize_transition(transition)
