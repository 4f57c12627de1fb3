from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.clock import as_naive_utc
from ..core.context import OperatorContext
from ..core.enums import MovementType
from ..crud.movements import get_movement, list_movements
from ..core.errors import NotFoundError
from ..db.session import get_db
from ..deps.operator import get_operator
from ..schemas.movement import MovementCreate, MovementOut
from ..services.ledger import register_movement
from ..services.notifications import refresh_after_change

router = APIRouter(prefix="/api/v1/movements", tags=["movements"])


@router.get("", response_model=list[MovementOut])
def api_list(
    item_id: str | None = Query(default=None),
    type: MovementType | None = Query(default=None),
    since: datetime | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return list_movements(
        db,
        item_id=item_id,
        movement_type=type,
        since=as_naive_utc(since) if since else None,
        limit=limit,
        offset=offset,
    )


@router.get("/{movement_id}", response_model=MovementOut)
def api_get(movement_id: str, db: Session = Depends(get_db)):
    movement = get_movement(db, movement_id)
    if not movement:
        raise NotFoundError("Movement", movement_id)
    return movement


@router.post("", response_model=MovementOut, status_code=201)
def api_create(
    payload: MovementCreate,
    db: Session = Depends(get_db),
    ctx: OperatorContext = Depends(get_operator),
):
    result = register_movement(
        db,
        ctx,
        payload.item_id,
        payload.type,
        payload.reason,
        payload.quantity,
        payload.notes,
    )
    refresh_after_change(db, ctx)
    return result.movement
