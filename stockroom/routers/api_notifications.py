from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..core.context import OperatorContext
from ..db.session import get_db
from ..deps.operator import get_operator
from ..schemas.notification import NotificationCreate, NotificationList, NotificationOut
from ..services.notifications import (
    add_notification,
    list_notifications,
    mark_all_as_read,
    mark_as_read,
    sync_notifications,
    unread_count,
)

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
def api_list(
    unread_only: bool = Query(default=False),
    db: Session = Depends(get_db),
    ctx: OperatorContext = Depends(get_operator),
):
    # Overdue alerts depend on the clock as well as on stored data.
    sync_notifications(db, ctx)
    return {
        "unread_count": unread_count(db),
        "notifications": list_notifications(db, unread_only=unread_only),
    }


@router.post("", response_model=NotificationOut, status_code=201)
def api_create(
    payload: NotificationCreate,
    db: Session = Depends(get_db),
    ctx: OperatorContext = Depends(get_operator),
):
    try:
        return add_notification(db, ctx, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post("/read-all")
def api_mark_all_read(db: Session = Depends(get_db)):
    return {"updated": mark_all_as_read(db)}


@router.post("/{notification_id}/read", response_model=NotificationOut)
def api_mark_read(notification_id: str, db: Session = Depends(get_db)):
    return mark_as_read(db, notification_id)

