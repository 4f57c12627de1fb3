from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.context import OperatorContext
from ..db.session import get_db
from ..deps.operator import get_operator
from ..schemas.report import InventoryReport
from ..services.reporting import build_inventory_report

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


@router.get("/summary", response_model=InventoryReport)
def api_summary(
    window_days: int | None = Query(default=None, ge=1, le=3650),
    db: Session = Depends(get_db),
    ctx: OperatorContext = Depends(get_operator),
):
    return build_inventory_report(db, ctx, window_days=window_days)
