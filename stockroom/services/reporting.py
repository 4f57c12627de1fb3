from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.context import OperatorContext
from ..core.enums import ItemStatus, MovementType
from ..crud.items import list_items
from ..crud.loans import list_loans
from ..crud.movements import list_movements


def build_inventory_report(
    db: Session, ctx: OperatorContext, window_days: int | None = None
) -> Dict[str, Any]:
    """Aggregate stock, loan and recent ledger figures for the reports page."""

    now = ctx.now()
    days = window_days if window_days is not None else settings.RECENT_MOVEMENT_DAYS
    items = list_items(db)
    active_loans = list_loans(db, active=True)
    recent = list_movements(db, since=now - timedelta(days=days), limit=None)

    units_in = sum(m.quantity for m in recent if m.type == MovementType.INPUT.value)
    units_out = sum(m.quantity for m in recent if m.type == MovementType.OUTPUT.value)

    return {
        "generated_at": now,
        "total_units": sum(item.quantity for item in items),
        "distinct_items": len(items),
        "low_stock_items": sum(1 for item in items if item.is_low_stock),
        "damaged_items": sum(1 for item in items if item.status == ItemStatus.DAMAGED.value),
        "maintenance_items": sum(1 for item in items if item.status == ItemStatus.MAINTENANCE.value),
        "active_loans": len(active_loans),
        "overdue_loans": sum(1 for loan in active_loans if loan.expected_return_date < now),
        "recent_window_days": days,
        "recent_movements": len(recent),
        "recent_units_in": units_in,
        "recent_units_out": units_out,
    }
