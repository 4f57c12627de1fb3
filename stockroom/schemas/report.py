from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class InventoryReport(BaseModel):
    generated_at: datetime
    total_units: int
    distinct_items: int
    low_stock_items: int
    damaged_items: int
    maintenance_items: int
    active_loans: int
    overdue_loans: int
    recent_window_days: int
    recent_movements: int
    recent_units_in: int
    recent_units_out: int
