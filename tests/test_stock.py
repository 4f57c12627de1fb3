import os
import sys
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from stockroom.db.session import Base
from stockroom import models  # noqa: F401
from stockroom.core.context import OperatorContext
from stockroom.core.enums import ItemStatus, StockCause
from stockroom.core.errors import InsufficientStockError, InvalidRangeError, NotFoundError
from stockroom.crud.items import create_item, get_item, update_item
from stockroom.crud.locations import create_location
from stockroom.crud.users import create_category, create_user
from stockroom.schemas.snapshots import UserSnapshot
from stockroom.services.stock import apply_quantity_delta, next_status

NOW = datetime(2024, 5, 1, 12, 0)


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def ctx(db_session):
    user = create_user(db_session, {"name": "Ana", "email": "ana@example.com", "role": "admin"})
    return OperatorContext(user=UserSnapshot.from_user(user), clock=lambda: NOW)


def _item(db, quantity=5, status=ItemStatus.AVAILABLE, min_quantity=0):
    location = create_location(db, {"name": "Shelf A"}, now=NOW)
    category = create_category(db, {"name": "Tools"})
    return create_item(
        db,
        {
            "name": "Drill",
            "category_id": category.id,
            "location_id": location.id,
            "quantity": quantity,
            "min_quantity": min_quantity,
            "status": status,
        },
        now=NOW,
    )


def test_next_status_rules():
    assert next_status(ItemStatus.AVAILABLE, 0, StockCause.LOAN_OUT) is ItemStatus.BORROWED
    assert next_status(ItemStatus.AVAILABLE, 0, StockCause.MOVEMENT) is ItemStatus.AVAILABLE
    assert next_status(ItemStatus.AVAILABLE, 2, StockCause.LOAN_OUT) is ItemStatus.AVAILABLE
    assert next_status(ItemStatus.BORROWED, 3, StockCause.LOAN_RETURN) is ItemStatus.AVAILABLE
    assert next_status(ItemStatus.BORROWED, 1, StockCause.MOVEMENT) is ItemStatus.BORROWED
    assert next_status(ItemStatus.DAMAGED, 0, StockCause.LOAN_OUT) is ItemStatus.DAMAGED
    assert next_status(ItemStatus.MAINTENANCE, 4, StockCause.LOAN_RETURN) is ItemStatus.MAINTENANCE


def test_loan_out_to_zero_marks_borrowed(db_session, ctx):
    item = _item(db_session, quantity=5)
    assert ctx.is_admin

    change = apply_quantity_delta(db_session, ctx, item.id, -5, StockCause.LOAN_OUT)

    assert change.new_quantity == 0
    assert change.delta == -5
    assert change.status_changed
    refreshed = get_item(db_session, item.id)
    assert refreshed.quantity == 0
    assert refreshed.status == ItemStatus.BORROWED.value
    assert refreshed.updated_at == NOW


def test_direct_inflow_on_borrowed_item_keeps_status(db_session, ctx):
    item = _item(db_session, quantity=2)
    apply_quantity_delta(db_session, ctx, item.id, -2, StockCause.LOAN_OUT)

    change = apply_quantity_delta(db_session, ctx, item.id, 1, StockCause.MOVEMENT)

    assert change.previous_status is ItemStatus.BORROWED
    assert change.new_status is ItemStatus.BORROWED
    assert not change.status_changed
    assert get_item(db_session, item.id).status == ItemStatus.BORROWED.value


def test_loan_return_on_borrowed_item_restores_available(db_session, ctx):
    item = _item(db_session, quantity=2)
    apply_quantity_delta(db_session, ctx, item.id, -2, StockCause.LOAN_OUT)

    change = apply_quantity_delta(db_session, ctx, item.id, 2, StockCause.LOAN_RETURN)

    assert change.new_status is ItemStatus.AVAILABLE


def test_uncommitted_delta_is_discarded_on_rollback(db_session, ctx):
    item = _item(db_session, quantity=4)

    apply_quantity_delta(db_session, ctx, item.id, -1, StockCause.MOVEMENT, commit=False)
    db_session.rollback()

    assert get_item(db_session, item.id).quantity == 4


def test_manual_status_is_sticky(db_session, ctx):
    item = _item(db_session, quantity=3, status=ItemStatus.DAMAGED)

    apply_quantity_delta(db_session, ctx, item.id, -3, StockCause.LOAN_OUT)
    assert get_item(db_session, item.id).status == ItemStatus.DAMAGED.value

    apply_quantity_delta(db_session, ctx, item.id, 3, StockCause.LOAN_RETURN)
    assert get_item(db_session, item.id).status == ItemStatus.DAMAGED.value


def test_negative_result_is_rejected_without_writing(db_session, ctx):
    item = _item(db_session, quantity=3)

    with pytest.raises(InsufficientStockError) as excinfo:
        apply_quantity_delta(db_session, ctx, item.id, -4, StockCause.MOVEMENT)

    assert excinfo.value.details["available"] == 3
    assert excinfo.value.details["requested"] == 4
    db_session.expire_all()
    assert get_item(db_session, item.id).quantity == 3


def test_zero_delta_and_unknown_item_are_rejected(db_session, ctx):
    item = _item(db_session, quantity=3)

    with pytest.raises(InvalidRangeError):
        apply_quantity_delta(db_session, ctx, item.id, 0, StockCause.MOVEMENT)
    with pytest.raises(NotFoundError):
        apply_quantity_delta(db_session, ctx, "missing", 1, StockCause.MOVEMENT)


def test_item_edit_cannot_change_quantity(db_session, ctx):
    item = _item(db_session, quantity=3)

    with pytest.raises(ValueError):
        update_item(db_session, item, {"quantity": 10}, now=NOW)

    updated = update_item(db_session, item, {"quantity": 3, "status": "Maintenance"}, now=NOW)
    assert updated.quantity == 3
    assert updated.status == ItemStatus.MAINTENANCE.value
