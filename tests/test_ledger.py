import os
import sys
from datetime import datetime, timedelta
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
from stockroom.core.enums import MovementReason, MovementType
from stockroom.core.errors import InsufficientStockError, InvalidRangeError, NotFoundError
from stockroom.crud.items import create_item, get_item, update_item
from stockroom.crud.locations import create_location
from stockroom.crud.movements import list_movements
from stockroom.crud.users import create_category, create_user
from stockroom.schemas.snapshots import UserSnapshot
from stockroom.services.ledger import ledger_net_change, register_movement

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


@pytest.fixture()
def item(db_session):
    location = create_location(db_session, {"name": "Shelf A"}, now=NOW)
    category = create_category(db_session, {"name": "Consumables"})
    return create_item(
        db_session,
        {"name": "Cable ties", "category_id": category.id, "location_id": location.id, "unit": "pack"},
        now=NOW,
    )


def test_register_movement_updates_quantity_and_appends_entry(db_session, ctx, item):
    result = register_movement(
        db_session, ctx, item.id, MovementType.INPUT, MovementReason.PURCHASE, 10, "  initial order  "
    )

    assert result.change.new_quantity == 10
    movement = result.movement
    assert movement.item_id == item.id
    assert movement.item["name"] == "Cable ties"
    assert movement.item["category"]["name"] == "Consumables"
    assert movement.responsible_user["email"] == "ana@example.com"
    assert movement.notes == "initial order"
    assert movement.date == NOW
    assert movement.loan_id is None
    assert get_item(db_session, item.id).quantity == 10


def test_output_beyond_stock_writes_nothing(db_session, ctx, item):
    register_movement(db_session, ctx, item.id, MovementType.INPUT, MovementReason.PURCHASE, 3)

    with pytest.raises(InsufficientStockError):
        register_movement(db_session, ctx, item.id, MovementType.OUTPUT, MovementReason.USE, 4)

    db_session.expire_all()
    assert get_item(db_session, item.id).quantity == 3
    assert len(list_movements(db_session, item_id=item.id)) == 1


def test_invalid_quantity_and_unknown_item(db_session, ctx, item):
    with pytest.raises(InvalidRangeError):
        register_movement(db_session, ctx, item.id, MovementType.INPUT, MovementReason.PURCHASE, 0)
    with pytest.raises(NotFoundError):
        register_movement(db_session, ctx, "nope", MovementType.INPUT, MovementReason.PURCHASE, 1)
    assert list_movements(db_session) == []


def test_ledger_reconciles_with_quantity(db_session, ctx, item):
    register_movement(db_session, ctx, item.id, MovementType.INPUT, MovementReason.PURCHASE, 12)
    register_movement(db_session, ctx, item.id, MovementType.OUTPUT, MovementReason.USE, 5)
    register_movement(db_session, ctx, item.id, MovementType.OUTPUT, MovementReason.DISCARD, 2)
    register_movement(db_session, ctx, item.id, MovementType.INPUT, MovementReason.OTHER, 1)

    assert ledger_net_change(db_session, item.id) == 6
    assert get_item(db_session, item.id).quantity == 6


def test_snapshot_survives_item_rename(db_session, ctx, item):
    result = register_movement(db_session, ctx, item.id, MovementType.INPUT, MovementReason.PURCHASE, 2)
    update_item(db_session, item, {"name": "Zip ties"}, now=NOW)

    db_session.expire_all()
    stored = list_movements(db_session, item_id=item.id)[0]
    assert stored.id == result.movement.id
    assert stored.item["name"] == "Cable ties"


def test_list_movements_filters(db_session, item):
    early = OperatorContext(
        user=UserSnapshot(id="u1", name="Early", email="early@example.com", role="member"),
        clock=lambda: NOW - timedelta(days=40),
    )
    late = OperatorContext(
        user=UserSnapshot(id="u2", name="Late", email="late@example.com", role="member"),
        clock=lambda: NOW,
    )
    register_movement(db_session, early, item.id, MovementType.INPUT, MovementReason.PURCHASE, 5)
    register_movement(db_session, late, item.id, MovementType.OUTPUT, MovementReason.USE, 1)

    recent = list_movements(db_session, since=NOW - timedelta(days=30))
    assert [m.responsible_user["name"] for m in recent] == ["Late"]
    outputs = list_movements(db_session, movement_type=MovementType.OUTPUT)
    assert len(outputs) == 1
    everything = list_movements(db_session, item_id=item.id)
    assert [m.type for m in everything] == ["Output", "Input"]
