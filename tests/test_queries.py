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
from stockroom.core.enums import ItemStatus
from stockroom.crud.items import create_item
from stockroom.crud.locations import create_location
from stockroom.crud.users import create_category
from stockroom.services.queries import filter_items_by_status, list_item_view, search_items

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
def catalogue(db_session):
    shelf = create_location(db_session, {"name": "Shelf"}, now=NOW)
    cage = create_location(db_session, {"name": "Cage"}, now=NOW)
    tools = create_category(db_session, {"name": "Tools"})
    ppe = create_category(db_session, {"name": "PPE"})
    rows = [
        ("Cordless drill", "18V with two batteries", tools, shelf, ItemStatus.AVAILABLE),
        ("Safety goggles", "Anti-fog", ppe, shelf, ItemStatus.AVAILABLE),
        ("Angle grinder", "Needs new brushes", tools, cage, ItemStatus.MAINTENANCE),
    ]
    items = {}
    for name, description, category, location, status in rows:
        items[name] = create_item(
            db_session,
            {
                "name": name,
                "description": description,
                "category_id": category.id,
                "location_id": location.id,
                "status": status,
            },
            now=NOW,
        )
    return {"items": items, "shelf": shelf, "cage": cage}


def test_search_matches_name_description_and_category(catalogue):
    items = list(catalogue["items"].values())

    assert [i.name for i in search_items(items, "DRILL")] == ["Cordless drill"]
    assert [i.name for i in search_items(items, "anti-fog")] == ["Safety goggles"]
    assert sorted(i.name for i in search_items(items, "tools")) == ["Angle grinder", "Cordless drill"]
    assert len(search_items(items, "   ")) == 3
    assert search_items(items, "forklift") == []


def test_search_matches_item_id_and_location(catalogue):
    items = list(catalogue["items"].values())
    grinder = catalogue["items"]["Angle grinder"]

    assert search_items(items, grinder.id) == [grinder]
    assert search_items(items, catalogue["cage"].id) == [grinder]


def test_filter_by_status(catalogue):
    items = list(catalogue["items"].values())

    assert [i.name for i in filter_items_by_status(items, ItemStatus.MAINTENANCE)] == ["Angle grinder"]
    assert [i.name for i in filter_items_by_status(items, "Maintenance")] == ["Angle grinder"]
    assert len(filter_items_by_status(items, None)) == 3
    assert filter_items_by_status(items, ItemStatus.BORROWED) == []


def test_list_item_view_combines_filters(db_session, catalogue):
    shelf_tools = list_item_view(db_session, query="tools", location_id=catalogue["shelf"].id)
    assert [i.name for i in shelf_tools] == ["Cordless drill"]

    available = list_item_view(db_session, status=ItemStatus.AVAILABLE)
    assert [i.name for i in available] == ["Cordless drill", "Safety goggles"]
