"""Location CRUD. Deleting is refused while any item is stored there."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.clock import utcnow
from ..core.errors import NotFoundError, ReferentialConflictError
from ..db.transaction import commit_or_raise
from ..models.item import Item
from ..models.location import Location

EDITABLE_FIELDS = ("name", "description", "capacity", "responsible")


def list_locations(db: Session) -> list[Location]:
    return db.execute(select(Location).order_by(Location.name)).scalars().all()


def get_location(db: Session, location_id: str) -> Location | None:
    return db.get(Location, location_id)


def require_location(db: Session, location_id: str) -> Location:
    location = get_location(db, location_id)
    if not location:
        raise NotFoundError("Location", location_id)
    return location


def _clean(payload: dict) -> dict:
    data = {k: v for k, v in payload.items() if k in EDITABLE_FIELDS}
    if "name" in data:
        data["name"] = (data["name"] or "").strip()
        if not data["name"]:
            raise ValueError("name is required")
    if "description" in data:
        data["description"] = (data["description"] or "").strip()
    if "responsible" in data:
        data["responsible"] = (data["responsible"] or "").strip() or None
    if data.get("capacity") is not None:
        capacity = int(data["capacity"])
        if capacity < 0:
            raise ValueError("capacity must be zero or positive")
        data["capacity"] = capacity
    return data


def create_location(db: Session, payload: dict, *, now: datetime | None = None) -> Location:
    data = _clean(payload)
    if not data.get("name"):
        raise ValueError("name is required")
    stamp = now or utcnow()
    location = Location(
        name=data["name"],
        description=data.get("description", ""),
        capacity=data.get("capacity"),
        responsible=data.get("responsible"),
        created_at=stamp,
        updated_at=stamp,
    )
    db.add(location)
    commit_or_raise(db, "create_location")
    db.refresh(location)
    return location


def update_location(db: Session, location: Location, payload: dict, *, now: datetime | None = None) -> Location:
    for key, value in _clean(payload).items():
        setattr(location, key, value)
    location.updated_at = now or utcnow()
    commit_or_raise(db, "update_location")
    db.refresh(location)
    return location


def count_items_at(db: Session, location_id: str) -> int:
    stmt = select(func.count(Item.id)).where(Item.location_id == location_id)
    return int(db.execute(stmt).scalar_one())


def delete_location(db: Session, location: Location) -> None:
    dependents = count_items_at(db, location.id)
    if dependents:
        raise ReferentialConflictError(
            f"Location {location.name!r} still holds {dependents} item(s)",
            details={"location_id": location.id, "item_count": dependents},
        )
    db.delete(location)
    commit_or_raise(db, "delete_location")


def location_usage(db: Session, location: Location) -> dict[str, object]:
    count = count_items_at(db, location.id)
    capacity = location.capacity
    return {
        "location_id": location.id,
        "item_count": count,
        "capacity": capacity,
        "over_capacity": capacity is not None and count > capacity,
    }
