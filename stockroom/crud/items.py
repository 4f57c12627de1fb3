"""Item CRUD helpers.

Items are created and edited here, but their ``quantity`` is off limits:
only ``services.stock`` may change it so that every change has a ledger
entry. Edits that try to set it are rejected.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.clock import utcnow
from ..core.enums import ItemStatus
from ..core.errors import NotFoundError, ReferentialConflictError
from ..db.transaction import commit_or_raise
from ..models.item import Item
from ..models.loan import Loan
from ..schemas.item import ItemDocument, dump_documents, normalize_documents
from .locations import require_location
from .users import require_category

EDITABLE_FIELDS = (
    "name",
    "description",
    "category_id",
    "min_quantity",
    "unit",
    "location_id",
    "status",
    "image_url",
)


def list_items(db: Session, location_id: str | None = None) -> list[Item]:
    stmt = select(Item).order_by(Item.name, Item.id)
    if location_id is not None:
        stmt = stmt.where(Item.location_id == location_id)
    return db.execute(stmt).scalars().all()


def get_item(db: Session, item_id: str) -> Item | None:
    return db.get(Item, item_id)


def require_item(db: Session, item_id: str) -> Item:
    item = get_item(db, item_id)
    if not item:
        raise NotFoundError("Item", item_id)
    return item


def _non_negative(value: object, field: str) -> int:
    number = int(value)  # type: ignore[arg-type]
    if number < 0:
        raise ValueError(f"{field} must be zero or positive")
    return number


def create_item(db: Session, payload: dict, *, now: datetime | None = None) -> Item:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    location = require_location(db, payload.get("location_id") or "")
    category = require_category(db, payload.get("category_id") or "")
    stamp = now or utcnow()
    item = Item(
        name=name,
        description=(payload.get("description") or "").strip(),
        category={"id": category.id, "name": category.name},
        quantity=_non_negative(payload.get("quantity") or 0, "quantity"),
        min_quantity=_non_negative(payload.get("min_quantity") or 0, "min_quantity"),
        unit=(payload.get("unit") or "unit").strip(),
        location_id=location.id,
        status=ItemStatus(payload.get("status") or ItemStatus.AVAILABLE).value,
        image_url=(payload.get("image_url") or "").strip() or None,
        documents=dump_documents(normalize_documents(payload.get("documents"))),
        created_at=stamp,
        updated_at=stamp,
    )
    db.add(item)
    commit_or_raise(db, "create_item")
    db.refresh(item)
    return item


def update_item(db: Session, item: Item, payload: dict, *, now: datetime | None = None) -> Item:
    """Apply an edit. Unknown keys are ignored; ``quantity`` is refused."""

    if "quantity" in payload and payload["quantity"] != item.quantity:
        raise ValueError("quantity can only change through a movement or a loan")
    for key, value in payload.items():
        if key not in EDITABLE_FIELDS:
            continue
        if key == "name":
            value = (value or "").strip()
            if not value:
                raise ValueError("name is required")
        elif key == "category_id":
            category = require_category(db, value or "")
            item.category = {"id": category.id, "name": category.name}
            continue
        elif key == "location_id":
            value = require_location(db, value or "").id
        elif key == "min_quantity":
            value = _non_negative(value, "min_quantity")
        elif key == "status":
            value = ItemStatus(value).value
        elif key == "image_url":
            value = (value or "").strip() or None
        elif isinstance(value, str):
            value = value.strip()
        setattr(item, key, value)
    item.updated_at = now or utcnow()
    commit_or_raise(db, "update_item")
    db.refresh(item)
    return item


def count_active_loans(db: Session, item_id: str) -> int:
    stmt = select(func.count(Loan.id)).where(Loan.item_id == item_id, Loan.actual_return_date.is_(None))
    return int(db.execute(stmt).scalar_one())


def delete_item(db: Session, item: Item) -> None:
    active = count_active_loans(db, item.id)
    if active:
        raise ReferentialConflictError(
            f"Item {item.name!r} has {active} active loan(s)",
            details={"item_id": item.id, "active_loans": active},
        )
    db.delete(item)
    commit_or_raise(db, "delete_item")


def item_documents(item: Item) -> list[ItemDocument]:
    return normalize_documents(item.documents)


def set_item_documents(db: Session, item: Item, documents: list[ItemDocument], *, now: datetime | None = None) -> Item:
    item.documents = dump_documents(documents)
    item.updated_at = now or utcnow()
    commit_or_raise(db, "update_item_documents")
    db.refresh(item)
    return item
