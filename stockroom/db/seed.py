"""Idempotent reference data for a fresh database.

Each collection is filled only when it is empty, so running the seed on an
existing installation changes nothing.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.clock import utcnow
from ..core.enums import UserRole
from ..models.category import ItemCategory
from ..models.location import Location
from ..models.user import User
from .transaction import commit_or_raise

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = ("Electrical", "Mechanical", "Tools", "PPE", "Electronics")
DEFAULT_USERS = (
    {"name": "Admin", "email": "admin@example.com", "role": UserRole.ADMIN},
)
DEFAULT_LOCATIONS = (
    {"name": "Main storeroom", "description": "Team's main storeroom", "capacity": 100},
)


def _is_empty(db: Session, model) -> bool:
    return not db.execute(select(func.count()).select_from(model)).scalar_one()


def seed_reference_data(db: Session) -> dict[str, int]:
    created = {"categories": 0, "users": 0, "locations": 0}
    if _is_empty(db, ItemCategory):
        for name in DEFAULT_CATEGORIES:
            db.add(ItemCategory(name=name))
            created["categories"] += 1
    if _is_empty(db, User):
        for entry in DEFAULT_USERS:
            db.add(User(name=entry["name"], email=entry["email"], role=entry["role"].value))
            created["users"] += 1
    if _is_empty(db, Location):
        now = utcnow()
        for entry in DEFAULT_LOCATIONS:
            db.add(Location(created_at=now, updated_at=now, **entry))
            created["locations"] += 1
    if any(created.values()):
        commit_or_raise(db, "seed_reference_data")
        logger.info("seed.completed", extra={"extra_data": created})
    return created
