"""Value copies of entities embedded into ledger and loan records.

A snapshot captures an item or user as it was when a movement or loan was
written. Later edits to the live row never reach it, which keeps the history
stable. Snapshots are frozen so a copy cannot be mutated into something it
never was.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from ..core.enums import UserRole


class CategoryRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class ItemSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    category: CategoryRef
    unit: str
    location_id: str

    @classmethod
    def from_item(cls, item: Any) -> "ItemSnapshot":
        return cls(
            id=item.id,
            name=item.name,
            description=item.description or "",
            category=CategoryRef.model_validate(item.category),
            unit=item.unit,
            location_id=item.location_id,
        )


class UserSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    role: UserRole

    @classmethod
    def from_user(cls, user: Any) -> "UserSnapshot":
        return cls(id=user.id, name=user.name, email=user.email, role=UserRole(user.role))


def to_document(snapshot: BaseModel) -> dict[str, Any]:
    """Serialize a snapshot into the JSON shape stored on the row."""

    return snapshot.model_dump(mode="json")


