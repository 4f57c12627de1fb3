"""Enumerations shared by the models, schemas and services.

Values are what gets stored in the database and returned by the API, so
renaming a member is a data migration.
"""

from __future__ import annotations

from enum import Enum


class ItemStatus(str, Enum):
    AVAILABLE = "Available"
    BORROWED = "Borrowed"
    DAMAGED = "Damaged"
    MAINTENANCE = "Maintenance"


# Statuses only an explicit edit may set or clear; stock changes leave them alone.
MANUAL_STATUSES = frozenset({ItemStatus.DAMAGED, ItemStatus.MAINTENANCE})


class UserRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class MovementType(str, Enum):
    INPUT = "Input"
    OUTPUT = "Output"

    @property
    def sign(self) -> int:
        return 1 if self is MovementType.INPUT else -1


class MovementReason(str, Enum):
    PURCHASE = "Purchase"
    USE = "Use"
    DISCARD = "Discard"
    MAINTENANCE = "Maintenance"
    OTHER = "Other"


class StockCause(str, Enum):
    """Why the quantity of an item is changing."""

    MOVEMENT = "movement"
    LOAN_OUT = "loan_out"
    LOAN_RETURN = "loan_return"


class NotificationType(str, Enum):
    LOAN = "loan"
    OVERDUE_RETURN = "overdue_return"
    LOW_STOCK = "low_stock"
    MOVEMENT = "movement"
    SYSTEM = "system"


class DocumentType(str, Enum):
    IMAGE = "image"
    PDF = "pdf"
    DOCUMENT = "document"

    @classmethod
    def from_content_type(cls, content_type: str | None) -> "DocumentType":
        value = (content_type or "").lower()
        if value.split("/")[0] == "image":
            return cls.IMAGE
        if value == "application/pdf":
            return cls.PDF
        return cls.DOCUMENT
