from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..core.enums import DocumentType, ItemStatus
from .snapshots import CategoryRef


class ItemDocument(BaseModel):
    id: str
    name: str
    url: str
    path: str
    type: DocumentType = DocumentType.DOCUMENT
    size: int = Field(default=0, ge=0)
    upload_date: datetime = Field(validation_alias=AliasChoices("upload_date", "uploadDate"))


def _looks_like_document(value: Mapping[str, Any]) -> bool:
    return "path" in value and "url" in value


def normalize_documents(value: Any) -> list[ItemDocument]:
    """Reshape a stored ``documents`` field into a list of ``ItemDocument``.

    Older records keep documents as a mapping keyed by document id, and some
    hold a single document mapping instead of a list. All of them come out as
    one list ordered by upload date.
    """

    if value is None:
        return []
    if isinstance(value, Mapping):
        if _looks_like_document(value):
            entries: list[Any] = [value]
        else:
            entries = []
            for key, doc in value.items():
                if isinstance(doc, Mapping):
                    doc = {"id": str(key), **doc}
                entries.append(doc)
    elif isinstance(value, (list, tuple)):
        entries = list(value)
    else:
        raise ValueError("documents must be a list or a mapping of documents")

    documents = [
        entry if isinstance(entry, ItemDocument) else ItemDocument.model_validate(entry) for entry in entries
    ]
    documents.sort(key=lambda doc: doc.upload_date)
    return documents


def dump_documents(documents: list[ItemDocument]) -> list[dict[str, Any]]:
    return [doc.model_dump(mode="json") for doc in documents]


class ItemCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    category_id: str
    quantity: int = Field(default=0, ge=0)
    min_quantity: int = Field(default=0, ge=0)
    unit: str = "unit"
    location_id: str
    status: ItemStatus = ItemStatus.AVAILABLE
    image_url: Optional[str] = None


class ItemUpdate(BaseModel):
    """Fields an edit may touch. Quantity moves only through movements and loans."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category_id: Optional[str] = None
    min_quantity: Optional[int] = Field(default=None, ge=0)
    unit: Optional[str] = None
    location_id: Optional[str] = None
    status: Optional[ItemStatus] = None
    image_url: Optional[str] = None


class ItemOut(BaseModel):
    id: str
    name: str
    description: str
    category: CategoryRef
    quantity: int
    min_quantity: int
    unit: str
    location_id: str
    status: ItemStatus
    image_url: Optional[str] = None
    documents: list[ItemDocument] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_validator("documents", mode="before")
    @classmethod
    def _normalize_documents(cls, value: Any) -> list[ItemDocument]:
        return normalize_documents(value)
