"""Files attached to items, kept in the blob store and listed on the item."""

from __future__ import annotations

import logging
from typing import BinaryIO

from sqlalchemy.orm import Session

from ..core.context import OperatorContext
from ..core.errors import NotFoundError, StoreIOError
from ..crud.items import delete_item, item_documents, require_item, set_item_documents
from ..models.item import Item
from .storage import BlobStore, item_prefix

logger = logging.getLogger(__name__)


def attach_document(
    db: Session,
    ctx: OperatorContext,
    store: BlobStore,
    item_id: str,
    filename: str,
    content_type: str | None,
    stream: BinaryIO,
) -> Item:
    item = require_item(db, item_id)
    document = store.upload(filename, content_type, stream, item_prefix(item.id), now=ctx.now())
    documents = item_documents(item)
    documents.append(document)
    try:
        return set_item_documents(db, item, documents, now=ctx.now())
    except StoreIOError:
        # The item row never learned about the upload; drop the orphaned blob.
        store.delete(document.path)
        raise


def remove_document(db: Session, ctx: OperatorContext, store: BlobStore, item_id: str, document_id: str) -> Item:
    item = require_item(db, item_id)
    documents = item_documents(item)
    match = next((doc for doc in documents if doc.id == document_id), None)
    if match is None:
        raise NotFoundError("Document", document_id)
    updated = set_item_documents(db, item, [doc for doc in documents if doc.id != document_id], now=ctx.now())
    store.delete(match.path)
    return updated


def delete_item_and_files(db: Session, store: BlobStore, item_id: str) -> None:
    """Delete an item (refused while loans are active) and every blob stored for it."""

    item = require_item(db, item_id)
    delete_item(db, item)
    removed = store.delete_all(item_prefix(item_id))
    logger.info("item.deleted", extra={"extra_data": {"item_id": item_id, "blobs_removed": removed}})
