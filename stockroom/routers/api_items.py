from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from ..core.context import OperatorContext
from ..core.enums import ItemStatus
from ..crud.items import create_item, require_item, update_item
from ..db.session import get_db
from ..deps.operator import get_operator
from ..schemas.item import ItemCreate, ItemOut, ItemUpdate
from ..services.documents import attach_document, delete_item_and_files, remove_document
from ..services.notifications import refresh_after_change
from ..services.queries import list_item_view
from ..services.storage import BlobStore, get_blob_store

MAX_DOCUMENT_BYTES = 20 * 1024 * 1024

router = APIRouter(prefix="/api/v1/items", tags=["items"])


@router.get("", response_model=list[ItemOut])
def api_list(
    q: str | None = Query(default=None),
    status: ItemStatus | None = Query(default=None),
    location_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return list_item_view(db, query=q, status=status, location_id=location_id)


@router.get("/{item_id}", response_model=ItemOut)
def api_get(item_id: str, db: Session = Depends(get_db)):
    return require_item(db, item_id)


@router.post("", response_model=ItemOut, status_code=201)
def api_create(
    payload: ItemCreate,
    db: Session = Depends(get_db),
    ctx: OperatorContext = Depends(get_operator),
):
    try:
        item = create_item(db, payload.model_dump(), now=ctx.now())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    refresh_after_change(db, ctx)
    return item


@router.patch("/{item_id}", response_model=ItemOut)
def api_update(
    item_id: str,
    payload: ItemUpdate,
    db: Session = Depends(get_db),
    ctx: OperatorContext = Depends(get_operator),
):
    item = require_item(db, item_id)
    data = payload.model_dump(exclude_unset=True)
    if not data:
        return item
    try:
        item = update_item(db, item, data, now=ctx.now())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    refresh_after_change(db, ctx)
    return item


@router.delete("/{item_id}")
def api_delete(
    item_id: str,
    db: Session = Depends(get_db),
    ctx: OperatorContext = Depends(get_operator),
    store: BlobStore = Depends(get_blob_store),
):
    delete_item_and_files(db, store, item_id)
    refresh_after_change(db, ctx)
    return {"status": "deleted"}


@router.post("/{item_id}/documents", response_model=ItemOut, status_code=201)
async def api_add_document(
    item_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    ctx: OperatorContext = Depends(get_operator),
    store: BlobStore = Depends(get_blob_store),
):
    filename = (file.filename or "").strip()
    try:
        if not filename:
            raise HTTPException(status_code=400, detail="A file upload is required")
        if file.size is not None and file.size > MAX_DOCUMENT_BYTES:
            raise HTTPException(status_code=413, detail="File is too large")
        return attach_document(db, ctx, store, item_id, filename, file.content_type, file.file)
    finally:
        await file.close()


@router.delete("/{item_id}/documents/{document_id}", response_model=ItemOut)
def api_remove_document(
    item_id: str,
    document_id: str,
    db: Session = Depends(get_db),
    ctx: OperatorContext = Depends(get_operator),
    store: BlobStore = Depends(get_blob_store),
):
    return remove_document(db, ctx, store, item_id, document_id)
