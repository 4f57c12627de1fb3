from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.context import OperatorContext
from ..crud.items import list_items
from ..crud.locations import (
    create_location,
    delete_location,
    list_locations,
    location_usage,
    require_location,
    update_location,
)
from ..db.session import get_db
from ..deps.operator import get_operator
from ..schemas.item import ItemOut
from ..schemas.location import LocationCreate, LocationOut, LocationUpdate, LocationUsage

router = APIRouter(prefix="/api/v1/locations", tags=["locations"])


@router.get("", response_model=list[LocationOut])
def api_list(db: Session = Depends(get_db)):
    return list_locations(db)


@router.get("/{location_id}", response_model=LocationOut)
def api_get(location_id: str, db: Session = Depends(get_db)):
    return require_location(db, location_id)


@router.get("/{location_id}/items", response_model=list[ItemOut])
def api_list_items(location_id: str, db: Session = Depends(get_db)):
    location = require_location(db, location_id)
    return list_items(db, location_id=location.id)


@router.get("/{location_id}/usage", response_model=LocationUsage)
def api_usage(location_id: str, db: Session = Depends(get_db)):
    return location_usage(db, require_location(db, location_id))


@router.post("", response_model=LocationOut, status_code=201)
def api_create(
    payload: LocationCreate,
    db: Session = Depends(get_db),
    ctx: OperatorContext = Depends(get_operator),
):
    try:
        return create_location(db, payload.model_dump(), now=ctx.now())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.patch("/{location_id}", response_model=LocationOut)
def api_update(
    location_id: str,
    payload: LocationUpdate,
    db: Session = Depends(get_db),
    ctx: OperatorContext = Depends(get_operator),
):
    location = require_location(db, location_id)
    data = payload.model_dump(exclude_unset=True)
    if not data:
        return location
    try:
        return update_location(db, location, data, now=ctx.now())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/{location_id}")
def api_delete(location_id: str, db: Session = Depends(get_db)):
    delete_location(db, require_location(db, location_id))
    return {"status": "deleted"}
