from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..crud.users import create_category, list_categories, list_users, require_user
from ..db.session import get_db
from ..schemas.user import CategoryCreate, CategoryOut, UserOut

router = APIRouter(prefix="/api/v1", tags=["reference"])


@router.get("/users", response_model=list[UserOut])
def api_list_users(db: Session = Depends(get_db)):
    return list_users(db)


@router.get("/users/{user_id}", response_model=UserOut)
def api_get_user(user_id: str, db: Session = Depends(get_db)):
    return require_user(db, user_id)


@router.get("/categories", response_model=list[CategoryOut])
def api_list_categories(db: Session = Depends(get_db)):
    return list_categories(db)


@router.post("/categories", response_model=CategoryOut, status_code=201)
def api_create_category(payload: CategoryCreate, db: Session = Depends(get_db)):
    try:
        return create_category(db, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
