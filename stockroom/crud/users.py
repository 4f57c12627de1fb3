"""Users and item categories: reference data read by the core."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.enums import UserRole
from ..core.errors import NotFoundError
from ..db.transaction import commit_or_raise
from ..models.category import ItemCategory
from ..models.user import User


def list_users(db: Session) -> list[User]:
    return db.execute(select(User).order_by(User.name)).scalars().all()


def get_user(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def require_user(db: Session, user_id: str) -> User:
    user = get_user(db, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


def get_user_by_email(db: Session, email: str) -> User | None:
    stmt = select(User).where(User.email == email.strip().lower())
    return db.execute(stmt).scalars().first()


def first_admin(db: Session) -> User | None:
    stmt = select(User).where(User.role == UserRole.ADMIN.value).order_by(User.created_at, User.id)
    return db.execute(stmt).scalars().first()


def create_user(db: Session, payload: dict) -> User:
    name = (payload.get("name") or "").strip()
    email = (payload.get("email") or "").strip().lower()
    if not name:
        raise ValueError("name is required")
    if not email:
        raise ValueError("email is required")
    if get_user_by_email(db, email):
        raise ValueError(f"a user with email {email!r} already exists")
    role = UserRole(payload.get("role") or UserRole.MEMBER)
    user = User(name=name, email=email, role=role.value)
    db.add(user)
    commit_or_raise(db, "create_user")
    db.refresh(user)
    return user


def list_categories(db: Session) -> list[ItemCategory]:
    return db.execute(select(ItemCategory).order_by(ItemCategory.name)).scalars().all()


def get_category(db: Session, category_id: str) -> ItemCategory | None:
    return db.get(ItemCategory, category_id)


def require_category(db: Session, category_id: str) -> ItemCategory:
    category = get_category(db, category_id)
    if not category:
        raise NotFoundError("Category", category_id)
    return category


def create_category(db: Session, payload: dict) -> ItemCategory:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    existing = db.execute(select(ItemCategory).where(ItemCategory.name == name)).scalars().first()
    if existing:
        raise ValueError(f"category {name!r} already exists")
    category = ItemCategory(name=name)
    db.add(category)
    commit_or_raise(db, "create_category")
    db.refresh(category)
    return category
