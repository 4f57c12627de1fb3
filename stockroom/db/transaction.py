"""Transactional boundary for operations that write more than one row.

The item quantity, the movement ledger and the loan record are separate
rows. ``unit_of_work`` runs them inside one database transaction: every step
is flushed as it completes, the commit happens once at the end, and a store
failure rolls everything back and is reported as a ``StoreIOError`` that
names the steps which had been applied before the failure.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import StoreIOError

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, db: Session, operation: str) -> None:
        self.db = db
        self.operation = operation
        self.completed_steps: list[str] = []
        self.current_step: str | None = None

    @contextmanager
    def step(self, name: str) -> Iterator[None]:
        self.current_step = name
        yield
        self.db.flush()
        self.completed_steps.append(name)
        self.current_step = None


@contextmanager
def unit_of_work(db: Session, operation: str) -> Iterator[UnitOfWork]:
    uow = UnitOfWork(db, operation)
    try:
        yield uow
        uow.current_step = "commit"
        db.commit()
        uow.current_step = None
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "transaction.failed",
            extra={
                "extra_data": {
                    "operation": operation,
                    "completed_steps": uow.completed_steps,
                    "failed_step": uow.current_step,
                }
            },
        )
        raise StoreIOError(
            f"{operation} failed while writing to the store",
            operation=operation,
            completed_steps=uow.completed_steps,
            failed_step=uow.current_step,
            rolled_back=True,
        ) from exc
    except Exception:
        db.rollback()
        raise


def commit_or_raise(db: Session, operation: str) -> None:
    """Commit a single-row write, translating backend failures."""

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("store.write_failed", extra={"extra_data": {"operation": operation}})
        raise StoreIOError(f"{operation} failed while writing to the store", operation=operation) from exc
