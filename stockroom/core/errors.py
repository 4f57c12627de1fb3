"""Domain errors raised by the inventory core and their HTTP translation.

Every validation failure is raised before the first write of an operation so
a caller never observes a partial effect. ``StoreIOError`` is the only error
that can surface after writes were attempted; it lists which steps of the
operation completed so the UI can warn about inconsistency instead of
reporting success.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class InventoryError(Exception):
    code = "inventory_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(InventoryError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: str | None) -> None:
        super().__init__(f"{entity} {entity_id!r} not found", details={"entity": entity, "id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


class InsufficientStockError(InventoryError):
    code = "insufficient_stock"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, item_id: str, available: int, requested: int) -> None:
        super().__init__(
            f"Insufficient stock for item {item_id!r}: {available} available, {requested} requested",
            details={"item_id": item_id, "available": available, "requested": requested},
        )
        self.item_id = item_id
        self.available = available
        self.requested = requested


class InvalidRangeError(InventoryError):
    code = "invalid_range"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class AlreadyReturnedError(InventoryError):
    code = "already_returned"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, loan_id: str) -> None:
        super().__init__(f"Loan {loan_id!r} has already been returned", details={"loan_id": loan_id})
        self.loan_id = loan_id


class ReferentialConflictError(InventoryError):
    code = "referential_conflict"
    status_code = status.HTTP_409_CONFLICT


class StoreIOError(InventoryError):
    """The persistence or blob backend failed while an operation was running."""

    code = "store_io"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        completed_steps: Sequence[str] = (),
        failed_step: str | None = None,
        rolled_back: bool = True,
    ) -> None:
        super().__init__(
            message,
            details={
                "operation": operation,
                "completed_steps": list(completed_steps),
                "failed_step": failed_step,
                "rolled_back": rolled_back,
            },
        )
        self.operation = operation
        self.completed_steps = list(completed_steps)
        self.failed_step = failed_step
        self.rolled_back = rolled_back

    @property
    def partially_applied(self) -> bool:
        return bool(self.completed_steps) and not self.rolled_back


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


async def inventory_exception_handler(request: Request, exc: InventoryError):
    if isinstance(exc, StoreIOError):
        logger.error("store.failure", extra={"extra_data": {"path": request.url.path, **(exc.details or {})}})
    return ErrorEnvelope(status_code=exc.status_code, code=exc.code, message=exc.message, details=exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(status_code=exc.status_code, code="http_error", message=message, details=details)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorEnvelope(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="validation_error",
        message="Validation failed",
        details={"errors": jsonable_encoder(exc.errors())},
    )
