"""Resolve the user a request acts for.

Clients pick the acting user with the ``X-User-Id`` header. Without it the
first admin is used. The role is advisory; no route checks it.
"""

from __future__ import annotations

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from ..core.context import OperatorContext
from ..core.errors import NotFoundError
from ..crud.users import first_admin, require_user
from ..db.session import get_db
from ..middlewares import operator_ctx_var
from ..schemas.snapshots import UserSnapshot


def get_operator(
    request: Request,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> OperatorContext:
    user_id = (x_user_id or "").strip()
    if user_id:
        user = require_user(db, user_id)
    else:
        user = first_admin(db)
        if user is None:
            raise NotFoundError("User", None)
    operator_ctx_var.set(user.id)
    request.state.operator = user.id
    return OperatorContext(user=UserSnapshot.from_user(user))
