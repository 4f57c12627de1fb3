"""Per-request operator context.

Replaces the idea of a process-wide "current user": every core operation
receives the acting user and the clock it should read "now" from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from ..schemas.snapshots import UserSnapshot
from .clock import utcnow
from .enums import UserRole


@dataclass(frozen=True)
class OperatorContext:
    user: UserSnapshot
    clock: Callable[[], datetime] = field(default=utcnow)

    def now(self) -> datetime:
        return self.clock()

    @property
    def is_admin(self) -> bool:
        return self.user.role == UserRole.ADMIN
