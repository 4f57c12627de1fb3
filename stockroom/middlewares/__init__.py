from __future__ import annotations

from .request_id import RequestIdMiddleware, operator_ctx_var, request_id_ctx_var

__all__ = [
    "RequestIdMiddleware",
    "request_id_ctx_var",
    "operator_ctx_var",
]
