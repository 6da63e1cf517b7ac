from __future__ import annotations

from .error_page import ErrorPageMiddleware
from .request_id import RequestIdMiddleware, principal_ctx_var, request_id_ctx_var
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "ErrorPageMiddleware",
    "RequestIdMiddleware",
    "SecurityHeadersMiddleware",
    "request_id_ctx_var",
    "principal_ctx_var",
]
