from __future__ import annotations

import logging

from starlette import status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("timely.errors")


class ErrorPageMiddleware(BaseHTTPMiddleware):
    """Last line of defence: any unhandled exception becomes a 500 HTML page.

    The error is logged with its traceback; the process keeps serving.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception:
            logger.exception(
                "request.failed",
                extra={"extra_data": {"method": request.method, "path": request.url.path}},
            )
            templates = request.app.state.templates
            return templates.TemplateResponse(
                request,
                "error.html",
                {
                    "user": getattr(request.state, "user", None),
                    "request_id": getattr(request.state, "request_id", None),
                },
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
