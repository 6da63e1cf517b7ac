"""Application factory and top-level wiring for Timely.

This module brings together configuration, the backend repository, HTML
templates, middlewares and the UI router. ``create_app`` is the single place
where process-wide state is built: settings are loaded once, the REST client
is created once, and both are parked on ``app.state`` so each request can
build its own context from them.
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from .core.config import AppSettings, get_settings
from .core.errors import InvalidSessionError
from .core.jinja import get_templates
from .db.repository import Repository
from .db.rest import RestClient
from .db.supabase import SupabaseRepository
from .middlewares import ErrorPageMiddleware, RequestIdMiddleware, SecurityHeadersMiddleware

__version__ = "0.1.0"


def build_repository(settings: AppSettings) -> SupabaseRepository:
    client = RestClient(
        settings.SUPABASE_ENDPOINT,
        settings.SUPABASE_KEY,
        timeout=settings.BACKEND_TIMEOUT,
    )
    return SupabaseRepository(client)


def create_app(
    settings: AppSettings | None = None,
    repo: Repository | None = None,
    *,
    instrument: bool = True,
) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title=settings.APP_NAME, version=__version__, docs_url=None, redoc_url=None)
    app.state.settings = settings
    app.state.repo = repo if repo is not None else build_repository(settings)
    app.state.templates = get_templates(settings)

    # Middlewares wrap in reverse order of registration: request ids are
    # assigned first, the error page renders innermost so it still gets one.
    app.add_middleware(ErrorPageMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, bool]:
        return {"ok": True}

    if instrument:
        Instrumentator().instrument(app).expose(app, include_in_schema=False)

    # The UI router ends in a catch-all route, so it must be registered last.
    from .routers import ui as ui_router

    app.add_exception_handler(InvalidSessionError, ui_router.invalid_session_response)
    app.include_router(ui_router.router)

    return app
