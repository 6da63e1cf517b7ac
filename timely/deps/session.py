"""Per-request context and the ``timelytoken`` auth cookie.

WHAT: Resolves the signed token carried in the cookie into a ``User``.
WHEN: Runs as a FastAPI dependency before every UI route.
HOW: A missing cookie yields an anonymous context. A cookie that fails to
verify, or that points at a user who no longer exists, raises
``InvalidSessionError``; the app turns that into "clear cookie + redirect
home" instead of an error page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Request, status
from fastapi.responses import RedirectResponse, Response
from starlette.concurrency import run_in_threadpool

from ..core.config import AppSettings
from ..core.errors import InvalidSessionError
from ..db.repository import Repository
from ..middlewares import principal_ctx_var
from ..schemas.user import User
from ..services.accounts import load_user_for_token

AUTH_COOKIE_NAME = "timelytoken"

logger = logging.getLogger(__name__)


@dataclass
class RequestContext:
    settings: AppSettings
    repo: Repository
    user: User | None = None

    def require_user(self) -> User:
        if self.user is None:
            raise InvalidSessionError("expected a user in the context")
        return self.user


def _cookie_kwargs(settings: AppSettings) -> dict:
    return {
        "path": "/",
        "secure": settings.COOKIE_SECURE,
        "httponly": True,
        "samesite": "strict",
    }


def set_auth_cookie(response: Response, settings: AppSettings, token: str) -> None:
    max_age = int(timedelta(days=settings.TOKEN_TTL_DAYS).total_seconds())
    expires = datetime.now(tz=timezone.utc) + timedelta(seconds=max_age)
    response.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        max_age=max_age,
        expires=expires,
        **_cookie_kwargs(settings),
    )


def clear_auth_cookie(response: Response, settings: AppSettings) -> None:
    response.delete_cookie(AUTH_COOKIE_NAME, **_cookie_kwargs(settings))


def redirect_home(settings: AppSettings, *, clear_cookie: bool = False) -> RedirectResponse:
    response = RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    if clear_cookie:
        clear_auth_cookie(response, settings)
    return response


async def get_request_context(request: Request) -> RequestContext:
    settings: AppSettings = request.app.state.settings
    ctx = RequestContext(settings=settings, repo=request.app.state.repo)

    token = request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        try:
            # The repository is blocking; keep it off the event loop.
            ctx.user = await run_in_threadpool(load_user_for_token, ctx.repo, settings, token)
        except InvalidSessionError as exc:
            logger.warning("invalid token: %s", exc)
            raise

        # Set in the request task so the threadpooled endpoint inherits it.
        principal = f"user:{ctx.user.id}"
        principal_ctx_var.set(principal)
        request.state.principal = principal
        request.state.user = ctx.user
    return ctx


async def form_fields(request: Request) -> dict[str, str]:
    """Read an urlencoded/multipart body as a plain ``{name: value}`` dict."""

    if request.method in ("GET", "HEAD"):
        return {}
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}
