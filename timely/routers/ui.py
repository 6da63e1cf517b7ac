"""Browser-facing routes.

Anonymous visitors only ever see two flows: ``/signup`` goes to the signup
flow, every other path goes to the login flow (GET renders the form, any
other method submits it). Logged-in users get the dashboard for ``/`` and for
any unmatched GET, the timelog actions, and logout. Unmatched non-GET
requests from logged-in users are answered with the 404 page.

Validation, auth and not-found errors are shown inline on the current page
with a 200 status. Everything else bubbles up to ``ErrorPageMiddleware``.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, Response

from ..core.errors import AuthError, USER_FACING_ERRORS
from ..deps.session import (
    RequestContext,
    clear_auth_cookie,
    form_fields,
    get_request_context,
    redirect_home,
    set_auth_cookie,
)
from ..schemas.auth import LoginForm, SignupForm
from ..schemas.timelog import TimelogFinishForm, TimelogStartForm
from ..services import accounts, timelogs

logger = logging.getLogger(__name__)

router = APIRouter()

LOGIN_FAILED_MESSAGE = "Invalid username or password"


# ---------- Rendering helpers ----------


def _render(
    request: Request,
    ctx: RequestContext,
    name: str,
    context: dict[str, Any] | None = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    templates = request.app.state.templates
    payload = {"user": ctx.user, **(context or {})}
    return templates.TemplateResponse(request, name, payload, status_code=status_code)


def login_page(request: Request, ctx: RequestContext, error: str | None = None) -> HTMLResponse:
    return _render(request, ctx, "login.html", {"error": error})


def signup_page(request: Request, ctx: RequestContext, error: str | None = None) -> HTMLResponse:
    return _render(request, ctx, "signup.html", {"error": error})


def dashboard_page(request: Request, ctx: RequestContext, error: str | None = None) -> HTMLResponse:
    user = ctx.require_user()
    data = timelogs.dashboard_data(ctx.repo, user)
    return _render(request, ctx, "dashboard.html", {"dashboard": data, "error": error})


def not_found_page(request: Request, ctx: RequestContext) -> HTMLResponse:
    return _render(request, ctx, "not_found.html", status_code=status.HTTP_404_NOT_FOUND)


# ---------- Flows ----------


def login_flow(request: Request, ctx: RequestContext, form: dict[str, str]) -> Response:
    if request.method == "GET":
        return login_page(request, ctx)
    if request.method != "POST":
        return not_found_page(request, ctx)

    data = LoginForm.model_validate(form)
    try:
        _user, token = accounts.login(ctx.repo, ctx.settings, data.user, data.password)
    except AuthError as exc:
        # "User not found" and "Wrong password" look identical to the browser.
        logger.info("login failed: %s", exc)
        return login_page(request, ctx, LOGIN_FAILED_MESSAGE)
    except USER_FACING_ERRORS as exc:
        return login_page(request, ctx, str(exc))

    response = redirect_home(ctx.settings)
    set_auth_cookie(response, ctx.settings, token)
    return response


def signup_flow(request: Request, ctx: RequestContext, form: dict[str, str]) -> Response:
    if request.method == "GET":
        return signup_page(request, ctx)
    if request.method != "POST":
        return not_found_page(request, ctx)

    data = SignupForm.model_validate(form)
    try:
        _user, token = accounts.signup_and_login(ctx.repo, ctx.settings, data)
    except USER_FACING_ERRORS as exc:
        return signup_page(request, ctx, str(exc))

    response = redirect_home(ctx.settings)
    set_auth_cookie(response, ctx.settings, token)
    return response


def authenticated_fallback(request: Request, ctx: RequestContext) -> Response:
    if request.method == "GET":
        return dashboard_page(request, ctx)
    logger.info("path not found: method=%s path=%s", request.method, request.url.path)
    return not_found_page(request, ctx)


# ---------- Routes ----------


@router.get("/", response_class=HTMLResponse)
def index(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
):
    if ctx.user is None:
        return login_page(request, ctx)
    return dashboard_page(request, ctx)


@router.api_route("/login", methods=["GET", "POST"], response_class=HTMLResponse)
def login(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    form: dict[str, str] = Depends(form_fields),
):
    if ctx.user is None:
        return login_flow(request, ctx, form)
    return authenticated_fallback(request, ctx)


@router.api_route("/signup", methods=["GET", "POST"], response_class=HTMLResponse)
def signup(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    form: dict[str, str] = Depends(form_fields),
):
    if ctx.user is None:
        return signup_flow(request, ctx, form)
    return authenticated_fallback(request, ctx)


@router.post("/timelog/start", response_class=HTMLResponse)
def timelog_start(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    form: dict[str, str] = Depends(form_fields),
):
    if ctx.user is None:
        return login_flow(request, ctx, form)

    data = TimelogStartForm.model_validate(form)
    error = None
    try:
        timelogs.start_timelog(ctx.repo, ctx.user, data.title)
    except USER_FACING_ERRORS as exc:
        error = str(exc)
    return dashboard_page(request, ctx, error)


@router.post("/timelog/finish", response_class=HTMLResponse)
def timelog_finish(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    form: dict[str, str] = Depends(form_fields),
):
    if ctx.user is None:
        return login_flow(request, ctx, form)

    data = TimelogFinishForm.model_validate(form)
    error = None
    try:
        timelog_id = timelogs.parse_timelog_id(data.timelog_id)
        timelogs.finish_timelog(ctx.repo, ctx.user, timelog_id)
    except USER_FACING_ERRORS as exc:
        error = str(exc)
    return dashboard_page(request, ctx, error)


@router.post("/user/logout")
def logout(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    form: dict[str, str] = Depends(form_fields),
):
    if ctx.user is None:
        return login_flow(request, ctx, form)
    return redirect_home(ctx.settings, clear_cookie=True)


@router.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    response_class=HTMLResponse,
    include_in_schema=False,
)
def fallback(
    request: Request,
    path: str,
    ctx: RequestContext = Depends(get_request_context),
    form: dict[str, str] = Depends(form_fields),
):
    if ctx.user is None:
        if path.strip("/") == "signup":
            return signup_flow(request, ctx, form)
        return login_flow(request, ctx, form)
    return authenticated_fallback(request, ctx)


def invalid_session_response(request: Request, exc: Exception) -> Response:
    """Exception handler: a stale or forged cookie is cleared, never shown."""

    settings = request.app.state.settings
    response = redirect_home(settings)
    clear_auth_cookie(response, settings)
    return response
