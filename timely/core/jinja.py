"""Jinja2 environment and the formatting filters used by the HTML views.

Views are plain templates under ``timely/templates``; this module builds the
``Jinja2Templates`` instance and registers the filters they rely on.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from fastapi.templating import Jinja2Templates

from .config import AppSettings


def _to_dt(value: Any, tz: ZoneInfo | None) -> datetime | None:
    """Convert strings or datetimes into aware datetimes in the display zone."""

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None and tz:
        dt = dt.replace(tzinfo=tz)
    if tz:
        dt = dt.astimezone(tz)
    return dt


def _fmt_duration(value: Any) -> str:
    """``timedelta`` -> ``1h 05m`` (or ``12m`` under an hour)."""

    if not isinstance(value, timedelta):
        return ""
    minutes = int(value.total_seconds() // 60)
    hours, minutes = divmod(max(minutes, 0), 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    return f"{minutes}m"


def get_templates(settings: AppSettings) -> Jinja2Templates:
    """Create a ``Jinja2Templates`` instance with our standard filters registered."""

    tz = ZoneInfo(settings.TZ) if settings.TZ else None

    def fmt_dt(value: Any, fmt: str = "%Y-%m-%d %H:%M") -> str:
        dt = _to_dt(value, tz)
        return dt.strftime(fmt) if dt else ""

    templates = Jinja2Templates(directory=str(settings.templates_dir))
    env = templates.env
    env.filters["fmt_dt"] = fmt_dt
    env.filters["fmt_duration"] = _fmt_duration
    env.globals["app_name"] = settings.APP_NAME
    return templates
