from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from ..core.errors import BackendError, NotFoundError, ValidationError
from ..db.query import TimelogQuery, timelog_by_id, user_active_timelogs, user_finished_timelogs
from ..db.repository import Repository
from ..schemas.timelog import Timelog, TimelogCreate, TimelogPatch
from ..schemas.user import User

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class Dashboard:
    active: list[Timelog]
    finished: list[Timelog]

    @property
    def multiple_active(self) -> bool:
        return len(self.active) > 1


def dashboard_data(repo: Repository, user: User) -> Dashboard:
    return Dashboard(
        active=repo.timelogs(user_active_timelogs(user.id)),
        finished=repo.timelogs(user_finished_timelogs(user.id)),
    )


def start_timelog(repo: Repository, user: User, title: str) -> Timelog:
    """Open a new timelog for ``user``.

    The "one active timelog" rule is a read-then-write check; two concurrent
    requests can both pass it.
    """

    title = title.strip()
    if not title:
        raise ValidationError("Title may not be empty")

    if repo.timelogs(user_active_timelogs(user.id)):
        raise ValidationError("Other running tasks - finish them first!")

    now = _now()
    log = repo.timelog_create(
        TimelogCreate(user_id=user.id, title=title, created_at=now, started_at=now)
    )
    logger.info("timelog.started", extra={"extra_data": {"user_id": user.id, "timelog_id": log.id}})
    return log


def parse_timelog_id(raw: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ValidationError("Invalid timelog id") from exc
    if value < 0:
        raise ValidationError("Invalid timelog id")
    return value


def finish_timelog(repo: Repository, user: User, timelog_id: int) -> Timelog:
    log = next(iter(repo.timelogs(timelog_by_id(timelog_id))), None)
    # Another user's timelog is reported exactly like a missing one.
    if log is None or log.user_id != user.id:
        raise NotFoundError("Timelog not found")
    if log.is_finished:
        raise ValidationError("Log entry already closed")

    patch = TimelogPatch(finished_at=_now())
    updated = repo.timelog_update(TimelogQuery.single_id(timelog_id), patch)
    if not updated:
        raise NotFoundError("Timelog not found")
    out = updated[0]
    if out.finished_at is None:
        raise BackendError("Backend did not record finished_at")

    logger.info("timelog.finished", extra={"extra_data": {"user_id": user.id, "timelog_id": out.id}})
    return out
