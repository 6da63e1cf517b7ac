"""In-process repository used by the test-suite and for offline development.

Filters, ordering and pagination are evaluated directly against stored rows.
The backend assigns ids and ``created_at`` timestamps; this class mimics that.
"""

from __future__ import annotations

from datetime import datetime, timezone
from itertools import count

from ..core.errors import BackendApiError
from ..schemas.backend import ApiError
from ..schemas.timelog import Timelog, TimelogCreate, TimelogPatch
from ..schemas.user import User, UserCreate
from .query import (
    AndFilter,
    Direction,
    IsFinishedFilter,
    TimelogFilter,
    TimelogIdFilter,
    TimelogQuery,
    TimelogUserFilter,
    UserFilter,
    UserQuery,
)


def _matches_user(user: User, filter: UserFilter | None) -> bool:
    if filter is None:
        return True
    return str(getattr(user, filter.column)) == filter.value


def _matches_timelog(log: Timelog, filter: TimelogFilter | None) -> bool:
    if filter is None:
        return True
    if isinstance(filter, TimelogIdFilter):
        return log.id == filter.timelog_id
    if isinstance(filter, TimelogUserFilter):
        return log.user_id == filter.user_id
    if isinstance(filter, IsFinishedFilter):
        return log.is_finished == filter.finished
    if isinstance(filter, AndFilter):
        return all(_matches_timelog(log, item) for item in filter.items)
    raise TypeError(f"Unsupported timelog filter: {filter!r}")


def _sort_key(column: str):
    # Nulls last when ascending, first when descending (PostgreSQL default).
    def key(log: Timelog):
        value = getattr(log, column)
        return (value is None, value)

    return key


class InMemoryRepository:
    def __init__(self) -> None:
        self.user_rows: dict[int, User] = {}
        self.timelog_rows: dict[int, Timelog] = {}
        self._user_ids = count(1)
        self._timelog_ids = count(1)

    # ---- users

    def user(self, filter: UserFilter) -> User | None:
        for user in self.user_rows.values():
            if _matches_user(user, filter):
                return user.model_copy()
        return None

    def users(self, query: UserQuery) -> list[User]:
        rows = [user for user in self.user_rows.values() if _matches_user(user, query.filter)]
        return [user.model_copy() for user in rows[query.offset : query.offset + query.limit]]

    def user_create(self, draft: UserCreate) -> User:
        if any(existing.username == draft.username for existing in self.user_rows.values()):
            raise BackendApiError(
                "api request failed",
                status_code=409,
                api_error=ApiError(
                    message='duplicate key value violates unique constraint "users_username_key"',
                    code="23505",
                ),
            )
        user = User(
            id=next(self._user_ids),
            created_at=datetime.now(tz=timezone.utc),
            **draft.model_dump(),
        )
        self.user_rows[user.id] = user
        return user.model_copy()

    # ---- timelogs

    def timelogs(self, query: TimelogQuery) -> list[Timelog]:
        rows = [log for log in self.timelog_rows.values() if _matches_timelog(log, query.filter)]
        for order in reversed(query.order):
            rows.sort(key=_sort_key(order.column), reverse=order.direction is Direction.DESC)
        return [log.model_copy() for log in rows[query.offset : query.offset + query.limit]]

    def timelog_create(self, draft: TimelogCreate) -> Timelog:
        log = Timelog(id=next(self._timelog_ids), **draft.model_dump())
        self.timelog_rows[log.id] = log
        return log.model_copy()

    def timelog_update(self, selector: TimelogQuery, patch: TimelogPatch) -> list[Timelog]:
        changes = patch.model_dump(exclude_unset=True)
        updated: list[Timelog] = []
        for log in self.timelogs(selector):
            stored = self.timelog_rows[log.id].model_copy(update=changes)
            self.timelog_rows[log.id] = stored
            updated.append(stored.model_copy())
        return updated
