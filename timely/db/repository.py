from __future__ import annotations

from typing import Protocol

from ..schemas.timelog import Timelog, TimelogCreate, TimelogPatch
from ..schemas.user import User, UserCreate
from .query import TimelogQuery, UserFilter, UserQuery


class Repository(Protocol):
    """Persistence capabilities the business logic relies on.

    Every method raises :class:`~timely.core.errors.BackendError` on failure.
    """

    def user(self, filter: UserFilter) -> User | None: ...

    def users(self, query: UserQuery) -> list[User]: ...

    def user_create(self, draft: UserCreate) -> User: ...

    def timelogs(self, query: TimelogQuery) -> list[Timelog]: ...

    def timelog_create(self, draft: TimelogCreate) -> Timelog: ...

    def timelog_update(self, selector: TimelogQuery, patch: TimelogPatch) -> list[Timelog]: ...
