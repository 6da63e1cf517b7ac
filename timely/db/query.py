"""Filter, ordering and pagination descriptors for the REST backend.

The backend speaks the PostgREST filter language: every predicate becomes a
query parameter ``column=operator.value``. This module only *describes*
queries and renders them into a :class:`QueryMap`; sending them is the job of
:mod:`timely.db.rest`.

Grammar::

    equality on F with V      ->  F=eq.V
    is-finished true / false  ->  finished_at=not.is.null / finished_at=is.null
    A AND B                   ->  params(A) + params(B)
    order (col, dir)          ->  order=col.asc | order=col.desc (repeated)

``limit`` and ``offset`` travel in the ``Range`` header, never in the query
string. ``select=*`` is appended by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Union
from urllib.parse import urlencode

DEFAULT_LIMIT = 50


class QueryMap:
    """Ordered multimap of query parameters. Repeated keys are all kept."""

    def __init__(self) -> None:
        self._params: dict[str, list[str]] = {}

    def add(self, key: str, value: str) -> None:
        self._params.setdefault(key, []).append(value)

    def set(self, key: str, value: str) -> None:
        self._params[key] = [value]

    def extend(self, other: QueryMap) -> None:
        for key, value in other.items():
            self.add(key, value)

    def items(self) -> Iterator[tuple[str, str]]:
        for key, values in self._params.items():
            for value in values:
                yield key, value

    def as_dict(self) -> dict[str, list[str]]:
        return {key: list(values) for key, values in self._params.items()}

    def to_query(self) -> str:
        return urlencode(list(self.items()))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, QueryMap):
            return self._params == other._params
        if isinstance(other, dict):
            return self._params == other
        return NotImplemented

    def __bool__(self) -> bool:
        return bool(self._params)

    def __repr__(self) -> str:
        return f"QueryMap({self._params!r})"


class Direction(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class Order:
    column: str
    direction: Direction = Direction.ASC

    @classmethod
    def asc(cls, column: str) -> Order:
        return cls(column, Direction.ASC)

    @classmethod
    def desc(cls, column: str) -> Order:
        return cls(column, Direction.DESC)

    def render(self) -> str:
        return f"{self.column}.{self.direction.value}"


class TimelogOrder:
    """Columns a timelog listing can be ordered by."""

    ID = "id"
    STARTED_AT = "started_at"


# ---------- Users ----------


@dataclass(frozen=True)
class UserFilter:
    """Identity filter: exactly one user by id or by username."""

    column: str
    value: str

    @classmethod
    def by_id(cls, user_id: int) -> UserFilter:
        return cls("id", str(user_id))

    @classmethod
    def by_name(cls, username: str) -> UserFilter:
        return cls("username", username)

    def build(self) -> QueryMap:
        params = QueryMap()
        params.add(self.column, f"eq.{self.value}")
        return params


@dataclass(frozen=True)
class UserQuery:
    filter: UserFilter | None = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def build(self) -> QueryMap:
        return self.filter.build() if self.filter else QueryMap()


# ---------- Timelogs ----------


class _TimelogFilterOps:
    def and_(self, other: TimelogFilter) -> AndFilter:
        return AndFilter((self, other))  # type: ignore[arg-type]

    def __and__(self, other: TimelogFilter) -> AndFilter:
        return self.and_(other)

    def build(self) -> QueryMap:
        params = QueryMap()
        self.apply(params)
        return params

    def apply(self, params: QueryMap) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class TimelogIdFilter(_TimelogFilterOps):
    timelog_id: int

    def apply(self, params: QueryMap) -> None:
        params.add("id", f"eq.{self.timelog_id}")


@dataclass(frozen=True)
class TimelogUserFilter(_TimelogFilterOps):
    user_id: int

    def apply(self, params: QueryMap) -> None:
        params.add("user_id", f"eq.{self.user_id}")


@dataclass(frozen=True)
class IsFinishedFilter(_TimelogFilterOps):
    finished: bool

    def apply(self, params: QueryMap) -> None:
        params.add("finished_at", "not.is.null" if self.finished else "is.null")


@dataclass(frozen=True)
class AndFilter(_TimelogFilterOps):
    items: tuple[TimelogFilter, ...]

    def apply(self, params: QueryMap) -> None:
        for item in self.items:
            item.apply(params)


TimelogFilter = Union[TimelogIdFilter, TimelogUserFilter, IsFinishedFilter, AndFilter]


@dataclass(frozen=True)
class TimelogQuery:
    filter: TimelogFilter | None = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0
    order: tuple[Order, ...] = field(default_factory=tuple)

    @classmethod
    def single_id(cls, timelog_id: int) -> TimelogQuery:
        return cls(filter=TimelogIdFilter(timelog_id), limit=1)

    def build(self) -> QueryMap:
        params = self.filter.build() if self.filter else QueryMap()
        for order in self.order:
            params.add("order", order.render())
        return params


def build_query(target: UserFilter | UserQuery | TimelogFilter | TimelogQuery) -> dict[str, list[str]]:
    """Render any filter or query descriptor as ``{name: [values]}``."""

    return target.build().as_dict()


# ---------- Presets used by the dashboard and timelog actions ----------


def user_active_timelogs(user_id: int) -> TimelogQuery:
    return TimelogQuery(
        filter=TimelogUserFilter(user_id) & IsFinishedFilter(False),
        limit=100,
        order=(Order.desc(TimelogOrder.STARTED_AT),),
    )


def user_finished_timelogs(user_id: int) -> TimelogQuery:
    return TimelogQuery(
        filter=TimelogUserFilter(user_id) & IsFinishedFilter(True),
        limit=100,
        order=(Order.desc(TimelogOrder.STARTED_AT),),
    )


def timelog_by_id(timelog_id: int) -> TimelogQuery:
    return TimelogQuery.single_id(timelog_id)
