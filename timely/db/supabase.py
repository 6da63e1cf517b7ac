"""Repository backed by the hosted Supabase (PostgREST) REST API."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..core.errors import DecodeError
from ..schemas.timelog import Timelog, TimelogCreate, TimelogPatch
from ..schemas.user import User, UserCreate
from .query import QueryMap, TimelogQuery, UserFilter, UserQuery
from .rest import RestClient

ModelT = TypeVar("ModelT", bound=BaseModel)

USERS_TABLE = "/users"
TIMELOGS_TABLE = "/timelogs"


def _rows(model: type[ModelT], payload: Any) -> list[ModelT]:
    try:
        return TypeAdapter(list[model]).validate_python(payload)  # type: ignore[valid-type]
    except PydanticValidationError as exc:
        raise DecodeError(f"could not deserialize response body: {exc}") from exc


def _first(rows: list[ModelT], message: str) -> ModelT:
    if not rows:
        raise DecodeError(message)
    return rows[0]


def _path(table: str, params: QueryMap) -> str:
    params.set("select", "*")
    return f"{table}?{params.to_query()}"


class SupabaseRepository:
    def __init__(self, client: RestClient) -> None:
        self.client = client

    def user(self, filter: UserFilter) -> User | None:
        payload = self.client.get_json(_path(USERS_TABLE, filter.build()))
        users = _rows(User, payload)
        return users[0] if users else None

    def users(self, query: UserQuery) -> list[User]:
        payload = self.client.list_table(_path(USERS_TABLE, query.build()), query.limit, query.offset)
        return _rows(User, payload)

    def user_create(self, draft: UserCreate) -> User:
        payload = self.client.post_json(USERS_TABLE, draft.model_dump(mode="json"))
        return _first(_rows(User, payload), "API returned invalid data")

    def timelogs(self, query: TimelogQuery) -> list[Timelog]:
        payload = self.client.list_table(_path(TIMELOGS_TABLE, query.build()), query.limit, query.offset)
        return _rows(Timelog, payload)

    def timelog_create(self, draft: TimelogCreate) -> Timelog:
        payload = self.client.post_json(TIMELOGS_TABLE, draft.model_dump(mode="json"))
        return _first(_rows(Timelog, payload), "No item in response")

    def timelog_update(self, selector: TimelogQuery, patch: TimelogPatch) -> list[Timelog]:
        payload = self.client.patch_json(_path(TIMELOGS_TABLE, selector.build()), patch.to_payload())
        return _rows(Timelog, payload)

    def close(self) -> None:
        self.client.close()
