"""Query builder: filter grammar, ordering and AND-branch order invariance."""

import itertools
import sys
from pathlib import Path
from urllib.parse import parse_qsl

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from timely.db.query import (
    AndFilter,
    IsFinishedFilter,
    Order,
    QueryMap,
    TimelogIdFilter,
    TimelogOrder,
    TimelogQuery,
    TimelogUserFilter,
    UserFilter,
    UserQuery,
    build_query,
    timelog_by_id,
    user_active_timelogs,
    user_finished_timelogs,
)


def _multiset(params: dict[str, list[str]]) -> list[tuple[str, str]]:
    return sorted((key, value) for key, values in params.items() for value in values)


def test_user_id_filter():
    assert build_query(UserFilter.by_id(7)) == {"id": ["eq.7"]}


def test_user_name_filter():
    assert build_query(UserFilter.by_name("alice")) == {"username": ["eq.alice"]}


def test_user_query_without_filter_is_empty():
    assert build_query(UserQuery()) == {}


def test_user_and_unfinished_conjunction():
    params = build_query(TimelogUserFilter(3).and_(IsFinishedFilter(False)))
    assert params == {"user_id": ["eq.3"], "finished_at": ["is.null"]}


def test_is_finished_true_uses_not_is_null():
    assert build_query(IsFinishedFilter(True)) == {"finished_at": ["not.is.null"]}


def test_ampersand_composes_like_and():
    assert TimelogUserFilter(1) & TimelogIdFilter(2) == AndFilter((TimelogUserFilter(1), TimelogIdFilter(2)))


def test_and_branch_order_does_not_change_parameters():
    branches = [TimelogUserFilter(3), IsFinishedFilter(True), TimelogIdFilter(9), TimelogUserFilter(4)]
    expected = _multiset(build_query(AndFilter(tuple(branches))))
    for permutation in itertools.permutations(branches):
        assert _multiset(build_query(AndFilter(permutation))) == expected


def test_nested_and_is_flattened_into_one_parameter_set():
    nested = AndFilter((TimelogUserFilter(3), AndFilter((IsFinishedFilter(False), TimelogIdFilter(5)))))
    assert build_query(nested) == {
        "user_id": ["eq.3"],
        "finished_at": ["is.null"],
        "id": ["eq.5"],
    }


def test_orders_are_repeated_in_input_sequence():
    query = TimelogQuery(order=(Order.desc(TimelogOrder.STARTED_AT), Order.asc(TimelogOrder.ID)))
    assert build_query(query) == {"order": ["started_at.desc", "id.asc"]}


def test_pagination_is_not_a_query_parameter():
    query = TimelogQuery(filter=TimelogUserFilter(1), limit=10, offset=20)
    params = build_query(query)
    assert "limit" not in params
    assert "offset" not in params
    assert "select" not in params


def test_query_string_keeps_repeated_keys():
    params = QueryMap()
    params.add("order", "started_at.desc")
    params.add("order", "id.asc")
    params.add("user_id", "eq.3")
    pairs = parse_qsl(params.to_query())
    assert pairs == [("order", "started_at.desc"), ("order", "id.asc"), ("user_id", "eq.3")]


def test_set_replaces_existing_values():
    params = QueryMap()
    params.add("select", "id")
    params.add("select", "title")
    params.set("select", "*")
    assert params == {"select": ["*"]}
    assert params.to_query() == "select=%2A"


def test_presets():
    assert build_query(user_active_timelogs(3)) == {
        "user_id": ["eq.3"],
        "finished_at": ["is.null"],
        "order": ["started_at.desc"],
    }
    finished = user_finished_timelogs(3)
    assert build_query(finished)["finished_at"] == ["not.is.null"]
    assert finished.limit == 100

    single = timelog_by_id(12)
    assert single.limit == 1
    assert single.offset == 0
    assert build_query(single) == {"id": ["eq.12"]}
