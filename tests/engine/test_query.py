from __future__ import annotations

import sys
from datetime import datetime, timezone

import pytest

from exit_registry.engine import QueryEngine, parse_query_params
from exit_registry.errors import ValidationError
from exit_registry.models import QueryFilter

T1 = datetime(2024, 2, 12, 0, 0, tzinfo=timezone.utc)
T2 = datetime(2024, 2, 13, 0, 0, tzinfo=timezone.utc)
T3 = datetime(2024, 2, 14, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine(address_store, allow_store) -> QueryEngine:
    address_store.create("a", "US", T1)
    address_store.create("b", "FR", T2)
    address_store.create("c", "US", T3)
    return QueryEngine(address_store, allow_store)


def _addresses(records) -> list[str]:  # noqa: ANN001
    return [r.address for r in records]


def test_allow_listed_address_is_never_returned(engine, allow_store) -> None:
    allow_store.add("b")
    assert _addresses(engine.query(QueryFilter(country="FR"))) == []
    assert _addresses(engine.query()) == ["a", "c"]


def test_exclusion_applies_before_limit(engine, allow_store) -> None:
    allow_store.add("a")
    assert _addresses(engine.query(QueryFilter(limit=1))) == ["b"]


def test_removing_from_allowlist_is_visible_immediately(engine, allow_store) -> None:
    allow_store.add("c")
    assert "c" not in _addresses(engine.query())
    allow_store.remove("c")
    assert "c" in _addresses(engine.query())


def test_country_filter_is_exact_and_case_sensitive(engine) -> None:
    assert _addresses(engine.query(QueryFilter(country="US"))) == ["a", "c"]
    assert _addresses(engine.query(QueryFilter(country="us"))) == []


def test_time_bounds_are_exclusive(engine) -> None:
    assert _addresses(engine.query(QueryFilter(start_time=T1))) == ["b", "c"]
    assert _addresses(engine.query(QueryFilter(end_time=T3))) == ["a", "b"]
    assert _addresses(engine.query(QueryFilter(start_time=T1, end_time=T3))) == ["b"]
    assert _addresses(engine.query(QueryFilter(start_time=T2, end_time=T2))) == []


@pytest.mark.parametrize(
    ("limit", "expected"),
    [
        (0, []),
        (1, ["a"]),
        (2, ["a", "b"]),
        (50, ["a", "b", "c"]),
    ],
)
def test_limit_truncates_in_insertion_order(engine, limit: int, expected: list[str]) -> None:
    assert _addresses(engine.query(QueryFilter(limit=limit))) == expected


def test_repeated_queries_are_stable(engine) -> None:
    first = engine.query(QueryFilter(limit=2))
    assert engine.query(QueryFilter(limit=2)) == first


def test_parse_query_params_accepts_rfc3339() -> None:
    criteria = parse_query_params(
        country="US",
        starttime="2024-02-12T00:00:00Z",
        endtime="2024-02-13T02:00:00+02:00",
        count="10",
    )
    assert criteria.country == "US"
    assert criteria.start_time == T1
    assert criteria.end_time == T2
    assert criteria.limit == 10


def test_parse_query_params_treats_empty_as_absent() -> None:
    assert parse_query_params("", "", "", "") == QueryFilter()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"starttime": "2024-02-12"},
        {"starttime": "yesterday"},
        {"endtime": "2024-02-12T00:00:00"},
        {"endtime": "2024-13-12T00:00:00Z"},
        {"endtime": "9999-12-31T23:59:59-01:00"},
        {"starttime": "0001-01-01T00:00:00+01:00"},
        {"count": "ten"},
        {"count": "1.5"},
        {"count": "-1"},
    ],
)
def test_parse_query_params_rejects_malformed_values(kwargs: dict[str, str]) -> None:
    with pytest.raises(ValidationError):
        parse_query_params(**kwargs)


def test_validation_error_names_the_field() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_query_params(starttime="2024-02-12T00:00:00Z", endtime="soon")
    assert excinfo.value.field == "endtime"
    assert excinfo.value.message == "Invalid endtime format"


def test_oversized_count_is_clamped_and_returns_everything(engine) -> None:
    criteria = parse_query_params(count="99999999999999999999")
    assert criteria.limit == sys.maxsize
    assert _addresses(engine.query(criteria)) == ["a", "b", "c"]
