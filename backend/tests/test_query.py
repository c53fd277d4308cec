"""Query constraint matching and ordering."""

import pytest

from bujo.store.errors import StoreError
from bujo.store.query import matches, parse_where, select_keys, sort_objects

TASK = {"objectId": "a1", "title": "Buy milk", "priority": 3, "tags": ["home", "shop"], "done": False}


@pytest.mark.parametrize("where", [
    {},
    {"title": "Buy milk"},
    {"tags": "home"},
    {"priority": {"$gt": 2, "$lte": 3}},
    {"priority": {"$in": [1, 3]}},
    {"priority": {"$nin": [1, 2]}},
    {"title": {"$ne": "Sell milk"}},
    {"tags": {"$all": ["shop", "home"]}},
    {"done": {"$exists": True}},
    {"missing": {"$exists": False}},
    {"title": {"$regex": "^buy", "$options": "i"}},
    {"$or": [{"priority": 1}, {"done": False}]},
    {"$and": [{"priority": 3}, {"title": "Buy milk"}]},
])
def test_matches(where):
    assert matches(TASK, where)


@pytest.mark.parametrize("where", [
    {"title": "Sell milk"},
    {"priority": {"$lt": 3}},
    {"missing": {"$gt": 0}},
    {"missing": "x"},
    {"tags": {"$all": ["home", "work"]}},
    {"done": {"$exists": False}},
    {"title": {"$regex": "^buy"}},
    {"$or": [{"priority": 1}, {"done": True}]},
])
def test_does_not_match(where):
    assert not matches(TASK, where)


def test_comparison_across_types_is_false():
    assert not matches(TASK, {"title": {"$gt": 5}})


def test_date_values_compare_by_iso():
    obj = {"due": {"__type": "Date", "iso": "2024-03-05T00:00:00.000Z"}}
    assert matches(obj, {"due": {"$lt": {"__type": "Date", "iso": "2024-04-01T00:00:00.000Z"}}})


@pytest.mark.parametrize("where", [
    {"priority": {"$near": 1}},
    {"$nor": []},
    {"priority": {"$in": 3}},
    {"title": {"$regex": "["}},
    {"title": {"$regex": 5}},
    {"title": {"$regex": "a", "$options": 1}},
    {"missing": {"$regex": 5}},
])
def test_invalid_queries_raise(where):
    with pytest.raises(StoreError) as exc:
        matches(TASK, where)
    assert exc.value.code == 102


def test_parse_where():
    assert parse_where(None) == {}
    assert parse_where('{"a": 1}') == {"a": 1}
    with pytest.raises(StoreError) as exc:
        parse_where("[1, 2]")
    assert exc.value.code == 102


def test_sort_multiple_keys_and_missing_first():
    objs = [
        {"objectId": "1", "group": "b", "n": 1},
        {"objectId": "2", "group": "a", "n": 2},
        {"objectId": "3", "group": "a", "n": 1},
        {"objectId": "4", "n": 5},
    ]
    ordered = sort_objects(objs, "group,-n")
    assert [o["objectId"] for o in ordered] == ["4", "2", "3", "1"]


def test_select_keys_keeps_system_fields():
    obj = {"objectId": "x", "createdAt": "c", "updatedAt": "u", "a": 1, "b": 2}
    assert select_keys([obj], "a") == [{"objectId": "x", "createdAt": "c", "updatedAt": "u", "a": 1}]
