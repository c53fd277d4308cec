"""Query constraint evaluation for the document store.

Documents are stored as JSON blobs, so constraints are evaluated in Python
against the wire representation of each object rather than translated to
SQL. Supported:

  - plain equality: ``{"done": true}`` (matches array members too)
  - comparison: ``$lt``, ``$lte``, ``$gt``, ``$gte``, ``$ne``
  - membership: ``$in``, ``$nin``, ``$all``
  - ``$exists`` and ``$regex`` (with ``$options`` of ``i``, ``m``, ``s``, ``x``)
  - top-level ``$or`` / ``$and`` with lists of sub-queries
"""

import json
import re
from typing import Any, Dict, Iterable, List, Optional

from bujo.store.errors import StoreError, INVALID_JSON, INVALID_QUERY

DEFAULT_LIMIT = 100

_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}
_MISSING = object()


def parse_where(raw: Optional[str]) -> dict:
    """Decode the ``where`` query parameter."""
    if not raw:
        return {}
    try:
        where = json.loads(raw)
    except json.JSONDecodeError as e:
        raise StoreError(INVALID_JSON, f"where is not valid JSON: {e}")
    if not isinstance(where, dict):
        raise StoreError(INVALID_QUERY, "where must be a JSON object")
    return where


def _comparable(value: Any) -> Any:
    # Dates travel as {"__type": "Date", "iso": "..."}; ISO strings sort correctly.
    if isinstance(value, dict) and value.get("__type") == "Date":
        return value.get("iso")
    return value


def _compare(op: str, actual: Any, expected: Any) -> bool:
    actual, expected = _comparable(actual), _comparable(expected)
    if actual is _MISSING or actual is None:
        return False
    try:
        if op == "$lt":
            return actual < expected
        if op == "$lte":
            return actual <= expected
        if op == "$gt":
            return actual > expected
        return actual >= expected
    except TypeError:
        return False


def _equals(actual: Any, expected: Any) -> bool:
    if isinstance(actual, list) and not isinstance(expected, list):
        return expected in actual
    return _comparable(actual) == _comparable(expected)


def _match_constraint(actual: Any, constraint: Dict[str, Any]) -> bool:
    for op, expected in constraint.items():
        if op in ("$lt", "$lte", "$gt", "$gte"):
            if not _compare(op, actual, expected):
                return False
        elif op == "$ne":
            if actual is not _MISSING and _equals(actual, expected):
                return False
        elif op == "$in":
            if not isinstance(expected, list):
                raise StoreError(INVALID_QUERY, "$in requires an array")
            if actual is _MISSING or not any(_equals(actual, e) for e in expected):
                return False
        elif op == "$nin":
            if not isinstance(expected, list):
                raise StoreError(INVALID_QUERY, "$nin requires an array")
            if actual is not _MISSING and any(_equals(actual, e) for e in expected):
                return False
        elif op == "$all":
            if not isinstance(expected, list):
                raise StoreError(INVALID_QUERY, "$all requires an array")
            if not isinstance(actual, list) or not all(e in actual for e in expected):
                return False
        elif op == "$exists":
            if bool(expected) != (actual is not _MISSING):
                return False
        elif op == "$regex":
            options = constraint.get("$options", "")
            if not isinstance(expected, str):
                raise StoreError(INVALID_QUERY, "$regex requires a string")
            if not isinstance(options, str):
                raise StoreError(INVALID_QUERY, "$options requires a string")
            if not isinstance(actual, str):
                return False
            flags = 0
            for ch in options:
                if ch not in _REGEX_FLAGS:
                    raise StoreError(INVALID_QUERY, f"bad $options value: {ch}")
                flags |= _REGEX_FLAGS[ch]
            try:
                if not re.search(expected, actual, flags):
                    return False
            except re.error as e:
                raise StoreError(INVALID_QUERY, f"bad $regex: {e}")
        elif op == "$options":
            continue
        else:
            raise StoreError(INVALID_QUERY, f"bad constraint: {op}")
    return True


def _is_constraint(value: Any) -> bool:
    return isinstance(value, dict) and bool(value) and all(k.startswith("$") for k in value)


def matches(obj: Dict[str, Any], where: Dict[str, Any]) -> bool:
    """Return True if the wire object satisfies every constraint in ``where``."""
    for key, expected in where.items():
        if key == "$or":
            if not isinstance(expected, list):
                raise StoreError(INVALID_QUERY, "$or requires an array")
            if not any(matches(obj, sub) for sub in expected):
                return False
        elif key == "$and":
            if not isinstance(expected, list):
                raise StoreError(INVALID_QUERY, "$and requires an array")
            if not all(matches(obj, sub) for sub in expected):
                return False
        elif key.startswith("$"):
            raise StoreError(INVALID_QUERY, f"bad top-level operator: {key}")
        else:
            actual = obj.get(key, _MISSING)
            if _is_constraint(expected):
                if not _match_constraint(actual, expected):
                    return False
            elif actual is _MISSING or not _equals(actual, expected):
                return False
    return True


def sort_objects(objects: List[Dict[str, Any]], order: Optional[str]) -> List[Dict[str, Any]]:
    """Sort by a comma-separated key list; ``-key`` sorts descending.

    Objects missing a key sort before those that have it (ascending).
    """
    if not order:
        return objects
    keys = [k.strip() for k in order.split(",") if k.strip()]
    # Stable sort: apply keys from last to first.
    for key in reversed(keys):
        descending = key.startswith("-")
        field = key[1:] if descending else key

        def sort_key(o, field=field):
            value = _comparable(o.get(field))
            return (value is not None, _type_rank(value), value if value is not None else 0)

        try:
            objects = sorted(objects, key=sort_key, reverse=descending)
        except TypeError:
            raise StoreError(INVALID_QUERY, f"cannot order by mixed values of {field}")
    return objects


def _type_rank(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return 1
    if isinstance(value, str):
        return 2
    return 3


def select_keys(objects: Iterable[Dict[str, Any]], keys: Optional[str]) -> List[Dict[str, Any]]:
    """Restrict each object to ``keys`` (the system fields are always kept)."""
    if not keys:
        return list(objects)
    wanted = {k.strip() for k in keys.split(",") if k.strip()}
    wanted.update(("objectId", "createdAt", "updatedAt"))
    return [{k: v for k, v in o.items() if k in wanted} for o in objects]
