"""Snapshots — detached copies of getter results.

Nothing handed to callers or watchers may be a live view: a caller holding one
could keep recording dependencies long after the getter finished. materialize()
copies views, dicts, lists and tuples all the way down, reading raw nodes so
nothing is recorded. Nodes shared within one result stay shared in the copy.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableSequence
from typing import Any

from membrain.membrane import unwrap


def materialize(value: Any, _memo: dict[int, Any] | None = None) -> Any:
    """Deep, detached copy of value with every view replaced by plain data."""
    value = unwrap(value)
    if not isinstance(value, (Mapping, MutableSequence, tuple)):
        return value

    memo = {} if _memo is None else _memo
    copied = memo.get(id(value))
    if copied is not None:
        return copied

    if isinstance(value, Mapping):
        result: Any = {}
        memo[id(value)] = result
        for key, item in value.items():
            result[key] = materialize(item, memo)
        return result
    if isinstance(value, MutableSequence):
        result = []
        memo[id(value)] = result
        result.extend(materialize(item, memo) for item in value)
        return result
    return tuple(materialize(item, memo) for item in value)
