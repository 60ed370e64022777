"""Membranes — tracked views over the state tree.

A ReadView records, on every key it is asked for, that its getter depends on
(node, key). A WriteView looks up who depends on (node, key), performs the
write, then hands that list to its on_write callback before returning.

Both views wrap nested dicts, lists and tuples on the way out, so tracking reaches
every depth of the tree. None is a leaf like any other non-container value.

    state = {"user": {"name": "ada"}}
    view = ReadView(state, "greeting", index)
    view.user.name          # records (state, "user") and (state["user"], "name")
    view.user.name = "bob"  # dropped; read views never write
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping, MutableSequence
from typing import Any, Callable, Hashable, Iterator

from membrain._index import SHAPE, DependencyIndex

logger = logging.getLogger("membrain.membrane")

OnWrite = Callable[[list[str]], None]

_MISSING = object()


def is_node(value: object) -> bool:
    """Object-typed values get wrapped; everything else (None included) is a leaf.

    Tuples are wrapped too, so nodes inside them stay behind the membrane. Writing
    to a tuple view fails the way writing to a tuple does.
    """
    return isinstance(value, (MutableMapping, MutableSequence, tuple))


def unwrap(value: Any) -> Any:
    """Raw node behind a view, without recording anything."""
    if isinstance(value, _View):
        return object.__getattribute__(value, "_node")
    return value


def _normalize(node: object, key: Hashable) -> Hashable:
    if isinstance(key, slice):
        raise TypeError("views do not support slicing; copy with list(view) first")
    if not isinstance(node, MutableMapping) and isinstance(key, int) and key < 0:
        key += len(node)
        if key < 0:
            raise IndexError("index out of range")
    return key


def _contents(value: Any) -> Any:
    if isinstance(value, _View):
        return value._contents()
    return value


def _has_key(node: object, key: Hashable) -> bool:
    if isinstance(node, MutableMapping):
        return key in node
    return isinstance(key, int) and 0 <= key < len(node)


class _View:
    """Shared read path. Subclasses decide what a read records and how values wrap."""

    __slots__ = ("_node", "_index")

    def __init__(self, node: Any, index: DependencyIndex) -> None:
        object.__setattr__(self, "_node", node)
        object.__setattr__(self, "_index", index)
        index.node_id(node)

    def _track(self, key: Hashable) -> None:
        pass

    def _wrap(self, value: Any) -> Any:
        raise NotImplementedError

    def _keys(self) -> list:
        if isinstance(self._node, MutableMapping):
            return list(self._node)
        return list(range(len(self._node)))

    # --- Reads ---

    def __getitem__(self, key: Hashable) -> Any:
        key = _normalize(self._node, key)
        self._track(key)
        return self._wrap(self._node[key])

    def get(self, key: Hashable, default: Any = None) -> Any:
        try:
            key = _normalize(self._node, key)
        except IndexError:
            return default
        self._track(key)
        if not _has_key(self._node, key):
            return default
        return self._wrap(self._node[key])

    def __getattr__(self, name: str) -> Any:
        # Only reached for names the class does not define.
        if name.startswith("_"):
            raise AttributeError(name)
        fields = getattr(self._node, "_fields", ())
        if name in fields:
            return self[fields.index(name)]
        if not isinstance(self._node, MutableMapping):
            raise AttributeError(name)
        self._track(name)
        try:
            value = self._node[name]
        except KeyError:
            raise AttributeError(name) from None
        return self._wrap(value)

    def __len__(self) -> int:
        self._track(SHAPE)
        return len(self._node)

    def __iter__(self) -> Iterator[Any]:
        self._track(SHAPE)
        if isinstance(self._node, MutableMapping):
            return iter(list(self._node))
        return iter([self[i] for i in range(len(self._node))])

    def __contains__(self, item: Any) -> bool:
        self._track(SHAPE)
        if isinstance(self._node, MutableMapping):
            return item in self._node
        for i in range(len(self._node)):
            self._track(i)
        return unwrap(item) in self._node

    def keys(self) -> list:
        self._track(SHAPE)
        return self._keys()

    def values(self) -> list:
        self._track(SHAPE)
        return [self[k] for k in self._keys()]

    def items(self) -> list:
        self._track(SHAPE)
        return [(k, self[k]) for k in self._keys()]

    def _contents(self) -> Any:
        """Plain copy of this node, read through the view so every key is tracked."""
        if isinstance(self._node, MutableMapping):
            return {k: _contents(v) for k, v in self.items()}
        items = [_contents(v) for v in self]
        return tuple(items) if isinstance(self._node, tuple) else items

    def __eq__(self, other: object) -> bool:
        return self._contents() == _contents(other)

    __hash__ = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._node!r})"


class ReadView(_View):
    """Read-only, dependency-recording view for one getter."""

    __slots__ = ("_getter",)

    def __init__(self, node: Any, getter_id: str, index: DependencyIndex) -> None:
        super().__init__(node, index)
        object.__setattr__(self, "_getter", getter_id)

    def _track(self, key: Hashable) -> None:
        self._index.record(self._node, key, self._getter)

    def _wrap(self, value: Any) -> Any:
        if is_node(value):
            return ReadView(value, self._getter, self._index)
        return value

    # --- Writes are dropped ---

    def _reject(self, op: str, key: Any = None) -> None:
        logger.debug("Getter %r attempted %s(%r) through a read view; dropped", self._getter, op, key)

    def __setitem__(self, key: Hashable, value: Any) -> None:
        self._reject("setitem", key)

    def __setattr__(self, name: str, value: Any) -> None:
        self._reject("setattr", name)

    def __delitem__(self, key: Hashable) -> None:
        self._reject("delitem", key)

    def __delattr__(self, name: str) -> None:
        self._reject("delattr", name)

    def set(self, key: Hashable, value: Any) -> None:
        self._reject("set", key)

    def append(self, value: Any) -> None:
        self._reject("append")

    def insert(self, index: int, value: Any) -> None:
        self._reject("insert", index)

    def pop(self, key: Hashable = _MISSING, *default: Any) -> None:
        self._reject("pop", None if key is _MISSING else key)


class WriteView(_View):
    """Writable view for one dispatch. Every write propagates before it returns."""

    __slots__ = ("_on_write",)

    def __init__(self, node: Any, on_write: OnWrite, index: DependencyIndex) -> None:
        super().__init__(node, index)
        object.__setattr__(self, "_on_write", on_write)

    def _wrap(self, value: Any) -> Any:
        if is_node(value):
            return WriteView(value, self._on_write, self._index)
        return value

    def _affected(self, keys) -> list[str]:
        """Getters depending on any of keys, in recording order, each once."""
        affected: dict[str, None] = {}
        for key in keys:
            for getter_id in self._index.lookup(self._node, key):
                affected[getter_id] = None
        return list(affected)

    def _adopt(self, value: Any) -> Any:
        value = unwrap(value)
        if is_node(value):
            self._index.node_id(value)
        return value

    def _propagate(self, op: str, key: Any, affected: list[str]) -> None:
        logger.debug("%s %r on node %d -> %d getter(s)", op, key, self._index.node_id(self._node), len(affected))
        self._on_write(affected)

    def _tail(self, start: int) -> list:
        """Indices whose values shift when a sequence changes at start."""
        return list(range(start, len(self._node)))

    # --- Writes ---

    def __setitem__(self, key: Hashable, value: Any) -> None:
        node = self._node
        key = _normalize(node, key)
        value = self._adopt(value)
        keys = [key] if _has_key(node, key) else [key, SHAPE]
        affected = self._affected(keys)
        node[key] = value
        self._propagate("set", key, affected)

    def set(self, key: Hashable, value: Any) -> None:
        self[key] = value

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or not isinstance(self._node, MutableMapping):
            raise AttributeError(f"cannot set attribute {name!r}; use item access")
        self[name] = value

    def __delitem__(self, key: Hashable) -> None:
        node = self._node
        key = _normalize(node, key)
        if isinstance(node, MutableMapping):
            keys = [key, SHAPE]
        else:
            keys = self._tail(key) + [SHAPE]
        affected = self._affected(keys)
        del node[key]
        self._propagate("delete", key, affected)

    def __delattr__(self, name: str) -> None:
        if name.startswith("_") or not isinstance(self._node, MutableMapping):
            raise AttributeError(name)
        try:
            del self[name]
        except KeyError:
            raise AttributeError(name) from None

    def append(self, value: Any) -> None:
        node = self._node
        value = self._adopt(value)
        affected = self._affected([len(node), SHAPE])
        node.append(value)
        self._propagate("append", len(node) - 1, affected)

    def insert(self, index: int, value: Any) -> None:
        node = self._node
        value = self._adopt(value)
        if index < 0:
            index += len(node)
        index = max(0, min(index, len(node)))
        affected = self._affected(self._tail(index) + [len(node), SHAPE])
        node.insert(index, value)
        self._propagate("insert", index, affected)

    def pop(self, key: Hashable = _MISSING, *default: Any) -> Any:
        """Remove and return an item. Lists default to the last index."""
        node = self._node
        if isinstance(node, MutableMapping):
            if key is _MISSING:
                raise TypeError("pop() on a mapping view needs a key")
            if key not in node:
                if default:
                    return default[0]
                raise KeyError(key)
            keys = [key, SHAPE]
        else:
            key = _normalize(node, len(node) - 1 if key is _MISSING else key)
            if not _has_key(node, key):
                raise IndexError("pop index out of range")
            keys = self._tail(key) + [SHAPE]
        affected = self._affected(keys)
        value = node.pop(key)
        self._propagate("pop", key, affected)
        return value
