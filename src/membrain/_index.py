"""Dependency index — links (state node, key) pairs to the getters that read them.

Nodes are keyed by a stable id handed out the first time the index sees them,
not by the node's value. The index pins every node it has numbered, so a
recycled id() can never alias two different nodes.

Entries only grow unless forget() is called explicitly.
"""

from __future__ import annotations

import itertools
from typing import Hashable


class _Shape:
    """Key standing for "the set of keys of this node" (len, iteration, membership)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "SHAPE"


SHAPE = _Shape()


class DependencyIndex:
    """(node id, key) -> ordered set of getter paths."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._node_ids: dict[int, int] = {}  # id(node) -> node id
        self._pinned: dict[int, object] = {}  # node id -> node
        # dicts used as insertion-ordered sets
        self._entries: dict[tuple[int, Hashable], dict[str, None]] = {}
        self._by_getter: dict[str, dict[tuple[int, Hashable], None]] = {}

    def node_id(self, node: object) -> int:
        """Stable id for node, assigned on first sight."""
        nid = self._node_ids.get(id(node))
        if nid is None:
            nid = next(self._ids)
            self._node_ids[id(node)] = nid
            self._pinned[nid] = node
        return nid

    def record(self, node: object, key: Hashable, getter_id: str) -> None:
        entry_key = (self.node_id(node), key)
        self._entries.setdefault(entry_key, {})[getter_id] = None
        self._by_getter.setdefault(getter_id, {})[entry_key] = None

    def lookup(self, node: object, key: Hashable) -> list[str]:
        """Point-in-time copy of the getters depending on (node, key)."""
        nid = self._node_ids.get(id(node))
        if nid is None:
            return []
        return list(self._entries.get((nid, key), ()))

    def forget(self, getter_id: str) -> None:
        """Drop every entry recorded for getter_id."""
        for entry_key in self._by_getter.pop(getter_id, ()):
            getters = self._entries.get(entry_key)
            if getters is None:
                continue
            getters.pop(getter_id, None)
            if not getters:
                del self._entries[entry_key]

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"DependencyIndex(nodes={len(self._pinned)}, entries={len(self._entries)})"
