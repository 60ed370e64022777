"""Membrain — the container tying state, actions, getters and watchers together.

Write path: dispatch(path, payload) hands the action a WriteView over the whole
state. Each write inside the action immediately re-evaluates every getter that
read the written key and feeds the fresh value to that getter's watchers.

Read path: get(path) evaluates a getter through a ReadView, recording what it
reads, and returns a detached snapshot.

Everything is synchronous. One write in, all notifications out, before the
action's next statement runs.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable

from membrain._index import DependencyIndex
from membrain.errors import ActionNotFoundError, GetterNotFoundError
from membrain.membrane import ReadView, WriteView
from membrain.snapshot import materialize

logger = logging.getLogger("membrain.container")

Action = Callable[[WriteView, Any], Any]
Getter = Callable[[ReadView], Any]
Watcher = Callable[[Any], None]


class WatchHandle:
    """Disposable handle for one watcher subscription."""

    __slots__ = ("_store", "path", "callback")

    def __init__(self, store: Membrain, path: str, callback: Watcher) -> None:
        self._store = store
        self.path = path
        self.callback = callback

    @property
    def disposed(self) -> bool:
        return self.callback not in self._store._watchers.get(self.path, ())

    def dispose(self) -> None:
        """Stop delivering updates. Safe to call more than once."""
        self._store.unwatch(self)

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else "active"
        return f"WatchHandle({self.path!r}, {state})"


class Membrain:
    """Reactive state container with per-key dependency tracking.

    Usage:
        store = Membrain({"count": 0})
        store.add_getter("count", lambda s: s.count)
        store.add_action("increment", lambda s, _: s.set("count", s.count + 1))

        seen = []
        store.watch("count", seen.append)  # evaluates the getter once, silently
        store.dispatch("increment")        # seen == [1]
        store.get("count")                 # 1

    By default a getter's recorded dependencies are never dropped, even when a
    later evaluation stops reading a key; the getter is then re-run on writes
    it no longer cares about. Pass retain_stale_dependencies=False to rebuild
    each getter's dependencies from scratch on every evaluation.
    """

    def __init__(self, state: dict | None = None, *, retain_stale_dependencies: bool = True) -> None:
        self._actions: dict[str, Action] = {}
        self._getters: dict[str, Getter] = {}
        self._watchers: dict[str, dict[Watcher, None]] = {}  # ordered sets
        self._state: dict = copy.deepcopy(state) if state else {}
        self._index = DependencyIndex()
        self._retain = retain_stale_dependencies

    # --- Registration ---

    def add_action(self, path: str, action: Action) -> None:
        self._actions[path] = action

    def remove_action(self, path: str) -> None:
        self._actions.pop(path, None)

    def add_getter(self, path: str, getter: Getter) -> None:
        self._getters[path] = getter
        if self._watchers.get(path):
            self._evaluate(path)

    def remove_getter(self, path: str) -> None:
        self._getters.pop(path, None)
        if not self._retain:
            self._index.forget(path)

    def watch(self, path: str, callback: Watcher) -> WatchHandle:
        """Call callback with the getter's value whenever path is re-evaluated.

        If a getter is already registered at path it is evaluated once, without
        notifying anyone, so its dependencies exist before the first dispatch.
        Nothing is subscribed if that evaluation raises.
        """
        if path in self._getters:
            self._evaluate(path)
        self._watchers.setdefault(path, {})[callback] = None
        return WatchHandle(self, path, callback)

    def unwatch(self, handle: WatchHandle) -> None:
        watchers = self._watchers.get(handle.path)
        if watchers is not None:
            watchers.pop(handle.callback, None)

    # --- Invocation ---

    def dispatch(self, path: str, payload: Any = None) -> Any:
        """Run the action at path against a writable view of the state."""
        action = self._actions.get(path)
        if action is None:
            raise ActionNotFoundError(path)
        logger.debug("Dispatching %r", path)
        return action(WriteView(self._state, self._propagate, self._index), payload)

    def get(self, path: str) -> Any:
        """Evaluate the getter at path and return a detached copy of its value."""
        return materialize(self._evaluate(path))

    def trigger_update(self, path: str) -> None:
        """Re-evaluate the getter at path and notify its watchers in subscription order."""
        value = materialize(self._evaluate(path))
        watchers = list(self._watchers.get(path, ()))
        logger.debug("Updated %r, notifying %d watcher(s)", path, len(watchers))
        for callback in watchers:
            callback(value)

    def snapshot(self) -> dict:
        """Detached copy of the whole state. Records no dependencies."""
        return materialize(self._state)

    def _evaluate(self, path: str) -> Any:
        getter = self._getters.get(path)
        if getter is None:
            raise GetterNotFoundError(path)
        if not self._retain:
            self._index.forget(path)
        return getter(ReadView(self._state, path, self._index))

    def _propagate(self, getters: list[str]) -> None:
        for path in getters:
            self.trigger_update(path)

    def __repr__(self) -> str:
        return (
            f"Membrain(actions={len(self._actions)}, getters={len(self._getters)}, "
            f"watched={sum(1 for w in self._watchers.values() if w)})"
        )
