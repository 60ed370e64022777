"""Textual integration for Membrain. Opt-in — requires textual.

// [LAW:single-enforcer] Guard + NoMatches + thread-marshal enforced here, not at callsites.
// [LAW:locality-or-seam] Textual coupling isolated in this module — the container stays agnostic.
// [LAW:no-shared-mutable-globals] _paused_apps has single owner (this module), explicit API
//   (pause/is_safe), documented invariant (id present ↔ inside pause context).
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


def _off_app_thread() -> bool:
    """Textual apps run on the main thread; anything else must marshal."""
    return threading.current_thread() is not threading.main_thread()


@contextmanager
def pause(app):
    """Drop watcher deliveries while widgets are being replaced."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def watch(app, store, path, callback):
    """store.watch() that safely delivers values to Textual widgets.

    Deliveries are dropped while the app is paused or not running, NoMatches
    from widget queries is swallowed, and values produced on a worker thread
    reach the callback through app.call_from_thread. Returns the WatchHandle.
    """

    def _guarded(value):
        if not is_safe(app):
            return
        if _off_app_thread():
            app.call_from_thread(_safe, value)
        else:
            _safe(value)

    def _safe(value):
        try:
            callback(value)
        except NoMatches:
            pass

    return store.watch(path, _guarded)


def dispatch(app, store, path, payload=None):
    """store.dispatch() from any thread.

    The container is single-threaded; dispatches issued by workers are run on
    the app's thread so propagation never interleaves.
    """
    if _off_app_thread():
        return app.call_from_thread(store.dispatch, path, payload)
    return store.dispatch(path, payload)
