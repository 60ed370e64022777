"""Membrain: fine-grained reactive state container for Python."""

from importlib.metadata import version as _version

__version__ = _version("membrain")

from membrain.container import Membrain, WatchHandle
from membrain.errors import MembrainError, ActionNotFoundError, GetterNotFoundError
from membrain.membrane import ReadView, WriteView
from membrain.snapshot import materialize
# textual NOT auto-imported — opt-in only

__all__ = [
    "Membrain",
    "WatchHandle",
    "MembrainError",
    "ActionNotFoundError",
    "GetterNotFoundError",
    "ReadView",
    "WriteView",
    "materialize",
]
