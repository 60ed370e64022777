"""Errors raised by the container. Everything else propagates untouched."""


class MembrainError(Exception):
    """Base class for container errors."""


class ActionNotFoundError(MembrainError, KeyError):
    """dispatch() on a path with no registered action. Raised before any write."""

    def __init__(self, path: str) -> None:
        super().__init__(path)
        self.path = path

    def __str__(self) -> str:
        return f"Action {self.path!r} does not exist"


class GetterNotFoundError(MembrainError, KeyError):
    """A getter path was evaluated with no getter registered there."""

    def __init__(self, path: str) -> None:
        super().__init__(path)
        self.path = path

    def __str__(self) -> str:
        return f"Getter {self.path!r} does not exist"
