"""FormGrid exception hierarchy.

The grid, selection, binding and editor layers never raise: invalid ids,
out-of-range coordinates and refused merges resolve to no-ops. These
exceptions belong to the collaborators around them (layout documents,
saved-layout storage and the CLI), and all inherit from
FormGridException so callers can catch them in one place.
"""

from __future__ import annotations

from typing import Any


class FormGridException(Exception):
    """Base exception for all FormGrid errors."""

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize FormGrid exception.

        Parameters
        ----------
        message : str
            Human-readable error message.
        **context : Any
            Additional context (layout_id, path, field, etc.).
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Format exception with context."""
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class LayoutDocumentError(FormGridException):
    """A persisted layout document could not be turned back into a grid.

    ``errors`` lists each validation problem as ``"location: message"``.
    """

    def __init__(self, message: str, errors: list[str] | None = None, **context: Any) -> None:
        super().__init__(message, **context)
        self.errors = list(errors or [])


class LayoutNotFoundError(FormGridException):
    """No saved layout exists with the requested id."""

    def __init__(self, message: str, layout_id: str | None = None, **context: Any) -> None:
        super().__init__(message, layout_id=layout_id, **context)
        self.layout_id = layout_id


class LayoutStorageError(FormGridException):
    """The saved-layout file could not be read, decoded or validated."""

    def __init__(self, message: str, path: str | None = None, **context: Any) -> None:
        super().__init__(message, path=path, **context)
        self.path = path
