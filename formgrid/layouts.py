"""Saved-layout library.

A named list of layout snapshots with one optional "selected" layout,
persisted through a pluggable store. ``MemoryLayoutStore`` keeps the list
in process; ``FileLayoutStore`` keeps it as a JSON array in one file.
Storage problems are logged and never interrupt editing.
"""

from __future__ import annotations

import json
import time

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import Field, ValidationError

from .exceptions import LayoutNotFoundError, LayoutStorageError
from .grid import generate_id
from .log import debug, warn
from .models import Grid, StateModel


if TYPE_CHECKING:
    from collections.abc import Sequence


DEFAULT_LAYOUT_NAME = "Untitled"


def _now_ms() -> int:
    return int(time.time() * 1000)


class SavedLayout(StateModel):
    """A named layout snapshot; ``updated_at`` is milliseconds since the epoch."""

    id: str
    name: str
    state: Grid
    updated_at: int = Field(default_factory=_now_ms, alias="updatedAt")

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "state": self.state.to_document(),
            "updatedAt": self.updated_at,
        }


class LayoutStore(ABC):
    """Abstract saved-layout storage.

    Implementations persist the whole list at once; the library always
    writes the complete list after a change.
    """

    @abstractmethod
    def load(self) -> list[SavedLayout]:
        """Return the stored layouts, or an empty list if none can be read."""
        ...

    @abstractmethod
    def save(self, layouts: Sequence[SavedLayout]) -> None:
        """Replace the stored list with ``layouts``."""
        ...


class MemoryLayoutStore(LayoutStore):
    """In-process layout storage."""

    def __init__(self, layouts: Sequence[SavedLayout] = ()) -> None:
        self._layouts: list[SavedLayout] = list(layouts)

    def load(self) -> list[SavedLayout]:
        return list(self._layouts)

    def save(self, layouts: Sequence[SavedLayout]) -> None:
        self._layouts = list(layouts)


class FileLayoutStore(LayoutStore):
    """Layouts stored as a JSON array in a single file.

    A missing file is an empty library. An unreadable file, or one that is
    not a valid list of layouts, is logged as a warning and treated as
    empty. Failed writes are logged and otherwise ignored.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        if path is None:
            from .config import get_settings

            path = get_settings().storage.layouts_file
        self.path = Path(path)

    def _read(self) -> list[SavedLayout]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise LayoutStorageError(f"Cannot read layouts: {exc}", path=str(self.path)) from exc
        if not isinstance(raw, list):
            raise LayoutStorageError("Layouts file does not hold a list", path=str(self.path))
        try:
            return [SavedLayout.model_validate(item) for item in raw]
        except ValidationError as exc:
            raise LayoutStorageError(
                "Layouts file holds an invalid layout",
                path=str(self.path),
                error_count=exc.error_count(),
            ) from exc

    def load(self) -> list[SavedLayout]:
        if not self.path.exists():
            return []
        try:
            return self._read()
        except LayoutStorageError as exc:
            warn(f"Ignoring saved layouts: {exc}")
            return []

    def save(self, layouts: Sequence[SavedLayout]) -> None:
        payload = json.dumps([layout.to_document() for layout in layouts], indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            warn(f"Cannot write layouts to {self.path}: {exc}")


class LayoutLibrary:
    """The saved layouts and which one is selected.

    Usage:
        library = LayoutLibrary(FileLayoutStore("layouts.json"))
        saved = library.add_layout("Signup", canvas.grid)
        library.update_layout(saved.id, canvas.grid)
    """

    def __init__(self, store: LayoutStore | None = None) -> None:
        self.store = store or MemoryLayoutStore()
        self._layouts: tuple[SavedLayout, ...] = tuple(self.store.load())
        self._selected_id: str | None = None

    @property
    def layouts(self) -> tuple[SavedLayout, ...]:
        return self._layouts

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def selected_layout(self) -> SavedLayout | None:
        return self.get_layout_by_id(self._selected_id) if self._selected_id else None

    @property
    def has_layouts(self) -> bool:
        return bool(self._layouts)

    def _persist(self, layouts: Sequence[SavedLayout]) -> None:
        self._layouts = tuple(layouts)
        self.store.save(self._layouts)

    def add_layout(self, name: str, state: Grid) -> SavedLayout:
        """Save a new layout and select it; a blank name becomes ``Untitled``."""
        layout = SavedLayout(
            id=generate_id("layout"),
            name=name.strip() or DEFAULT_LAYOUT_NAME,
            state=state,
        )
        self._persist((*self._layouts, layout))
        self._selected_id = layout.id
        return layout

    def update_layout(self, layout_id: str, state: Grid, name: str | None = None) -> SavedLayout | None:
        """Overwrite a layout's snapshot (and optionally its name).

        Returns the updated layout, or None if ``layout_id`` is unknown.
        """
        existing = self.get_layout_by_id(layout_id)
        if existing is None:
            debug(f"Layout '{layout_id}' not found; nothing updated")
            return None
        update: dict[str, Any] = {"state": state, "updated_at": _now_ms()}
        if name is not None:
            update["name"] = name.strip() or existing.name
        updated = existing.model_copy(update=update)
        self._persist(updated if layout.id == layout_id else layout for layout in self._layouts)
        return updated

    def remove_layout(self, layout_id: str) -> bool:
        """Delete a layout, clearing the selection if it pointed there."""
        if self.get_layout_by_id(layout_id) is None:
            return False
        self._persist(layout for layout in self._layouts if layout.id != layout_id)
        if self._selected_id == layout_id:
            self._selected_id = None
        return True

    def select_layout(self, layout_id: str | None) -> None:
        if layout_id is not None and self.get_layout_by_id(layout_id) is None:
            debug(f"Cannot select unknown layout '{layout_id}'")
            return
        self._selected_id = layout_id

    def get_layout_by_id(self, layout_id: str) -> SavedLayout | None:
        for layout in self._layouts:
            if layout.id == layout_id:
                return layout
        return None

    def require_layout(self, layout_id: str) -> SavedLayout:
        """Like ``get_layout_by_id`` but raises when the layout is missing.

        Raises
        ------
        LayoutNotFoundError
            If no layout has ``layout_id``.
        """
        layout = self.get_layout_by_id(layout_id)
        if layout is None:
            raise LayoutNotFoundError("Saved layout not found", layout_id=layout_id)
        return layout
