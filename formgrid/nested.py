"""Editor for the grid nested inside a table widget.

A ``NestedTableState`` holds no grid of its own. It is addressed by the
path of (cell id, widget id) steps from the canvas down to its table
widget, reads the current grid through that path and writes every change
back into the root snapshot by value. A table inside a nested table is
simply a longer path.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from . import grid as grid_model
from .log import debug
from .models import Grid, NestedPath, WidgetType
from .selection import EMPTY_SELECTION
from .state_mixins import GridEditorMixin


if TYPE_CHECKING:
    from .canvas import CanvasState


class NestedTableState(GridEditorMixin):
    """Grid operations scoped to one table widget.

    The merge selection is independent of the canvas and of every other
    nested table. Clicks focus the canvas on a path-qualified cell.
    """

    _id_prefix = "nested"

    def __init__(self, root: CanvasState, path: tuple[NestedPath, ...]) -> None:
        self._canvas = root
        self._path = tuple(path)
        self._settings = root.settings
        self._selection = EMPTY_SELECTION
        self._nested_editors: dict[NestedPath, NestedTableState] = {}

    @property
    def path(self) -> tuple[NestedPath, ...]:
        return self._path

    @property
    def parent_cell_id(self) -> str:
        return self._path[-1].cell_id

    @property
    def parent_widget_id(self) -> str:
        return self._path[-1].widget_id

    @property
    def grid(self) -> Grid | None:
        """The nested grid, or None once the table widget is gone.

        A table widget without a grid gets a fresh empty one on first read.
        """
        root_grid = self._canvas.grid
        current = grid_model.grid_at(root_grid, self._path)
        if current is not None:
            return current
        parent = grid_model.grid_at(root_grid, self._path[:-1])
        cell = grid_model.find_cell(parent, self.parent_cell_id) if parent is not None else None
        widget = cell.widget if cell is not None else None
        if widget is None or widget.id != self.parent_widget_id or widget.type != WidgetType.TABLE:
            return None
        fresh = grid_model.create_grid(
            self._settings.canvas.nested_rows, self._settings.canvas.nested_cols, prefix="nested"
        )
        self._canvas._commit(
            grid_model.update_grid_at(
                root_grid,
                self._path[:-1],
                lambda g: grid_model.update_widget(
                    g, widget.id, lambda w: w.model_copy(update={"nested_table": fresh})
                ),
            )
        )
        return fresh

    def _commit(self, grid: Grid) -> None:
        root_grid = self._canvas.grid
        updated = grid_model.update_grid_at(root_grid, self._path, lambda _old: grid)
        if updated is root_grid:
            debug(f"Nested table {self.parent_widget_id!r} is gone; change dropped")
            return
        self._canvas._commit(updated)

    def _root(self) -> CanvasState:
        return self._canvas
