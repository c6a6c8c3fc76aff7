"""Top-level form editor.

``CanvasState`` owns the root grid snapshot, the editing focus and the
binding values. Every mutation installs a whole new ``Grid`` in a single
assignment, so readers never see a partially updated grid.

Usage:
    from formgrid.canvas import CanvasState

    canvas = CanvasState()
    canvas.add_row()
    widget_id = canvas.place_widget(0, 0, "radio")
    table_id = canvas.place_widget(0, 1, "table")
    nested = canvas.nested(canvas.get_cell(0, 1).id, table_id)
    nested.place_widget(0, 0, "input")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from . import grid as grid_model
from .bindings import BindingContext
from .config import get_settings
from .export import binding_targets
from .log import refused
from .models import EditingFocus, Grid, NestedPath, SelectionTarget
from .selection import EMPTY_SELECTION
from .state_mixins import GridEditorMixin


if TYPE_CHECKING:
    from .config import FormGridSettings
    from .models import BindableProperty, BindingTarget, Cell, WidgetInstance
    from .nested import NestedTableState


class CanvasState(GridEditorMixin):
    """Editor for the root grid of a form layout."""

    _id_prefix = "id"
    _path: tuple[NestedPath, ...] = ()

    def __init__(
        self,
        grid: Grid | None = None,
        settings: FormGridSettings | None = None,
        bindings: BindingContext | None = None,
    ) -> None:
        """Initialize the canvas.

        Parameters
        ----------
        grid : Grid, optional
            Starting snapshot. Defaults to an empty grid of the configured
            initial size (1 row by 3 columns).
        settings : FormGridSettings, optional
            Settings to use instead of the cached global settings.
        bindings : BindingContext, optional
            Binding values shared with the property panel.
        """
        self._settings = settings or get_settings()
        if grid is None:
            grid = grid_model.create_grid(
                self._settings.canvas.initial_rows, self._settings.canvas.initial_cols
            )
        self._grid = grid
        self._focus: EditingFocus | None = None
        self._selection = EMPTY_SELECTION
        self._nested_editors: dict[NestedPath, NestedTableState] = {}
        self.bindings = bindings or BindingContext(self._settings.bindings.properties)

    # --- Snapshot hooks ---

    @property
    def grid(self) -> Grid:
        """The current root grid snapshot."""
        return self._grid

    def _commit(self, grid: Grid) -> None:
        self._grid = grid

    def _root(self) -> CanvasState:
        return self

    def _suppressed_click(self) -> None:
        self.clear_focus()

    @property
    def settings(self) -> FormGridSettings:
        return self._settings

    @property
    def bindable_properties(self) -> tuple[BindableProperty, ...]:
        """Property declarations offered by the binding selector."""
        return self.bindings.properties

    # --- Editing focus ---

    @property
    def focus(self) -> EditingFocus | None:
        """What the property panel is editing, or None."""
        return self._focus

    def set_focus(self, focus: EditingFocus | None) -> None:
        self._focus = focus

    def clear_focus(self) -> None:
        """Return the editing focus to ``none``."""
        self._focus = None

    def set_selected_cell(
        self,
        cell_id: str | None,
        target: SelectionTarget | str = SelectionTarget.CELL,
        element_key: str | None = None,
    ) -> None:
        """Focus a cell of the root grid; None clears the focus."""
        if cell_id is None:
            self.clear_focus()
            return
        scope = SelectionTarget.parse(target)
        if scope is None:
            refused("focus", "unknown target", cell_id=cell_id, target=target)
            return
        self._focus = EditingFocus(cell_id=cell_id, target=scope, element_key=element_key)

    def set_selected_nested_cell(
        self,
        parent_cell_id: str,
        parent_widget_id: str,
        cell_id: str,
        target: SelectionTarget | str = SelectionTarget.CELL,
        element_key: str | None = None,
    ) -> None:
        """Focus a cell inside the table widget held by ``parent_cell_id``."""
        scope = SelectionTarget.parse(target)
        if scope is None:
            refused("focus", "unknown target", cell_id=cell_id, target=target)
            return
        self._focus = EditingFocus(
            cell_id=cell_id,
            target=scope,
            element_key=element_key,
            path=(NestedPath(parent_cell_id, parent_widget_id),),
        )

    def set_selected_option_index(self, option_index: int | None) -> None:
        if self._focus is None:
            return
        self._focus = self._focus.model_copy(update={"option_index": option_index})

    @property
    def focused_cell(self) -> Cell | None:
        """The focused cell, looked up in whichever grid owns it."""
        if self._focus is None:
            return None
        owner = grid_model.grid_at(self._grid, self._focus.path)
        if owner is None:
            return None
        return grid_model.find_cell(owner, self._focus.cell_id)

    @property
    def focused_widget(self) -> WidgetInstance | None:
        cell = self.focused_cell
        return cell.widget if cell is not None else None

    # --- Cross-grid transfer ---

    def transfer_widget(
        self,
        from_path: tuple[NestedPath, ...],
        from_cell_id: str,
        to_path: tuple[NestedPath, ...],
        to_cell_id: str,
    ) -> bool:
        """Move a widget between any two grids of the tree in one update.

        The transfer is refused when the destination is covered by a span,
        holds another widget, or lies inside the widget being moved.

        Returns
        -------
        bool
            True if the widget was moved.
        """
        source_grid = grid_model.grid_at(self._grid, tuple(from_path))
        target_grid = grid_model.grid_at(self._grid, tuple(to_path))
        if source_grid is None or target_grid is None:
            refused("transfer", "grid not found", from_path=from_path, to_path=to_path)
            return False
        source = grid_model.find_cell(source_grid, from_cell_id)
        target = grid_model.find_cell(target_grid, to_cell_id)
        if source is None or source.widget is None or target is None:
            refused(
                "transfer", "unknown cell or empty source", from_cell_id=from_cell_id, to_cell_id=to_cell_id
            )
            return False
        widget = source.widget
        if tuple(from_path) == tuple(to_path) and from_cell_id == to_cell_id:
            return False
        if grid_model.should_skip_rendering(target_grid, target.row_index, target.col_index):
            refused("transfer", "destination is covered by a span", to_cell_id=to_cell_id)
            return False
        if target.widget is not None:
            refused("transfer", "destination is occupied", to_cell_id=to_cell_id)
            return False
        if any(step.widget_id == widget.id for step in to_path):
            refused("transfer", "table cannot move into its own nested grid", widget_id=widget.id)
            return False

        updated = grid_model.update_grid_at(
            self._grid,
            tuple(from_path),
            lambda g: grid_model.update_cell(
                g, from_cell_id, lambda c: c.model_copy(update={"widget": None})
            ),
        )
        updated = grid_model.update_grid_at(
            updated,
            tuple(to_path),
            lambda g: grid_model.update_cell(
                g, to_cell_id, lambda c: c.model_copy(update={"widget": widget})
            ),
        )
        self._commit(updated)
        focus = self._focus
        if focus is not None and focus.cell_id == from_cell_id and focus.path == tuple(from_path):
            self.clear_focus()
        return True

    # --- Export and persistence ---

    def get_binding_targets(self) -> list[BindingTarget]:
        """Bindings of every rendered widget in the order markup lists them."""
        return binding_targets(self._grid)

    def to_document(self) -> dict[str, Any]:
        """The current snapshot as a plain layout document."""
        return self._grid.to_document()

    def load(self, document: dict[str, Any] | Grid) -> None:
        """Replace the whole layout, resetting selection, focus and nested editors.

        Raises
        ------
        LayoutDocumentError
            If ``document`` is not a valid layout document.
        """
        grid = document if isinstance(document, Grid) else Grid.from_document(document)
        self._commit(grid)
        self._nested_editors = {}
        self.clear_selection()
        self.clear_focus()
