"""Shared mixins for editing a grid, whether it is the canvas or a nested table.

The canvas and every table widget's nested grid support the same
operations. They differ only in where their grid snapshot lives and who
owns the editing focus, so those are the hooks a consuming class provides:

    @property
    def grid(self) -> Grid | None: ...
    def _commit(self, grid: Grid) -> None: ...
    def _root(self) -> CanvasState: ...

plus the ``_id_prefix`` and ``_path`` attributes.

All mutators are total: unknown ids, out-of-range coordinates and refused
merges leave the state unchanged and are logged at debug level.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from . import grid as grid_model
from .bindings import format_binding
from .log import debug, refused
from .models import (
    Cell,
    EditingFocus,
    Grid,
    NestedPath,
    SelectionTarget,
    WidgetInstance,
    WidgetType,
)
from .selection import (
    EMPTY_SELECTION,
    MergeRange,
    Selection,
    can_merge,
    compute_rectangle,
    toggle_coordinate,
)


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .canvas import CanvasState
    from .config import FormGridSettings
    from .models import Row, Span
    from .nested import NestedTableState


@dataclass(frozen=True)
class ClickHit:
    """Which rendered layers of a cell a plain click landed in.

    Attributes
    ----------
    element_key : str or None
        Tag of the innermost tagged child element (``label``, ``control``,
        ``option-0``, ...), if the click was inside one.
    in_inner : bool
        The click was inside the widget's inner component.
    in_wrapper : bool
        The click was inside the widget wrapper.
    """

    element_key: str | None = None
    in_inner: bool = False
    in_wrapper: bool = False


def resolve_click_target(
    cell: Cell, hit: ClickHit | None = None
) -> tuple[SelectionTarget, str | None] | None:
    """Pick the most specific editing target for a plain click.

    Specificity is element > widget-inner > widget > cell. Clicks on a
    table widget return None: the nested grid handles its own clicks.
    """
    widget = cell.widget
    if widget is not None and widget.is_table:
        return None
    hit = hit or ClickHit()
    if widget is not None:
        if hit.element_key:
            return SelectionTarget.ELEMENT, hit.element_key
        if hit.in_inner:
            return SelectionTarget.WIDGET_INNER, None
        if hit.in_wrapper:
            return SelectionTarget.WIDGET, None
    return SelectionTarget.CELL, None


def create_widget(
    widget_type: WidgetType,
    settings: FormGridSettings,
    prefix: str = "id",
    label: str | None = None,
    options: Sequence[str] | None = None,
) -> WidgetInstance:
    """Create a widget of ``widget_type`` with its configured defaults.

    Radio widgets get default options and a prompt label, inputs a
    placeholder, and tables a fresh empty nested grid.
    """
    defaults = settings.widgets
    nested_table = None
    if widget_type == WidgetType.TABLE:
        nested_table = grid_model.create_grid(
            settings.canvas.nested_rows, settings.canvas.nested_cols, prefix="nested"
        )
    if options is None and widget_type == WidgetType.RADIO:
        options = defaults.radio_options or [defaults.option_label(1)]
    return WidgetInstance(
        id=grid_model.generate_id(prefix),
        type=widget_type,
        label=label if label is not None else defaults.default_label(widget_type),
        options=tuple(options) if options is not None and widget_type == WidgetType.RADIO else None,
        placeholder=defaults.placeholder if widget_type == WidgetType.INPUT else None,
        nested_table=nested_table,
    )


def resize_bindings(
    option_bindings: Sequence[str] | None, length: int
) -> tuple[str, ...] | None:
    """Fit per-option bindings to ``length`` options, keeping matching indices."""
    if option_bindings is None:
        return None
    current = list(option_bindings[:length])
    return tuple(current + [""] * (length - len(current)))


def _update_class_scope(
    widget: WidgetInstance, target: SelectionTarget, class_name: str, element_key: str | None
) -> WidgetInstance:
    value = class_name.strip() or None
    if target == SelectionTarget.WIDGET:
        return widget.model_copy(update={"class_name": value})
    if target == SelectionTarget.WIDGET_INNER:
        return widget.model_copy(update={"inner_class_name": value})
    if target == SelectionTarget.ELEMENT and element_key:
        classes = dict(widget.element_classes or {})
        if value is None:
            classes.pop(element_key, None)
        else:
            classes[element_key] = value
        return widget.model_copy(update={"element_classes": classes or None})
    debug(f"Unsupported class target {target!r} for widget '{widget.id}'")
    return widget


class GridEditorMixin:
    """Structural, widget, binding and merge operations over one grid."""

    _id_prefix: str = "id"
    _path: tuple[NestedPath, ...] = ()
    _selection: Selection = EMPTY_SELECTION
    _settings: FormGridSettings
    _nested_editors: dict[NestedPath, NestedTableState]

    @property
    def grid(self) -> Grid | None:
        """Current grid snapshot. Must be implemented by the consuming class."""
        raise NotImplementedError("Classes mixing in GridEditorMixin must implement 'grid'")

    def _commit(self, grid: Grid) -> None:
        """Install a new snapshot. Must be implemented by the consuming class."""
        raise NotImplementedError("Classes mixing in GridEditorMixin must implement '_commit'")

    def _root(self) -> CanvasState:
        """The canvas that owns the editing focus."""
        raise NotImplementedError("Classes mixing in GridEditorMixin must implement '_root'")

    def _suppressed_click(self) -> None:
        """React to a plain click on a table widget; nothing by default."""

    def _apply(self, fn: Callable[[Grid], Grid]) -> bool:
        """Run ``fn`` on the current snapshot and commit if anything changed."""
        current = self.grid
        if current is None:
            debug(f"Grid at {self._path!r} is no longer available")
            return False
        updated = fn(current)
        if updated is current:
            return False
        self._commit(updated)
        return True

    # --- Read access ---

    @property
    def rows(self) -> tuple[Row, ...]:
        current = self.grid
        return current.rows if current is not None else ()

    @property
    def row_count(self) -> int:
        current = self.grid
        return current.row_count if current is not None else 0

    @property
    def col_count(self) -> int:
        current = self.grid
        return current.col_count if current is not None else 0

    @property
    def can_remove_row(self) -> bool:
        return self.row_count > 1

    @property
    def can_remove_column(self) -> bool:
        return self.col_count > 1

    def get_cell(self, row_index: int, col_index: int) -> Cell | None:
        current = self.grid
        return current.cell_at(row_index, col_index) if current is not None else None

    def get_origin_cell(self, row_index: int, col_index: int) -> Cell | None:
        """The cell that owns a position, following merged spans."""
        current = self.grid
        if current is None:
            return None
        return grid_model.origin_cell_at(current, row_index, col_index)

    def get_span(self, row_index: int, col_index: int) -> Span:
        current = self.grid
        if current is None:
            return grid_model.Span(1, 1)
        return grid_model.span_at(current, row_index, col_index)

    def should_skip_rendering(self, row_index: int, col_index: int) -> bool:
        """Whether a position is covered by another cell's span."""
        current = self.grid
        if current is None:
            return False
        return grid_model.should_skip_rendering(current, row_index, col_index)

    def is_merged_cell(self, row_index: int, col_index: int) -> bool:
        current = self.grid
        return current is not None and grid_model.is_merged_at(current, row_index, col_index)

    def find_widget(self, widget_id: str) -> WidgetInstance | None:
        """Find a widget in this grid or any grid nested below it."""
        current = self.grid
        return grid_model.find_widget(current, widget_id) if current is not None else None

    # --- Structure ---

    def _structure_changed(self) -> None:
        self.clear_selection()
        self._root().clear_focus()

    def add_row(self) -> None:
        """Append a row at the bottom."""
        self._apply(lambda g: grid_model.add_row(g, self._id_prefix))
        self._structure_changed()

    def add_column(self) -> None:
        """Append a column at the right."""
        self._apply(lambda g: grid_model.add_column(g, self._id_prefix))
        self._structure_changed()

    def remove_row(self) -> None:
        """Remove the bottom row unless it is the only one."""
        self._apply(grid_model.remove_row)
        self._structure_changed()

    def remove_column(self) -> None:
        """Remove the right-most column unless it is the only one."""
        self._apply(grid_model.remove_column)
        self._structure_changed()

    # --- Merge selection ---

    @property
    def selection(self) -> Selection:
        """Coordinates picked with modifier-clicks in this grid."""
        return self._selection

    @property
    def merge_range(self) -> MergeRange | None:
        return compute_rectangle(self._selection)

    @property
    def can_merge(self) -> bool:
        """Whether the selection is a solid rectangle that cuts through no span."""
        merge_range = self.merge_range
        current = self.grid
        if current is None or merge_range is None or not can_merge(merge_range):
            return False
        return grid_model.fits_rectangle(
            current, merge_range.r0, merge_range.c0, merge_range.r1, merge_range.c1
        )

    @property
    def has_selection(self) -> bool:
        return bool(self._selection)

    def is_selected(self, row_index: int, col_index: int) -> bool:
        return (row_index, col_index) in self._selection

    def toggle_selection(self, row_index: int, col_index: int) -> None:
        """Apply a modifier-click at a position."""
        if self.get_cell(row_index, col_index) is None:
            debug(f"Ignoring selection of ({row_index},{col_index}): out of bounds")
            return
        self._selection = toggle_coordinate(self._selection, row_index, col_index)

    def clear_selection(self) -> None:
        self._selection = EMPTY_SELECTION

    def merge_cells(self, origin_row: int, origin_col: int, end_row: int, end_col: int) -> None:
        """Merge an inclusive rectangle into its top-left cell."""
        current = self.grid
        if current is None or not (
            current.in_bounds(origin_row, origin_col) and current.in_bounds(end_row, end_col)
        ):
            refused("merge", "out of bounds", origin=(origin_row, origin_col), end=(end_row, end_col))
            return
        if not grid_model.fits_rectangle(current, origin_row, origin_col, end_row, end_col):
            refused(
                "merge",
                "rectangle cuts through a merged span",
                origin=(origin_row, origin_col),
                end=(end_row, end_col),
            )
            return
        self._apply(lambda g: grid_model.merge_rectangle(g, origin_row, origin_col, end_row, end_col))
        self._structure_changed()

    def merge_selection(self) -> None:
        """Merge the current selection if it is a solid rectangle larger than 1x1."""
        merge_range = self.merge_range
        if not self.can_merge:
            refused("merge", "selection is not a mergeable rectangle", selection=sorted(self._selection))
            return
        assert merge_range is not None  # noqa: S101
        self.merge_cells(merge_range.r0, merge_range.c0, merge_range.r1, merge_range.c1)

    def unmerge_cell(self, row_index: int, col_index: int) -> None:
        """Split the merged rectangle covering a position."""
        self._apply(lambda g: grid_model.unmerge(g, row_index, col_index))
        self._structure_changed()

    def unmerge_at(self, row_index: int, col_index: int) -> None:
        """Context-menu gesture: unmerge only when the position is merged."""
        if not self.is_merged_cell(row_index, col_index):
            return
        self.unmerge_cell(row_index, col_index)

    # --- Clicks and focus ---

    def click_cell(
        self,
        row_index: int,
        col_index: int,
        hit: ClickHit | None = None,
        modifier: bool = False,
    ) -> None:
        """Handle a click on a rendered cell.

        Modifier-clicks edit the merge selection. Plain clicks clear it and
        move the editing focus to the most specific target under the pointer.
        """
        if modifier:
            self.toggle_selection(row_index, col_index)
            return
        self.clear_selection()
        cell = self.get_cell(row_index, col_index)
        if cell is None:
            return
        resolved = resolve_click_target(cell, hit)
        if resolved is None:
            self._suppressed_click()
            return
        target, element_key = resolved
        self._root().set_focus(
            EditingFocus(cell_id=cell.id, target=target, element_key=element_key, path=self._path)
        )

    def select_option(self, cell_id: str, option_index: int) -> None:
        """Focus a radio widget's inner component on one of its options."""
        current = self.grid
        cell = grid_model.find_cell(current, cell_id) if current is not None else None
        if cell is None or cell.widget is None:
            debug(f"Cannot select option {option_index}: no widget in cell '{cell_id}'")
            return
        self._root().set_focus(
            EditingFocus(
                cell_id=cell_id,
                target=SelectionTarget.WIDGET_INNER,
                path=self._path,
                option_index=option_index,
            )
        )

    # --- Widgets ---

    def place_widget(
        self,
        row_index: int,
        col_index: int,
        widget_type: WidgetType | str,
        label: str | None = None,
        options: Sequence[str] | None = None,
    ) -> str | None:
        """Drop a new widget onto an empty, uncovered cell.

        Returns
        -------
        str or None
            The new widget's id, or None when the drop was refused.
        """
        parsed = widget_type if isinstance(widget_type, WidgetType) else WidgetType.parse(widget_type)
        if parsed is None:
            debug(f"Unknown widget type {widget_type!r}")
            return None
        cell = self.get_cell(row_index, col_index)
        if cell is None or self.should_skip_rendering(row_index, col_index):
            refused("drop", "not an origin cell", position=(row_index, col_index))
            return None
        if cell.widget is not None:
            refused("drop", "cell is occupied", position=(row_index, col_index), widget_id=cell.widget.id)
            return None
        widget = create_widget(parsed, self._settings, self._id_prefix, label, options)
        self._apply(
            lambda g: grid_model.update_cell(g, cell.id, lambda c: c.model_copy(update={"widget": widget}))
        )
        return widget.id

    def remove_widget(self, cell_id: str) -> None:
        """Clear a cell's widget, dropping the editing focus if it pointed there.

        Removing a table also drops a focus on any cell inside its nested grid.
        """
        current = self.grid
        cell = grid_model.find_cell(current, cell_id) if current is not None else None
        removed = cell.widget if cell is not None else None
        changed = self._apply(
            lambda g: grid_model.update_cell(g, cell_id, lambda c: c.model_copy(update={"widget": None}))
        )
        focus = self._root().focus
        if not changed or focus is None:
            return
        on_cell = focus.cell_id == cell_id and focus.path == self._path
        inside = removed is not None and focus.path[: len(self._path) + 1] == (
            *self._path,
            NestedPath(cell_id, removed.id),
        )
        if on_cell or inside:
            self._root().clear_focus()

    def move_widget(self, from_cell_id: str, to_cell_id: str, widget: WidgetInstance) -> None:
        """Move a widget value from one cell to another of this grid.

        The destination is not checked: an existing widget there is
        overwritten, so callers must check first.
        """
        if from_cell_id == to_cell_id:
            return

        def transfer(cell: Cell) -> Cell:
            if cell.id == from_cell_id:
                return cell.model_copy(update={"widget": None})
            if cell.id == to_cell_id:
                return cell.model_copy(update={"widget": widget})
            return cell

        self._apply(lambda g: grid_model.update_cells(g, transfer))

    def _edit_widget(self, widget_id: str, fn: Callable[[WidgetInstance], WidgetInstance]) -> None:
        self._apply(lambda g: grid_model.update_widget(g, widget_id, fn))

    def _edit_cell_widget(
        self, cell_id: str, widget_id: str, fn: Callable[[WidgetInstance], WidgetInstance]
    ) -> None:
        def visit(cell: Cell) -> Cell:
            if cell.widget is None or cell.widget.id != widget_id:
                debug(f"Widget '{widget_id}' is not in cell '{cell_id}'")
                return cell
            return cell.model_copy(update={"widget": fn(cell.widget)})

        self._apply(lambda g: grid_model.update_cell(g, cell_id, visit))

    def update_widget_label(self, cell_id: str, widget_id: str, label: str) -> None:
        self._edit_cell_widget(cell_id, widget_id, lambda w: w.model_copy(update={"label": label}))

    def update_widget_options(self, cell_id: str, widget_id: str, options: Sequence[str]) -> None:
        """Replace a radio widget's options, refitting its option bindings."""

        def apply(widget: WidgetInstance) -> WidgetInstance:
            return widget.model_copy(
                update={
                    "options": tuple(options),
                    "option_bindings": resize_bindings(widget.option_bindings, len(options)),
                }
            )

        self._edit_cell_widget(cell_id, widget_id, apply)

    def _current_options(self, widget_id: str) -> list[str] | None:
        widget = self.find_widget(widget_id)
        if widget is None:
            return None
        return list(widget.options or ())

    def add_option(self, cell_id: str, widget_id: str) -> None:
        """Append ``Option N`` to a radio widget."""
        options = self._current_options(widget_id)
        if options is None:
            return
        options.append(self._settings.widgets.option_label(len(options) + 1))
        self.update_widget_options(cell_id, widget_id, options)

    def remove_option(self, cell_id: str, widget_id: str, index: int) -> None:
        """Remove one option; removing the last one leaves a single ``Option 1``."""
        options = self._current_options(widget_id)
        if options is None or not 0 <= index < len(options):
            return
        del options[index]
        self.update_widget_options(
            cell_id, widget_id, options or [self._settings.widgets.option_label(1)]
        )

    def rename_option(self, cell_id: str, widget_id: str, index: int, text: str) -> None:
        options = self._current_options(widget_id)
        if options is None or not 0 <= index < len(options):
            return
        options[index] = text
        self.update_widget_options(cell_id, widget_id, options)

    def update_nested_table(self, cell_id: str, widget_id: str, state: Grid) -> None:
        """Install a new nested grid on the table widget in ``cell_id``."""
        self._edit_cell_widget(
            cell_id, widget_id, lambda w: w.model_copy(update={"nested_table": state})
        )

    def nested(self, cell_id: str, widget_id: str) -> NestedTableState:
        """Editor for the nested grid of the table widget in ``cell_id``.

        The same editor (and its own merge selection) is returned on every
        call for a given cell and widget.
        """
        from .nested import NestedTableState

        key = NestedPath(cell_id, widget_id)
        editor = self._nested_editors.get(key)
        if editor is None:
            editor = NestedTableState(self._root(), (*self._path, key))
            self._nested_editors[key] = editor
        return editor

    # --- Bindings ---

    def set_value_binding(self, widget_id: str, property_key: str | None) -> None:
        """Bind a widget's value to ``{{ property_key }}``; empty clears the binding."""
        binding = format_binding(property_key)
        self._edit_widget(widget_id, lambda w: w.model_copy(update={"value_binding": binding}))

    def set_option_binding(self, widget_id: str, option_index: int, property_key: str | None) -> None:
        """Bind one radio option, keeping the bindings of the others.

        The binding list always has one entry per option; indices outside
        the option list and widgets without options are left alone.
        """

        def apply(widget: WidgetInstance) -> WidgetInstance:
            options = widget.options or ()
            if not 0 <= option_index < len(options):
                refused("option binding", "no such option", widget_id=widget.id, option_index=option_index)
                return widget
            bindings = list(resize_bindings(widget.option_bindings or (), len(options)) or ())
            bindings[option_index] = format_binding(property_key) or ""
            return widget.model_copy(update={"option_bindings": tuple(bindings)})

        self._edit_widget(widget_id, apply)

    # --- Class names ---

    def set_cell_class(self, cell_id: str, class_name: str) -> None:
        value = class_name.strip() or None
        self._apply(
            lambda g: grid_model.update_cell(g, cell_id, lambda c: c.model_copy(update={"class_name": value}))
        )

    def set_widget_class(
        self,
        widget_id: str,
        class_name: str,
        target: SelectionTarget | str = SelectionTarget.WIDGET,
        element_key: str | None = None,
    ) -> None:
        """Tag a widget's wrapper, inner component or a named child element."""
        scope = SelectionTarget.parse(target)
        if scope is None:
            refused("class edit", "unknown target", widget_id=widget_id, target=target)
            return
        self._edit_widget(
            widget_id, lambda w: _update_class_scope(w, scope, class_name, element_key)
        )
