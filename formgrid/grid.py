"""Grid model: spans, merging and structure for canvas and nested grids.

Works on any ``Grid`` regardless of how deeply it is nested; callers
decide where the result is installed.

Ownership of a position is reconstructed by scanning rather than stored
as back-pointers. ``origin_cell_at`` scans rows ``0..row`` and, within
each, columns ``0..col`` in row-major order and returns the first cell
whose span rectangle covers the target. Spans never overlap, so at most
one cell matches; the scan order is the tie-break if that ever breaks.

Every function returns a new ``Grid`` (or the same one when nothing
changes). Out-of-range coordinates resolve to "no origin", a 1x1 span or
an unchanged grid rather than raising.
"""

from __future__ import annotations

import uuid

from typing import TYPE_CHECKING

from .log import debug
from .models import Cell, Grid, NestedPath, Row, Span, WidgetInstance


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


def generate_id(prefix: str = "id") -> str:
    """Generate a unique id such as ``nested-3f9a1c2e``.

    Parameters
    ----------
    prefix : str
        Namespace for the id (e.g. "id", "nested", "layout").

    Returns
    -------
    str
        A unique ID in the format "{prefix}-{uuid[:8]}".
    """
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


# --- Construction ---


def create_cell(row_index: int, col_index: int, prefix: str = "id") -> Cell:
    """Create an empty, unmerged cell."""
    return Cell(
        id=generate_id(prefix),
        row_index=row_index,
        col_index=col_index,
        widget=None,
        col_span=1,
        row_span=1,
        is_merged_origin=True,
    )


def create_row(row_index: int, col_count: int, prefix: str = "id") -> Row:
    """Create a row of ``col_count`` empty cells."""
    cells = tuple(create_cell(row_index, c, prefix) for c in range(col_count))
    return Row(id=generate_id(prefix), cells=cells)


def create_grid(row_count: int, col_count: int, prefix: str = "id") -> Grid:
    """Create an empty grid; both dimensions are floored at 1."""
    row_count = max(1, row_count)
    col_count = max(1, col_count)
    return Grid(rows=tuple(create_row(r, col_count, prefix) for r in range(row_count)))


# --- Span lookup ---


def origin_cell_at(grid: Grid, row_index: int, col_index: int) -> Cell | None:
    """Return the origin cell whose span covers ``(row_index, col_index)``.

    Parameters
    ----------
    grid : Grid
        The grid to scan.
    row_index, col_index : int
        The position to resolve.

    Returns
    -------
    Cell or None
        The first covering cell in row-major scan order, or None when the
        position is outside the grid.
    """
    if not grid.in_bounds(row_index, col_index):
        return None
    for r in range(row_index + 1):
        cells = grid.rows[r].cells
        for c in range(min(col_index + 1, len(cells))):
            cell = cells[c]
            if r + cell.row_span - 1 >= row_index and c + cell.col_span - 1 >= col_index:
                return cell
    return None


def span_at(grid: Grid, row_index: int, col_index: int) -> Span:
    """Span of the origin covering a position; ``Span(1, 1)`` if there is none."""
    origin = origin_cell_at(grid, row_index, col_index)
    if origin is None:
        return Span(1, 1)
    return origin.span


def should_skip_rendering(grid: Grid, row_index: int, col_index: int) -> bool:
    """Whether a position is covered by another cell's span.

    Covered positions must not be rendered as independent cells. Positions
    outside the grid have nothing to render and are skipped too.
    """
    origin = origin_cell_at(grid, row_index, col_index)
    if origin is None:
        return True
    return origin.row_index != row_index or origin.col_index != col_index


def is_merged_at(grid: Grid, row_index: int, col_index: int) -> bool:
    """Whether the position belongs to a span larger than 1x1."""
    col_span, row_span = span_at(grid, row_index, col_index)
    return col_span > 1 or row_span > 1


# --- Merge / unmerge ---


def merge_rectangle(
    grid: Grid, origin_row: int, origin_col: int, end_row: int, end_col: int
) -> Grid:
    """Merge the inclusive rectangle into its top-left cell.

    The top-left cell receives the full span. Every other cell in range is
    reset to a 1x1 shadow and loses its widget; this is destructive, not a
    move. Cells outside the rectangle are untouched.

    Parameters
    ----------
    grid : Grid
        The grid to merge in.
    origin_row, origin_col : int
        Top-left corner.
    end_row, end_col : int
        Bottom-right corner (inclusive).

    Returns
    -------
    Grid
        The merged grid, or ``grid`` unchanged when the corners are inverted.
    """
    if origin_row > end_row or origin_col > end_col or origin_row < 0 or origin_col < 0:
        debug(
            f"Refusing merge ({origin_row},{origin_col})-({end_row},{end_col}): "
            "corners out of order"
        )
        return grid

    row_span = end_row - origin_row + 1
    col_span = end_col - origin_col + 1

    def merge_cell(cell: Cell, ri: int, ci: int) -> Cell:
        if not (origin_row <= ri <= end_row and origin_col <= ci <= end_col):
            return cell
        if ri == origin_row and ci == origin_col:
            return cell.model_copy(
                update={"col_span": col_span, "row_span": row_span, "is_merged_origin": True}
            )
        return cell.model_copy(
            update={"col_span": 1, "row_span": 1, "is_merged_origin": False, "widget": None}
        )

    return _map_positions(grid, merge_cell)


def fits_rectangle(grid: Grid, origin_row: int, origin_col: int, end_row: int, end_col: int) -> bool:
    """Whether every span touching the rectangle lies wholly inside it.

    Merging a rectangle that cuts through an existing span would leave two
    origins covering the same positions, so such rectangles cannot merge.
    """
    if not (grid.in_bounds(origin_row, origin_col) and grid.in_bounds(end_row, end_col)):
        return False
    if origin_row > end_row or origin_col > end_col:
        return False
    for ri in range(origin_row, end_row + 1):
        for ci in range(origin_col, end_col + 1):
            owner = origin_cell_at(grid, ri, ci)
            if owner is None:
                return False
            if not (
                origin_row <= owner.row_index
                and origin_col <= owner.col_index
                and owner.row_index + owner.row_span - 1 <= end_row
                and owner.col_index + owner.col_span - 1 <= end_col
            ):
                return False
    return True


def unmerge(grid: Grid, row_index: int, col_index: int) -> Grid:
    """Split the merged rectangle covering a position back into 1x1 cells.

    The origin keeps its widget; every other cell of the former rectangle
    is left empty. A position that is not merged leaves the grid unchanged.
    """
    origin = origin_cell_at(grid, row_index, col_index)
    if origin is None or (origin.col_span == 1 and origin.row_span == 1):
        return grid

    r0, c0 = origin.row_index, origin.col_index
    origin_widget = origin.widget

    def unmerge_cell(cell: Cell, ri: int, ci: int) -> Cell:
        if not origin.covers(ri, ci):
            return cell
        is_origin = ri == r0 and ci == c0
        return cell.model_copy(
            update={
                "col_span": 1,
                "row_span": 1,
                "is_merged_origin": True,
                "widget": origin_widget if is_origin else None,
            }
        )

    return _map_positions(grid, unmerge_cell)


def _map_positions(grid: Grid, fn: Callable[[Cell, int, int], Cell]) -> Grid:
    """Rebuild the grid, passing each cell with its actual position to ``fn``."""
    rows = tuple(
        row.model_copy(update={"cells": tuple(fn(cell, ri, ci) for ci, cell in enumerate(row.cells))})
        for ri, row in enumerate(grid.rows)
    )
    return grid.model_copy(update={"rows": rows})


# --- Structure (always at the end, never mid-grid) ---


def add_row(grid: Grid, prefix: str = "id") -> Grid:
    """Append a row with the current column count."""
    col_count = grid.col_count or 1
    return grid.model_copy(update={"rows": (*grid.rows, create_row(grid.row_count, col_count, prefix))})


def add_column(grid: Grid, prefix: str = "id") -> Grid:
    """Append one empty cell to every row."""
    rows = tuple(
        row.model_copy(update={"cells": (*row.cells, create_cell(ri, len(row.cells), prefix))})
        for ri, row in enumerate(grid.rows)
    )
    return grid.model_copy(update={"rows": rows})


def remove_row(grid: Grid) -> Grid:
    """Drop the last row; a 1-row grid is left unchanged.

    Spans that reached into the removed row are clipped to the new bounds.
    """
    if grid.row_count <= 1:
        return grid
    last = grid.row_count - 2

    def clip(cell: Cell, ri: int, ci: int) -> Cell:
        if ri + cell.row_span - 1 > last:
            return cell.model_copy(update={"row_span": last - ri + 1})
        return cell

    return _map_positions(grid.model_copy(update={"rows": grid.rows[:-1]}), clip)


def remove_column(grid: Grid) -> Grid:
    """Drop the last column; a 1-column grid is left unchanged.

    Spans that reached into the removed column are clipped to the new bounds.
    """
    if grid.row_count == 0 or grid.col_count <= 1:
        return grid
    last = grid.col_count - 2

    def clip(cell: Cell, ri: int, ci: int) -> Cell:
        if ci + cell.col_span - 1 > last:
            return cell.model_copy(update={"col_span": last - ci + 1})
        return cell

    rows = tuple(row.model_copy(update={"cells": row.cells[:-1]}) for row in grid.rows)
    return _map_positions(grid.model_copy(update={"rows": rows}), clip)


# --- Lookup and replacement by id ---


def find_cell(grid: Grid, cell_id: str) -> Cell | None:
    """Find a cell of this grid (not of nested grids) by id."""
    for row in grid.rows:
        for cell in row.cells:
            if cell.id == cell_id:
                return cell
    return None


def update_cells(grid: Grid, fn: Callable[[Cell], Cell]) -> Grid:
    """Apply ``fn`` to every cell of this grid."""
    return _map_positions(grid, lambda cell, _ri, _ci: fn(cell))


def update_cell(grid: Grid, cell_id: str, fn: Callable[[Cell], Cell]) -> Grid:
    """Replace the cell ``cell_id`` with ``fn(cell)``; unknown ids change nothing."""
    if find_cell(grid, cell_id) is None:
        debug(f"Cell '{cell_id}' not found")
        return grid
    return update_cells(grid, lambda cell: fn(cell) if cell.id == cell_id else cell)


def iter_widgets(grid: Grid) -> Iterator[tuple[Cell, WidgetInstance]]:
    """Yield ``(cell, widget)`` for every occupied cell of this grid, row-major."""
    for row in grid.rows:
        for cell in row.cells:
            if cell.widget is not None:
                yield cell, cell.widget


def find_widget(grid: Grid, widget_id: str) -> WidgetInstance | None:
    """Find a widget by id in this grid or any nested grid below it."""
    for _cell, widget in iter_widgets(grid):
        if widget.id == widget_id:
            return widget
        if widget.nested_table is not None:
            found = find_widget(widget.nested_table, widget_id)
            if found is not None:
                return found
    return None


def update_widget(
    grid: Grid, widget_id: str, fn: Callable[[WidgetInstance], WidgetInstance]
) -> Grid:
    """Replace the widget ``widget_id`` wherever it lives in the tree.

    Ancestors of a nested widget are rebuilt by value on the way back up.
    """
    if find_widget(grid, widget_id) is None:
        debug(f"Widget '{widget_id}' not found")
        return grid

    def visit(cell: Cell) -> Cell:
        widget = cell.widget
        if widget is None:
            return cell
        if widget.id == widget_id:
            return cell.model_copy(update={"widget": fn(widget)})
        if widget.nested_table is not None and find_widget(widget.nested_table, widget_id):
            nested = update_widget(widget.nested_table, widget_id, fn)
            return cell.model_copy(update={"widget": widget.model_copy(update={"nested_table": nested})})
        return cell

    return update_cells(grid, visit)


# --- Nested grid paths ---


def grid_at(grid: Grid, path: tuple[NestedPath, ...]) -> Grid | None:
    """Follow ``path`` down through table widgets; None if any step is missing."""
    current: Grid | None = grid
    for step in path:
        if current is None:
            return None
        cell = find_cell(current, step.cell_id)
        if cell is None or cell.widget is None or cell.widget.id != step.widget_id:
            return None
        current = cell.widget.nested_table
    return current


def update_grid_at(
    grid: Grid, path: tuple[NestedPath, ...], fn: Callable[[Grid], Grid]
) -> Grid:
    """Replace the grid at ``path`` with ``fn(grid)``, rebuilding each ancestor.

    A step naming a cell or widget that no longer exists leaves the whole
    tree unchanged.
    """
    if not path:
        return fn(grid)
    step, rest = path[0], path[1:]
    cell = find_cell(grid, step.cell_id)
    if cell is None or cell.widget is None or cell.widget.id != step.widget_id:
        debug(f"Nested table path step {tuple(step)} not found")
        return grid
    if cell.widget.nested_table is None:
        debug(f"Widget '{step.widget_id}' has no nested table")
        return grid
    nested = update_grid_at(cell.widget.nested_table, rest, fn)
    if nested is cell.widget.nested_table:
        return grid
    widget = cell.widget.model_copy(update={"nested_table": nested})
    return update_cell(grid, step.cell_id, lambda c: c.model_copy(update={"widget": widget}))
