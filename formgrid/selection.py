"""Multi-cell selection for merging.

A selection is a frozenset of ``(row, col)`` coordinates local to one
grid. Only a solid axis-aligned rectangle larger than 1x1 can be merged.
"""

from __future__ import annotations

from typing import NamedTuple


Coordinate = tuple[int, int]
Selection = frozenset[Coordinate]

EMPTY_SELECTION: Selection = frozenset()


class MergeRange(NamedTuple):
    """Inclusive rectangle bounds, rows ``r0..r1`` and columns ``c0..c1``."""

    r0: int
    r1: int
    c0: int
    c1: int

    @property
    def row_count(self) -> int:
        return self.r1 - self.r0 + 1

    @property
    def col_count(self) -> int:
        return self.c1 - self.c0 + 1


def rectangle(row_a: int, col_a: int, row_b: int, col_b: int) -> Selection:
    """Every coordinate of the rectangle spanned by two corners, in any order."""
    r0, r1 = sorted((row_a, row_b))
    c0, c1 = sorted((col_a, col_b))
    return frozenset((r, c) for r in range(r0, r1 + 1) for c in range(c0, c1 + 1))


def add_coordinate(selection: Selection, row_index: int, col_index: int) -> Selection:
    """Add a coordinate using the two-corner gesture.

    - Nothing selected: select just this cell.
    - One cell selected: select the full rectangle between it and this cell.
    - Several selected: add this cell only.

    An already-selected coordinate leaves the selection unchanged.
    """
    key = (row_index, col_index)
    if key in selection:
        return selection
    if not selection:
        return frozenset({key})
    if len(selection) == 1:
        first_row, first_col = next(iter(selection))
        return rectangle(first_row, first_col, row_index, col_index)
    return selection | {key}


def toggle_coordinate(selection: Selection, row_index: int, col_index: int) -> Selection:
    """Apply a modifier-click: deselect a selected cell, otherwise add it."""
    key = (row_index, col_index)
    if key in selection:
        return selection - {key}
    return add_coordinate(selection, row_index, col_index)


def compute_rectangle(selection: Selection) -> MergeRange | None:
    """Return the selection's bounds if it is a solid rectangle.

    Every coordinate inside the bounding box must be selected; a disjoint,
    L-shaped or gapped selection returns None, as does an empty one.
    """
    if not selection:
        return None
    rows = [r for r, _ in selection]
    cols = [c for _, c in selection]
    bounds = MergeRange(min(rows), max(rows), min(cols), max(cols))
    for r in range(bounds.r0, bounds.r1 + 1):
        for c in range(bounds.c0, bounds.c1 + 1):
            if (r, c) not in selection:
                return None
    return bounds


def can_merge(merge_range: MergeRange | None) -> bool:
    """Only rectangles spanning more than one row or column can be merged."""
    if merge_range is None:
        return False
    return merge_range.r0 < merge_range.r1 or merge_range.c0 < merge_range.c1
