"""Tests for merge selection: the two-corner gesture and rectangle checks."""

from __future__ import annotations

from formgrid.selection import (
    EMPTY_SELECTION,
    MergeRange,
    add_coordinate,
    can_merge,
    compute_rectangle,
    rectangle,
    toggle_coordinate,
)


class TestToggle:
    """Tests for modifier-click selection."""

    def test_first_click_selects_one(self):
        """The first click selects just that cell."""
        assert toggle_coordinate(EMPTY_SELECTION, 1, 2) == {(1, 2)}

    def test_second_click_expands_to_rectangle(self):
        """A second corner selects the whole rectangle between the two."""
        selection = toggle_coordinate(frozenset({(0, 0)}), 1, 2)
        assert selection == rectangle(0, 0, 1, 2)
        assert len(selection) == 6

    def test_second_click_any_corner_order(self):
        """Corners may be clicked bottom-right first."""
        selection = toggle_coordinate(frozenset({(2, 2)}), 1, 0)
        assert selection == {(r, c) for r in (1, 2) for c in (0, 1, 2)}

    def test_click_selected_deselects(self):
        """Clicking a selected cell removes it."""
        selection = rectangle(0, 0, 1, 1)
        assert toggle_coordinate(selection, 1, 1) == {(0, 0), (0, 1), (1, 0)}

    def test_deselect_only_member(self):
        """Deselecting the last cell empties the selection."""
        assert toggle_coordinate(frozenset({(0, 0)}), 0, 0) == EMPTY_SELECTION

    def test_third_click_adds_single_cell(self):
        """With several cells selected a new click adds only that cell."""
        selection = frozenset({(0, 0), (0, 1)})
        assert toggle_coordinate(selection, 3, 3) == {(0, 0), (0, 1), (3, 3)}

    def test_add_existing_is_unchanged(self):
        """Adding an already-selected coordinate changes nothing."""
        selection = frozenset({(0, 0)})
        assert add_coordinate(selection, 0, 0) is selection


class TestComputeRectangle:
    """Tests for compute_rectangle."""

    def test_empty_selection(self):
        """Nothing selected has no rectangle."""
        assert compute_rectangle(EMPTY_SELECTION) is None

    def test_three_of_four_corners_rejected(self):
        """An L-shape is not a rectangle even though its bounds are."""
        assert compute_rectangle(frozenset({(0, 0), (0, 1), (1, 0)})) is None

    def test_full_block_accepted(self):
        """A solid 2x2 block is a rectangle."""
        result = compute_rectangle(frozenset({(0, 0), (0, 1), (1, 0), (1, 1)}))
        assert result == MergeRange(r0=0, r1=1, c0=0, c1=1)
        assert (result.row_count, result.col_count) == (2, 2)

    def test_gapped_row_rejected(self):
        """Disjoint cells in one row are not a rectangle."""
        assert compute_rectangle(frozenset({(0, 0), (0, 2)})) is None

    def test_single_cell(self):
        """A single cell is a 1x1 rectangle."""
        assert compute_rectangle(frozenset({(2, 3)})) == MergeRange(2, 2, 3, 3)


class TestCanMerge:
    """Tests for can_merge."""

    def test_none_cannot_merge(self):
        """No rectangle, no merge."""
        assert not can_merge(None)

    def test_single_cell_cannot_merge(self):
        """A 1x1 rectangle is never mergeable."""
        assert not can_merge(compute_rectangle(frozenset({(0, 0)})))

    def test_row_strip_can_merge(self):
        """More than one column is enough."""
        assert can_merge(MergeRange(0, 0, 0, 1))

    def test_column_strip_can_merge(self):
        """More than one row is enough."""
        assert can_merge(MergeRange(0, 2, 1, 1))
