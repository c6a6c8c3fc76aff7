"""Tests for NestedTableState: grids inside table widgets."""

from __future__ import annotations

import pytest

from formgrid.canvas import CanvasState
from formgrid.grid import add_row
from formgrid.models import Grid, NestedPath, SelectionTarget, Span, WidgetType
from formgrid.nested import NestedTableState
from formgrid.state_mixins import ClickHit


@pytest.fixture
def table(canvas: CanvasState) -> NestedTableState:
    """Editor for a table widget placed at (0, 0)."""
    table_id = canvas.place_widget(0, 0, "table")
    return canvas.nested(canvas.get_cell(0, 0).id, table_id)


class TestNestedGrid:
    """Tests for reading and changing a nested grid."""

    def test_default_two_by_two(self, table):
        """A new table holds an empty 2x2 grid."""
        assert (table.row_count, table.col_count) == (2, 2)
        assert all(cell.widget is None for row in table.rows for cell in row.cells)

    def test_merge_does_not_touch_canvas(self, canvas, table):
        """Merging inside a table leaves the canvas structure alone."""
        canvas_rows = [[(c.id, c.span) for c in row.cells] for row in canvas.rows]
        table.merge_cells(0, 0, 0, 1)
        assert table.get_span(0, 0) == Span(col_span=2, row_span=1)
        assert table.should_skip_rendering(0, 1)
        assert [[(c.id, c.span) for c in row.cells] for row in canvas.rows] == canvas_rows
        assert (canvas.row_count, canvas.col_count) == (1, 3)

    def test_changes_written_back_to_canvas(self, canvas, table):
        """Nested edits are visible in the canvas snapshot."""
        table.add_row()
        nested = canvas.get_cell(0, 0).widget.nested_table
        assert nested.row_count == 3

    def test_nested_ids_use_nested_prefix(self, table):
        """Widgets and cells created inside a table use the nested prefix."""
        widget_id = table.place_widget(0, 0, "input")
        table.add_column()
        assert widget_id.startswith("nested-")
        assert all(row.cells[-1].id.startswith("nested-") for row in table.rows)

    def test_same_editor_returned(self, canvas, table):
        """Asking twice for the same table returns the same editor."""
        again = canvas.nested(table.parent_cell_id, table.parent_widget_id)
        assert again is table

    def test_removed_table_is_inert(self, canvas, table):
        """Once the table widget is gone the editor does nothing."""
        canvas.remove_widget(table.parent_cell_id)
        assert table.grid is None
        before = canvas.grid
        table.add_row()
        assert table.place_widget(0, 0, "input") is None
        assert canvas.grid is before

    def test_missing_nested_grid_is_created(self, canvas):
        """A table loaded without a grid gets a fresh 2x2 one."""
        document = {
            "rows": [
                {
                    "id": "r0",
                    "cells": [
                        {
                            "id": "c0",
                            "rowIndex": 0,
                            "colIndex": 0,
                            "widget": {"id": "t0", "type": "table"},
                            "colSpan": 1,
                            "rowSpan": 1,
                            "isMergedOrigin": True,
                        }
                    ],
                }
            ]
        }
        canvas.load(document)
        nested = canvas.nested("c0", "t0")
        assert isinstance(nested.grid, Grid)
        assert (nested.row_count, nested.col_count) == (2, 2)
        assert canvas.get_cell(0, 0).widget.nested_table == nested.grid


class TestNestedSelection:
    """Tests for the nested grid's own merge selection and focus."""

    def test_independent_selection(self, canvas, table):
        """Nested and canvas merge selections do not affect each other."""
        table.click_cell(0, 0, modifier=True)
        table.click_cell(1, 1, modifier=True)
        canvas.click_cell(0, 1, modifier=True)
        assert table.selection == {(0, 0), (0, 1), (1, 0), (1, 1)}
        assert canvas.selection == {(0, 1)}
        table.merge_selection()
        assert table.get_span(0, 0) == Span(2, 2)
        assert canvas.selection == {(0, 1)}

    def test_click_focuses_canvas_with_path(self, canvas, table):
        """A nested click focuses the canvas on a path-qualified cell."""
        table.place_widget(1, 0, "input")
        table.click_cell(1, 0, ClickHit(element_key="control", in_inner=True))
        focus = canvas.focus
        assert focus.is_nested
        assert focus.path == (NestedPath(table.parent_cell_id, table.parent_widget_id),)
        assert focus.cell_id == table.get_cell(1, 0).id
        assert focus.target == SelectionTarget.ELEMENT
        assert canvas.focused_widget.type == WidgetType.INPUT

    def test_set_selected_nested_cell(self, canvas, table):
        """The canvas can focus a nested cell directly."""
        cell_id = table.get_cell(0, 1).id
        canvas.set_selected_nested_cell(table.parent_cell_id, table.parent_widget_id, cell_id, "cell")
        assert canvas.focus.parent_cell_id == table.parent_cell_id
        assert canvas.focus.parent_widget_id == table.parent_widget_id
        assert canvas.focused_cell.id == cell_id

    def test_removing_table_clears_nested_focus(self, canvas, table):
        """Removing a table drops a focus on any cell inside it."""
        table.click_cell(1, 1)
        assert canvas.focus.is_nested
        canvas.remove_widget(table.parent_cell_id)
        assert canvas.focus is None

    def test_removing_other_widget_keeps_nested_focus(self, canvas, table):
        """Removing an unrelated widget leaves a nested focus alone."""
        canvas.place_widget(0, 1, "input")
        table.click_cell(1, 1)
        canvas.remove_widget(canvas.get_cell(0, 1).id)
        assert canvas.focus.cell_id == table.get_cell(1, 1).id

    def test_nested_structure_change_clears_focus(self, canvas, table):
        """Structural changes inside a table reset the editing focus."""
        table.click_cell(0, 0)
        table.remove_column()
        assert canvas.focus is None
        assert table.col_count == 1


class TestNestedWidgets:
    """Tests for widgets inside tables."""

    def test_bind_nested_widget_from_canvas(self, canvas, table):
        """Binding edits by widget id reach nested widgets."""
        widget_id = table.place_widget(0, 1, "input")
        canvas.set_value_binding(widget_id, "textValue")
        assert table.get_cell(0, 1).widget.value_binding == "{{ textValue }}"
        assert canvas.find_widget(widget_id).value_binding == "{{ textValue }}"

    def test_table_inside_table(self, canvas, table):
        """Tables nest to any depth."""
        inner_id = table.place_widget(0, 0, "table")
        inner = table.nested(table.get_cell(0, 0).id, inner_id)
        leaf = inner.place_widget(1, 1, "label")
        inner.merge_cells(0, 0, 1, 0)
        assert len(inner.path) == 2
        assert canvas.find_widget(leaf).label == "Label"
        assert inner.get_span(0, 0) == Span(1, 2)
        assert table.get_span(0, 0) == Span(1, 1)

    def test_option_editing(self, table):
        """Radio option edits work inside tables."""
        widget_id = table.place_widget(0, 0, "radio")
        cell_id = table.get_cell(0, 0).id
        table.add_option(cell_id, widget_id)
        assert table.get_cell(0, 0).widget.options == ("Option 1", "Option 2", "Option 3")

    def test_update_nested_table_from_parent(self, canvas, table):
        """The parent grid can replace a table's nested grid wholesale."""
        replacement = add_row(table.grid, "nested")
        canvas.update_nested_table(table.parent_cell_id, table.parent_widget_id, replacement)
        assert table.row_count == 3
