"""Tests for binding-target extraction and HTML export."""

from __future__ import annotations

import pytest

from formgrid.export import binding_targets, render_html


@pytest.fixture
def form(canvas):
    """A canvas with bound widgets on the canvas and inside a table.

    Layout (row-major):
        (0,0) table -> nested (0,0) input, nested (1,1) checkbox
        (0,1) input bound to textValue
        (0,2) radio bound option by option
    """
    table_id = canvas.place_widget(0, 0, "table")
    nested = canvas.nested(canvas.get_cell(0, 0).id, table_id)
    nested_input = nested.place_widget(0, 0, "input")
    nested_check = nested.place_widget(1, 1, "checkbox")
    canvas.set_value_binding(nested_check, "checkValue")

    text_id = canvas.place_widget(0, 1, "input")
    canvas.set_value_binding(text_id, "textValue")

    radio_id = canvas.place_widget(0, 2, "radio", options=["A", "B"])
    canvas.set_option_binding(radio_id, 0, "listValue1")
    canvas.set_option_binding(radio_id, 1, "listValue2")
    return {
        "canvas": canvas,
        "table": table_id,
        "nested_input": nested_input,
        "nested_check": nested_check,
        "text": text_id,
        "radio": radio_id,
    }


class TestBindingTargets:
    """Tests for binding_targets."""

    def test_canvas_widgets_then_nested(self, form):
        """Canvas widgets come first, then nested widgets, tables excluded."""
        targets = binding_targets(form["canvas"].grid)
        assert [t.widget_id for t in targets] == [
            form["text"],
            form["radio"],
            form["nested_input"],
            form["nested_check"],
        ]

    def test_bindings_carried(self, form):
        """Each target carries the widget's bindings."""
        targets = {t.widget_id: t for t in binding_targets(form["canvas"].grid)}
        assert targets[form["text"]].value_binding == "{{ textValue }}"
        assert targets[form["radio"]].option_bindings == ("{{ listValue1 }}", "{{ listValue2 }}")
        assert targets[form["nested_input"]].value_binding is None

    def test_deeper_tables_in_document_order(self, canvas):
        """Widgets in deeper tables appear where their table appears."""
        outer_id = canvas.place_widget(0, 0, "table")
        outer = canvas.nested(canvas.get_cell(0, 0).id, outer_id)
        inner_id = outer.place_widget(0, 0, "table")
        inner = outer.nested(outer.get_cell(0, 0).id, inner_id)
        deep = inner.place_widget(0, 0, "label")
        after = outer.place_widget(0, 1, "label")
        assert [t.widget_id for t in binding_targets(canvas.grid)] == [deep, after]

    def test_empty_grid(self, canvas):
        """An empty canvas has no targets."""
        assert binding_targets(canvas.grid) == []


class TestRenderTemplate:
    """Tests for template-mode HTML."""

    def test_symbolic_values(self, form):
        """Bound controls carry the expression, not a value."""
        form["canvas"].bindings.set_value("{{ textValue }}", "secret")
        html = render_html(form["canvas"].grid, form["canvas"].bindings)
        assert 'value="{{ textValue }}"' in html
        assert 'value="{{ listValue1 }}"' in html
        assert 'value="{{ checkValue }}"' in html
        assert "secret" not in html

    def test_spans_and_covered_cells(self, canvas):
        """Merged cells render once with colspan and rowspan."""
        canvas.add_row()
        canvas.merge_cells(0, 0, 1, 1)
        html = render_html(canvas.grid)
        assert html.count("<td") == 3
        assert 'colspan="2" rowspan="2"' in html

    def test_nested_table_rendered(self, form):
        """Tables render their nested grid inside the cell."""
        html = render_html(form["canvas"].grid)
        assert html.count("<table") == 2

    def test_class_tags(self, canvas):
        """Cell, wrapper, inner and element classes are emitted."""
        widget_id = canvas.place_widget(0, 0, "input")
        canvas.set_cell_class(canvas.get_cell(0, 0).id, "cell-x")
        canvas.set_widget_class(widget_id, "wrap-x")
        canvas.set_widget_class(widget_id, "inner-x", "widget-inner")
        canvas.set_widget_class(widget_id, "label-x", "element", element_key="label")
        html = render_html(canvas.grid)
        for name in ("cell-x", "wrap-x", "inner-x", "label-x"):
            assert name in html

    def test_text_is_escaped(self, canvas):
        """Labels are HTML-escaped."""
        cell_id = canvas.get_cell(0, 0).id
        widget_id = canvas.place_widget(0, 0, "label")
        canvas.update_widget_label(cell_id, widget_id, "<b>&</b>")
        html = render_html(canvas.grid)
        assert "&lt;b&gt;&amp;&lt;/b&gt;" in html
        assert "<b>" not in html

    def test_unknown_mode(self, canvas):
        """Unsupported modes are rejected."""
        with pytest.raises(ValueError, match="render mode"):
            render_html(canvas.grid, mode="pdf")  # type: ignore[arg-type]


class TestRenderPreview:
    """Tests for preview-mode HTML."""

    def test_resolved_values(self, form):
        """Preview shows the global values."""
        bindings = form["canvas"].bindings
        bindings.set_value("{{ textValue }}", "hello")
        html = render_html(form["canvas"].grid, bindings, mode="preview")
        assert 'value="hello"' in html
        assert "{{" not in html

    def test_instance_values_ignored(self, form):
        """Preview export uses the global scope only."""
        bindings = form["canvas"].bindings
        bindings.set_value("{{ textValue }}", "draft", instance_id=form["text"])
        html = render_html(form["canvas"].grid, bindings, mode="preview")
        assert "draft" not in html

    def test_radio_checked(self, form):
        """The option whose value equals its label is checked."""
        bindings = form["canvas"].bindings
        radio = form["canvas"].find_widget(form["radio"])
        bindings.set_radio_selection(radio.options, radio.option_bindings, "B")
        html = render_html(form["canvas"].grid, bindings, mode="preview")
        assert 'value="B" checked' in html
        assert 'value="A" checked' not in html

    def test_checkbox_checked(self, form):
        """Checkboxes are checked for non-empty values other than false."""
        bindings = form["canvas"].bindings
        grid = form["canvas"].grid
        bindings.set_value("{{ checkValue }}", "false")
        assert "checked" not in render_html(grid, bindings, mode="preview")
        bindings.set_value("{{ checkValue }}", "yes")
        assert 'type="checkbox" checked' in render_html(grid, bindings, mode="preview")
