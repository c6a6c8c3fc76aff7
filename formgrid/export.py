"""Export a layout: binding targets in document order and HTML markup.

Template mode stamps the symbolic ``{{ key }}`` expression on every bound
control so another templating pass can fill it in later. Preview mode
substitutes the current global values from a ``BindingContext`` instead.
Neither mode emits any builder chrome (selection outlines, handles,
palette markup).
"""

from __future__ import annotations

import html

from typing import TYPE_CHECKING, Literal

from .bindings import format_binding, parse_key
from .grid import should_skip_rendering
from .models import BindingTarget, WidgetType


if TYPE_CHECKING:
    from collections.abc import Iterator

    from .bindings import BindingContext
    from .models import Cell, Grid, WidgetInstance


RenderMode = Literal["template", "preview"]


def _rendered_cells(grid: Grid) -> Iterator[Cell]:
    for row in grid.rows:
        for cell in row.cells:
            if not should_skip_rendering(grid, cell.row_index, cell.col_index):
                yield cell


def _nested_widgets(grid: Grid) -> Iterator[WidgetInstance]:
    for cell in _rendered_cells(grid):
        widget = cell.widget
        if widget is None:
            continue
        if widget.is_table:
            if widget.nested_table is not None:
                yield from _nested_widgets(widget.nested_table)
        else:
            yield widget


def binding_targets(grid: Grid) -> list[BindingTarget]:
    """Collect widget bindings in the order the exported markup lists them.

    Non-table widgets of the top-level grid come first in row-major order,
    then every non-table widget inside nested tables, walking each table's
    grid row-major and descending into deeper tables where they appear.
    """
    top_level: list[WidgetInstance] = []
    nested: list[WidgetInstance] = []
    for cell in _rendered_cells(grid):
        widget = cell.widget
        if widget is None:
            continue
        if widget.is_table:
            if widget.nested_table is not None:
                nested.extend(_nested_widgets(widget.nested_table))
        else:
            top_level.append(widget)
    return [
        BindingTarget(
            widget_id=widget.id,
            value_binding=widget.value_binding,
            option_bindings=widget.option_bindings,
        )
        for widget in (*top_level, *nested)
    ]


def _class_attr(*names: str | None) -> str:
    joined = " ".join(n for n in names if n)
    return f' class="{html.escape(joined)}"' if joined else ""


class _Renderer:
    def __init__(self, mode: RenderMode, context: BindingContext | None) -> None:
        if mode not in ("template", "preview"):
            raise ValueError(f"Unknown render mode {mode!r}; expected 'template' or 'preview'")
        self.mode = mode
        self.context = context

    def bound_value(self, binding: str | None) -> str | None:
        """Attribute value for a bound control, or None when unbound."""
        key = parse_key(binding)
        if key is None:
            return None
        if self.mode == "template":
            return format_binding(key)
        return self.context.get_value(binding) if self.context is not None else ""

    def grid(self, grid: Grid) -> str:
        rows_html = []
        for row in grid.rows:
            cells_html = "".join(
                self.cell(cell)
                for cell in row.cells
                if not should_skip_rendering(grid, cell.row_index, cell.col_index)
            )
            rows_html.append(f"<tr>{cells_html}</tr>")
        return f'<table class="form-grid">{"".join(rows_html)}</table>'

    def cell(self, cell: Cell) -> str:
        attrs = _class_attr(cell.class_name)
        if cell.col_span > 1:
            attrs += f' colspan="{cell.col_span}"'
        if cell.row_span > 1:
            attrs += f' rowspan="{cell.row_span}"'
        content = self.widget(cell.widget) if cell.widget is not None else ""
        return f"<td{attrs}>{content}</td>"

    def widget(self, widget: WidgetInstance) -> str:
        inner = {
            WidgetType.INPUT: self.input,
            WidgetType.CHECKBOX: self.checkbox,
            WidgetType.RADIO: self.radio,
            WidgetType.LABEL: self.label,
            WidgetType.TABLE: self.table,
        }[widget.type](widget)
        return (
            f'<div{_class_attr("widget", f"widget-{widget.type.value}", widget.class_name)} '
            f'data-widget-id="{html.escape(widget.id)}">{inner}</div>'
        )

    def _label(self, widget: WidgetInstance) -> str:
        if not widget.label:
            return ""
        return (
            f"<label{_class_attr(widget.element_class('label'))}>"
            f"{html.escape(widget.label)}</label>"
        )

    def input(self, widget: WidgetInstance) -> str:
        attrs = ' type="text"'
        value = self.bound_value(widget.value_binding)
        if value is not None:
            attrs += f' value="{html.escape(value)}"'
        if widget.placeholder:
            attrs += f' placeholder="{html.escape(widget.placeholder)}"'
        control = f"<input{_class_attr(widget.element_class('control'))}{attrs}>"
        return f"<div{_class_attr(widget.inner_class_name)}>{self._label(widget)}{control}</div>"

    def checkbox(self, widget: WidgetInstance) -> str:
        attrs = ' type="checkbox"'
        value = self.bound_value(widget.value_binding)
        if value is not None:
            if self.mode == "template":
                attrs += f' value="{html.escape(value)}"'
            elif value and value.lower() != "false":
                attrs += " checked"
        control = f"<input{_class_attr(widget.element_class('control'))}{attrs}>"
        return f"<div{_class_attr(widget.inner_class_name)}>{control}{self._label(widget)}</div>"

    def radio(self, widget: WidgetInstance) -> str:
        bindings = widget.option_bindings or ()
        options_html = []
        for index, option in enumerate(widget.options or ()):
            binding = bindings[index] if index < len(bindings) else None
            attrs = f' type="radio" name="{html.escape(widget.id)}"'
            value = self.bound_value(binding)
            if value is not None:
                if self.mode == "template":
                    attrs += f' value="{html.escape(value)}"'
                else:
                    attrs += f' value="{html.escape(option)}"'
                    if value == option:
                        attrs += " checked"
            options_html.append(
                f"<label{_class_attr(widget.element_class(f'option-{index}'))}>"
                f"<input{attrs}>{html.escape(option)}</label>"
            )
        return (
            f"<div{_class_attr(widget.inner_class_name)}>"
            f"{self._label(widget)}{''.join(options_html)}</div>"
        )

    def label(self, widget: WidgetInstance) -> str:
        return (
            f"<span{_class_attr(widget.inner_class_name)}>"
            f"{html.escape(widget.label or '')}</span>"
        )

    def table(self, widget: WidgetInstance) -> str:
        if widget.nested_table is None:
            return ""
        return f"<div{_class_attr(widget.inner_class_name)}>{self.grid(widget.nested_table)}</div>"


def render_html(
    grid: Grid,
    context: BindingContext | None = None,
    mode: RenderMode = "template",
) -> str:
    """Render a grid snapshot (nested tables included) as an HTML table.

    Parameters
    ----------
    grid : Grid
        The layout to render.
    context : BindingContext, optional
        Source of global values for preview mode.
    mode : {"template", "preview"}
        ``template`` writes ``{{ key }}`` on bound controls; ``preview``
        writes the resolved values.

    Returns
    -------
    str
        The markup, with covered positions omitted and spans expressed as
        ``colspan`` / ``rowspan``.

    Raises
    ------
    ValueError
        If ``mode`` is not one of the supported modes.
    """
    return _Renderer(mode, context).grid(grid)
