"""FormGrid Layout Demo.

This example builds a small signup form and demonstrates:
- Growing the canvas and merging cells
- Radio, input and checkbox widgets with bindings
- A table widget with its own nested grid
- Saving the layout to a JSON library
- Exporting template and preview HTML

Run with:
    python formgrid_demo_layout.py

Then inspect the saved library with the CLI:
    formgrid layouts --file demo-layouts.json
"""

from __future__ import annotations

from formgrid import (
    CanvasState,
    FileLayoutStore,
    LayoutLibrary,
    binding_targets,
    render_html,
)
from formgrid.log import enable_debug


def build_form() -> CanvasState:
    """Build the demo layout on a fresh canvas."""
    canvas = CanvasState()
    canvas.add_row()
    canvas.add_row()

    # Title across the top row
    canvas.merge_cells(0, 0, 0, 2)
    title_cell = canvas.get_cell(0, 0)
    title_id = canvas.place_widget(0, 0, "label")
    canvas.update_widget_label(title_cell.id, title_id, "Create an account")
    canvas.set_widget_class(title_id, "title")

    name_id = canvas.place_widget(1, 0, "input")
    canvas.update_widget_label(canvas.get_cell(1, 0).id, name_id, "Name")
    canvas.set_value_binding(name_id, "textValue")

    plan_cell = canvas.get_cell(1, 1)
    plan_id = canvas.place_widget(1, 1, "radio", label="Plan", options=["Free", "Pro"])
    canvas.add_option(plan_cell.id, plan_id)
    canvas.rename_option(plan_cell.id, plan_id, 2, "Team")
    for index, key in enumerate(["listValue1", "listValue2", "listValue3"]):
        canvas.set_option_binding(plan_id, index, key)

    terms_id = canvas.place_widget(1, 2, "checkbox", label="I accept the terms")
    canvas.set_value_binding(terms_id, "checkValue")

    # Contact details in a nested table
    table_id = canvas.place_widget(2, 0, "table")
    contact = canvas.nested(canvas.get_cell(2, 0).id, table_id)
    contact.place_widget(0, 0, "label", label="Phone")
    contact.place_widget(0, 1, "input", label="")
    contact.place_widget(1, 0, "label", label="Email")
    contact.place_widget(1, 1, "input", label="")
    return canvas


def main() -> None:
    """Build, save and export the demo layout."""
    enable_debug()
    canvas = build_form()

    plan = canvas.find_widget(canvas.get_cell(1, 1).widget.id)
    canvas.bindings.set_value("{{ textValue }}", "Ada")
    canvas.bindings.set_value("{{ checkValue }}", "true")
    canvas.bindings.set_radio_selection(plan.options, plan.option_bindings, "Pro")

    library = LayoutLibrary(FileLayoutStore("demo-layouts.json"))
    saved = library.add_layout("Signup", canvas.grid)
    print(f"Saved layout {saved.id} ({len(library.layouts)} in library)")

    print("\nBinding targets:")
    for target in binding_targets(canvas.grid):
        print(f"  {target.widget_id}: {target.value_binding or target.option_bindings}")

    print("\nTemplate:")
    print(render_html(canvas.grid))
    print("\nPreview:")
    print(render_html(canvas.grid, canvas.bindings, mode="preview"))


if __name__ == "__main__":
    main()
