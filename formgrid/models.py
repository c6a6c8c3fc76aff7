"""Pydantic models for FormGrid layouts.

Every state value is a frozen model: rows and cells are tuples, and
mutators build replacements with ``model_copy(update=...)`` rather than
changing anything in place. A ``Grid`` held by a renderer therefore
never changes underneath it.

Use snake_case in Python; documents use camelCase keys:

    {"rows": [{"id": "id-1a2b3c4d", "cells": [
        {"id": "...", "rowIndex": 0, "colIndex": 0, "widget": null,
         "colSpan": 1, "rowSpan": 1, "isMergedOrigin": true}
    ]}]}
"""

from __future__ import annotations

from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .exceptions import LayoutDocumentError


class WidgetType(str, Enum):
    """Kinds of widget that can be dropped onto a grid cell."""

    INPUT = "input"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    TABLE = "table"
    LABEL = "label"

    @classmethod
    def parse(cls, raw: str | None) -> WidgetType | None:
        """Parse a drop payload such as ``" Radio "`` into a widget type.

        Returns None for empty or unknown payloads.
        """
        if not raw:
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


# Palette order; single source of truth for anything listing widget types
WIDGET_TYPES: tuple[WidgetType, ...] = (
    WidgetType.INPUT,
    WidgetType.CHECKBOX,
    WidgetType.RADIO,
    WidgetType.TABLE,
    WidgetType.LABEL,
)

WIDGET_LABELS: dict[WidgetType, str] = {
    WidgetType.INPUT: "Input",
    WidgetType.CHECKBOX: "Checkbox",
    WidgetType.RADIO: "Radio",
    WidgetType.TABLE: "Table",
    WidgetType.LABEL: "Label",
}

WIDGET_PALETTE_ICONS: dict[WidgetType, str] = {
    WidgetType.INPUT: "▭",
    WidgetType.CHECKBOX: "☑",
    WidgetType.RADIO: "◉",
    WidgetType.TABLE: "⊞",
    WidgetType.LABEL: "Aa",
}


class SelectionTarget(str, Enum):
    """Which rendered layer of a cell the editing focus points at."""

    CELL = "cell"
    WIDGET = "widget"
    WIDGET_INNER = "widget-inner"
    ELEMENT = "element"

    @classmethod
    def parse(cls, raw: SelectionTarget | str | None) -> SelectionTarget | None:
        """Parse a target name such as ``"widget-inner"``; None when unknown."""
        if isinstance(raw, cls):
            return raw
        if not raw:
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


class Span(NamedTuple):
    """Column and row span of a grid position."""

    col_span: int = 1
    row_span: int = 1


class StateModel(BaseModel):
    """Base for immutable layout state with camelCase document keys."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,  # Accept both snake_case and camelCase
        extra="forbid",
    )


class WidgetInstance(StateModel):
    """A widget placed in exactly one cell.

    Only radio widgets carry ``options`` / ``option_bindings``; only table
    widgets carry ``nested_table``. Class names are tagged on three
    independent scopes: the wrapper (``class_name``), the inner component
    (``inner_class_name``) and named child elements (``element_classes``,
    keyed by element tag such as ``label``, ``control`` or ``option-0``).
    """

    id: str
    type: WidgetType
    label: str | None = None
    options: tuple[str, ...] | None = None
    placeholder: str | None = None
    value_binding: str | None = Field(default=None, alias="valueBinding")
    option_bindings: tuple[str, ...] | None = Field(default=None, alias="optionBindings")
    class_name: str | None = Field(default=None, alias="className")
    inner_class_name: str | None = Field(default=None, alias="innerClassName")
    element_classes: dict[str, str] | None = Field(default=None, alias="elementClasses")
    nested_table: Grid | None = Field(default=None, alias="nestedTable")

    @property
    def is_table(self) -> bool:
        """Whether this widget hosts a nested grid."""
        return self.type == WidgetType.TABLE

    def element_class(self, key: str) -> str:
        """Class string tagged on the child element ``key``, or ``""``."""
        return (self.element_classes or {}).get(key, "")

    def to_document(self) -> dict[str, Any]:
        """Convert to a plain dict with camelCase keys, excluding None values."""
        doc = self.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude={"nested_table"}
        )
        if self.nested_table is not None:
            doc["nestedTable"] = self.nested_table.to_document()
        return doc


class Cell(StateModel):
    """One grid position.

    A cell whose span exceeds 1x1 is the origin of a merged rectangle.
    Positions covered by that rectangle keep their own 1x1 cell (with no
    widget) so every row always has the same number of cells.
    """

    id: str
    row_index: int = Field(alias="rowIndex", ge=0)
    col_index: int = Field(alias="colIndex", ge=0)
    widget: WidgetInstance | None = None
    col_span: int = Field(default=1, alias="colSpan", ge=1)
    row_span: int = Field(default=1, alias="rowSpan", ge=1)
    is_merged_origin: bool = Field(default=True, alias="isMergedOrigin")
    class_name: str | None = Field(default=None, alias="className")

    @property
    def span(self) -> Span:
        return Span(self.col_span, self.row_span)

    def covers(self, row_index: int, col_index: int) -> bool:
        """Whether this cell's span rectangle contains the position."""
        return (
            self.row_index <= row_index < self.row_index + self.row_span
            and self.col_index <= col_index < self.col_index + self.col_span
        )

    def to_document(self) -> dict[str, Any]:
        """Convert to a plain dict with camelCase keys; ``widget`` is always present."""
        doc = self.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"widget"})
        doc["widget"] = self.widget.to_document() if self.widget is not None else None
        return doc


class Row(StateModel):
    """An ordered run of cells."""

    id: str
    cells: tuple[Cell, ...] = ()

    def to_document(self) -> dict[str, Any]:
        return {"id": self.id, "cells": [cell.to_document() for cell in self.cells]}


class Grid(StateModel):
    """A rectangular grid of rows; the canvas and every nested table use it."""

    rows: tuple[Row, ...] = ()

    @model_validator(mode="after")
    def validate_rectangular(self) -> Grid:
        """Validate that every row has the same number of cells."""
        widths = {len(row.cells) for row in self.rows}
        if len(widths) > 1:
            raise ValueError(f"All rows must have the same number of cells, got {sorted(widths)}")
        return self

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def col_count(self) -> int:
        return len(self.rows[0].cells) if self.rows else 0

    def in_bounds(self, row_index: int, col_index: int) -> bool:
        """Whether the position lies inside the current grid."""
        return 0 <= row_index < self.row_count and 0 <= col_index < len(
            self.rows[row_index].cells
        )

    def cell_at(self, row_index: int, col_index: int) -> Cell | None:
        """The cell stored at a position, or None when out of bounds."""
        if not self.in_bounds(row_index, col_index):
            return None
        return self.rows[row_index].cells[col_index]

    def to_document(self) -> dict[str, Any]:
        """Convert to the persisted layout document format."""
        return {"rows": [row.to_document() for row in self.rows]}

    @classmethod
    def from_document(cls, document: Any) -> Grid:
        """Rebuild a grid (nested tables included) from a layout document.

        Parameters
        ----------
        document : Any
            A mapping with a ``rows`` key, as produced by ``to_document``.

        Returns
        -------
        Grid
            The validated grid.

        Raises
        ------
        LayoutDocumentError
            If the document does not describe a valid grid.
        """
        if not isinstance(document, dict):
            raise LayoutDocumentError(
                "Layout document must be a mapping", got=type(document).__name__
            )
        try:
            return cls.model_validate(document)
        except ValidationError as exc:
            problems = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            ]
            raise LayoutDocumentError(
                "Invalid layout document", errors=problems, error_count=len(problems)
            ) from exc


class BindableProperty(StateModel):
    """A property name offered by the binding selector, e.g. ``listValue1``."""

    key: str = Field(min_length=1)
    label: str

    @property
    def expression(self) -> str:
        """The binding expression stored on widgets, e.g. ``{{ listValue1 }}``."""
        return "{{ " + self.key + " }}"


class BindingTarget(StateModel):
    """Bindings of one rendered widget, in the order the exporter visits them."""

    widget_id: str = Field(alias="widgetId")
    value_binding: str | None = Field(default=None, alias="valueBinding")
    option_bindings: tuple[str, ...] | None = Field(default=None, alias="optionBindings")


class NestedPath(NamedTuple):
    """One step from a grid into a table widget's nested grid."""

    cell_id: str
    widget_id: str


class EditingFocus(StateModel):
    """What the property panel is editing.

    ``path`` is empty for a cell on the main canvas; for a cell inside a
    nested table it lists the (cell, widget) steps from the canvas down to
    the grid that owns ``cell_id``.
    """

    cell_id: str = Field(alias="cellId")
    target: SelectionTarget = SelectionTarget.CELL
    element_key: str | None = Field(default=None, alias="elementKey")
    path: tuple[NestedPath, ...] = ()
    option_index: int | None = Field(default=None, alias="optionIndex")

    @property
    def is_nested(self) -> bool:
        return bool(self.path)

    @property
    def parent_cell_id(self) -> str | None:
        return self.path[-1].cell_id if self.path else None

    @property
    def parent_widget_id(self) -> str | None:
        return self.path[-1].widget_id if self.path else None


WidgetInstance.model_rebuild()
Cell.model_rebuild()
Row.model_rebuild()
Grid.model_rebuild()
