"""FormGrid - form-layout builder engine.

This package provides the grid, merge, selection and binding model behind
an interactive form builder: widgets placed on a resizable grid, spreadsheet
style cell merging, tables nested inside tables, and symbolic
``{{ name }}`` bindings exported as HTML templates.
"""

from .bindings import BindingContext, format_binding, parse_key
from .canvas import CanvasState
from .config import (
    BindingSettings,
    CanvasSettings,
    FormGridSettings,
    LogSettings,
    StorageSettings,
    WidgetSettings,
    clear_settings,
    get_settings,
    reload_settings,
)
from .exceptions import (
    FormGridException,
    LayoutDocumentError,
    LayoutNotFoundError,
    LayoutStorageError,
)
from .export import binding_targets, render_html
from .layouts import (
    FileLayoutStore,
    LayoutLibrary,
    LayoutStore,
    MemoryLayoutStore,
    SavedLayout,
)
from .models import (
    BindableProperty,
    BindingTarget,
    Cell,
    EditingFocus,
    Grid,
    NestedPath,
    Row,
    SelectionTarget,
    Span,
    WidgetInstance,
    WidgetType,
)
from .nested import NestedTableState
from .selection import MergeRange, can_merge, compute_rectangle
from .state_mixins import ClickHit, GridEditorMixin, resolve_click_target


__version__ = "1.0.0"

__all__ = [
    "BindableProperty",
    "BindingContext",
    "BindingSettings",
    "BindingTarget",
    "CanvasSettings",
    "CanvasState",
    "Cell",
    "ClickHit",
    "EditingFocus",
    "FileLayoutStore",
    "FormGridException",
    "FormGridSettings",
    "Grid",
    "GridEditorMixin",
    "LayoutDocumentError",
    "LayoutLibrary",
    "LayoutNotFoundError",
    "LayoutStorageError",
    "LayoutStore",
    "LogSettings",
    "MemoryLayoutStore",
    "MergeRange",
    "NestedPath",
    "NestedTableState",
    "Row",
    "SavedLayout",
    "SelectionTarget",
    "Span",
    "StorageSettings",
    "WidgetInstance",
    "WidgetSettings",
    "WidgetType",
    "__version__",
    "binding_targets",
    "can_merge",
    "clear_settings",
    "compute_rectangle",
    "format_binding",
    "get_settings",
    "parse_key",
    "reload_settings",
    "render_html",
    "resolve_click_target",
]
