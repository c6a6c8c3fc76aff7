"""Binding expressions and the values they resolve to.

A widget binds its value (or each radio option) to a named property with
an expression of the exact form ``{{ name }}``. Values live in two
independent scopes:

- the global scope, keyed by name, used for export and as the read fallback;
- the instance scope, keyed by (name, widget id), used while editing so two
  widgets bound to the same name can preview different values.

An instance-scoped write never touches the global scope, and exported
templates always carry the symbolic expression, never a resolved value.

Usage:
    from formgrid.bindings import BindingContext

    context = BindingContext()
    context.set_value("{{ listValue1 }}", "hello")
    context.get_value("{{ listValue1 }}")  # "hello"
    context.set_value("{{ listValue1 }}", "preview", instance_id="id-3f9a1c2e")
    context.get_value("{{ listValue1 }}", instance_id="id-3f9a1c2e")  # "preview"
"""

from __future__ import annotations

import re

from types import MappingProxyType
from typing import TYPE_CHECKING

from .log import debug


if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from .models import BindableProperty


BINDING_PATTERN = re.compile(r"\{\{\s*(\S+)\s*\}\}")


def parse_key(expression: str | None) -> str | None:
    """Extract ``name`` from ``"{{ name }}"``.

    Parameters
    ----------
    expression : str or None
        A candidate binding expression.

    Returns
    -------
    str or None
        The bound property name, or None when the text is not exactly a
        binding expression (including None and empty strings).
    """
    if not expression:
        return None
    match = BINDING_PATTERN.fullmatch(expression)
    return match.group(1) if match else None


def format_binding(key: str | None) -> str | None:
    """Build the expression stored on a widget; an empty key means no binding."""
    if not key:
        return None
    return "{{ " + key + " }}"


class BindingContext:
    """Current values for bound properties, in global and per-widget scopes.

    Each write replaces the scope's mapping, so views handed out earlier
    keep showing the values they were taken from.
    """

    def __init__(self, properties: Sequence[BindableProperty] | None = None) -> None:
        """Initialize the context with one empty global entry per declared property.

        Parameters
        ----------
        properties : Sequence[BindableProperty], optional
            Declared bindable properties. Defaults to the configured ones.
        """
        if properties is None:
            from .config import get_settings

            properties = get_settings().bindings.properties
        self._properties: tuple[BindableProperty, ...] = tuple(properties)
        self._values: dict[str, str] = {p.key: "" for p in self._properties}
        self._instance_values: dict[tuple[str, str], str] = {}

    @property
    def properties(self) -> tuple[BindableProperty, ...]:
        """Declared bindable properties (key + display label)."""
        return self._properties

    @property
    def values(self) -> Mapping[str, str]:
        """Read-only view of the global scope."""
        return MappingProxyType(self._values)

    @property
    def instance_values(self) -> Mapping[tuple[str, str], str]:
        """Read-only view of the instance scope, keyed by (name, widget id)."""
        return MappingProxyType(self._instance_values)

    def get_value(self, expression: str | None, instance_id: str | None = None) -> str:
        """Resolve an expression to its current value.

        The instance scope is consulted first when ``instance_id`` is given
        and has an entry; otherwise the global value is returned. Unbound or
        malformed expressions resolve to ``""``.
        """
        key = parse_key(expression)
        if key is None:
            return ""
        if instance_id is not None and (key, instance_id) in self._instance_values:
            return self._instance_values[(key, instance_id)]
        return self._values.get(key, "")

    def set_value(
        self, expression: str | None, value: str, instance_id: str | None = None
    ) -> None:
        """Store a value for the property named by ``expression``.

        With ``instance_id`` only that widget's entry is written; without it
        the global scope is. Malformed expressions are ignored.
        """
        key = parse_key(expression)
        if key is None:
            debug(f"Ignoring value for non-binding expression {expression!r}")
            return
        if instance_id is not None:
            self._instance_values = {**self._instance_values, (key, instance_id): value}
        else:
            self._values = {**self._values, key: value}

    def clear_instance(self, instance_id: str) -> None:
        """Forget every preview value of one widget."""
        self._instance_values = {
            k: v for k, v in self._instance_values.items() if k[1] != instance_id
        }

    def radio_selection(
        self,
        options: Sequence[str] | None,
        option_bindings: Sequence[str] | None,
        instance_id: str | None = None,
    ) -> str | None:
        """The selected option of a radio group bound option by option.

        An option counts as selected when its bound value equals its own
        label. Options are scanned in order and the first match wins.
        """
        for index, option in enumerate(options or ()):
            binding = _binding_at(option_bindings, index)
            if parse_key(binding) is None:
                continue
            if self.get_value(binding, instance_id) == option:
                return option
        return None

    def set_radio_selection(
        self,
        options: Sequence[str] | None,
        option_bindings: Sequence[str] | None,
        selected: str | None,
        instance_id: str | None = None,
    ) -> None:
        """Select one option by writing its label to its binding.

        Every other bound option is cleared to ``""``, keeping the group
        mutually exclusive across independent bindings.
        """
        for index, option in enumerate(options or ()):
            binding = _binding_at(option_bindings, index)
            if parse_key(binding) is None:
                continue
            self.set_value(binding, option if option == selected else "", instance_id)


def _binding_at(option_bindings: Sequence[str] | None, index: int) -> str | None:
    if option_bindings is None or index >= len(option_bindings):
        return None
    return option_bindings[index]
