"""Configuration system for FormGrid using pydantic-settings.

Supports layered configuration:
1. Built-in defaults (lowest priority)
2. pyproject.toml [tool.formgrid] section (project-level)
3. ./formgrid.toml (project-level, explicit)
4. ~/.config/formgrid/config.toml (user-level, overrides project)
5. FORMGRID_CONFIG_FILE (explicit file, overrides the above)
6. Environment variables (highest priority)

Environment variables use FORMGRID_ prefix with nested delimiter __.
Example: FORMGRID_CANVAS__INITIAL_COLS=4, FORMGRID_LOG__LEVEL=DEBUG
"""

from __future__ import annotations

import os
import sys

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .models import BindableProperty, WidgetType


if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib  # type: ignore[import-not-found]
    except ImportError:
        tomllib = None


def _user_config_path() -> Path:
    """Location of the user-level config file for this platform."""
    if sys.platform == "win32":
        return (Path(os.environ.get("APPDATA", "~")) / "formgrid" / "config.toml").expanduser()
    return Path("~/.config/formgrid/config.toml").expanduser()


def _find_config_files() -> list[Path]:
    """Find all configuration files in order of precedence (lowest first)."""
    files = []

    pyproject = Path("pyproject.toml")
    if pyproject.exists():
        files.append(pyproject)

    formgrid_toml = Path("formgrid.toml")
    if formgrid_toml.exists():
        files.append(formgrid_toml)

    user_config = _user_config_path()
    if user_config.exists():
        files.append(user_config)

    env_config = os.environ.get("FORMGRID_CONFIG_FILE")
    if env_config:
        env_path = Path(env_config)
        if env_path.exists():
            files.append(env_path)

    return files


def _load_toml_config() -> dict[str, Any]:
    """Load and merge all TOML configuration files."""
    if tomllib is None:
        return {}

    merged: dict[str, Any] = {}

    for config_file in _find_config_files():
        try:
            data = tomllib.loads(config_file.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError):
            continue  # Unreadable config files are skipped

        # Handle pyproject.toml [tool.formgrid] section
        if config_file.name == "pyproject.toml":
            data = data.get("tool", {}).get("formgrid", {})

        merged = _deep_merge(merged, data)

    return merged


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _TomlConfigSource(PydanticBaseSettingsSource):
    """Settings source that feeds the merged TOML files below env vars."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        # Values are provided all at once by __call__
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        return _load_toml_config()


class CanvasSettings(BaseSettings):
    """Grid sizes used when creating a canvas or a table widget.

    Environment prefix: FORMGRID_CANVAS__
    Example: FORMGRID_CANVAS__INITIAL_COLS=4
    """

    model_config = SettingsConfigDict(
        env_prefix="FORMGRID_CANVAS__",
        extra="ignore",
    )

    initial_rows: int = Field(default=1, ge=1, description="Rows on a fresh canvas")
    initial_cols: int = Field(default=3, ge=1, description="Columns on a fresh canvas")
    nested_rows: int = Field(default=2, ge=1, description="Rows in a new table widget")
    nested_cols: int = Field(default=2, ge=1, description="Columns in a new table widget")


class WidgetSettings(BaseSettings):
    """Defaults applied when a widget is dropped onto a cell.

    Environment prefix: FORMGRID_WIDGETS__
    Example: FORMGRID_WIDGETS__PLACEHOLDER="Type here..."
    """

    model_config = SettingsConfigDict(
        env_prefix="FORMGRID_WIDGETS__",
        extra="ignore",
    )

    input_label: str = "Label"
    checkbox_label: str = "Checkbox"
    radio_label: str = "Choose one"
    label_text: str = "Label"
    placeholder: str = "Enter text..."
    radio_options: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["Option 1", "Option 2"]
    )
    option_pattern: str = Field(
        default="Option {n}",
        description="Text for a newly added radio option; {n} is its 1-based position",
    )

    @field_validator("radio_options", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: Any) -> list[str]:
        """Parse comma-separated strings from env vars."""
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v or []

    def default_label(self, widget_type: WidgetType) -> str | None:
        """Label a freshly placed widget of this type starts with."""
        return {
            WidgetType.INPUT: self.input_label,
            WidgetType.CHECKBOX: self.checkbox_label,
            WidgetType.RADIO: self.radio_label,
            WidgetType.LABEL: self.label_text,
        }.get(widget_type)

    def option_label(self, position: int) -> str:
        """Text for the option at 1-based ``position``."""
        return self.option_pattern.format(n=position)


DEFAULT_BINDABLE_PROPERTIES: tuple[BindableProperty, ...] = (
    BindableProperty(key="listValue1", label="List value 1"),
    BindableProperty(key="listValue2", label="List value 2"),
    BindableProperty(key="listValue3", label="List value 3"),
    BindableProperty(key="textValue", label="Text value"),
    BindableProperty(key="checkValue", label="Check value"),
)


class BindingSettings(BaseSettings):
    """Properties offered by the binding selector.

    Environment prefix: FORMGRID_BINDINGS__
    Example: FORMGRID_BINDINGS__PROPERTIES="firstName:First name,lastName:Last name"
    """

    model_config = SettingsConfigDict(
        env_prefix="FORMGRID_BINDINGS__",
        extra="ignore",
    )

    properties: Annotated[list[BindableProperty], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_BINDABLE_PROPERTIES)
    )

    @field_validator("properties", mode="before")
    @classmethod
    def parse_properties(cls, v: Any) -> list[Any]:
        """Accept ``key:Label`` strings (comma-separated or listed), dicts or models."""
        if isinstance(v, str):
            v = [s.strip() for s in v.split(",") if s.strip()]
        if not isinstance(v, list):
            msg = f"properties must be a list or comma-separated string, got {type(v).__name__}"
            raise TypeError(msg)
        result: list[Any] = []
        for item in v:
            if isinstance(item, str):
                key, _, label = item.partition(":")
                result.append({"key": key.strip(), "label": label.strip() or key.strip()})
            else:
                result.append(item)
        return result


class StorageSettings(BaseSettings):
    """Saved-layout storage.

    Environment prefix: FORMGRID_STORAGE__
    Example: FORMGRID_STORAGE__LAYOUTS_FILE=/tmp/layouts.json
    """

    model_config = SettingsConfigDict(
        env_prefix="FORMGRID_STORAGE__",
        extra="ignore",
    )

    layouts_file: str = Field(
        default="form-builder-saved-layouts.json",
        description="JSON file holding the saved-layout list",
    )


class LogSettings(BaseSettings):
    """Logging settings.

    Environment prefix: FORMGRID_LOG__
    Example: FORMGRID_LOG__LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="FORMGRID_LOG__",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: str = "%(name)s - %(levelname)s - %(message)s"


_SECTIONS: tuple[tuple[str, str], ...] = (
    ("Canvas", "canvas"),
    ("Widget Defaults", "widgets"),
    ("Bindings", "bindings"),
    ("Storage", "storage"),
    ("Logging", "log"),
)


def _toml_value(value: Any) -> str:
    """Render a dumped settings value as a TOML literal."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return str(value)


def _flat_value(value: Any) -> str:
    """Render a dumped settings value for an environment variable."""
    if isinstance(value, list):
        return ",".join(str(v) for v in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class FormGridSettings(BaseSettings):
    """Main settings aggregating all configuration sections.

    Environment prefix: FORMGRID_

    Configuration sources (in order of precedence):
    1. Built-in defaults
    2. pyproject.toml [tool.formgrid] section
    3. ./formgrid.toml (project-level)
    4. ~/.config/formgrid/config.toml (user-level, overrides project)
    5. FORMGRID_CONFIG_FILE
    6. Environment variables (highest priority)
    """

    model_config = SettingsConfigDict(
        env_prefix="FORMGRID_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    canvas: CanvasSettings = Field(default_factory=CanvasSettings)
    widgets: WidgetSettings = Field(default_factory=WidgetSettings)
    bindings: BindingSettings = Field(default_factory=BindingSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Place the TOML files between env vars and built-in defaults."""
        return (init_settings, env_settings, _TomlConfigSource(settings_cls))

    def _section_data(self) -> dict[str, dict[str, Any]]:
        data = self.model_dump(mode="json")
        # Bindable properties round-trip as "key:Label" strings
        data["bindings"]["properties"] = [
            f"{p['key']}:{p['label']}" for p in data["bindings"]["properties"]
        ]
        return data

    def to_toml(self) -> str:
        """Export settings as TOML string."""
        lines = ["# FormGrid Configuration", "# Generated by: formgrid config --toml", ""]
        data = self._section_data()
        for _, section_name in _SECTIONS:
            lines.append(f"[{section_name}]")
            for field_name, field_value in data[section_name].items():
                lines.append(f"{field_name} = {_toml_value(field_value)}")
            lines.append("")
        return "\n".join(lines)

    def to_env(self) -> str:
        """Export settings as shell environment variables."""
        lines = ["# FormGrid Environment Variables", "# Generated by: formgrid config --env", ""]
        data = self._section_data()
        for _, section_name in _SECTIONS:
            for field_name, field_value in data[section_name].items():
                env_name = f"FORMGRID_{section_name.upper()}__{field_name.upper()}"
                lines.append(f'export {env_name}="{_flat_value(field_value)}"')
        return "\n".join(lines)

    def show(self) -> str:
        """Format settings as a readable table."""
        lines = ["FormGrid Configuration", "=" * 60]
        data = self._section_data()
        for display_name, section_name in _SECTIONS:
            lines.append(f"\n{display_name}")
            lines.append("-" * 40)
            for field_name, field_value in data[section_name].items():
                value_str = str(field_value)
                if len(value_str) > 50:
                    value_str = value_str[:47] + "..."
                lines.append(f"  {field_name:20} = {value_str}")
        return "\n".join(lines)


@lru_cache(maxsize=1)
def get_settings() -> FormGridSettings:
    """Get the global settings instance (cached).

    Call clear_settings() to reload configuration.
    """
    return FormGridSettings()


def clear_settings() -> None:
    """Clear the cached settings to force reload."""
    get_settings.cache_clear()


def reload_settings() -> FormGridSettings:
    """Reload settings from all sources."""
    clear_settings()
    return get_settings()
