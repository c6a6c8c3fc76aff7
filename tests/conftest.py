"""Pytest configuration and fixtures."""

from __future__ import annotations

import os

from typing import TYPE_CHECKING

import pytest

from formgrid.bindings import BindingContext
from formgrid.canvas import CanvasState
from formgrid.config import FormGridSettings, clear_settings
from formgrid.grid import create_grid


if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path

    from formgrid.models import Grid


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep project, user and environment configuration out of every test."""
    for key in list(os.environ):
        if key.startswith("FORMGRID_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    clear_settings()
    yield
    clear_settings()


@pytest.fixture
def settings() -> FormGridSettings:
    """Default settings."""
    return FormGridSettings()


@pytest.fixture
def canvas(settings: FormGridSettings) -> CanvasState:
    """A fresh 1x3 canvas."""
    return CanvasState(settings=settings)


@pytest.fixture
def grid_2x4() -> Grid:
    """An empty 2x4 grid."""
    return create_grid(2, 4)


@pytest.fixture
def context(settings: FormGridSettings) -> BindingContext:
    """Binding values for the default bindable properties."""
    return BindingContext(settings.bindings.properties)
