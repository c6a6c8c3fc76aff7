"""Tests for CLI module.

Tests the command-line interface for configuration and saved layouts.
"""

from __future__ import annotations

import pytest

from formgrid.cli import main
from formgrid.grid import create_grid
from formgrid.layouts import FileLayoutStore, LayoutLibrary


@pytest.fixture
def layouts_file(tmp_path, canvas):
    """A layouts file holding one saved layout with a bound input."""
    widget_id = canvas.place_widget(0, 0, "input")
    canvas.set_value_binding(widget_id, "textValue")
    path = tmp_path / "layouts.json"
    library = LayoutLibrary(FileLayoutStore(path))
    saved = library.add_layout("Signup", canvas.grid)
    library.add_layout("Blank", create_grid(2, 2))
    return path, saved.id


class TestMainEntryPoint:
    """Tests for CLI main entry point."""

    def test_no_args_prints_help(self, capsys):
        """Running with no args prints help text."""
        assert main([]) == 0
        output = capsys.readouterr().out
        assert "usage:" in output.lower()
        for command in ("config", "init", "layouts", "export"):
            assert command in output

    def test_help_flag_exits(self):
        """--help exits with status 0."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0


class TestConfigCommand:
    """Tests for the config command."""

    def test_show_default(self, capsys):
        """config without flags shows the settings table."""
        assert main(["config"]) == 0
        assert "FormGrid Configuration" in capsys.readouterr().out

    def test_toml(self, capsys):
        """config --toml prints TOML."""
        assert main(["config", "--toml"]) == 0
        assert "[canvas]" in capsys.readouterr().out

    def test_env(self, capsys):
        """config --env prints export lines."""
        assert main(["config", "--env"]) == 0
        assert "export FORMGRID_LOG__LEVEL=" in capsys.readouterr().out

    def test_sources(self, capsys):
        """config --sources lists the configuration sources."""
        assert main(["config", "--sources"]) == 0
        output = capsys.readouterr().out
        assert "Built-in defaults" in output
        assert "./formgrid.toml" in output

    def test_output_file(self, tmp_path, capsys):
        """-o writes to a file instead of stdout."""
        out = tmp_path / "out.toml"
        assert main(["config", "--toml", "-o", str(out)]) == 0
        assert "[widgets]" in out.read_text(encoding="utf-8")
        assert "written to" in capsys.readouterr().out

    def test_mutually_exclusive(self):
        """Only one output format can be chosen."""
        with pytest.raises(SystemExit):
            main(["config", "--toml", "--env"])


class TestInitCommand:
    """Tests for the init command."""

    def test_creates_file(self, tmp_path):
        """init writes formgrid.toml with a header."""
        assert main(["init"]) == 0
        content = (tmp_path / "formgrid.toml").read_text(encoding="utf-8")
        assert content.startswith("# FormGrid Configuration File")
        assert "[bindings]" in content

    def test_refuses_overwrite(self, tmp_path, capsys):
        """An existing file is kept unless --force is given."""
        target = tmp_path / "custom.toml"
        target.write_text("keep", encoding="utf-8")
        assert main(["init", "--path", str(target)]) == 1
        assert "already exists" in capsys.readouterr().err
        assert target.read_text(encoding="utf-8") == "keep"
        assert main(["init", "--path", str(target), "--force"]) == 0
        assert "[canvas]" in target.read_text(encoding="utf-8")


class TestLayoutsCommand:
    """Tests for the layouts command."""

    def test_lists_layouts(self, layouts_file, capsys):
        """Saved layouts are listed with their size."""
        path, layout_id = layouts_file
        assert main(["layouts", "--file", str(path)]) == 0
        output = capsys.readouterr().out
        assert layout_id in output
        assert "Signup" in output
        assert "1x3" in output
        assert "2x2" in output

    def test_empty(self, tmp_path, capsys):
        """A missing file reports no layouts."""
        assert main(["layouts", "--file", str(tmp_path / "none.json")]) == 0
        assert "No saved layouts." in capsys.readouterr().out


class TestExportCommand:
    """Tests for the export command."""

    def test_template(self, layouts_file, capsys):
        """Export renders the layout with symbolic bindings."""
        path, layout_id = layouts_file
        assert main(["export", layout_id, "--file", str(path)]) == 0
        output = capsys.readouterr().out
        assert "<table" in output
        assert 'value="{{ textValue }}"' in output

    def test_preview(self, layouts_file, capsys):
        """--preview resolves bindings."""
        path, layout_id = layouts_file
        assert main(["export", layout_id, "--file", str(path), "--preview"]) == 0
        assert "{{" not in capsys.readouterr().out

    def test_output_file(self, layouts_file, tmp_path):
        """-o writes the HTML to a file."""
        path, layout_id = layouts_file
        out = tmp_path / "form.html"
        assert main(["export", layout_id, "--file", str(path), "-o", str(out)]) == 0
        assert out.read_text(encoding="utf-8").startswith("<table")

    def test_unknown_layout(self, layouts_file, capsys):
        """Unknown ids fail with an error message."""
        path, _ = layouts_file
        assert main(["export", "layout-missing", "--file", str(path)]) == 1
        assert "Saved layout not found" in capsys.readouterr().err
