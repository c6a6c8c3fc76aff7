"""Command-line interface for FormGrid configuration and saved layouts."""

from __future__ import annotations

import argparse
import os
import sys

from pathlib import Path
from typing import TYPE_CHECKING

from .exceptions import FormGridException


if TYPE_CHECKING:
    from collections.abc import Sequence

    from .config import FormGridSettings
    from .layouts import LayoutLibrary


def build_parser() -> argparse.ArgumentParser:
    """Build the ``formgrid`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="formgrid",
        description="FormGrid configuration and layout tools",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Show or export configuration",
    )
    config_group = config_parser.add_mutually_exclusive_group()
    config_group.add_argument(
        "--show",
        action="store_true",
        help="Show current configuration",
    )
    config_group.add_argument(
        "--toml",
        action="store_true",
        help="Export configuration as TOML",
    )
    config_group.add_argument(
        "--env",
        action="store_true",
        help="Export configuration as environment variables",
    )
    config_group.add_argument(
        "--sources",
        action="store_true",
        help="Show configuration file sources",
    )
    config_parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output file path (default: stdout)",
    )

    # init command
    init_parser = subparsers.add_parser(
        "init",
        help="Initialize a formgrid.toml configuration file",
    )
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Overwrite existing configuration file",
    )
    init_parser.add_argument(
        "--path",
        "-p",
        type=str,
        default="formgrid.toml",
        help="Path for configuration file (default: formgrid.toml)",
    )

    # layouts command
    layouts_parser = subparsers.add_parser(
        "layouts",
        help="List saved layouts",
    )
    layouts_parser.add_argument(
        "--file",
        type=str,
        default=None,
        help="Saved-layouts file (uses config default)",
    )

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Render a saved layout as HTML",
    )
    export_parser.add_argument("layout_id", help="Id of the saved layout")
    export_parser.add_argument(
        "--file",
        type=str,
        default=None,
        help="Saved-layouts file (uses config default)",
    )
    export_parser.add_argument(
        "--preview",
        action="store_true",
        help="Render resolved values instead of {{ key }} placeholders",
    )
    export_parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output file path (default: stdout)",
    )

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the main CLI entry point.

    Returns
    -------
    int
        Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    from .config import get_settings
    from .log import configure_from_settings

    settings = get_settings()
    configure_from_settings(settings.log)

    if args.command == "config":
        return handle_config(args)
    if args.command == "init":
        return handle_init(args)
    if args.command == "layouts":
        return handle_layouts(args, settings)
    if args.command == "export":
        return handle_export(args, settings)
    parser.print_help()
    return 0


def _write_output(output: str, destination: str | None, what: str) -> None:
    if destination:
        Path(destination).write_text(output, encoding="utf-8")
        print(f"{what} written to {destination}")
    else:
        print(output)


def handle_config(args: argparse.Namespace) -> int:
    """Handle the config command.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments.

    Returns
    -------
    int
        Exit code.
    """
    from .config import FormGridSettings

    if args.sources:
        return show_config_sources()

    settings = FormGridSettings()
    if args.toml:
        output = settings.to_toml()
    elif args.env:
        output = settings.to_env()
    else:
        output = settings.show()

    _write_output(output, args.output, "Configuration")
    return 0


def handle_init(args: argparse.Namespace) -> int:
    """Handle the init command.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments.

    Returns
    -------
    int
        Exit code.
    """
    from .config import FormGridSettings

    path = Path(args.path)

    if path.exists() and not args.force:
        print(f"Error: {path} already exists. Use --force to overwrite.", file=sys.stderr)
        return 1

    header = """# FormGrid Configuration File
#
# Environment variables can override any setting:
#   FORMGRID_CANVAS__INITIAL_COLS=4
#   FORMGRID_WIDGETS__RADIO_OPTIONS="Yes,No"
#   FORMGRID_BINDINGS__PROPERTIES="firstName:First name,lastName:Last name"
#   FORMGRID_LOG__LEVEL=DEBUG
#
# Use nested keys with __ (double underscore) delimiter.

"""
    path.write_text(header + FormGridSettings().to_toml(), encoding="utf-8")
    print(f"Created {path}")
    return 0


def _library(file: str | None, settings: FormGridSettings) -> LayoutLibrary:
    from .layouts import FileLayoutStore, LayoutLibrary

    return LayoutLibrary(FileLayoutStore(file or settings.storage.layouts_file))


def handle_layouts(args: argparse.Namespace, settings: FormGridSettings) -> int:
    """List the saved layouts in a layouts file."""
    library = _library(args.file, settings)
    if not library.has_layouts:
        print("No saved layouts.")
        return 0

    print(f"{'Id':<20} {'Name':<30} {'Size'}")
    print("-" * 60)
    for layout in library.layouts:
        size = f"{layout.state.row_count}x{layout.state.col_count}"
        print(f"{layout.id:<20} {layout.name:<30} {size}")
    return 0


def handle_export(args: argparse.Namespace, settings: FormGridSettings) -> int:
    """Render one saved layout to HTML."""
    from .bindings import BindingContext
    from .export import render_html

    library = _library(args.file, settings)
    try:
        layout = library.require_layout(args.layout_id)
    except FormGridException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.preview:
        output = render_html(
            layout.state, BindingContext(settings.bindings.properties), mode="preview"
        )
    else:
        output = render_html(layout.state)

    _write_output(output, args.output, "Layout")
    return 0


def show_config_sources() -> int:
    """Show configuration file sources and their status.

    Returns
    -------
    int
        Exit code.
    """
    from .config import _user_config_path

    explicit = os.environ.get("FORMGRID_CONFIG_FILE")
    sources = [
        ("Built-in defaults", None),
        ("pyproject.toml [tool.formgrid]", Path("pyproject.toml")),
        ("./formgrid.toml", Path("formgrid.toml")),
        ("User config", _user_config_path()),
        ("FORMGRID_CONFIG_FILE", Path(explicit).expanduser() if explicit else None),
    ]

    print("Configuration Sources (in order of precedence):\n")
    print(f"{'Source':<40} {'Status':<15} {'Path'}")
    print("-" * 80)

    for name, path in sources:
        if name == "Built-in defaults":
            status, path_display = "✓ Active", ""
        elif path is None:
            status, path_display = "✗ Not set", ""
        elif path.exists():
            status, path_display = "✓ Found", str(path)
        else:
            status, path_display = "✗ Not found", str(path)
        print(f"{name:<40} {status:<15} {path_display}")

    env_vars = [k for k in os.environ if k.startswith("FORMGRID_") and k != "FORMGRID_CONFIG_FILE"]
    if env_vars:
        shown = ", ".join(env_vars[:3]) + ("..." if len(env_vars) > 3 else "")
        print(f"{'Environment variables':<40} {f'✓ {len(env_vars)} vars':<15} {shown}")
    else:
        print(f"{'Environment variables':<40} {'✗ No vars':<15}")

    print("\nNote: Later sources override earlier ones.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
