#!/usr/bin/env python3
"""
MissionControl CLI
Command-line tools to inspect and validate configuration files and launch
catalog manifests.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .catalog import Catalog, LaunchParameter, load_catalog
from .config import Config, load_config, save_config
from .errors import MissionControlError
from .utils.logging import configure_from_cli, get_cli_args_parser

console = Console()
err_console = Console(stderr=True)


def print_error(error: Exception) -> None:
    """Print an error, with its suggested fix when it has one."""
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(error))}", highlight=False)
    if isinstance(error, MissionControlError):
        err_console.print(f"[yellow]{escape(error.suggested_fix())}[/yellow]", highlight=False)


# =============================================================================
# config
# =============================================================================


def _config_table(config: Config, source: str) -> Table:
    table = Table(title=f"Configuration ({source})")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")

    table.add_row("ControlEndPoints", escape("\n".join(config.control_end_points)) or "-")
    table.add_row("LaunchPadsEntry", escape(config.launch_pads_entry or "-"))
    if config.storage_folders:
        folders = "\n".join(
            f"{f.path} (max {f.maximum_size or 'unlimited'})" for f in config.storage_folders
        )
    else:
        folders = "-"
    table.add_row("StorageFolders", escape(folders))
    table.add_row("HealthMonitoringIntervalSec", str(config.health_monitoring_interval_sec))
    table.add_row("LaunchPadFeedbackTimeoutSec", str(config.launch_pad_feedback_timeout_sec))
    return table


def config_show(args) -> int:
    """Display a configuration file, or the defaults without one."""
    if args.path:
        config = load_config(args.path)
        source = str(args.path)
    else:
        config = Config()
        source = "defaults"

    if args.format == "json":
        console.print_json(config.to_json())
    elif args.format == "yaml":
        console.print(
            yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False),
            end="",
            markup=False,
            highlight=False,
        )
    else:
        console.print(_config_table(config, source))
    return 0


def config_validate(args) -> int:
    """Load a configuration file and report the first problem found."""
    load_config(args.path)
    console.print(f"[green]Configuration is valid:[/green] {args.path}", highlight=False)
    return 0


def config_init(args) -> int:
    """Write a configuration file holding the default values."""
    path = Path(args.path)
    if path.exists() and not args.force:
        err_console.print(
            f"[bold red]Error:[/bold red] {path} already exists (use --force to overwrite)",
            highlight=False,
        )
        return 1

    save_config(Config(), path)
    console.print(f"[green]Created configuration file:[/green] {path}", highlight=False)
    return 0


# =============================================================================
# manifest
# =============================================================================


def _describe_constraint(parameter: LaunchParameter) -> str:
    if parameter.constraint is None:
        return ""
    data = parameter.constraint.to_dict()
    kind = data.pop("type")
    details = ", ".join(f"{k}={v}" for k, v in data.items() if v not in (None, False, ""))
    return f"{kind}({details})" if details else kind


def _parameters_table(title: str, parameters: List[LaunchParameter]) -> Table:
    table = Table(title=title)
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Default")
    table.add_column("Constraint")
    table.add_column("Flags")

    for parameter in parameters:
        flags = []
        if parameter.to_be_revised_by_capcom:
            flags.append("capcom")
        if parameter.hidden:
            flags.append("hidden")
        table.add_row(
            escape(parameter.id),
            parameter.type.value if parameter.type is not None else "any",
            "" if parameter.default_value is None else escape(str(parameter.default_value)),
            escape(_describe_constraint(parameter)),
            ", ".join(flags),
        )
    return table


def _catalog_table(catalog: Catalog, source: str) -> Table:
    table = Table(title=f"Launch catalog ({source})")
    table.add_column("Launchable", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Payloads")
    table.add_column("Parameters", justify="right")

    for launchable in catalog.launchables:
        table.add_row(
            escape(launchable.name),
            escape(launchable.type),
            escape(", ".join(launchable.payloads)),
            str(len(launchable.all_parameters())),
        )
    return table


def manifest_validate(args) -> int:
    """Load a launch catalog and validate every launch parameter."""
    catalog = load_catalog(args.path)
    parameter_count = sum(len(l.all_parameters()) for l in catalog.launchables)
    console.print(
        f"[green]Launch catalog is valid:[/green] {args.path} "
        f"({len(catalog.launchables)} launchables, {len(catalog.payloads)} payloads, "
        f"{parameter_count} parameters)",
        highlight=False,
    )
    return 0


def manifest_show(args) -> int:
    """Display a launch catalog, or the parameters of one launchable."""
    catalog = load_catalog(args.path)

    if args.format == "json":
        console.print_json(json.dumps(catalog.to_dict()))
        return 0

    if args.launchable is None:
        console.print(_catalog_table(catalog, str(args.path)))
        return 0

    launchable = catalog.get_launchable(args.launchable)
    if launchable is None:
        err_console.print(
            f"[bold red]Error:[/bold red] No launchable named '{escape(args.launchable)}'",
            highlight=False,
        )
        return 1

    for title, parameters in (
        ("Global parameters", launchable.global_parameters),
        ("Launch complex parameters", launchable.launch_complex_parameters),
        ("Launchpad parameters", launchable.launch_pad_parameters),
    ):
        if parameters:
            console.print(_parameters_table(f"{launchable.name}: {title}", parameters))
    return 0


# =============================================================================
# Parser
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="missioncontrol",
        description="Inspect and validate mission control configuration and launch catalogs",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    for flags, options in get_cli_args_parser():
        parser.add_argument(*flags, **options)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # config
    config_parser = subparsers.add_parser("config", help="Manage configuration files")
    config_subparsers = config_parser.add_subparsers(dest="config_action", help="Config actions")

    config_show_parser = config_subparsers.add_parser("show", help="Display a configuration")
    config_show_parser.add_argument("path", nargs="?", help="Configuration file (default: built-in defaults)")
    config_show_parser.add_argument("--format", choices=["table", "json", "yaml"], default="table")
    config_show_parser.set_defaults(func=config_show)

    config_validate_parser = config_subparsers.add_parser("validate", help="Validate a configuration file")
    config_validate_parser.add_argument("path", help="Configuration file (.json, .yaml, .yml)")
    config_validate_parser.set_defaults(func=config_validate)

    config_init_parser = config_subparsers.add_parser("init", help="Create a default configuration file")
    config_init_parser.add_argument("path", help="File to create (.json, .yaml, .yml)")
    config_init_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")
    config_init_parser.set_defaults(func=config_init)

    # manifest
    manifest_parser = subparsers.add_parser("manifest", help="Inspect launch catalog manifests")
    manifest_subparsers = manifest_parser.add_subparsers(dest="manifest_action", help="Manifest actions")

    manifest_validate_parser = manifest_subparsers.add_parser("validate", help="Validate a launch catalog")
    manifest_validate_parser.add_argument("path", help="Launch catalog file (.json, .yaml, .yml)")
    manifest_validate_parser.set_defaults(func=manifest_validate)

    manifest_show_parser = manifest_subparsers.add_parser("show", help="Display a launch catalog")
    manifest_show_parser.add_argument("path", help="Launch catalog file (.json, .yaml, .yml)")
    manifest_show_parser.add_argument("--launchable", help="Show the parameters of this launchable")
    manifest_show_parser.add_argument("--format", choices=["table", "json"], default="table")
    manifest_show_parser.set_defaults(func=manifest_show)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Process exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_from_cli(
        log_level=args.log_level,
        log_format=args.log_format,
        log_file=args.log_file,
    )

    if getattr(args, "func", None) is None:
        if args.command == "config":
            parser.parse_args(["config", "--help"])
        elif args.command == "manifest":
            parser.parse_args(["manifest", "--help"])
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except KeyboardInterrupt:
        err_console.print("\nOperation cancelled by user")
        return 1
    except (MissionControlError, FileNotFoundError, OSError) as e:
        print_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
