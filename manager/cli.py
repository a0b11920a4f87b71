"""CLI entry point for the ESO add-on manager.

Commands:
1. list: Show every installed add-on with its title, version and description
2. install: Fetch the named add-ons (or pasted links) and their dependencies
3. update: Re-fetch everything installed, or only what is missing

The AddOns directory comes from --path, else the config file's addons_path,
else the platform default. All resolution logic lives in manager/closure.py.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Ensure parent directory is in path for direct script execution
if __package__ is None or __package__ == "":
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from addons.core.config import CONFIG_ENV_VAR, get_config, get_update_config
from addons.core.paths import resolve_addons_path
from addons.manifest import scan_installed
from addons.model import InstallDirError
from manager.closure import DependencyClosureEngine, ReinstallScope
from manager.console_ui import ConsoleUI, print_package_list, print_report

logger = logging.getLogger(__name__)

_SCOPE_CHOICES = [scope.value for scope in ReinstallScope]


def create_cli_parser() -> argparse.ArgumentParser:
    """Create the argument parser with list/install/update subcommands."""
    parser = argparse.ArgumentParser(
        prog="eso-addons",
        description="ESO add-on manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show installed add-ons
  eso-addons list

  # Install an add-on and everything it depends on
  eso-addons install LibAddonMenu-2.0 https://www.esoui.com/downloads/download7-LibAddonMenu-2.0

  # Fetch only dependencies that are missing
  eso-addons update --missing-only
        """,
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help=f"Config to load; defaults to ${CONFIG_ENV_VAR}, ~/.eso_addons.json or ~/.eso_addons. "
             "JSON files may set addons_path; the TOML ~/.eso_addons sets AddonsPath.",
    )
    parser.add_argument(
        "-p", "--path",
        default=None,
        help="Path to the ESO AddOns folder.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List installed add-ons.")

    install = sub.add_parser("install", help="Install add-ons and their dependencies.")
    install.add_argument("names", nargs="+", metavar="name", help="Add-on name or direct download-page link.")
    install.add_argument("--force", action="store_true", help="Reinstall names that are already present.")
    install.add_argument(
        "--scope",
        choices=_SCOPE_CHOICES,
        default=ReinstallScope.SEEDS_ONLY.value,
        help="With --force: reinstall only the named add-ons or their whole closure.",
    )

    update = sub.add_parser("update", help="Update installed add-ons and fetch missing dependencies.")
    update.add_argument("--missing-only", action="store_true", help="Only fetch dependencies that are not installed.")
    update.add_argument(
        "--scope",
        choices=_SCOPE_CHOICES,
        default=None,
        help="Reinstall only installed add-ons or their whole closure (default from config).",
    )

    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    # Reduce noisy connection logs from urllib3
    logging.getLogger("urllib3").setLevel(logging.ERROR)


def run_list(install_dir: str) -> int:
    installed, warnings = scan_installed(install_dir)
    print_package_list(installed, warnings)
    return 0


def run_install(install_dir: str, names: List[str], force: bool, scope: ReinstallScope) -> int:
    ConsoleUI.print_header("Installing add-ons", install_dir)
    engine = DependencyClosureEngine(install_dir, reinstall_scope=scope)
    report = engine.resolve_all(seed_names=names, force_reinstall=force)
    print_report(report)
    return 0


def run_update(install_dir: str, missing_only: bool, scope: ReinstallScope) -> int:
    ConsoleUI.print_header("Updating add-ons", install_dir)
    engine = DependencyClosureEngine(install_dir, reinstall_scope=scope)
    report = engine.resolve_all(force_reinstall=not missing_only)
    print_report(report)
    return 0


def _reinstall_scope(args: argparse.Namespace) -> Optional[ReinstallScope]:
    """Scope for install/update; None for commands that do not fetch."""
    if args.command == "list":
        return None
    value = args.scope or get_update_config()["reinstall_scope"]
    return ReinstallScope.parse(value)


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments and dispatch to the selected command.

    Returns:
        Process exit status
    """
    args = create_cli_parser().parse_args(argv)
    configure_logging(args.log_level)
    ConsoleUI.enable_ansi()

    get_config(force_reload=True, path=args.config)

    try:
        scope = _reinstall_scope(args)
    except ValueError as e:
        ConsoleUI.print_error(f"Invalid configuration: {e}")
        return 1

    try:
        install_dir = resolve_addons_path(args.path)
        if args.command == "list":
            return run_list(install_dir)
        if args.command == "install":
            return run_install(install_dir, args.names, args.force, scope)
        return run_update(install_dir, args.missing_only, scope)
    except InstallDirError as e:
        logger.critical("%s", e)
        ConsoleUI.print_error(str(e))
        return 1
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
