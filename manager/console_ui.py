"""Console output helpers for the add-on manager.

Styled print helpers (ANSI colors) and the report printers the CLI commands
use to show installed add-ons and closure results.
"""
from __future__ import annotations

import sys
from typing import Dict, Iterable

from addons.model import Package, ResolutionReport


class ConsoleUI:
    """Simple console UI utilities with ANSI color support."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    RED = "\033[91m"

    @staticmethod
    def enable_ansi() -> None:
        """Enable ANSI escape codes on Windows."""
        if sys.platform == "win32":
            try:
                import ctypes
                kernel32 = ctypes.windll.kernel32
                kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
            except (ImportError, AttributeError, OSError):
                pass

    @staticmethod
    def print_header(title: str, install_dir: str = "") -> None:
        """Print a command banner naming the AddOns directory it works on."""
        rule = f"{ConsoleUI.BOLD}{ConsoleUI.CYAN}{'=' * 60}{ConsoleUI.RESET}"
        print(rule)
        print(f"{ConsoleUI.BOLD}{ConsoleUI.CYAN}  {title}{ConsoleUI.RESET}")
        if install_dir:
            print(f"{ConsoleUI.DIM}  AddOns: {install_dir}{ConsoleUI.RESET}")
        print(rule)

    @staticmethod
    def print_info(label: str, message: str) -> None:
        print(f"{ConsoleUI.BLUE}[{label}]{ConsoleUI.RESET} {message}")

    @staticmethod
    def print_success(message: str) -> None:
        print(f"{ConsoleUI.GREEN}✓ {message}{ConsoleUI.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        print(f"{ConsoleUI.YELLOW}⚠ {message}{ConsoleUI.RESET}")

    @staticmethod
    def print_error(message: str) -> None:
        print(f"{ConsoleUI.RED}✗ {message}{ConsoleUI.RESET}")


def print_package_list(packages: Dict[str, Package], warnings: Iterable[str] = ()) -> None:
    """Print one ``title version -- description`` line per add-on."""
    for warning in warnings:
        ConsoleUI.print_warning(warning)
    for name in sorted(packages):
        print(packages[name].display_line())


def print_report(report: ResolutionReport) -> None:
    """Summarize a closure run: installed, skipped, failed, warnings."""
    for warning in report.warnings:
        ConsoleUI.print_warning(warning)

    skipped = sorted(set(report.skipped))
    if skipped:
        ConsoleUI.print_info("Already installed", ", ".join(skipped))

    succeeded = report.succeeded
    if succeeded:
        ConsoleUI.print_success(f"Installed {len(succeeded)} add-on(s): {', '.join(succeeded)}")
    elif not report.outcomes:
        ConsoleUI.print_success("All dependencies are already installed.")

    for name, error in report.unresolved.items():
        ConsoleUI.print_error(f"Failed to install add-on {name}: {error}")
