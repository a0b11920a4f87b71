"""Main package for the ESO add-on manager.

This package contains:
- cli: Command-line entry point (list, install, update)
- closure: Dependency closure engine driving resolve/install/re-scan
- console_ui: Styled console output and report printing
"""

__all__ = [
    "cli",
    "closure",
    "console_ui",
]
