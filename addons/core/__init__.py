"""Core utilities for the ESO add-on manager.

- config: Configuration loading and section defaults
- network: Shared HTTP session and streamed requests
- paths: Default AddOns directory selection
"""

__all__ = [
    "config",
    "network",
    "paths",
]
