"""ESO add-on manager library.

This package finds, downloads and installs Elder Scrolls Online add-ons from
the ESOUI catalog.

Key modules:
- core: Configuration, HTTP session and default path selection
- model: Package value type, error hierarchy and resolution report
- manifest: Manifest scanning and installed-set listing
- html_scan: Forward-only HTML scanner for the catalog scrape
- esoui_api: Catalog link resolution (search, redirect, CDN hops)
- installer: Archive download and extraction

Usage:
    from addons.esoui_api import CatalogLinkResolver
    from addons.installer import PackageInstaller
    from addons.manifest import scan_manifest
"""

from .model import (
    AddonError,
    ArchiveError,
    InstallDirError,
    InstallIOError,
    LinkNotFound,
    ManifestNotFound,
    ManifestReadError,
    NetworkError,
    Package,
    ResolutionOutcome,
    ResolutionReport,
)

__all__ = [
    "AddonError",
    "ArchiveError",
    "InstallDirError",
    "InstallIOError",
    "LinkNotFound",
    "ManifestNotFound",
    "ManifestReadError",
    "NetworkError",
    "Package",
    "ResolutionOutcome",
    "ResolutionReport",
]
