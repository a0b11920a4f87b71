"""Data models for the ESO add-on manager.

Provides the Package value type built from manifests, the error hierarchy
shared by the scanner, resolver and installer, and the report types the
closure engine folds its per-package results into.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


class AddonError(Exception):
    """Base class for expected, per-package failures."""


class ManifestNotFound(AddonError):
    """The package's manifest file does not exist."""


class ManifestReadError(AddonError):
    """The manifest exists but could not be read to the end."""


class LinkNotFound(AddonError):
    """No scrape hop produced a matching element."""


class NetworkError(AddonError):
    """Request or transport failure at any hop."""


class ArchiveError(AddonError):
    """The downloaded archive is corrupt, unreadable or unsafe."""


class InstallIOError(AddonError):
    """Filesystem failure while writing extracted entries."""


class InstallDirError(AddonError):
    """The install directory itself could not be listed."""


@dataclass(frozen=True)
class Package:
    """An installed add-on as declared by its manifest.

    Attributes:
        name: Install subdirectory name and manifest file stem
        title: Display title ("" when the manifest has none)
        description: Display description ("" when absent)
        version: Declared version string ("" when absent)
        dependencies: Declared DependsOn names, in manifest order
    """

    name: str
    title: str = ""
    description: str = ""
    version: str = ""
    dependencies: Tuple[str, ...] = ()

    def display_line(self) -> str:
        """Format the package the way ``list`` prints it."""
        return f"{self.title} {self.version} -- {self.description}"


@dataclass
class ResolutionOutcome:
    """Result of processing one worklist entry.

    Attributes:
        name: The worklist name (an add-on name, pinned name or pasted link)
        package: What ``name`` now stands for in the installed-set
        error: Why the fetch failed, if it did
        warning: Non-fatal problems met after installing
        provided: Packages read from the folders the archive wrote
    """

    name: str
    package: Optional[Package] = None
    error: Optional[AddonError] = None
    warning: Optional[str] = None
    provided: List[Package] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ResolutionReport:
    """Everything a closure run did, in processing order.

    Attributes:
        installed: Installed-set at the end of the run
        outcomes: One entry per name that was fetched (or attempted)
        skipped: Names discarded because they were already satisfied
        scan_warnings: Manifest problems met while listing the directory
    """

    installed: Dict[str, Package] = field(default_factory=dict)
    outcomes: List[ResolutionOutcome] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    scan_warnings: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> List[str]:
        """Names installed during this run, without repeats."""
        seen: List[str] = []
        for outcome in self.outcomes:
            if outcome.ok and outcome.name not in seen:
                seen.append(outcome.name)
        return seen

    @property
    def failures(self) -> Dict[str, AddonError]:
        """Last error recorded for each name that failed at least once."""
        return {o.name: o.error for o in self.outcomes if o.error is not None}

    @property
    def unresolved(self) -> Dict[str, AddonError]:
        """Failures that no later attempt in the same run recovered."""
        ok_names = set(self.succeeded)
        return {name: err for name, err in self.failures.items() if name not in ok_names}

    @property
    def warnings(self) -> List[str]:
        return list(self.scan_warnings) + [o.warning for o in self.outcomes if o.warning]
