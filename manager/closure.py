"""Dependency closure resolution for installed add-ons.

This module drives the "what is missing, fetch it, re-scan it, repeat" loop:
- Scan the AddOns directory into the installed-set
- Seed a worklist (declared dependencies, requested names, or everything)
- Pop names one at a time, fetching the ones that are not satisfied
- Append the dependencies of each freshly installed add-on to the tail

The folders an archive actually unpacked are re-scanned, so a pinned name
("LibFoo-2.0") or a pasted link still brings in what the add-on declares.
When names are requested explicitly, one that is already installed is not
fetched again but its declared dependencies are still queued.

Failures are folded into a ResolutionReport; one broken dependency never stops
its siblings from being resolved. Only an unreadable AddOns directory aborts.
"""
from __future__ import annotations

import dataclasses
import enum
import logging
from collections import deque
from typing import Deque, Dict, Iterable, List, Optional, Set

from addons.esoui_api import CatalogLinkResolver
from addons.installer import PackageInstaller, top_level_folders
from addons.manifest import manifest_path, scan_installed, scan_manifest
from addons.model import (
    AddonError,
    ManifestNotFound,
    ManifestReadError,
    Package,
    ResolutionOutcome,
    ResolutionReport,
)

logger = logging.getLogger(__name__)


class ReinstallScope(enum.Enum):
    """Which worklist names a forced run fetches again."""

    SEEDS_ONLY = "seeds_only"
    FULL_CLOSURE = "full_closure"

    @classmethod
    def parse(cls, value) -> "ReinstallScope":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown reinstall scope {value!r} (expected one of: {valid})") from None


class DependencyClosureEngine:
    """Compute and satisfy the full dependency set of the AddOns directory."""

    def __init__(
        self,
        install_dir: str,
        resolver: Optional[CatalogLinkResolver] = None,
        installer: Optional[PackageInstaller] = None,
        reinstall_scope: ReinstallScope = ReinstallScope.FULL_CLOSURE,
    ):
        self.install_dir = install_dir
        self.resolver = resolver or CatalogLinkResolver()
        self.installer = installer or PackageInstaller()
        self.reinstall_scope = ReinstallScope.parse(reinstall_scope)

    def resolve_all(
        self,
        seed_names: Optional[Iterable[str]] = None,
        force_reinstall: bool = False,
    ) -> ResolutionReport:
        """Drain the worklist until every reachable dependency was handled.

        Args:
            seed_names: Names to install; None resolves what the installed
                add-ons declare
            force_reinstall: Fetch names even when they are installed (see
                ``reinstall_scope`` for which ones)

        Returns:
            ResolutionReport with the final installed-set and per-name outcomes

        Raises:
            InstallDirError: The AddOns directory cannot be listed
        """
        installed, scan_warnings = scan_installed(self.install_dir)
        report = ResolutionReport(installed=installed, scan_warnings=scan_warnings)

        worklist = self._seed(installed, seed_names, force_reinstall)
        seeds: Set[str] = set(worklist)
        refreshed: Set[str] = set()
        # Installed names whose dependencies were already queued
        expanded: Set[str] = set()
        expand_installed = seed_names is not None
        logger.info("Resolving %d queued name(s) in %s", len(worklist), self.install_dir)

        while worklist:
            name = worklist.popleft()
            forced = force_reinstall and (
                self.reinstall_scope is ReinstallScope.FULL_CLOSURE or name in seeds
            )
            if name in installed and (not forced or name in refreshed):
                report.skipped.append(name)
                if expand_installed and name not in expanded:
                    expanded.add(name)
                    worklist.extend(installed[name].dependencies)
                continue

            outcome = self._fetch(name)
            report.outcomes.append(outcome)
            if not outcome.ok:
                continue

            installed[name] = outcome.package
            refreshed.add(name)
            expanded.add(name)
            for package in outcome.provided:
                installed[package.name] = package
                refreshed.add(package.name)
                expanded.add(package.name)
                worklist.extend(package.dependencies)

        unresolved = report.unresolved
        if unresolved:
            logger.warning("Unresolved add-ons: %s", ", ".join(unresolved))
        return report

    def _seed(
        self,
        installed: Dict[str, Package],
        seed_names: Optional[Iterable[str]],
        force_reinstall: bool,
    ) -> Deque[str]:
        if seed_names is not None:
            return deque(seed_names)

        declared: List[str] = []
        for package in installed.values():
            declared.extend(package.dependencies)
        if force_reinstall:
            return deque(list(installed) + declared)
        return deque(declared)

    def _fetch(self, name: str) -> ResolutionOutcome:
        logger.info("Updating add-on: %s", name)
        try:
            url = self.resolver.resolve(name)
            written = self.installer.install(url, self.install_dir)
        except AddonError as e:
            logger.error("Failed to install add-on %s: %s", name, e)
            return ResolutionOutcome(name=name, error=e)

        # A pinned name or a pasted link does not match the folder it unpacks to
        folders = top_level_folders(self.install_dir, written or []) or [name]
        provided: List[Package] = []
        warnings: List[str] = []
        for folder in folders:
            try:
                provided.append(scan_manifest(manifest_path(self.install_dir, folder), folder))
            except (ManifestNotFound, ManifestReadError) as e:
                logger.warning("Installed %s but could not read its manifest: %s", folder, e)
                warnings.append(str(e))

        package = next((p for p in provided if p.name == name), None)
        if package is None and provided:
            package = dataclasses.replace(provided[0], name=name)
        if package is None:
            package = Package(name=name)

        logger.info("Done installing %s %s", name, package.version)
        return ResolutionOutcome(
            name=name,
            package=package,
            warning="; ".join(warnings) or None,
            provided=provided,
        )
