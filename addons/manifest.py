"""Manifest scanning for installed add-ons.

Every add-on ships ``<name>/<name>.txt`` with directives of the form
``## Key: Value``. Only Title, Description, Version and DependsOn are read;
any other line is ignored so newer manifest keys never break a scan.
"""
from __future__ import annotations

import logging
import os
import re
from typing import Dict, List, Optional, Tuple

from .model import InstallDirError, ManifestNotFound, ManifestReadError, Package

logger = logging.getLogger(__name__)

_DIRECTIVE_RE = re.compile(r"^##\s*([A-Za-z][\w]*)\s*:\s?(.*?)\s*$")

_FIELD_FOR_KEY = {
    "Title": "title",
    "Description": "description",
    "Version": "version",
}


def manifest_path(install_dir: str, name: str) -> str:
    """Conventional manifest location for an installed add-on."""
    return os.path.join(install_dir, name, f"{name}.txt")


def parse_depends(value: str) -> Tuple[str, ...]:
    """Split a DependsOn value; an empty value yields no names."""
    return tuple(part for part in value.split(" ") if part)


def scan_manifest(path: str, name: Optional[str] = None) -> Package:
    """Read one manifest file into a Package.

    Args:
        path: Manifest file path
        name: Package name (defaults to the file stem)

    Returns:
        Package with every recognized directive applied

    Raises:
        ManifestNotFound: The file does not exist
        ManifestReadError: The file could not be opened or read to the end
    """
    if name is None:
        name = os.path.splitext(os.path.basename(path))[0]

    fields: Dict[str, str] = {}
    depends: Tuple[str, ...] = ()
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            for line in f:
                match = _DIRECTIVE_RE.match(line)
                if match is None:
                    continue
                key, value = match.group(1), match.group(2)
                if key == "DependsOn":
                    depends = parse_depends(value)
                elif key in _FIELD_FOR_KEY:
                    fields[_FIELD_FOR_KEY[key]] = value
    except FileNotFoundError as e:
        raise ManifestNotFound(f"No manifest at {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestReadError(f"Failed to read {path}: {e}") from e

    return Package(name=name, dependencies=depends, **fields)


def scan_installed(install_dir: str) -> Tuple[Dict[str, Package], List[str]]:
    """Scan every immediate subdirectory of the AddOns folder.

    Returns:
        Tuple of (installed-set keyed by directory name, warning messages)

    Raises:
        InstallDirError: The directory itself cannot be listed
    """
    logger.info("Walking dir %s", install_dir)
    try:
        entries = sorted(os.listdir(install_dir))
    except OSError as e:
        raise InstallDirError(f"Cannot list install directory {install_dir}: {e}") from e

    installed: Dict[str, Package] = {}
    warnings: List[str] = []
    for entry in entries:
        if not os.path.isdir(os.path.join(install_dir, entry)):
            continue
        logger.debug("Looking at %s", entry)
        path = manifest_path(install_dir, entry)
        try:
            installed[entry] = scan_manifest(path, entry)
        except (ManifestNotFound, ManifestReadError) as e:
            logger.warning("Got error in %s: %s", path, e)
            warnings.append(str(e))

    return installed, warnings
