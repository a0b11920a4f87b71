"""Download and extraction of add-on archives.

The archive is streamed into a temporary file, then every zip entry is written
under the AddOns directory using the entry's own path (which normally starts
with the add-on's folder name). Nothing is cleaned beforehand: installing the
same archive again overwrites the same files.
"""
from __future__ import annotations

import logging
import os
import shutil
import tempfile
import zipfile
import zlib
from typing import List, Optional

import requests

from .core.network import iter_body, open_stream
from .model import ArchiveError, InstallIOError

logger = logging.getLogger(__name__)

DEFAULT_FILE_MODE = 0o644


def _entry_mode(info: zipfile.ZipInfo) -> int:
    """Permission bits stored for an entry (unix archives keep them high)."""
    mode = (info.external_attr >> 16) & 0o777
    return mode or DEFAULT_FILE_MODE


def _destination(install_dir: str, entry_name: str) -> str:
    root = os.path.abspath(install_dir)
    dest = os.path.abspath(os.path.join(root, entry_name))
    if dest != root and not dest.startswith(root + os.sep):
        raise ArchiveError(f"Archive entry {entry_name!r} points outside {install_dir}")
    return dest


def top_level_folders(install_dir: str, paths: List[str]) -> List[str]:
    """Names of the add-on folders that ``paths`` were written into, in order.

    Files stored at the archive root belong to no folder and are left out.
    """
    root = os.path.abspath(install_dir)
    folders: List[str] = []
    for path in paths:
        parts = os.path.relpath(os.path.abspath(path), root).split(os.sep)
        if len(parts) > 1 and parts[0] not in folders:
            folders.append(parts[0])
    return folders


class PackageInstaller:
    """Materialize a remote zip archive inside the AddOns directory."""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session

    def install(self, url: str, install_dir: str) -> List[str]:
        """Download ``url`` and extract it into ``install_dir``.

        Returns:
            Paths of the files written

        Raises:
            NetworkError: The download failed
            ArchiveError: The file is not a readable zip archive
            InstallIOError: An entry could not be written
        """
        fd, tmp_path = tempfile.mkstemp(prefix="addon-", suffix=".zip")
        try:
            with os.fdopen(fd, "wb") as tmp:
                logger.info("Downloading %s to %s", url, tmp_path)
                self.download(url, tmp)
            logger.info("Extracting file...")
            return self.extract(tmp_path, install_dir)
        finally:
            try:
                os.remove(tmp_path)
            except FileNotFoundError:
                pass

    def download(self, url: str, fileobj) -> int:
        """Stream the body of ``url`` into an open binary file."""
        written = 0
        with open_stream("GET", url, session=self.session) as resp:
            for chunk in iter_body(resp):
                try:
                    fileobj.write(chunk)
                except OSError as e:
                    raise InstallIOError(f"Failed to write download buffer: {e}") from e
                written += len(chunk)
        logger.debug("Fetched %d bytes from %s", written, url)
        return written

    def extract(self, archive_path: str, install_dir: str) -> List[str]:
        """Write every archive entry below ``install_dir``."""
        try:
            archive = zipfile.ZipFile(archive_path)
        except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise ArchiveError(f"Downloaded file is not a valid zip archive: {e}") from e

        written: List[str] = []
        with archive:
            for info in archive.infolist():
                dest = _destination(install_dir, info.filename)
                try:
                    if info.is_dir():
                        os.makedirs(dest, exist_ok=True)
                        continue
                    os.makedirs(os.path.dirname(dest), exist_ok=True)
                    self._write_entry(archive, info, dest)
                except OSError as e:
                    raise InstallIOError(f"Failed to write {dest}: {e}") from e
                written.append(dest)

        logger.debug("Extracted %d files into %s", len(written), install_dir)
        return written

    @staticmethod
    def _write_entry(archive: zipfile.ZipFile, info: zipfile.ZipInfo, dest: str) -> None:
        fd = os.open(dest, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _entry_mode(info))
        with os.fdopen(fd, "wb") as out:
            try:
                src = archive.open(info)
            except (zipfile.BadZipFile, RuntimeError, NotImplementedError) as e:
                raise ArchiveError(f"Cannot open archive entry {info.filename}: {e}") from e
            with src:
                try:
                    shutil.copyfileobj(src, out)
                except (zipfile.BadZipFile, EOFError, zlib.error) as e:
                    raise ArchiveError(f"Corrupt archive entry {info.filename}: {e}") from e
