"""Pytest configuration and shared fixtures for the add-on manager tests."""
from __future__ import annotations

import io
import os
import shutil
import tempfile
import zipfile
from typing import Any, Callable, Dict, Generator, Iterable, List, Optional, Tuple

import pytest
import requests


CATALOG_URL = "https://catalog.test"
SEARCH_URL = CATALOG_URL + "/downloads/search.php"


# ============================================================================
# Path and Directory Fixtures
# ============================================================================

@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for test files."""
    dirpath = tempfile.mkdtemp(prefix="addons_test_")
    yield dirpath
    shutil.rmtree(dirpath, ignore_errors=True)


@pytest.fixture
def addons_dir(temp_dir: str) -> str:
    """Create an empty AddOns directory."""
    path = os.path.join(temp_dir, "AddOns")
    os.makedirs(path, exist_ok=True)
    return path


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def isolated_config():
    """Run every test against an empty config and a fresh HTTP session."""
    from addons.core import config, network

    saved_cache, saved_session = config._CONFIG_CACHE, network._SESSION
    config._CONFIG_CACHE = {}
    network._SESSION = None
    yield
    config._CONFIG_CACHE = saved_cache
    network._SESSION = saved_session


# ============================================================================
# Manifest and Archive Fixtures
# ============================================================================

@pytest.fixture
def write_manifest() -> Callable[..., str]:
    """Factory writing ``<dir>/<name>/<name>.txt`` from directive pairs."""

    def _write(install_dir: str, name: str, depends: Optional[str] = None, **fields: str) -> str:
        folder = os.path.join(install_dir, name)
        os.makedirs(folder, exist_ok=True)
        lines = [f"## Title: {fields.get('title', name)}"]
        if "version" in fields:
            lines.append(f"## Version: {fields['version']}")
        if "description" in fields:
            lines.append(f"## Description: {fields['description']}")
        if depends is not None:
            lines.append(f"## DependsOn: {depends}")
        lines.append(f"{name}.lua")
        path = os.path.join(folder, f"{name}.txt")
        with open(path, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")
        return path

    return _write


@pytest.fixture
def make_zip() -> Callable[[Iterable[Tuple[str, Any]]], bytes]:
    """Factory building zip bytes from (name, content) pairs.

    A name ending in "/" is stored as a directory entry; content may be str
    or bytes.
    """

    def _make(entries: Iterable[Tuple[str, Any]]) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            for name, content in entries:
                if name.endswith("/"):
                    zf.writestr(zipfile.ZipInfo(name), b"")
                    continue
                info = zipfile.ZipInfo(name)
                info.external_attr = 0o644 << 16
                zf.writestr(info, content)
        return buf.getvalue()

    return _make


@pytest.fixture
def addon_zip(make_zip) -> Callable[..., bytes]:
    """Factory for a minimal add-on archive with a manifest and a lua file."""

    def _make(name: str, depends: str = "", version: str = "1.0") -> bytes:
        manifest = f"## Title: {name}\n## Version: {version}\n## DependsOn: {depends}\n{name}.lua\n"
        return make_zip([
            (f"{name}/", None),
            (f"{name}/{name}.txt", manifest),
            (f"{name}/{name}.lua", "-- lua\n"),
        ])

    return _make


# ============================================================================
# HTTP Fakes
# ============================================================================

class FakeResponse:
    """Streamed response stand-in tracking how much of the body was read."""

    def __init__(
        self,
        body: bytes | str = b"",
        status_code: int = 200,
        url: str = "",
        chunk_size: Optional[int] = None,
        fail_after: Optional[int] = None,
    ):
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        self.status_code = status_code
        self.url = url
        self.chunk_size = chunk_size
        self.fail_after = fail_after
        self.closed = False
        self.chunks_read = 0

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error for url: {self.url}", response=self)

    def iter_content(self, chunk_size: int = 1):
        size = self.chunk_size or chunk_size
        for start in range(0, len(self.body), size):
            if self.fail_after is not None and self.chunks_read >= self.fail_after:
                raise requests.exceptions.ChunkedEncodingError("connection broken")
            self.chunks_read += 1
            yield self.body[start:start + size]

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class FakeSession:
    """Session stand-in routing requests to queued responses or errors.

    GET routes are keyed by URL. Search POSTs are keyed by the submitted
    ``search`` form field so several add-ons can share one search endpoint.
    When a route holds several results they are served in order and the
    last one repeats.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Any]] = {}
        self.calls: List[Tuple[str, str, Optional[Dict[str, Any]]]] = []
        self.responses: List[FakeResponse] = []

    def add(self, method: str, url: str, *results: Any) -> None:
        """Queue FakeResponses, bodies (bytes/str) or exceptions for a URL."""
        self.routes.setdefault((method, url), []).extend(results)

    def add_search(self, term: str, *results: Any) -> None:
        """Queue search result pages for one search term."""
        self.routes.setdefault(("SEARCH", term), []).extend(results)

    def request(self, method: str, url: str, data=None, stream=False, timeout=None):
        self.calls.append((method, url, data))
        key = ("SEARCH", data["search"]) if method == "POST" and data and "search" in data else (method, url)
        queue = self.routes.get(key)
        if not queue:
            raise requests.exceptions.ConnectionError(f"No route for {method} {url}")
        result = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(result, Exception):
            raise result
        if not isinstance(result, FakeResponse):
            result = FakeResponse(result, url=url)
        result.url = result.url or url
        self.responses.append(result)
        return result

    def searches(self) -> List[str]:
        """Search terms submitted, in order."""
        return [data["search"] for method, _url, data in self.calls if method == "POST" and data]

    def gets(self) -> List[str]:
        return [url for method, url, _data in self.calls if method == "GET"]


@pytest.fixture
def fake_session() -> FakeSession:
    """Return an empty FakeSession."""
    return FakeSession()


def detail_page(download_href: str, title: str = "Add-on") -> str:
    return (
        "<html><head><title>ESOUI</title></head><body>"
        f"<h1>{title}</h1><div class=\"buttons\"><a href=\"{download_href}\">Download</a></div>"
        "</body></html>"
    )


def listing_page(*entries: Tuple[str, str]) -> str:
    rows = "".join(f'<tr><td><a href="{href}">{label}</a></td></tr>' for label, href in entries)
    return f"<html><body><table>{rows}</table></body></html>"


def iframe_page(src: str) -> str:
    return (
        "<html><body><p>Your download will begin shortly.</p>"
        f'<iframe width="1" height="1" src="{src}"></iframe></body></html>'
    )


@pytest.fixture
def catalog(fake_session: FakeSession, addon_zip) -> Callable[..., str]:
    """Register the catalog hops for an add-on on the fake session.

    The search lands on a detail page with a Download button, the download
    page embeds the CDN iframe, and the CDN serves the archive. Returns the
    CDN URL.
    """

    def _register(name: str, depends: str = "", version: str = "1.0", archive: Any = None) -> str:
        download_path = f"/downloads/download-{name}"
        cdn_url = f"https://cdn.catalog.test/{name}.zip"
        fake_session.add_search(name, detail_page(download_path, name))
        fake_session.add("GET", CATALOG_URL + download_path, iframe_page(cdn_url))
        fake_session.add("GET", cdn_url, archive if archive is not None else addon_zip(name, depends, version))
        return cdn_url

    return _register
