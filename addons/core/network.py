"""Network utilities for HTTP requests and session management.

Provides a lazily built shared requests session and a single entry point that
opens streamed responses, translating transport and HTTP failures into
NetworkError. Nothing here retries: a failed hop is reported once.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter

from .config import get_network_config
from ..model import NetworkError

logger = logging.getLogger(__name__)

# Global session (lazy-initialized)
_SESSION: Optional[requests.Session] = None


def build_session() -> requests.Session:
    """Build a requests session with default headers and retries disabled.

    Returns:
        Configured Session instance
    """
    session = requests.Session()

    adapter = HTTPAdapter(max_retries=0)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    session.headers.update({
        # The catalog serves a reduced page to unknown clients
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/124.0.0.0 Safari/537.36"
        ),
        "Accept": "*/*",
        "Accept-Language": "en-US,en;q=0.9",
    })

    extra = get_network_config().get("headers") or {}
    session.headers.update({str(k): str(v) for k, v in extra.items() if v is not None})

    return session


def get_session() -> requests.Session:
    """Get the global HTTP session (lazy initialization)."""
    global _SESSION
    if _SESSION is None:
        _SESSION = build_session()
    return _SESSION


def open_stream(
    method: str,
    url: str,
    data: Optional[Dict[str, Any]] = None,
    session: Optional[requests.Session] = None,
) -> requests.Response:
    """Send a request and return the streamed response.

    The caller owns the response and must close it (``with`` works).

    Args:
        method: "GET" or "POST"
        url: Absolute URL
        data: Form fields for POST requests
        session: Session to use (shared session if None)

    Returns:
        Response with an unread body and a status below 400

    Raises:
        NetworkError: On connection failures, timeouts and HTTP errors
    """
    session = session or get_session()
    timeout = get_network_config().get("timeout_s")

    logger.debug("%s %s", method, url)
    try:
        resp = session.request(method, url, data=data, stream=True, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"{method} {url} failed: {e}") from e

    try:
        resp.raise_for_status()
    except requests.exceptions.HTTPError as e:
        resp.close()
        raise NetworkError(f"{method} {url} returned HTTP {resp.status_code}") from e

    return resp


def iter_body(resp: requests.Response, chunk_size: Optional[int] = None):
    """Yield the response body in chunks, translating read failures."""
    size = chunk_size or int(get_network_config().get("chunk_size") or 8192)
    try:
        for chunk in resp.iter_content(chunk_size=size):
            if chunk:
                yield chunk
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"Reading response from {resp.url} failed: {e}") from e
