"""Connector for the ESOUI add-on catalog.

ESOUI has no documented API, so a download link is scraped in hops:

Search:
  - POST the search form (x, y, search) with the name before its first "-"
    (a pinned version suffix such as "LibFoo-2.0" means nothing to the site)
  - A unique hit lands on the detail page: take the anchor labeled "Download"
  - Otherwise the site answers with a result listing: search again and take
    the first anchor labeled with the requested name

Redirect:
  - The download page wraps the CDN link in an iframe; its src is the binary

Callers can paste a direct link (http/https) to skip the search hop.

Note:
  Whether the second search always returns the same listing markup as the
  first is not something the site promises; the fallback is best effort.
"""
from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urljoin

import requests

from .core.config import get_catalog_config
from .core.network import iter_body, open_stream
from .html_scan import find_anchor_href, find_iframe_src
from .model import LinkNotFound

logger = logging.getLogger(__name__)

DOWNLOAD_LABEL = "Download"


def is_direct_url(identifier: str) -> bool:
    """Check whether the identifier is already an http(s) link."""
    return identifier.startswith("http://") or identifier.startswith("https://")


def search_term(identifier: str) -> str:
    """Strip a pinned version suffix: everything from the first "-" on."""
    return identifier.split("-", 1)[0]


class CatalogLinkResolver:
    """Turn an add-on name (or pasted link) into a binary download URL."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        search_path: Optional[str] = None,
    ):
        cat = get_catalog_config()
        self.session = session
        self.base_url = (base_url or cat["base_url"]).rstrip("/")
        self.search_path = search_path or cat["search_path"]

    @property
    def search_url(self) -> str:
        return urljoin(self.base_url + "/", self.search_path.lstrip("/"))

    def resolve(self, identifier: str) -> str:
        """Run the scrape hops for one add-on.

        Args:
            identifier: Add-on name, optionally with a "-version" suffix, or a
                direct link to the catalog's download page

        Returns:
            URL of the binary archive

        Raises:
            LinkNotFound: A hop found nothing to follow
            NetworkError: A request failed
        """
        if is_direct_url(identifier):
            logger.debug("Using pasted link %s", identifier)
            return self.find_cdn_link(identifier)

        detail_href = self.find_download_page(identifier)
        return self.find_cdn_link(urljoin(self.base_url + "/", detail_href))

    def find_download_page(self, identifier: str) -> str:
        """Search hop: return the href of the page that carries the iframe."""
        term = search_term(identifier)
        try:
            return self._search(term, [DOWNLOAD_LABEL])
        except LinkNotFound:
            logger.debug("No %r button for %s; trying the result listing", DOWNLOAD_LABEL, term)

        labels: List[str] = [identifier]
        if term != identifier:
            labels.append(term)
        try:
            return self._search(term, labels)
        except LinkNotFound as e:
            logger.warning("Failed to find add-on %s; consider just pasting a link", identifier)
            raise LinkNotFound(f"{identifier} not found in catalog search ({e})") from e

    def find_cdn_link(self, page_url: str) -> str:
        """Redirect hop: return the iframe src of a download page."""
        with open_stream("GET", page_url, session=self.session) as resp:
            src = find_iframe_src(iter_body(resp))
        logger.debug("CDN link for %s is %s", page_url, src)
        return src

    def _search(self, term: str, labels: List[str]) -> str:
        form = {"x": "0", "y": "0", "search": term}
        with open_stream("POST", self.search_url, data=form, session=self.session) as resp:
            return find_anchor_href(iter_body(resp), labels)
