"""Forward-only HTML scanning for the catalog scrape.

The catalog pages are walked tag by tag with lxml's pull parser fed from the
response stream. A scan stops at the first element that matches and never
keeps the finished part of the document around.

An anchor match needs its text, and the text of ``<a>`` is only known once the
parser reports the next event, so the scanner is a small state machine:

    SEEKING ──<a ...>──▶ PEEKING_TEXT ──text matches──▶ DONE
       ▲                      │
       └──────no match────────┘            end of stream ──▶ FAILED
"""
from __future__ import annotations

import enum
import logging
from typing import Iterable, Optional

from lxml import etree

from .model import LinkNotFound

logger = logging.getLogger(__name__)


class ScanState(enum.Enum):
    SEEKING = "seeking"
    PEEKING_TEXT = "peeking_text"
    DONE = "done"
    FAILED = "failed"


class TagScanner:
    """Find the first ``<tag attr=...>`` element, optionally by its text.

    Args:
        tag: Lowercase tag name to match
        attr: Attribute whose value is the scan result; empty values never match
        labels: If given, the element's leading text node (whitespace
            stripped) must equal one of these
    """

    def __init__(self, tag: str, attr: str, labels: Optional[Iterable[str]] = None):
        self.tag = tag
        self.attr = attr
        self.labels = frozenset(labels) if labels is not None else None
        self.state = ScanState.SEEKING
        self.result: Optional[str] = None
        self._candidate = None
        self._parser = etree.HTMLPullParser(events=("start", "end"))

    @property
    def done(self) -> bool:
        return self.state is ScanState.DONE

    def feed(self, chunk: bytes) -> bool:
        """Feed one body chunk; return True once a match was found."""
        try:
            self._parser.feed(chunk)
        except etree.LxmlError as e:
            self.state = ScanState.FAILED
            raise LinkNotFound(f"Unparseable page: {e}") from e
        return self._drain()

    def close(self) -> str:
        """Signal end of stream and return the match.

        Raises:
            LinkNotFound: The stream ended without a match
        """
        if not self.done:
            try:
                self._parser.close()
            except etree.LxmlError as e:
                logger.debug("Parser reported %s at end of stream", e)
            self._drain()
            if self.state is ScanState.PEEKING_TEXT:
                self._check_candidate()
        if self.done:
            return self.result
        self.state = ScanState.FAILED
        raise LinkNotFound(self._describe_failure())

    def _drain(self) -> bool:
        for event, element in self._parser.read_events():
            if self.state is ScanState.PEEKING_TEXT:
                self._check_candidate()
                if self.done:
                    return True
            if event == "start":
                self._on_start(element)
                if self.done:
                    return True
            elif element is not self._candidate:
                self._discard(element)
        return self.done

    def _on_start(self, element) -> None:
        if not isinstance(element.tag, str) or element.tag.lower() != self.tag:
            return
        if self.labels is None:
            value = element.get(self.attr)
            if value:
                self.result = value
                self.state = ScanState.DONE
            return
        self._candidate = element
        self.state = ScanState.PEEKING_TEXT

    def _check_candidate(self) -> None:
        element, self._candidate = self._candidate, None
        text = (element.text or "").strip()
        value = element.get(self.attr)
        if text in self.labels and value:
            self.result = value
            self.state = ScanState.DONE
        else:
            self.state = ScanState.SEEKING

    @staticmethod
    def _discard(element) -> None:
        element.clear()
        parent = element.getparent()
        if parent is not None:
            while element.getprevious() is not None:
                del parent[0]

    def _describe_failure(self) -> str:
        if self.labels is None:
            return f"No <{self.tag} {self.attr}=...> element found"
        wanted = ", ".join(repr(label) for label in sorted(self.labels))
        return f"No <{self.tag}> labeled {wanted} found"


def scan_chunks(chunks: Iterable[bytes], scanner: TagScanner) -> str:
    """Run a scanner over a body stream, stopping at the first match."""
    for chunk in chunks:
        if scanner.feed(chunk):
            return scanner.result
    return scanner.close()


def find_anchor_href(chunks: Iterable[bytes], labels: Iterable[str]) -> str:
    """Return the href of the first ``<a>`` whose text is one of ``labels``."""
    return scan_chunks(chunks, TagScanner("a", "href", labels))


def find_iframe_src(chunks: Iterable[bytes]) -> str:
    """Return the src of the first ``<iframe>`` that has one."""
    return scan_chunks(chunks, TagScanner("iframe", "src"))
