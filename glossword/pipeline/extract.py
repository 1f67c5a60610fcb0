from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from glossword.pipeline.errors import NoContentError
from glossword.pipeline.types import ExtractedFragment, Mode, RawDocument, Suggestions

logger = logging.getLogger(__name__)

# Definition pages carry a large thesaurus block after the entry; nothing we
# want lives past this marker.
THESAURUS_MARKER = '<div id="Thesaurus">'

DEFINITION_SECTION_SELECTOR = 'div#Definition section[data-src="hm"]'
DEFINITION_ELEMENT_SELECTOR = "div.pseg, h2, hr.hmsep"
ETYMOLOGY_HEADWORD_SELECTOR = "h2.scroll-m-16 span"
ETYMOLOGY_BODY_SELECTOR = "section.-mt-4"
SUGGESTIONS_SELECTOR = "ul.suggestions li"


def take_chunk(html: str) -> BeautifulSoup:
    """Parse only the leading part of a page, up to the thesaurus block."""
    chunk = html.split(THESAURUS_MARKER, 1)[0]
    soup = BeautifulSoup(chunk, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return soup


def _definition_snippets(soup: BeautifulSoup) -> list[str]:
    sections = soup.select(DEFINITION_SECTION_SELECTOR)
    if not sections:
        return []
    # Only the first entry section; later ones belong to other dictionaries
    return [str(el) for el in sections[0].select(DEFINITION_ELEMENT_SELECTOR)]


def _etymology_snippets(soup: BeautifulSoup) -> list[str]:
    if not soup.select(ETYMOLOGY_BODY_SELECTOR):
        return []
    selector = f"{ETYMOLOGY_HEADWORD_SELECTOR}, {ETYMOLOGY_BODY_SELECTOR}"
    return [str(el) for el in soup.select(selector)]


def _suggestions(soup: BeautifulSoup) -> tuple[str, ...]:
    words: list[str] = []
    for item in soup.select(SUGGESTIONS_SELECTOR):
        text = item.get_text(" ", strip=True)
        if text and text not in words:
            words.append(text)
    return tuple(words)


class HtmlExtractor:
    """Isolates the entry markup for a mode from a fetched page."""

    def extract(self, doc: RawDocument, mode: Mode) -> ExtractedFragment | Suggestions:
        soup = take_chunk(doc.html)

        if mode is Mode.ETYMOLOGY:
            snippets = _etymology_snippets(soup)
        else:
            snippets = _definition_snippets(soup)

        if snippets:
            logger.debug("Extracted %d %s elements from %s", len(snippets), mode.value, doc.source_url)
            return ExtractedFragment(mode=mode, snippets=tuple(snippets))

        words = _suggestions(soup)
        if words:
            logger.debug("Found %d suggestions on %s", len(words), doc.source_url)
            return Suggestions(words=words)

        raise NoContentError(f"No {mode.value} found in {doc.source_url}; the page layout was not recognized")
