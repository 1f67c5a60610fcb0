"""Lookup Orchestrator - cache check, then fetch, extract, convert, persist.

    CacheCheck ─ hit ──────────────────────────────────────────→ Done
               └ miss → Fetching → Extracting → Converting → Persisting → Done

Any stage may fail; the first failure aborts the remaining stages and its
error propagates unchanged. Cache problems never fail a lookup that the
remote source can still answer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from typing import TYPE_CHECKING, Protocol

from glossword.db import CacheStore, PermanentDelete, TrashDirectory
from glossword.pipeline.convert import PandocConverter, TextConverter
from glossword.pipeline.errors import NoContentError, StoreError
from glossword.pipeline.extract import HtmlExtractor
from glossword.pipeline.fetcher import DictionaryFetcher
from glossword.pipeline.types import (
    CacheEntry,
    ExtractedFragment,
    LookupKey,
    LookupOutcome,
    Mode,
    RawDocument,
    Suggestions,
    TextResult,
)

if TYPE_CHECKING:
    from glossword.settings import Settings

logger = logging.getLogger(__name__)

# Called with a message; the returned context is held open while a cache miss is resolved
StatusFactory = Callable[[str], AbstractContextManager]

FETCHING_MESSAGE = "Fetching..."


def no_status(message: str) -> AbstractContextManager:
    return nullcontext()


class Fetcher(Protocol):
    def fetch(self, word: str, mode: Mode) -> RawDocument:
        ...


class Extractor(Protocol):
    def extract(self, doc: RawDocument, mode: Mode) -> ExtractedFragment | Suggestions:
        ...


class Store(Protocol):
    def get(self, key: LookupKey) -> CacheEntry | None:
        ...

    def put(self, key: LookupKey, text: str) -> bool:
        ...


class LookupOrchestrator:
    """Runs one lookup at a time against injected collaborators.

    The collaborators are plain protocols so that tests can substitute
    fakes for the network and for pandoc.
    """

    def __init__(
        self,
        *,
        store: Store,
        fetcher: Fetcher,
        extractor: Extractor,
        converter: TextConverter,
        status: StatusFactory = no_status,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.extractor = extractor
        self.converter = converter
        self.status = status

    def _cached(self, key: LookupKey) -> CacheEntry | None:
        try:
            return self.store.get(key)
        except StoreError as e:
            logger.warning(f"Cache unavailable, fetching instead: {e}")
            return None

    def _persist(self, key: LookupKey, text: str) -> None:
        try:
            self.store.put(key, text)
        except StoreError as e:
            logger.warning(f"Failed to cache result for '{key.word}': {e}")

    def lookup(self, word: str, mode: Mode | str) -> LookupOutcome:
        key = LookupKey.create(word, mode)

        entry = self._cached(key)
        if entry is not None:
            logger.info(f"Using cached {key.mode.value} for '{key.word}'")
            return TextResult(text=entry.text, from_cache=True)

        with self.status(FETCHING_MESSAGE):
            doc = self.fetcher.fetch(key.word, key.mode)
            extracted = self.extractor.extract(doc, key.mode)
            if isinstance(extracted, Suggestions):
                return extracted
            text = self.converter.convert(extracted)

        if not text.strip():
            raise NoContentError(f"Conversion of {doc.source_url} produced no text")

        self._persist(key, text)
        return TextResult(text=text, from_cache=False)


def build_store(settings: Settings, *, permanent: bool = False) -> CacheStore:
    if permanent or not settings.trash_on_clear:
        return CacheStore(settings.db_path, deletion=PermanentDelete())
    return CacheStore(settings.db_path, deletion=TrashDirectory(settings.trash_dir))


def build_orchestrator(
    settings: Settings,
    *,
    fetcher: Fetcher | None = None,
    converter: TextConverter | None = None,
    status: StatusFactory | None = None,
) -> LookupOrchestrator:
    return LookupOrchestrator(
        store=build_store(settings),
        fetcher=fetcher
        or DictionaryFetcher(
            timeout_s=settings.http_timeout_s,
            user_agent=settings.user_agent,
            definition_base_url=settings.definition_base_url,
            etymology_base_url=settings.etymology_base_url,
        ),
        extractor=HtmlExtractor(),
        converter=converter or PandocConverter(pandoc_bin=settings.pandoc_bin, timeout_s=settings.pandoc_timeout_s),
        status=status or no_status,
    )


def lookup(word: str, mode: Mode | str, *, settings: Settings | None = None) -> LookupOutcome:
    """Look up ``word`` in ``mode`` using the configured cache and sources."""
    if settings is None:
        from glossword.settings import settings as default_settings

        settings = default_settings

    orchestrator = build_orchestrator(settings)
    try:
        return orchestrator.lookup(word, mode)
    finally:
        fetcher = orchestrator.fetcher
        if isinstance(fetcher, DictionaryFetcher):
            fetcher.close()
