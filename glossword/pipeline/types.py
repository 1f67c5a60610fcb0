from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Union

_whitespace_re = re.compile(r"\s+")


class Mode(str, Enum):
    """Which remote source and extraction rules a lookup uses."""

    DEFINITION = "definition"
    ETYMOLOGY = "etymology"


def normalize_word(word: str) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return _whitespace_re.sub(" ", word.strip()).lower()


@dataclass(frozen=True)
class LookupKey:
    word: str
    mode: Mode

    @classmethod
    def create(cls, word: str, mode: Mode | str) -> LookupKey:
        normalized = normalize_word(word)
        if not normalized:
            raise ValueError("Lookup word must not be empty")
        return cls(word=normalized, mode=Mode(mode))


@dataclass(frozen=True)
class CacheEntry:
    key: LookupKey
    text: str
    created_at_utc: str


@dataclass(frozen=True)
class RawDocument:
    html: str
    source_url: str


@dataclass(frozen=True)
class ExtractedFragment:
    """Markup snippets relevant to one lookup, in document order."""

    mode: Mode
    snippets: tuple[str, ...]

    @property
    def markup(self) -> str:
        return "".join(self.snippets)


@dataclass(frozen=True)
class Suggestions:
    """Alternate words offered by a "did you mean" page."""

    words: tuple[str, ...]


@dataclass(frozen=True)
class TextResult:
    text: str
    from_cache: bool = False


LookupOutcome = Union[TextResult, Suggestions]
