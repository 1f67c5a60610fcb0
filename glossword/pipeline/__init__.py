from glossword.pipeline.convert import PandocConverter, TextConverter
from glossword.pipeline.errors import (
    ConvertError,
    ExtractError,
    FetchError,
    GlossError,
    NetworkError,
    NoContentError,
    NotFoundError,
    StoreError,
    ToolFailedError,
    ToolUnavailableError,
)
from glossword.pipeline.extract import HtmlExtractor
from glossword.pipeline.fetcher import DictionaryFetcher
from glossword.pipeline.lookup import LookupOrchestrator, build_orchestrator, build_store, lookup
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

__all__ = [
    # Data model
    "CacheEntry",
    "ExtractedFragment",
    "LookupKey",
    "LookupOutcome",
    "Mode",
    "RawDocument",
    "Suggestions",
    "TextResult",
    # Stages
    "DictionaryFetcher",
    "HtmlExtractor",
    "PandocConverter",
    "TextConverter",
    "LookupOrchestrator",
    "build_orchestrator",
    "build_store",
    "lookup",
    # Errors
    "GlossError",
    "FetchError",
    "NotFoundError",
    "NetworkError",
    "ExtractError",
    "NoContentError",
    "ConvertError",
    "ToolUnavailableError",
    "ToolFailedError",
    "StoreError",
]
