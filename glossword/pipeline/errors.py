"""Error taxonomy for the lookup pipeline.

Every failure that reaches the caller of a lookup is a ``GlossError``.
The ``kind`` tag lets the command-line layer map an error to a message and
exit status without inspecting the class hierarchy.
"""
from __future__ import annotations


class GlossError(Exception):
    """Base class for all lookup failures."""

    kind = "error"


class FetchError(GlossError):
    kind = "fetch"


class NotFoundError(FetchError):
    """The remote source has no entry for the word.

    This is a normal outcome and is reported to the user, not logged as an
    error.
    """

    kind = "not_found"

    def __init__(self, word: str, url: str | None = None) -> None:
        self.word = word
        self.url = url
        super().__init__(f"No entry found for '{word}'")


class NetworkError(FetchError):
    kind = "network"


class ExtractError(GlossError):
    kind = "extract"


class NoContentError(ExtractError):
    """The document loaded, but did not contain the expected structure."""

    kind = "no_content"


class ConvertError(GlossError):
    kind = "convert"


class ToolUnavailableError(ConvertError):
    kind = "tool_unavailable"

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(
            f"Required program '{tool}' was not found or is not executable; "
            "install pandoc (https://pandoc.org/installing.html) and try again"
        )


class ToolFailedError(ConvertError):
    kind = "tool_failed"

    def __init__(self, message: str, diagnostics: str = "") -> None:
        self.diagnostics = diagnostics
        full_message = f"{message}: {diagnostics}" if diagnostics else message
        super().__init__(full_message)


class StoreError(GlossError):
    """The cache file could not be read or written."""

    kind = "store"
