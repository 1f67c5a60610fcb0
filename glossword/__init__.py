"""
gloss-word: English dictionary lookup with a local cache.

Usage:
    from glossword import Mode, TextResult, lookup

    outcome = lookup("lighthouse", Mode.DEFINITION)
    if isinstance(outcome, TextResult):
        print(outcome.text)
    else:
        print("Did you mean:", ", ".join(outcome.words))
"""

from glossword.pipeline import (
    GlossError,
    LookupKey,
    LookupOutcome,
    Mode,
    Suggestions,
    TextResult,
    lookup,
)

__version__ = "0.4.0"

__all__ = [
    "GlossError",
    "LookupKey",
    "LookupOutcome",
    "Mode",
    "Suggestions",
    "TextResult",
    "lookup",
    "__version__",
]
