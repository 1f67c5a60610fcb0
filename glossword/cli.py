"""
Command-line entry point.

Usage:
    gloss lighthouse
    gloss -e filigree
    gloss --list
    gloss --clear-cache [-e] [WORD] [--permanent]
    gloss --restore ~/.cache/gloss-word/trash/entries-....json
"""
from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console

from glossword import __version__
from glossword.pipeline.errors import GlossError, NoContentError, NotFoundError
from glossword.pipeline.lookup import StatusFactory, build_orchestrator, build_store
from glossword.pipeline.types import LookupKey, Mode, Suggestions
from glossword.settings import Settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_LOOKUP_FAILED = 1
EXIT_USAGE = 2
EXIT_ENVIRONMENT = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gloss",
        description="A simple English dictionary lookup utility",
    )
    parser.add_argument("words", nargs="*", metavar="WORD", help="The word or phrase to look up")
    parser.add_argument(
        "-e",
        "--etymology",
        action="store_true",
        help="Search for etymology instead of definition",
    )
    actions = parser.add_mutually_exclusive_group()
    actions.add_argument("--list", action="store_true", help="List cached lookups, oldest first")
    actions.add_argument(
        "--clear-cache",
        action="store_true",
        help="Remove WORD (or every entry) from the cache",
    )
    actions.add_argument("--restore", type=Path, metavar="PATH", help="Restore entries from a trash file")
    parser.add_argument(
        "--permanent",
        action="store_true",
        help="With --clear-cache, delete instead of moving entries to the trash directory",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Log progress to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _configure_logging(settings: Settings, verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _spinner() -> StatusFactory | None:
    """A stderr spinner for cache misses, or None when stderr is not a terminal."""
    console = Console(stderr=True)
    if not console.is_terminal:
        return None
    return console.status


def _run_lookup(settings: Settings, word: str, mode: Mode) -> int:
    orchestrator = build_orchestrator(settings, status=_spinner())
    try:
        outcome = orchestrator.lookup(word, mode)
    except NotFoundError:
        print(f"{mode.value.capitalize()} not found", file=sys.stderr)
        return EXIT_LOOKUP_FAILED
    except NoContentError as e:
        print(f"gloss: {e}", file=sys.stderr)
        return EXIT_LOOKUP_FAILED
    finally:
        close = getattr(orchestrator.fetcher, "close", None)
        if close is not None:
            close()

    if isinstance(outcome, Suggestions):
        print("Did you mean:\n")
        for suggestion in outcome.words:
            print(suggestion)
        return EXIT_OK

    sys.stdout.write(outcome.text)
    if not outcome.text.endswith("\n"):
        sys.stdout.write("\n")
    return EXIT_OK


def _run_list(settings: Settings) -> int:
    for key in build_store(settings).list():
        print(f"{key.mode.value}\t{key.word}")
    return EXIT_OK


def _run_clear(settings: Settings, word: str | None, mode: Mode, permanent: bool) -> int:
    store = build_store(settings, permanent=permanent)
    key = LookupKey.create(word, mode) if word else None
    removed = store.clear(key)
    if key is not None and removed == 0:
        print(f"No cached {mode.value} for '{key.word}'", file=sys.stderr)
        return EXIT_LOOKUP_FAILED
    if permanent or not settings.trash_on_clear:
        print(f"Deleted {removed} cache entries", file=sys.stderr)
    else:
        print(f"Moved {removed} cache entries to {settings.trash_dir}", file=sys.stderr)
    return EXIT_OK


def main(argv: Sequence[str] | None = None, *, settings: Settings | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = settings or Settings()
    _configure_logging(settings, args.verbose)

    mode = Mode.ETYMOLOGY if args.etymology else Mode.DEFINITION
    word = " ".join(args.words).strip()

    if args.permanent and not args.clear_cache:
        parser.error("--permanent requires --clear-cache")
    if args.etymology and not word:
        parser.error("--etymology requires WORD")
    if (args.list or args.restore) and word:
        parser.error("WORD cannot be combined with --list or --restore")
    if not (args.list or args.clear_cache or args.restore) and not word:
        parser.error("the following arguments are required: WORD")

    try:
        if args.list:
            return _run_list(settings)
        if args.clear_cache:
            return _run_clear(settings, word or None, mode, args.permanent)
        if args.restore:
            restored = build_store(settings).restore(args.restore)
            print(f"Restored {restored} cache entries", file=sys.stderr)
            return EXIT_OK
        return _run_lookup(settings, word, mode)
    except GlossError as e:
        logger.debug("Lookup failed", exc_info=True)
        print(f"gloss: {e}", file=sys.stderr)
        return EXIT_ENVIRONMENT
    except ValueError as e:
        print(f"gloss: {e}", file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
