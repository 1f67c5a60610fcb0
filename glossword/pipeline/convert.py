"""
Markup to plain text conversion via pandoc.

Two passes are made: HTML to Markdown, then Markdown to plain text. The
Markdown stage is where list labels are rewritten, so that lettered
sub-senses end up indented under their numbered parent sense in the final
text. Pandoc does neither on its own.
"""
from __future__ import annotations

import logging
import re
import subprocess
from typing import Protocol

from glossword.pipeline.errors import ToolFailedError, ToolUnavailableError
from glossword.pipeline.types import ExtractedFragment, Mode

logger = logging.getLogger(__name__)

HTML_TO_MARKDOWN_ARGS = ("-f", "html+smart-native_divs", "-t", "markdown", "--wrap=none")
MARKDOWN_TO_PLAIN_ARGS = ("-f", "markdown", "-t", "plain")

_bold_number_label_re = re.compile(r"\n\*\*(?P<label>\d+\.)\*\*")
_bold_letter_label_re = re.compile(r"\n\*\*(?P<label>[a-z]\.)\*\*")
_figure_re = re.compile(r"\n\n!\[.+$", re.MULTILINE)
_pos_label_re = re.compile(r"(\S)(\([a-z]{1,3}\.\))\n")

# Pandoc escapes quotes it did not need to; undo that before the second pass
_ESCAPED_QUOTE = '\\\\"'


class TextConverter(Protocol):
    def convert(self, fragment: ExtractedFragment) -> str:
        ...


def rewrite_markdown(markdown: str, mode: Mode) -> str:
    """Normalize list labels and stray escapes between the two passes."""
    if mode is Mode.ETYMOLOGY:
        text = _figure_re.sub("", markdown)
    else:
        text = _bold_number_label_re.sub(r"\n\g<label>", markdown)
        text = _bold_letter_label_re.sub(r"\n    \g<label>", text)
    return text.replace(_ESCAPED_QUOTE, '"')


def finish_plain(text: str, mode: Mode) -> str:
    # Headword lines such as "forest(n.)" lose their space in conversion
    if mode is Mode.ETYMOLOGY:
        return _pos_label_re.sub(r"\1 \2\n", text)
    return text


class PandocConverter:
    def __init__(self, *, pandoc_bin: str = "pandoc", timeout_s: float = 60.0) -> None:
        self._pandoc_bin = pandoc_bin
        self._timeout_s = timeout_s

    def _run(self, source: str, args: tuple[str, ...]) -> str:
        command = [self._pandoc_bin, *args]
        try:
            result = subprocess.run(
                command,
                input=source,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self._timeout_s,
                check=False,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise ToolUnavailableError(self._pandoc_bin) from e
        except subprocess.TimeoutExpired as e:
            raise ToolFailedError(f"pandoc timed out after {self._timeout_s:g}s") from e
        except UnicodeDecodeError as e:
            raise ToolFailedError("pandoc produced output that is not valid UTF-8") from e
        except OSError as e:
            # e.g. ENOEXEC for a file that is executable but not a program
            raise ToolUnavailableError(self._pandoc_bin) from e

        if result.returncode != 0:
            diagnostics = result.stderr.strip() or result.stdout.strip() or "unknown error"
            logger.debug("pandoc %s exited with status %s", " ".join(args), result.returncode)
            raise ToolFailedError(f"pandoc exited with status {result.returncode}", diagnostics)
        return result.stdout

    def convert(self, fragment: ExtractedFragment) -> str:
        markdown = self._run(fragment.markup, HTML_TO_MARKDOWN_ARGS)
        rewritten = rewrite_markdown(markdown, fragment.mode)
        plain = self._run(rewritten, MARKDOWN_TO_PLAIN_ARGS)
        return finish_plain(plain, fragment.mode)
