from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Iterable, Iterator, Sequence

from .errors import InvalidArgument, InvalidPattern, report_error

_INLINE_FLAGS = re.compile(r"(?:\(\?[aiLmsux]+\))*")


class Grepper:
    """
    Line matcher in the spirit of ``grep``.

    Prints matching lines plus ``after_context`` lines following each match.
    When ``after_context`` is not zero, non-contiguous groups of output are
    divided by ``group_separator``.
    """

    group_separator = "--"

    def __init__(
        self,
        pattern: str,
        *,
        whole_word: bool = False,
        ignore_case: bool = False,
        after_context: int = 0,
    ) -> None:
        if after_context < 0:
            raise InvalidArgument(f"after context must not be negative: {after_context}")
        self.after_context = after_context
        flags = re.IGNORECASE if ignore_case else 0
        expression = pattern
        try:
            if whole_word:
                # Compiled alone first so fragments like "(" cannot eat the look-arounds.
                re.compile(pattern)
                # Global inline flags such as "(?i)" must stay at the very start.
                leading = _INLINE_FLAGS.match(pattern).group()
                body = pattern[len(leading):]
                expression = rf"{leading}(?<!\w)(?:{body})(?!\w)"
            self.pattern = re.compile(expression, flags)
        except re.error as exc:
            raise InvalidPattern(f"invalid pattern {pattern!r}: {exc}") from exc

    def matches(self, line: str) -> bool:
        return self.pattern.search(line) is not None

    def scan(self, lines: Iterable[str]) -> Iterator[str]:
        """Yield output lines for ``lines``; line endings are stripped."""
        context = self.after_context
        since_last_match = context
        first_match = True
        for raw in lines:
            line = raw.rstrip("\r\n")
            if self.matches(line):
                suppressed = since_last_match - context
                if context and not first_match and suppressed > context + 1:
                    yield self.group_separator
                first_match = False
                since_last_match = -1
            if since_last_match < context:
                yield line
            since_last_match += 1

    def grep_files(
        self,
        paths: Sequence[str | Path],
        write: Callable[[str], None],
        *,
        labels: Sequence[str] | None = None,
    ) -> bool:
        """
        Scan every file in ``paths``, passing each output line to ``write``.

        Headers and error messages name each file by its entry in ``labels``
        (the path itself by default). Unreadable files are reported and skipped.
        Returns False if any file failed.
        """
        ok = True
        for index, path in enumerate(paths):
            label = labels[index] if labels is not None else path
            if len(paths) > 1:
                write(self.file_header(label))
            try:
                with open(path, encoding="utf-8", errors="replace") as handle:
                    for line in self.scan(handle):
                        write(line)
            except FileNotFoundError:
                self.report_error(f"can't read from file {label}. Does it exist?")
                ok = False
            except PermissionError:
                self.report_error(f"permission denied reading {label}")
                ok = False
            except IsADirectoryError:
                self.report_error(f"{label} is a directory")
                ok = False
        return ok

    def file_header(self, path: str | Path) -> str:
        return f"-- {path} --"

    def report_error(self, message: str) -> None:
        report_error("grep", message)

    def __repr__(self) -> str:
        return f"Grepper({self.pattern.pattern!r}, flags={self.pattern.flags})"
