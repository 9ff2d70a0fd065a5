from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, NoReturn, Sequence, TYPE_CHECKING

from .commands import Command
from .errors import (
    STATUS_FAILURE,
    STATUS_SUCCESS,
    InvalidArgument,
    PathNotFound,
    report_error,
)
from .grep import Grepper
from .paths import PathExpander

if TYPE_CHECKING:
    from .environment import Environment
    from .streams import Sink, Source


class FileCommand(Command):
    """Builtin that reads operand paths relative to the working directory."""

    def __init__(
        self,
        name: str,
        arguments: Sequence[str],
        source: "Source",
        sink: "Sink",
        environment: "Environment",
        *,
        paths: PathExpander | None = None,
    ) -> None:
        super().__init__(name, arguments, source, sink, environment)
        self.paths = paths or PathExpander(environment)

    def read_file(self, operand: str) -> bytes | None:
        """Return the file's contents, or report the failure and return None."""
        path = self.paths.expand(operand)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            report_error(self.name, PathNotFound(operand))
        except IsADirectoryError:
            report_error(self.name, f"{operand}: Is a directory")
        except PermissionError:
            report_error(self.name, f"{operand}: Permission denied")
        return None


class Echo(Command):
    def execute(self) -> int:
        self.sink.write_line(" ".join(self.arguments))
        return STATUS_SUCCESS


class Pwd(Command):
    def execute(self) -> int:
        self.sink.write_line(str(self.environment.working_directory))
        return STATUS_SUCCESS


class Cat(FileCommand):
    """Concatenate files, or copy the input when no files are given."""

    def execute(self) -> int:
        if not self.arguments:
            for chunk in self.source.chunks():
                self.sink.write_bytes(chunk)
            return STATUS_SUCCESS

        status = STATUS_SUCCESS
        for operand in self.arguments:
            data = self.read_file(operand)
            if data is None:
                status = STATUS_FAILURE
                continue
            self.sink.write_bytes(data)
        return status


class WordCount(FileCommand):
    """Print line, word and byte counts for the input or for each file."""

    def execute(self) -> int:
        if not self.arguments:
            data = b"".join(self.source.chunks())
            self.sink.write_line(_format_counts(_count(data)))
            return STATUS_SUCCESS

        status = STATUS_SUCCESS
        total = [0, 0, 0]
        for operand in self.arguments:
            data = self.read_file(operand)
            if data is None:
                status = STATUS_FAILURE
                continue
            counts = _count(data)
            total = [a + b for a, b in zip(total, counts)]
            self.sink.write_line(f"{_format_counts(counts)} {operand}")
        if len(self.arguments) > 1:
            self.sink.write_line(f"{_format_counts(total)} total")
        return status


def _count(data: bytes) -> List[int]:
    return [data.count(b"\n"), len(data.split()), len(data)]


def _format_counts(counts: Sequence[int]) -> str:
    return " ".join(str(value) for value in counts)


class Ls(FileCommand):
    """List directory entries, one name per line."""

    def execute(self) -> int:
        targets = self.arguments or ["."]
        status = STATUS_SUCCESS
        for index, operand in enumerate(targets):
            path = self.paths.expand(operand)
            if not path.exists():
                report_error(self.name, PathNotFound(operand))
                status = STATUS_FAILURE
                continue
            if len(targets) > 1:
                if index:
                    self.sink.write_line()
                self.sink.write_line(f"{operand}:")
            if path.is_dir():
                for child in sorted(path.iterdir(), key=lambda p: p.name):
                    self.sink.write_line(child.name)
            else:
                self.sink.write_line(operand)
        return status


class Cd(FileCommand):
    """Change the session's working directory."""

    def execute(self) -> int:
        if len(self.arguments) > 1:
            raise InvalidArgument("too many arguments")
        target: str | Path = self.arguments[0] if self.arguments else self.environment.home
        self.environment.change_directory(self.paths.expand(target))
        return STATUS_SUCCESS


class Exit(Command):
    """Ask the session to terminate with the given status."""

    def execute(self) -> int:
        if len(self.arguments) > 1:
            raise InvalidArgument("too many arguments")
        code = STATUS_SUCCESS
        if self.arguments:
            try:
                code = int(self.arguments[0])
            except ValueError:
                raise InvalidArgument(f"{self.arguments[0]}: numeric argument required") from None
        self.environment.request_exit(code)
        return code


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise InvalidArgument(message)


def _grep_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="grep", add_help=False)
    parser.add_argument("-i", "--ignore-case", action="store_true")
    parser.add_argument("-w", "--word-regexp", action="store_true")
    parser.add_argument("-A", "--after-context", type=int, default=0, metavar="NUM")
    parser.add_argument("pattern")
    parser.add_argument("files", nargs="*")
    return parser


class Grep(FileCommand):
    """Search the input or files for lines matching a regular expression."""

    def execute(self) -> int:
        options = _grep_parser().parse_args(self.arguments)
        grepper = Grepper(
            options.pattern,
            whole_word=options.word_regexp,
            ignore_case=options.ignore_case,
            after_context=options.after_context,
        )
        if not options.files:
            for line in grepper.scan(self.source.lines()):
                self.sink.write_line(line)
            return STATUS_SUCCESS

        expanded = [self.paths.expand(name) for name in options.files]
        ok = grepper.grep_files(expanded, self.sink.write_line, labels=options.files)
        return STATUS_SUCCESS if ok else STATUS_FAILURE
