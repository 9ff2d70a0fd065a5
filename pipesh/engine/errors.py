from __future__ import annotations

import sys

STATUS_SUCCESS = 0
STATUS_FAILURE = 1
STATUS_USAGE = 2
STATUS_NOT_EXECUTABLE = 126
STATUS_NOT_FOUND = 127


class ShellError(Exception):
    """Base class for conditions reported to the user instead of crashing the shell."""

    status = STATUS_FAILURE


class CommandNotFound(ShellError):
    """Raised when no factory in the chain recognizes a program name."""

    status = STATUS_NOT_FOUND

    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(message or "command not found")
        self.name = name


class PathNotFound(ShellError):
    """Raised when a path operand does not exist."""

    def __init__(self, path: object) -> None:
        super().__init__(f"{path}: No such file or directory")
        self.path = path


class NotADirectory(ShellError):
    """Raised when a directory was expected but something else was found."""

    def __init__(self, path: object) -> None:
        super().__init__(f"{path}: Not a directory")
        self.path = path


class InvalidArgument(ShellError):
    status = STATUS_USAGE


class IOFailure(ShellError):
    """Raised when reading or writing a stream or file fails."""


class InvalidPattern(ShellError):
    status = STATUS_USAGE


def report_error(name: str, message: object) -> None:
    """Print a user-visible error line to stderr."""
    print(f"{name}: {message}", file=sys.stderr)
