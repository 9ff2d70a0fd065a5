from __future__ import annotations

import logging
import subprocess
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Sequence, TYPE_CHECKING

from .errors import (
    STATUS_FAILURE,
    STATUS_NOT_EXECUTABLE,
    CommandNotFound,
    IOFailure,
    ShellError,
    report_error,
)
from .streams import CHUNK_SIZE, Sink, Source

if TYPE_CHECKING:
    from .environment import Environment

logger = logging.getLogger(__name__)


class Command(ABC):
    """Base class for a single pipeline stage bound to its input, output and environment."""

    def __init__(
        self,
        name: str,
        arguments: Sequence[str],
        source: Source,
        sink: Sink,
        environment: "Environment",
    ) -> None:
        self.name = name
        self.arguments = list(arguments)
        self.source = source
        self.sink = sink
        self.environment = environment
        self._started = False

    def __call__(self) -> int:
        """Run the command once, report failures and close both streams."""
        if self._started:
            raise RuntimeError(f"Command '{self.name}' has already been executed.")
        self._started = True
        try:
            return self.execute()
        except ShellError as exc:
            report_error(self.name, exc)
            return exc.status
        except BrokenPipeError:
            logger.debug("%s: downstream closed its input", self.name)
            return STATUS_FAILURE
        except OSError as exc:
            report_error(self.name, IOFailure(exc.strerror or str(exc)))
            return STATUS_FAILURE
        finally:
            self.source.close()
            self.sink.close()

    @abstractmethod
    def execute(self) -> int:
        """Perform the command's work and return its exit status."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r}, {self.arguments!r})"


class ExternalCommand(Command):
    """Command that runs an executable found outside the shell."""

    def __init__(
        self,
        name: str,
        arguments: Sequence[str],
        source: Source,
        sink: Sink,
        environment: "Environment",
        *,
        executable: str | Path,
    ) -> None:
        super().__init__(name, arguments, source, sink, environment)
        self.executable = str(executable)

    def execute(self) -> int:
        stdin_fd = self.source.fileno()
        stdout_fd = self.sink.fileno()
        self.sink.flush()
        try:
            process = subprocess.Popen(
                [self.name, *self.arguments],
                executable=self.executable,
                stdin=stdin_fd if stdin_fd is not None else subprocess.PIPE,
                stdout=stdout_fd if stdout_fd is not None else subprocess.PIPE,
                cwd=str(self.environment.working_directory),
                env=self.environment.exported(),
            )
        except FileNotFoundError as exc:
            raise CommandNotFound(self.name) from exc
        except OSError as exc:
            error = CommandNotFound(self.name, exc.strerror or str(exc))
            error.status = STATUS_NOT_EXECUTABLE
            raise error from exc

        feeder = None
        if process.stdin is not None:
            feeder = threading.Thread(
                target=self._feed, args=(process.stdin,), name=f"{self.name}-stdin", daemon=True
            )
            feeder.start()
        try:
            if process.stdout is not None:
                with process.stdout:
                    for chunk in iter(lambda: process.stdout.read1(CHUNK_SIZE), b""):
                        self.sink.write_bytes(chunk)
        finally:
            status = process.wait()
            if feeder is not None:
                feeder.join()
        logger.debug("%s exited with %s", self.name, status)
        return status

    def _feed(self, stdin: IO[bytes]) -> None:
        try:
            for chunk in self.source.chunks():
                stdin.write(chunk)
                stdin.flush()
        except BrokenPipeError:
            logger.debug("%s stopped reading its input", self.name)
        except (OSError, ValueError) as exc:
            report_error(self.name, IOFailure(f"error feeding input: {exc}"))
        finally:
            try:
                stdin.close()
            except BrokenPipeError:
                logger.debug("%s stopped reading its input", self.name)
