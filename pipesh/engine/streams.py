from __future__ import annotations

import codecs
import io
import logging
import os
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Any, Iterator, Tuple

from .errors import IOFailure

logger = logging.getLogger(__name__)

ENCODING = "utf-8"
CHUNK_SIZE = 64 * 1024


def _fileno(stream: IO[Any]) -> int | None:
    try:
        return stream.fileno()
    except (AttributeError, ValueError, io.UnsupportedOperation):
        return None


class Source(ABC):
    """Read end of a command's input. Exactly one command reads from a given Source."""

    def __init__(self) -> None:
        self.closed = False

    @abstractmethod
    def lines(self) -> Iterator[str]:
        """Yield decoded lines, newline included, until end of stream."""

    @abstractmethod
    def chunks(self) -> Iterator[bytes]:
        """Yield raw bytes as they become available until end of stream."""

    def fileno(self) -> int | None:
        return None

    def read_text(self) -> str:
        return "".join(self.lines())

    def close(self) -> None:
        self.closed = True


class Sink(ABC):
    """Write end of a command's output. Closing it ends the stream for the paired reader."""

    def __init__(self) -> None:
        self.closed = False

    @abstractmethod
    def write(self, text: str) -> None: ...

    @abstractmethod
    def write_bytes(self, data: bytes) -> None: ...

    def write_line(self, text: str = "") -> None:
        self.write(text + "\n")

    def flush(self) -> None:
        pass

    def fileno(self) -> int | None:
        return None

    def close(self) -> None:
        self.closed = True


class StreamSource(Source):
    """Source over an open text or binary stream; ``owned`` streams are closed with the Source."""

    def __init__(self, stream: IO[Any], *, owned: bool = False) -> None:
        super().__init__()
        self.stream = stream
        self.owned = owned
        self._text = isinstance(stream, io.TextIOBase)

    def lines(self) -> Iterator[str]:
        for line in self.stream:
            yield line if self._text else line.decode(ENCODING, errors="replace")

    def chunks(self) -> Iterator[bytes]:
        if self._text:
            for line in self.stream:
                yield line.encode(ENCODING)
            return
        read = getattr(self.stream, "read1", self.stream.read)
        while True:
            data = read(CHUNK_SIZE)
            if not data:
                return
            yield data

    def fileno(self) -> int | None:
        return _fileno(self.stream)

    def close(self) -> None:
        if self.closed:
            return
        super().close()
        if self.owned:
            self.stream.close()


class StreamSink(Sink):
    """Sink over an open text or binary stream; borrowed streams are flushed but left open."""

    def __init__(self, stream: IO[Any], *, owned: bool = False) -> None:
        super().__init__()
        self.stream = stream
        self.owned = owned
        self._text = isinstance(stream, io.TextIOBase)
        # Byte chunks may split a multi-byte character; keep the tail for the next write.
        self._decoder = codecs.getincrementaldecoder(ENCODING)(errors="replace") if self._text else None

    def write(self, text: str) -> None:
        self.stream.write(text if self._text else text.encode(ENCODING))
        self.stream.flush()

    def write_bytes(self, data: bytes) -> None:
        self.stream.write(self._decoder.decode(data) if self._decoder else data)
        self.stream.flush()

    def flush(self) -> None:
        self.stream.flush()

    def fileno(self) -> int | None:
        return _fileno(self.stream)

    def close(self) -> None:
        if self.closed:
            return
        super().close()
        try:
            if self._decoder is not None:
                tail = self._decoder.decode(b"", final=True)
                if tail:
                    self.stream.write(tail)
            if self.owned:
                self.stream.close()
            else:
                self.stream.flush()
        except BrokenPipeError:
            logger.debug("Reader went away before %r was flushed", self.stream)


def open_pipe() -> Tuple[Sink, Source]:
    """Create an OS pipe and return its (write end, read end)."""
    read_fd, write_fd = os.pipe()
    sink = StreamSink(os.fdopen(write_fd, "wb"), owned=True)
    source = StreamSource(os.fdopen(read_fd, "rb"), owned=True)
    return sink, source


def open_file_source(path: str | Path) -> Source:
    try:
        return StreamSource(open(path, "rb"), owned=True)
    except OSError as exc:
        raise IOFailure(f"{path}: {exc.strerror or exc}") from exc


def open_file_sink(path: str | Path, *, append: bool = False) -> Sink:
    try:
        return StreamSink(open(path, "ab" if append else "wb"), owned=True)
    except OSError as exc:
        raise IOFailure(f"{path}: {exc.strerror or exc}") from exc


def terminal_source() -> Source:
    return StreamSource(sys.stdin)


def terminal_sink() -> Sink:
    return StreamSink(sys.stdout)
