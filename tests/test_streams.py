from __future__ import annotations

import io
import threading
from pathlib import Path

import pytest

from pipesh.engine import (
    IOFailure,
    StreamSink,
    StreamSource,
    open_file_sink,
    open_file_source,
    open_pipe,
)


def test_pipe_delivers_bytes_in_order_and_ends_on_close() -> None:
    sink, source = open_pipe()

    def produce() -> None:
        for line in ("x\n", "y\n"):
            sink.write(line)
        sink.close()

    producer = threading.Thread(target=produce)
    producer.start()
    assert list(source.lines()) == ["x\n", "y\n"]
    producer.join()
    source.close()


def test_pipe_has_file_descriptors() -> None:
    sink, source = open_pipe()
    assert isinstance(sink.fileno(), int)
    assert isinstance(source.fileno(), int)
    sink.close()
    source.close()


def test_borrowed_streams_are_not_closed() -> None:
    text = io.StringIO()
    sink = StreamSink(text)
    sink.write_bytes("héllo\n".encode("utf-8"))
    sink.close()
    sink.close()
    assert not text.closed
    assert text.getvalue() == "héllo\n"
    assert sink.fileno() is None


def test_text_sink_joins_characters_split_across_chunks() -> None:
    text = io.StringIO()
    sink = StreamSink(text)
    encoded = "é".encode("utf-8")
    sink.write_bytes(b"a" + encoded[:1])
    sink.write_bytes(encoded[1:] + b"\n")
    sink.write_bytes(encoded[:1])
    sink.close()
    assert text.getvalue() == "aé\n\ufffd"


def test_text_source_chunks_are_encoded() -> None:
    source = StreamSource(io.StringIO("a\nb"))
    assert b"".join(source.chunks()) == b"a\nb"


def test_binary_source_replaces_undecodable_bytes() -> None:
    source = StreamSource(io.BytesIO(b"ok\n\xff\n"))
    assert source.read_text() == "ok\n�\n"


def test_owned_streams_are_closed(tmp_path: Path) -> None:
    path = tmp_path / "out.txt"
    sink = open_file_sink(path)
    sink.write_line("one")
    sink.close()
    append = open_file_sink(path, append=True)
    append.write_line("two")
    append.close()
    source = open_file_source(path)
    assert source.read_text() == "one\ntwo\n"
    source.close()
    assert source.stream.closed


def test_missing_file_source_is_io_failure(tmp_path: Path) -> None:
    with pytest.raises(IOFailure):
        open_file_source(tmp_path / "missing.txt")


def test_closing_writer_after_reader_left_is_quiet() -> None:
    sink, source = open_pipe()
    source.close()
    sink.stream.write(b"pending")
    sink.close()
    assert sink.closed
