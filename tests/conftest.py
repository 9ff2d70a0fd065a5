from __future__ import annotations

import io
import os
import stat
from pathlib import Path
from typing import Callable, Tuple

import pytest

from pipesh.engine import Engine, Environment, StreamSink, StreamSource


@pytest.fixture
def environment(tmp_path: Path) -> Environment:
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    variables = {"PATH": os.environ.get("PATH", os.defpath), "HOME": str(home)}
    return Environment(work, variables=variables)


@pytest.fixture
def buffer_sink() -> Tuple[StreamSink, io.BytesIO]:
    buffer = io.BytesIO()
    return StreamSink(buffer), buffer


def source_of(data: bytes | str) -> StreamSource:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return StreamSource(io.BytesIO(data))


@pytest.fixture
def run(environment: Environment) -> Callable[..., Tuple[int, str]]:
    """Run a command line through a fresh Engine, returning (status, stdout text)."""
    engine = Engine()

    def _run(line: str, stdin: str = "") -> Tuple[int, str]:
        buffer = io.BytesIO()
        status = engine.run(
            environment, line, source=source_of(stdin), sink=StreamSink(buffer)
        )
        return status, buffer.getvalue().decode("utf-8")

    return _run


def write_script(directory: Path, name: str, body: str) -> Path:
    path = directory / name
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


posix_only = pytest.mark.skipif(os.name != "posix", reason="needs /bin/sh")
