from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .environment import Environment


class PathExpander:
    """Turns user-typed path strings into absolute paths relative to the session's working directory."""

    def __init__(self, environment: "Environment") -> None:
        self.environment = environment

    def expand(self, raw: str | os.PathLike) -> Path:
        text = os.fspath(raw)
        if text == "~" or text.startswith("~/"):
            path = self.environment.home / text[2:]
        else:
            path = Path(text).expanduser()
        if not path.is_absolute():
            path = self.environment.working_directory / path
        return path.resolve()

    __call__ = expand
