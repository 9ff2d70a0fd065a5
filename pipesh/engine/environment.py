from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Dict, Mapping

from .errors import IOFailure, NotADirectory, PathNotFound

logger = logging.getLogger(__name__)


class Environment:
    """Holds session state shared by every command: working directory, exit request and variables."""

    def __init__(
        self,
        working_directory: str | Path | None = None,
        *,
        variables: Mapping[str, str] | None = None,
        home: str | Path | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self.variables: Dict[str, str] = dict(os.environ if variables is None else variables)
        start = Path(working_directory).resolve() if working_directory else Path.cwd()
        _check_directory(start)
        self._working_directory = start
        if home is None:
            home = self.variables.get("HOME") or Path.home()
        self.home = (start / Path(home).expanduser()).resolve()
        self.exit_requested = False
        self.exit_code = 0
        self.last_status = 0

    @property
    def working_directory(self) -> Path:
        return self._working_directory

    def change_directory(self, path: str | Path) -> Path:
        """Switch to ``path`` or raise, leaving the current directory untouched on failure."""
        target = Path(path).resolve()
        _check_directory(target)
        with self._lock:
            logger.debug("Working directory %s -> %s", self._working_directory, target)
            self._working_directory = target
        return target

    def request_exit(self, code: int = 0) -> None:
        with self._lock:
            self.exit_requested = True
            self.exit_code = code

    def get(self, name: str, default: str = "") -> str:
        if name == "?":
            return str(self.last_status)
        with self._lock:
            return self.variables.get(name, default)

    def set(self, name: str, value: str) -> None:
        with self._lock:
            self.variables[name] = value

    def exported(self) -> Dict[str, str]:
        """Snapshot of the variables handed to external processes."""
        with self._lock:
            return dict(self.variables)


def _check_directory(path: Path) -> None:
    if not path.exists():
        raise PathNotFound(path)
    if not path.is_dir():
        raise NotADirectory(path)
    if not os.access(path, os.R_OK | os.X_OK):
        raise IOFailure(f"{path}: Permission denied")
