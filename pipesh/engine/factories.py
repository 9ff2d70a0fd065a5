from __future__ import annotations

import logging
import os
import shutil
from abc import ABC, abstractmethod
from typing import Mapping, Sequence, Type, TYPE_CHECKING

from .builtins import Cat, Cd, Echo, Exit, FileCommand, Grep, Ls, Pwd, WordCount
from .commands import Command, ExternalCommand
from .errors import CommandNotFound
from .paths import PathExpander

if TYPE_CHECKING:
    from .environment import Environment
    from .streams import Sink, Source

logger = logging.getLogger(__name__)


class CommandFactory(ABC):
    """Maps a program name to a bound Command, or declines with None so the next factory can try."""

    @abstractmethod
    def resolve(
        self,
        name: str,
        arguments: Sequence[str],
        source: "Source",
        sink: "Sink",
        environment: "Environment",
    ) -> Command | None:
        """Return a Command for ``name`` or None if this factory does not know it."""


class RegistryCommandFactory(CommandFactory):
    """Factory backed by a fixed name -> Command class table."""

    registry: Mapping[str, Type[Command]] = {}

    def names(self) -> Sequence[str]:
        return sorted(self.registry)

    def resolve(self, name, arguments, source, sink, environment):
        command_class = self.registry.get(name)
        if command_class is None:
            return None
        if issubclass(command_class, FileCommand):
            return command_class(
                name, arguments, source, sink, environment, paths=PathExpander(environment)
            )
        return command_class(name, arguments, source, sink, environment)


class BuiltinCommandFactory(RegistryCommandFactory):
    registry: Mapping[str, Type[Command]] = {
        "echo": Echo,
        "cat": Cat,
        "wc": WordCount,
        "pwd": Pwd,
        "exit": Exit,
        "ls": Ls,
        "cd": Cd,
    }


class UtilityCommandFactory(RegistryCommandFactory):
    registry: Mapping[str, Type[Command]] = {
        "grep": Grep,
    }


class ExternalCommandFactory(CommandFactory):
    """Resolves names to executables on the session's PATH."""

    def find_executable(self, name: str, environment: "Environment") -> str | None:
        if os.sep in name or (os.altsep and os.altsep in name):
            path = PathExpander(environment).expand(name)
            if path.is_file() and os.access(path, os.X_OK):
                return str(path)
            return None
        search_path = environment.get("PATH") or os.defpath
        return shutil.which(name, path=search_path)

    def resolve(self, name, arguments, source, sink, environment):
        executable = self.find_executable(name, environment)
        if executable is None:
            return None
        return ExternalCommand(name, arguments, source, sink, environment, executable=executable)


def default_factories() -> list[CommandFactory]:
    return [BuiltinCommandFactory(), UtilityCommandFactory(), ExternalCommandFactory()]


class CommandResolver:
    """Tries each factory in order; the first one that recognizes the name wins."""

    def __init__(self, factories: Sequence[CommandFactory] | None = None) -> None:
        self.factories = list(factories) if factories is not None else default_factories()

    def resolve(
        self,
        name: str,
        arguments: Sequence[str],
        source: "Source",
        sink: "Sink",
        environment: "Environment",
    ) -> Command:
        for factory in self.factories:
            command = factory.resolve(name, arguments, source, sink, environment)
            if command is not None:
                logger.debug("Resolved %r with %s", name, factory.__class__.__name__)
                return command
        raise CommandNotFound(name)
