from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence, Tuple, TYPE_CHECKING

from .factories import CommandResolver
from .streams import Sink, Source, open_pipe

if TYPE_CHECKING:
    from .commands import Command
    from .environment import Environment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stage:
    """One unresolved pipeline stage: a program name and its arguments."""

    name: str
    arguments: Tuple[str, ...] = ()

    @classmethod
    def of(cls, name: str, *arguments: str) -> "Stage":
        return cls(name, tuple(arguments))


class PipelineState(Enum):
    BUILDING = "building"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class PipelineResult:
    status: int
    statuses: List[int] = field(default_factory=list)


class PipelineExecutor:
    """
    Resolves every stage, connects stage i's output to stage i+1's input and runs them.

    Stages of a multi-stage pipeline run concurrently, one worker thread each,
    connected by OS pipes. The overall status is the last stage's status.
    """

    def __init__(self, environment: "Environment", resolver: CommandResolver | None = None) -> None:
        self.environment = environment
        self.resolver = resolver or CommandResolver()
        self.state = PipelineState.BUILDING

    def execute(self, stages: Sequence[Stage], source: Source, sink: Sink) -> PipelineResult:
        if not stages:
            raise ValueError("execute requires at least one stage.")
        if self.state is not PipelineState.BUILDING:
            raise RuntimeError(f"Pipeline is already {self.state.value}; use a new executor.")

        commands = self._build(stages, source, sink)
        self._transition(PipelineState.RUNNING)
        if len(commands) == 1:
            statuses = [commands[0]()]
        else:
            with ThreadPoolExecutor(
                max_workers=len(commands), thread_name_prefix="pipesh-stage"
            ) as pool:
                futures = [pool.submit(command) for command in commands]
                statuses = [future.result() for future in futures]
        self._transition(PipelineState.COMPLETED)
        return PipelineResult(status=statuses[-1], statuses=statuses)

    def _build(self, stages: Sequence[Stage], source: Source, sink: Sink) -> List["Command"]:
        commands: List["Command"] = []
        pending: List[Source | Sink] = [source, sink]
        stage_source = source
        try:
            for index, stage in enumerate(stages):
                if index == len(stages) - 1:
                    stage_sink, next_source = sink, None
                else:
                    stage_sink, next_source = open_pipe()
                    pending.extend((stage_sink, next_source))
                commands.append(
                    self.resolver.resolve(
                        stage.name, stage.arguments, stage_source, stage_sink, self.environment
                    )
                )
                stage_source = next_source
        except Exception:
            for stream in pending:
                stream.close()
            self._transition(PipelineState.ABORTED)
            raise
        return commands

    def _transition(self, state: PipelineState) -> None:
        logger.debug("Pipeline %s -> %s", self.state.value, state.value)
        self.state = state


def run_pipeline(
    stages: Sequence[Stage],
    environment: "Environment",
    source: Source,
    sink: Sink,
    resolver: CommandResolver | None = None,
) -> PipelineResult:
    """Build and run ``stages`` once with a fresh executor."""
    return PipelineExecutor(environment, resolver).execute(stages, source, sink)
