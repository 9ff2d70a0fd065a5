from __future__ import annotations

import logging
from typing import Sequence, TYPE_CHECKING

from .errors import CommandNotFound, ShellError, report_error
from .factories import CommandFactory, CommandResolver
from .parser import Pipeline, parse
from .paths import PathExpander
from .pipeline import PipelineExecutor
from .streams import Sink, Source, open_file_sink, open_file_source, terminal_sink, terminal_source

if TYPE_CHECKING:
    from .environment import Environment

logger = logging.getLogger(__name__)


class Engine:
    """Shell engine that parses command lines and executes their pipelines."""

    def __init__(self, factories: Sequence[CommandFactory] | None = None) -> None:
        self.resolver = CommandResolver(factories)

    def run(
        self,
        environment: "Environment",
        command: str,
        *,
        source: Source | None = None,
        sink: Sink | None = None,
    ) -> int:
        pipeline = self.parse(environment, command)
        return self.execute(environment, pipeline, source=source, sink=sink)

    def parse(self, environment: "Environment", command: str) -> Pipeline:
        return parse(command, environment)

    def execute(
        self,
        environment: "Environment",
        pipeline: Pipeline,
        *,
        source: Source | None = None,
        sink: Sink | None = None,
    ) -> int:
        """Run ``pipeline`` and record its status as ``$?``; blank lines keep the previous status."""
        for name, value in pipeline.assignments.items():
            environment.set(name, value)
        if not pipeline.stages:
            if pipeline.assignments:
                environment.last_status = 0
            return environment.last_status

        status = self._execute_stages(environment, pipeline, source, sink)
        environment.last_status = status
        return status

    def _execute_stages(
        self,
        environment: "Environment",
        pipeline: Pipeline,
        source: Source | None,
        sink: Sink | None,
    ) -> int:
        paths = PathExpander(environment)
        opened: list[Source] = []
        try:
            if pipeline.input_path is not None:
                source = open_file_source(paths.expand(pipeline.input_path))
                opened.append(source)
            if pipeline.output_path is not None:
                sink = open_file_sink(paths.expand(pipeline.output_path), append=pipeline.append)
        except ShellError as exc:
            for stream in opened:
                stream.close()
            report_error("pipesh", exc)
            return exc.status

        executor = PipelineExecutor(environment, self.resolver)
        try:
            result = executor.execute(
                pipeline.stages,
                source if source is not None else terminal_source(),
                sink if sink is not None else terminal_sink(),
            )
        except CommandNotFound as exc:
            report_error(exc.name, exc)
            return exc.status
        logger.debug("Pipeline statuses: %s", result.statuses)
        return result.status
