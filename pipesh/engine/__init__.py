"""Command resolution and pipeline execution for pipesh."""

from .builtins import Cat, Cd, Echo, Exit, Grep, Ls, Pwd, WordCount
from .commands import Command, ExternalCommand
from .engine import Engine
from .environment import Environment
from .errors import (
    CommandNotFound,
    InvalidArgument,
    InvalidPattern,
    IOFailure,
    NotADirectory,
    PathNotFound,
    ShellError,
)
from .factories import (
    BuiltinCommandFactory,
    CommandFactory,
    CommandResolver,
    ExternalCommandFactory,
    UtilityCommandFactory,
)
from .grep import Grepper
from .parser import ParseError, Pipeline, parse
from .paths import PathExpander
from .pipeline import PipelineExecutor, PipelineResult, PipelineState, Stage, run_pipeline
from .streams import (
    Sink,
    Source,
    StreamSink,
    StreamSource,
    open_file_sink,
    open_file_source,
    open_pipe,
    terminal_sink,
    terminal_source,
)

__all__ = [
    "Engine",
    "Environment",
    "PathExpander",
    "Source",
    "Sink",
    "StreamSource",
    "StreamSink",
    "open_pipe",
    "open_file_source",
    "open_file_sink",
    "terminal_source",
    "terminal_sink",
    "Command",
    "ExternalCommand",
    "Echo",
    "Cat",
    "WordCount",
    "Pwd",
    "Exit",
    "Ls",
    "Cd",
    "Grep",
    "CommandFactory",
    "BuiltinCommandFactory",
    "UtilityCommandFactory",
    "ExternalCommandFactory",
    "CommandResolver",
    "PipelineExecutor",
    "PipelineResult",
    "PipelineState",
    "Stage",
    "run_pipeline",
    "Grepper",
    "Pipeline",
    "ParseError",
    "parse",
    "ShellError",
    "CommandNotFound",
    "PathNotFound",
    "NotADirectory",
    "InvalidArgument",
    "IOFailure",
    "InvalidPattern",
]
