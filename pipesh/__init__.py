"""pipesh: a small line-oriented command shell."""

from .engine import (
    CommandNotFound,
    Engine,
    Environment,
    Grepper,
    ParseError,
    PipelineExecutor,
    Stage,
    parse,
)
from .visualize import visualize

__all__ = [
    "Engine",
    "Environment",
    "Grepper",
    "PipelineExecutor",
    "Stage",
    "CommandNotFound",
    "ParseError",
    "parse",
    "visualize",
]
