from __future__ import annotations

from typing import List

from .engine.parser import Pipeline
from .engine.pipeline import Stage


def visualize(pipeline: Pipeline) -> str:
    """
    Produce a human-readable tree representation of a parsed pipeline.
    """
    lines: List[str] = [_describe_pipeline(pipeline)]
    for stage in pipeline.stages:
        lines.append(f"  {_describe_stage(stage)}")
    return "\n".join(lines)


def _describe_pipeline(pipeline: Pipeline) -> str:
    if not pipeline.stages:
        assigned = ", ".join(f"{name}={value!r}" for name, value in pipeline.assignments.items())
        return f"assignment [{assigned}]" if assigned else "empty"

    count = len(pipeline.stages)
    base = f"pipeline ({count} stage{'s' if count != 1 else ''})"
    details: List[str] = []
    if pipeline.input_path is not None:
        details.append(f"< {pipeline.input_path}")
    if pipeline.output_path is not None:
        details.append(f"{'>>' if pipeline.append else '>'} {pipeline.output_path}")

    if not details:
        return base

    return f"{base} [{' | '.join(details)}]"


def _describe_stage(stage: Stage) -> str:
    if not stage.arguments:
        return stage.name
    return f"{stage.name} [args={list(stage.arguments)}]"
