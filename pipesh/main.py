from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from .engine import Engine, Environment, ParseError
from .visualize import visualize

PROMPT = "pipesh> "


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="[%(asctime)s] %(levelname)s: %(message)s",
    )
    environment = Environment(home=args.home)
    engine = Engine()

    if args.command is not None:
        _run_line(engine, environment, args.command, debug=args.debug)
        return environment.exit_code if environment.exit_requested else environment.last_status

    while not environment.exit_requested:
        try:
            line = input(PROMPT)
        except EOFError:
            print()
            return environment.last_status
        except KeyboardInterrupt:
            print()
            continue
        _run_line(engine, environment, line, debug=args.debug)

    return environment.exit_code


def _run_line(engine: Engine, environment: Environment, line: str, *, debug: bool) -> None:
    try:
        pipeline = engine.parse(environment, line)
    except ParseError as exc:
        print(f"[parse error] {exc}", file=sys.stderr)
        environment.last_status = 2
        return

    if debug and pipeline.stages:
        print(visualize(pipeline), file=sys.stderr)

    engine.execute(environment, pipeline)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pipesh", description="Line-oriented command shell.")
    parser.add_argument(
        "--home",
        type=str,
        default=None,
        help="Directory used by 'cd' without arguments and by '~'.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print the parsed pipeline and debug logs before executing commands.",
    )
    parser.add_argument(
        "-c",
        dest="command",
        default=None,
        help="Run a single command line and exit.",
    )
    return parser.parse_args(argv)


if __name__ == "__main__":
    sys.exit(main())
