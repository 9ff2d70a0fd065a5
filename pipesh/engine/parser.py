from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, TYPE_CHECKING

from .pipeline import Stage

if TYPE_CHECKING:
    from .environment import Environment

OPERATORS = {"|", "<", ">", ">>"}
_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_ASSIGNMENT = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)=(.*)$", re.DOTALL)


class ParseError(ValueError):
    """Raised when parsing a command line fails."""


@dataclass(frozen=True)
class Token:
    text: str
    operator: bool = False


@dataclass
class Pipeline:
    """A parsed command line: its stages plus pipeline-level redirections."""

    stages: List[Stage] = field(default_factory=list)
    input_path: str | None = None
    output_path: str | None = None
    append: bool = False
    assignments: Dict[str, str] = field(default_factory=dict)


def parse(command: str, environment: "Environment") -> Pipeline:
    """Tokenize ``command`` and split it into stages; an empty line yields an empty Pipeline."""
    tokens = tokenize(command, environment)
    if not tokens:
        return Pipeline()
    assignments = _leading_assignments(tokens)
    if assignments is not None:
        return Pipeline(assignments=assignments)
    parser = _Parser(tokens)
    return parser.parse_pipeline()


def tokenize(command: str, environment: "Environment") -> List[Token]:
    tokens: List[Token] = []
    current: List[str] = []
    started = False
    quote: str | None = None
    pos = 0

    def flush() -> None:
        nonlocal started
        if started:
            tokens.append(Token("".join(current)))
            current.clear()
            started = False

    while pos < len(command):
        ch = command[pos]
        if quote == "'":
            if ch == "'":
                quote = None
            else:
                current.append(ch)
            pos += 1
            continue

        if quote == '"':
            if ch == '"':
                quote = None
                pos += 1
            elif ch == "\\" and pos + 1 < len(command) and command[pos + 1] in '"\\$':
                current.append(command[pos + 1])
                pos += 2
            elif ch == "$":
                value, pos = _substitute(command, pos, environment)
                current.append(value)
            else:
                current.append(ch)
                pos += 1
            continue

        if ch in ("'", '"'):
            quote = ch
            started = True
            pos += 1
            continue

        if ch == "\\":
            if pos + 1 < len(command):
                current.append(command[pos + 1])
                started = True
            pos += 2
            continue

        if ch.isspace():
            flush()
            pos += 1
            continue

        if ch in "|<>":
            flush()
            if command.startswith(">>", pos):
                tokens.append(Token(">>", operator=True))
                pos += 2
            else:
                tokens.append(Token(ch, operator=True))
                pos += 1
            continue

        if ch == "$":
            value, pos = _substitute(command, pos, environment)
            current.append(value)
            started = True
            continue

        current.append(ch)
        started = True
        pos += 1

    if quote:
        raise ParseError("Unterminated quote in command.")
    flush()
    return tokens


def _substitute(command: str, pos: int, environment: "Environment") -> tuple[str, int]:
    """Expand the variable reference starting at ``command[pos] == '$'``."""
    rest = command[pos + 1:]
    if rest.startswith("?"):
        return environment.get("?"), pos + 2
    if rest.startswith("{"):
        end = rest.find("}")
        if end == -1:
            raise ParseError("Unterminated '${' in command.")
        name = rest[1:end]
        if not _NAME.fullmatch(name):
            raise ParseError(f"Bad substitution: ${{{name}}}")
        return environment.get(name), pos + end + 2
    match = _NAME.match(rest)
    if not match:
        return "$", pos + 1
    return environment.get(match.group()), pos + 1 + match.end()


def _leading_assignments(tokens: Sequence[Token]) -> Dict[str, str] | None:
    assignments: Dict[str, str] = {}
    for token in tokens:
        match = None if token.operator else _ASSIGNMENT.match(token.text)
        if match is None:
            return None
        assignments[match.group(1)] = match.group(2)
    return assignments


@dataclass
class _Parser:
    tokens: Sequence[Token]
    pos: int = 0

    def parse_pipeline(self) -> Pipeline:
        pipeline = Pipeline()
        pipeline.stages.append(self._parse_stage(pipeline, first=True))
        while self._peek() == "|":
            if pipeline.output_path is not None:
                raise ParseError("Output redirection is only allowed in the last stage.")
            self._consume("|")
            pipeline.stages.append(self._parse_stage(pipeline, first=False))
        self.expect_end()
        return pipeline

    def expect_end(self) -> None:
        if self.pos != len(self.tokens):
            raise ParseError(f"Unexpected token: {self.tokens[self.pos].text!r}")

    def _parse_stage(self, pipeline: Pipeline, *, first: bool) -> Stage:
        words: List[str] = []
        while True:
            token = self._peek()
            if token is None or token == "|":
                break
            if token == "<":
                if not first:
                    raise ParseError("Input redirection is only allowed in the first stage.")
                self._consume("<")
                pipeline.input_path = self._consume_word()
            elif token in (">", ">>"):
                self._consume(token)
                pipeline.output_path = self._consume_word()
                pipeline.append = token == ">>"
            else:
                words.append(self._consume_word())
        if not words:
            raise ParseError("Missing command name.")
        return Stage(words[0], tuple(words[1:]))

    def _peek(self) -> str | None:
        if self.pos >= len(self.tokens):
            return None
        token = self.tokens[self.pos]
        return token.text if token.operator else ""

    def _consume(self, expected: str) -> None:
        token = self._peek()
        if token != expected:
            raise ParseError(f"Expected '{expected}' but found '{token}'.")
        self.pos += 1

    def _consume_word(self) -> str:
        if self.pos >= len(self.tokens):
            raise ParseError("Unexpected end of input.")
        token = self.tokens[self.pos]
        if token.operator:
            raise ParseError(f"Unexpected token '{token.text}'.")
        self.pos += 1
        return token.text
