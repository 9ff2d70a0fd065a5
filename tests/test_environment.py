from __future__ import annotations

import os
from pathlib import Path

import pytest

from pipesh.engine import Environment, NotADirectory, PathExpander, PathNotFound


def test_defaults_to_process_state(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PIPESH_MARKER", "1")
    env = Environment()
    assert env.working_directory == tmp_path.resolve()
    assert env.variables["PIPESH_MARKER"] == "1"
    assert env.exit_requested is False
    assert env.exit_code == 0


def test_change_directory_updates_to_resolved_path(environment: Environment) -> None:
    target = environment.working_directory / "sub"
    target.mkdir()
    assert environment.change_directory(target / ".." / "sub") == target.resolve()
    assert environment.working_directory == target.resolve()


def test_change_directory_fails_closed(environment: Environment) -> None:
    before = environment.working_directory
    with pytest.raises(PathNotFound):
        environment.change_directory(before / "missing")
    (before / "file.txt").write_text("x")
    with pytest.raises(NotADirectory):
        environment.change_directory(before / "file.txt")
    assert environment.working_directory == before


def test_rejects_missing_start_directory(tmp_path: Path) -> None:
    with pytest.raises(PathNotFound):
        Environment(tmp_path / "nope", variables={})


def test_variables_and_last_status(environment: Environment) -> None:
    environment.set("NAME", "value")
    assert environment.get("NAME") == "value"
    assert environment.get("UNSET") == ""
    environment.last_status = 3
    assert environment.get("?") == "3"
    exported = environment.exported()
    exported["NAME"] = "changed"
    assert environment.get("NAME") == "value"


def test_request_exit(environment: Environment) -> None:
    environment.request_exit(4)
    assert environment.exit_requested
    assert environment.exit_code == 4


def test_home_defaults_to_home_variable(tmp_path: Path) -> None:
    env = Environment(tmp_path, variables={"HOME": str(tmp_path / "h")})
    assert env.home == (tmp_path / "h").resolve()


def test_relative_home_is_anchored_to_working_directory(tmp_path: Path, monkeypatch) -> None:
    start = tmp_path / "work"
    start.mkdir()
    (start / "sub").mkdir()
    monkeypatch.chdir(tmp_path)
    env = Environment(start, variables={}, home="h")
    assert env.home == (start / "h").resolve()
    env.change_directory(start / "sub")
    assert env.home == (start / "h").resolve()


class TestPathExpander:
    def test_relative_paths_use_working_directory(self, environment: Environment) -> None:
        expander = PathExpander(environment)
        assert expander.expand("a/b") == environment.working_directory / "a" / "b"
        assert expander.expand("..") == environment.working_directory.parent

    def test_absolute_paths_are_kept(self, environment: Environment, tmp_path: Path) -> None:
        assert PathExpander(environment).expand(str(tmp_path)) == tmp_path.resolve()

    def test_tilde_uses_configured_home(self, environment: Environment) -> None:
        expander = PathExpander(environment)
        assert expander.expand("~") == environment.home.resolve()
        assert expander("~/docs") == environment.home.resolve() / "docs"

    def test_follows_working_directory_changes(self, environment: Environment) -> None:
        expander = PathExpander(environment)
        sub = environment.working_directory / "sub"
        sub.mkdir()
        environment.change_directory(sub)
        assert expander.expand("x") == sub / "x"
        assert os.path.isabs(expander.expand("x"))
