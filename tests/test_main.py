from __future__ import annotations

import io
from pathlib import Path

import pytest

from pipesh import main as main_module


@pytest.fixture(autouse=True)
def _in_tmp(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)


def test_single_command(capsys) -> None:
    assert main_module.main(["-c", "echo hi | wc"]) == 0
    assert capsys.readouterr().out == "1 1 3\n"


def test_single_command_exit_code() -> None:
    assert main_module.main(["-c", "exit 5"]) == 5


def test_debug_prints_pipeline(capsys) -> None:
    main_module.main(["--debug", "-c", "echo hi | cat"])
    captured = capsys.readouterr()
    assert "pipeline (2 stages)" in captured.err
    assert captured.out == "hi\n"


def test_repl_stops_on_exit(monkeypatch, capsys, tmp_path: Path) -> None:
    (tmp_path / "sub").mkdir()
    monkeypatch.setattr("sys.stdin", io.StringIO("cd sub\npwd\n\nexit 3\necho unreachable\n"))
    assert main_module.main([]) == 3
    out = capsys.readouterr().out
    assert f"{(tmp_path / 'sub').resolve()}\n" in out
    assert "unreachable" not in out


def test_repl_reports_parse_errors_and_ends_on_eof(monkeypatch, capsys) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("echo 'open\necho ok\n"))
    assert main_module.main([]) == 0
    captured = capsys.readouterr()
    assert "[parse error]" in captured.err
    assert "ok\n" in captured.out


def test_home_option(monkeypatch, capsys, tmp_path: Path) -> None:
    home = tmp_path / "h"
    home.mkdir()
    monkeypatch.setattr("sys.stdin", io.StringIO("cd\npwd\n"))
    main_module.main(["--home", str(home)])
    assert f"{home.resolve()}\n" in capsys.readouterr().out
