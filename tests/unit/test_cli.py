"""
Tests for the chocopy command-line interface.
"""

import io
import json

import pytest

from chocopy.cli import EXIT_DIAGNOSTICS, EXIT_FAILURE, EXIT_OK, main


@pytest.fixture
def program_file(tmp_path):
    """Factory fixture writing a ChocoPy program to disk."""

    def _write(source: str, name: str = "prog.py"):
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return str(path)

    return _write


class TestCheckCommand:
    def test_clean_program(self, program_file, capsys):
        path = program_file("x: int = 1\nprint(x)\n")
        assert main(["--no-color", "check", path]) == EXIT_OK
        out = capsys.readouterr().out
        assert "[ok]" in out
        assert "(no errors)" in out

    def test_program_with_errors(self, program_file, capsys):
        path = program_file('x: int = "a"\n')
        assert main(["--no-color", "check", path]) == EXIT_DIAGNOSTICS
        captured = capsys.readouterr()
        assert "error[E0401]" in captured.err
        assert "1 error" in captured.out

    def test_reads_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("print(1)\n"))
        assert main(["--no-color", "check", "-"]) == EXIT_OK
        assert "<stdin>" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        missing = str(tmp_path / "nope.py")
        assert main(["--no-color", "check", missing]) == EXIT_FAILURE
        assert "cannot read" in capsys.readouterr().err


class TestJsonCommands:
    def test_parse(self, program_file, capsys):
        path = program_file("x = 1\n")
        assert main(["parse", path]) == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["kind"] == "Program"
        assert "inferredType" not in data["statements"][0]["value"]

    def test_typecheck(self, program_file, capsys):
        path = program_file("x: int = 0\nx = 1\n")
        assert main(["typecheck", path]) == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["statements"][0]["value"]["inferredType"]["className"] == "int"

    def test_compile(self, program_file, capsys):
        path = program_file("print(y)\n")
        assert main(["compile", "--indent", "2", path]) == EXIT_DIAGNOSTICS
        data = json.loads(capsys.readouterr().out)
        assert set(data) == {"untypedAst", "typedAst", "errors", "hasErrors"}
        assert data["hasErrors"] is True
        assert data["errors"][0]["code"] == "E0301"

    def test_tokens(self, program_file, capsys):
        path = program_file("x = 1\n")
        assert main(["tokens", path]) == EXIT_OK
        assert capsys.readouterr().out.strip()


def test_no_command_prints_help(capsys):
    assert main([]) == EXIT_OK
    assert "usage" in capsys.readouterr().out.lower()
