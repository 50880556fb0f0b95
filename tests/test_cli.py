"""Tests for the command line entry point."""
from typer.testing import CliRunner

from kvshell.cli import app

runner = CliRunner()


class TestCli:
    """Tests for launch failures reported before the terminal is touched."""

    def test_requires_terminal(self):
        result = runner.invoke(app, ["--backend", "memory"])
        assert result.exit_code == 1
        assert "not a terminal" in result.output

    def test_rejects_unknown_backend(self):
        result = runner.invoke(app, ["--backend", "postgres"])
        assert result.exit_code == 1
        assert "invalid options" in result.output

    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "--home" in result.output
