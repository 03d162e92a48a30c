"""Tests for shared CLI helpers."""

from __future__ import annotations

import click
from click.testing import CliRunner
from rich.progress import Progress

from nucleoprofile.cli import utils
from nucleoprofile.cli.utils import cell_progress, error_handler, print_messages
from nucleoprofile.core.exceptions import NoMatchError


def _command(exc: Exception) -> click.Command:
    @click.command()
    @error_handler
    def fails() -> None:
        raise exc

    return fails


class TestErrorHandler:
    def test_domain_error_exits_1(self, runner: CliRunner) -> None:
        result = runner.invoke(_command(NoMatchError("tip")))
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Internal error" not in result.output

    def test_unexpected_error_exits_2(self, runner: CliRunner) -> None:
        result = runner.invoke(_command(RuntimeError("broken")))
        assert result.exit_code == 2
        assert "Internal error: RuntimeError: broken" in result.output
        assert "--verbose" in result.output

    def test_verbose_shows_traceback(self, runner: CliRunner, monkeypatch) -> None:
        monkeypatch.setattr(utils, "verbose", True)
        result = runner.invoke(_command(RuntimeError("broken")))
        assert result.exit_code == 2
        assert "Traceback" in result.output

    def test_success_passes_through(self, runner: CliRunner) -> None:
        @click.command()
        @error_handler
        def works() -> None:
            click.echo("done")

        result = runner.invoke(works)
        assert result.exit_code == 0
        assert result.output == "done\n"


class TestHelpers:
    def test_cell_progress_updates_task(self) -> None:
        progress = Progress(disable=True)
        task = progress.add_task("start", total=1)
        callback = cell_progress(progress, task, "Fitting")
        callback(2, 3, "cell_1")
        state = progress.tasks[0]
        assert state.completed == 2
        assert state.total == 3
        assert state.description == "Fitting cell_1"

    def test_print_messages(self, capsys) -> None:
        print_messages("Warnings", ["a: moved", "b: skipped"], "yellow")
        out = capsys.readouterr().out
        assert "Warnings (2):" in out
        assert "- b: skipped" in out

    def test_print_nothing_for_empty(self, capsys) -> None:
        print_messages("Warnings", [], "yellow")
        assert capsys.readouterr().out == ""
