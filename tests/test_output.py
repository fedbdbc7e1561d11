"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline and quiet/verbose rules
- render() and print_answer() in all three modes
- print_table
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from smartai import output as output_module
from smartai.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture(autouse=True)
def _reset_global_output():
    reset_output()
    yield
    reset_output()


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("smartai.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("smartai.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# Format resolution and colour
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_resolves_to_plain_when_no_color(self, tty, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        assert OutputManager().format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# Stream discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(no_color=True).print_data("payload")
        captured = capfd.readouterr()
        assert captured.out == "payload\n"
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error", "suggest"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        getattr(OutputManager(no_color=True), method)("diag")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "diag" in captured.err

    def test_quiet_suppresses_info_but_not_errors(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.error("shown")
        captured = capfd.readouterr()
        assert "hidden" not in captured.err
        assert "Error: shown" in captured.err

    def test_debug_only_with_verbose(self, capfd, non_tty):
        OutputManager(no_color=True).debug("quiet one")
        OutputManager(no_color=True, verbose=True).debug("loud one")
        captured = capfd.readouterr()
        assert "quiet one" not in captured.err
        assert "[debug] loud one" in captured.err

    def test_progress_hidden_when_not_tty(self, capfd, non_tty):
        OutputManager(no_color=True).progress("Searching...")
        assert capfd.readouterr().err == ""


# ------------------------------------------------------------------ #
# render()
# ------------------------------------------------------------------ #


class TestRender:
    def test_json_dict(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).render({"hits": 3})
        assert json.loads(capfd.readouterr().out) == {"hits": 3}

    def test_json_string_that_is_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).render('{"a": 1}')
        assert json.loads(capfd.readouterr().out) == {"a": 1}

    def test_json_plain_string_passes_through(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).render("not json")
        assert capfd.readouterr().out == "not json\n"

    def test_plain_dict_as_key_value(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).render({"Hits": 3, "Misses": 1})
        assert capfd.readouterr().out.splitlines() == ["Hits\t3", "Misses\t1"]

    def test_plain_list_of_dicts_as_rows(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).render([{"a": 1, "b": 2}])
        assert capfd.readouterr().out == "1\t2\n"

    def test_rich_dict_contains_keys(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).render({"key": "value"})
        out = capfd.readouterr().out
        assert "key" in out
        assert "value" in out


# ------------------------------------------------------------------ #
# print_answer()
# ------------------------------------------------------------------ #


class TestPrintAnswer:
    def test_plain_prints_bare_answer(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).print_answer("Paris.", "openai")
        assert capfd.readouterr().out == "Paris.\n"

    def test_json_uses_payload(self, capfd, non_tty):
        payload = {"response": "Paris.", "source": "claude", "used_model": "claude"}
        OutputManager(format=OutputFormat.JSON).print_answer("Paris.", "claude", payload)
        assert json.loads(capfd.readouterr().out) == payload

    def test_json_without_payload(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_answer("4", "cache")
        assert json.loads(capfd.readouterr().out) == {"response": "4", "source": "cache"}

    def test_rich_shows_answer_and_source(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_answer(
            "The answer is **4**.", "search"
        )
        out = capfd.readouterr().out
        assert "The answer is" in out
        assert "source: search" in out


# ------------------------------------------------------------------ #
# print_table()
# ------------------------------------------------------------------ #


class TestPrintTable:
    def test_table_json_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(
            ["Time", "Question"], [["2024-01-01 10:00", "What is 2+2?"]]
        )
        records = json.loads(capfd.readouterr().out)
        assert records == [{"Time": "2024-01-01 10:00", "Question": "What is 2+2?"}]

    def test_table_plain_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).print_table(["a", "b"], [["1", "2"]])
        assert capfd.readouterr().out.splitlines() == ["a\tb", "1\t2"]

    def test_table_rich_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(
            ["Name"], [["hello-world"]], title="Plugins"
        )
        out = capfd.readouterr().out
        assert "hello-world" in out
        assert "Plugins" in out


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self, non_tty):
        assert isinstance(get_output(), OutputManager)

    def test_set_output_installs_instance(self):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr

    def test_convenience_functions_delegate(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.print_data("data")
        output_module.warning("careful")
        captured = capfd.readouterr()
        assert captured.out == "data\n"
        assert "Warning: careful" in captured.err
