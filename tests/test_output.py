"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline, quiet and verbose rules
- format_response and print_table in each format
- curl command and resource tree printing
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from discli import output as output_module
from discli.discovery.normalizer import normalize
from discli.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture(autouse=True)
def _reset_global_output():
    """Ensure the global output instance is reset between tests."""
    reset_output()
    yield
    reset_output()


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("discli.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("discli.output._is_tty", lambda: True)


@pytest.fixture()
def small_tree():
    return normalize(
        {
            "name": "svc",
            "version": "v1",
            "baseUrl": "https://svc.test/",
            "resources": {
                "projects": {
                    "methods": {"get": {"httpMethod": "GET", "path": "v1/p"}},
                    "resources": {"things": {"methods": {}}},
                }
            },
        }
    )


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_plain_when_no_color(self, tty, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        assert OutputManager().format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm")
        assert _should_disable_color() is False


class TestStreams:
    def test_data_to_stdout(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_data("hello")
        captured = capfd.readouterr()
        assert captured.out == "hello\n"
        assert captured.err == ""

    @pytest.mark.parametrize("level", ["info", "success", "warning", "error", "suggest"])
    def test_diagnostics_to_stderr(self, capfd, non_tty, level):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, level)("message text")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "message text" in captured.err

    @pytest.mark.parametrize("level", ["info", "success", "suggest"])
    def test_quiet_suppresses(self, capfd, non_tty, level):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        getattr(mgr, level)("hidden")
        assert capfd.readouterr().err == ""

    @pytest.mark.parametrize("level", ["warning", "error"])
    def test_quiet_keeps(self, capfd, non_tty, level):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        getattr(mgr, level)("shown")
        assert "shown" in capfd.readouterr().err

    def test_debug_only_when_verbose(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("dbg")
        assert capfd.readouterr().err == ""
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
        mgr.debug("dbg")
        assert capfd.readouterr().err == "[debug] dbg\n"
        assert mgr.is_verbose


class TestFormatResponse:
    def test_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response(
            {"name": "ü", "items": [1, 2]}
        )
        out = capfd.readouterr().out
        assert json.loads(out) == {"name": "ü", "items": [1, 2]}
        assert "\n  " in out

    def test_json_string_passthrough(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response("plain text")
        assert capfd.readouterr().out == "plain text\n"

    def test_plain_dict(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response(
            {"id": "x", "nested": {"a": 1}}
        )
        assert capfd.readouterr().out == 'id\tx\nnested\t{"a": 1}\n'

    def test_plain_list_of_dicts(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response(
            [{"a": 1, "b": 2}, {"a": 3, "b": 4}]
        )
        assert capfd.readouterr().out == "1\t2\n3\t4\n"

    def test_rich(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response({"key": "value"})
        assert "value" in capfd.readouterr().out


class TestPrintTable:
    def test_json(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(["Name", "Title"], [["container", "GKE"]])
        assert json.loads(capfd.readouterr().out) == [{"Name": "container", "Title": "GKE"}]

    def test_plain(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_table(["Name", "Title"], [["container", "GKE"]], title="Services")
        assert capfd.readouterr().out == "Name\tTitle\ncontainer\tGKE\n"

    def test_rich(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.RICH, no_color=True)
        mgr.print_table(["Name"], [["container"]], title="Services")
        out = capfd.readouterr().out
        assert "container" in out
        assert "Services" in out


class TestPrintCommand:
    COMMAND = 'curl -X GET \\\n  "https://svc.test/v1/p"'

    def test_plain_verbatim(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_command(self.COMMAND)
        assert capfd.readouterr().out == self.COMMAND + "\n"

    def test_json_verbatim(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).print_command(self.COMMAND)
        assert capfd.readouterr().out == self.COMMAND + "\n"

    def test_rich_highlighted(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_command(self.COMMAND)
        assert "https://svc.test/v1/p" in capfd.readouterr().out


class TestPrintResourceTree:
    def test_plain_lists_paths(self, capfd, non_tty, small_tree):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_resource_tree(
            small_tree.root
        )
        assert capfd.readouterr().out == "svc\nsvc.projects\nsvc.projects.things\n"

    def test_json_nested(self, capfd, non_tty, small_tree):
        OutputManager(format=OutputFormat.JSON, no_color=True).print_resource_tree(
            small_tree.root
        )
        data = json.loads(capfd.readouterr().out)
        projects = data["resources"][0]
        assert projects["path"] == "svc.projects"
        assert projects["methods"] == ["get"]
        assert projects["resources"][0]["name"] == "things"

    def test_rich_tree(self, capfd, non_tty, small_tree):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_resource_tree(
            small_tree.root
        )
        out = capfd.readouterr().out
        assert "projects" in out
        assert "get" in out


class TestGlobalInstance:
    def test_lazy_default(self, non_tty):
        assert isinstance(get_output(), OutputManager)
        assert get_output() is get_output()

    def test_set_and_reset(self):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert get_output() is not mgr

    def test_convenience_functions_delegate(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.print_data("data")
        output_module.info("note")
        output_module.print_command("curl x")
        captured = capfd.readouterr()
        assert captured.out == "data\ncurl x\n"
        assert "note" in captured.err
