"""Tests for rbcli.output.console module."""

from __future__ import annotations

import pytest

from rbcli.output.console import ConsoleProtocol, MockConsole, RichConsole, Style


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.WARNING) == "warning"
        assert str(Style.DIM) == "dim"


class TestMockConsole:
    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs[0].message == "hello"
        assert console.outputs[0].style == Style.DEFAULT

    def test_prefixes(self) -> None:
        console = MockConsole()
        console.success("created")
        console.error("failed")
        console.warning("skipped")
        console.info("note")
        assert console.messages == ["OK created", "error: failed", "warning: skipped", "info: note"]

    def test_helpers(self) -> None:
        console = MockConsole()
        console.warning("ignoring 'x'")
        console.print("plain", Style.DIM)

        assert console.has_warning()
        assert not console.has_error()
        assert len(console.find("ignoring")) == 1
        assert console.count(Style.DIM) == 1

        console.clear()
        assert console.text == ""

    def test_satisfies_protocol(self) -> None:
        console: ConsoleProtocol = MockConsole()
        console.print("ok", Style.SUCCESS)
        assert isinstance(console, MockConsole)
        assert console.outputs[0].style == Style.SUCCESS


class TestRichConsole:
    def test_diagnostics_go_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.warning("careful")
        console.print("regular")

        captured = capsys.readouterr()
        assert "careful" in captured.err
        assert "regular" in captured.out
        assert "careful" not in captured.out

    def test_labels_and_dim(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.success("created")
        console.print("detail", Style.DIM)
        console.error("failed")

        captured = capsys.readouterr()
        assert "OK created" in captured.out
        assert "detail" in captured.out
        assert "error: failed" in captured.err
