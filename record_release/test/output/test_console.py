"""Tests for output/console.py."""

import pytest

from record_release.output.console import (
    ActionsConsole,
    ConsoleProtocol,
    MockConsole,
    Style,
    escape_command_data,
)


class TestMockConsole:
    def test_captures_messages_with_prefixes(self) -> None:
        console = MockConsole()
        console.info("Next version: 1.2.4")
        console.warning("No files matched pattern: dist/*.zip")
        console.error("token is required")
        console.debug("mode: single-job")

        assert console.messages == [
            "Next version: 1.2.4",
            "warning: No files matched pattern: dist/*.zip",
            "error: token is required",
            "debug: mode: single-job",
        ]
        assert console.has_warning()
        assert console.has_error()
        assert console.warnings() == ["warning: No files matched pattern: dist/*.zip"]

    def test_find(self) -> None:
        console = MockConsole()
        console.success("Release recorded!")
        console.print("hint: x", Style.DIM)
        assert len(console.find("recorded")) == 1
        assert console.find("hint")[0].style == Style.DIM

    def test_mask(self) -> None:
        console = MockConsole()
        console.mask("s3cret")
        assert console.masked == ["s3cret"]

    def test_satisfies_protocol(self) -> None:
        mock = MockConsole()
        console: ConsoleProtocol = mock
        console.debug("mode: upload")
        assert mock.messages == ["debug: mode: upload"]


class TestEscapeCommandData:
    def test_escapes_newlines_and_percent(self) -> None:
        assert escape_command_data("50%\nnext\r") == "50%25%0Anext%0D"


class TestActionsConsole:
    def test_warning_is_workflow_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = ActionsConsole()
        console.warning("Failed to create GitHub release: boom")
        out = capsys.readouterr().out
        assert "::warning::Failed to create GitHub release: boom" in out

    def test_error_and_debug(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = ActionsConsole()
        console.error("API error (NOT_FOUND): Application not found")
        console.debug("mode: finalize")
        out = capsys.readouterr().out
        assert "::error::API error (NOT_FOUND): Application not found" in out
        assert "::debug::mode: finalize" in out

    def test_mask_registers_each_line(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = ActionsConsole()
        console.mask("line-one\nline-two")
        out = capsys.readouterr().out
        assert "::add-mask::line-one" in out
        assert "::add-mask::line-two" in out

    def test_info_is_plain_text(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = ActionsConsole()
        console.info("Next version: 1.2.4")
        assert "Next version: 1.2.4" in capsys.readouterr().out
