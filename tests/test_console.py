"""Tests for console input handling."""

import asyncio
from contextlib import nullcontext
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from antitox.console.control_panel import (
    COMMANDS,
    ConsoleControl,
    handle_console_line,
    parse_chat_line,
    run_console,
)
from antitox.moderation.cycle_orchestrator import CycleStatus


@pytest.fixture()
def control():
    service = MagicMock()
    service.force_analysis = AsyncMock(
        return_value=SimpleNamespace(status=CycleStatus.COMPLETED, sanctions=[], commands=[])
    )
    service.report_false_positive.return_value = 1
    return ConsoleControl(service)


class TestParseChatLine:
    """Tests for parse_chat_line."""

    def test_splits_author_and_text(self):
        assert parse_chat_line("Steve: hello there") == ("Steve", "hello there")

    def test_keeps_colons_in_text(self):
        assert parse_chat_line("Steve: time is 12:30") == ("Steve", "time is 12:30")

    @pytest.mark.parametrize("line", ["no separator", ": missing author", "Steve:", "two words: hi"])
    def test_rejects_non_chat_lines(self, line):
        assert parse_chat_line(line) is None


class TestHandleConsoleLine:
    """Tests for handle_console_line."""

    @pytest.mark.asyncio
    async def test_chat_line_is_captured(self, control):
        await handle_console_line("  Steve: you are trash  ", control)

        control.service.capture.assert_called_once_with("Steve", "you are trash", source="console")

    @pytest.mark.asyncio
    async def test_invalid_line_is_not_captured(self, control):
        with patch("antitox.console.control_panel.console_print") as printer:
            await handle_console_line("just some words", control)

        control.service.capture.assert_not_called()
        printer.assert_called_once()

    @pytest.mark.asyncio
    async def test_analyze_alias_forces_cycle(self, control):
        with patch("antitox.console.control_panel.console_print"):
            await handle_console_line("/force", control)
            await control.wait_background()

        control.service.force_analysis.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_false_positive_command(self, control):
        with patch("antitox.console.control_panel.console_print"):
            await handle_console_line("/fp", control)

        control.service.report_false_positive.assert_called_once()

    @pytest.mark.asyncio
    async def test_shutdown_sets_event(self, control):
        with patch("antitox.console.control_panel.console_print"):
            await handle_console_line("/quit", control)

        assert control.is_shutdown_requested()

    @pytest.mark.asyncio
    async def test_handler_errors_are_reported(self, control):
        control.service.force_analysis.side_effect = RuntimeError("boom")
        with patch("antitox.console.control_panel.console_print") as printer:
            await handle_console_line("/analyze", control)
            await control.wait_background()

        assert "boom" in printer.call_args.args[0]

    @pytest.mark.asyncio
    async def test_unknown_command(self, control):
        with patch("antitox.console.control_panel.console_print") as printer:
            await handle_console_line("/dance", control)

        assert "Unknown command" in printer.call_args.args[0]


class ScriptedSession:
    """Stands in for PromptSession: returns scripted lines, then blocks."""

    def __init__(self, lines):
        self._lines = list(lines)
        self.exhausted = asyncio.Event()

    async def prompt_async(self):
        if self._lines:
            return self._lines.pop(0)
        self.exhausted.set()
        await asyncio.Event().wait()


class TestRunConsole:
    """Tests for the interactive input loop."""

    @pytest.mark.asyncio
    async def test_chat_is_captured_while_forced_cycle_runs(self):
        release = asyncio.Event()
        captured = []

        async def slow_analysis():
            await release.wait()
            return SimpleNamespace(status=CycleStatus.COMPLETED, sanctions=[], commands=[])

        service = MagicMock()
        service.capture.side_effect = lambda author, text, source: captured.append(author)
        service.force_analysis = AsyncMock(side_effect=slow_analysis)
        control = ConsoleControl(service)
        session = ScriptedSession(["Alice: hi", "/analyze", "Bob: typed during classification"])

        with patch("antitox.console.control_panel.PromptSession", return_value=session), \
             patch("antitox.console.control_panel.patch_stdout", nullcontext), \
             patch("antitox.console.control_panel.console_print"), \
             patch("antitox.console.control_panel.print_boxed_title"):
            loop_task = asyncio.create_task(run_console(control))
            await asyncio.wait_for(session.exhausted.wait(), timeout=1)
            captured_during_cycle = list(captured)
            pending_cycles = len(control.background_tasks)

            release.set()
            await control.wait_background()
            loop_task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await loop_task

        assert captured_during_cycle == ["Alice", "Bob"]
        assert pending_cycles == 1
        service.force_analysis.assert_awaited_once()


def test_command_names_are_unique():
    names = [name for cmd in COMMANDS for name in [cmd.name, *cmd.aliases]]
    assert len(names) == len(set(names))
