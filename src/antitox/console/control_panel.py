"""Interactive console: operator commands and a line-based reference chat source."""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import PromptSession

from antitox.service import ModerationService
from antitox.util.logger import get_logger

# Box drawing helpers for aligned console output
BOX_WIDTH = 60

logger = get_logger("console")


def console_print(message: str, style: str = "") -> None:
    """
    Print text using prompt_toolkit without breaking the active prompt.

    Args:
        message (str): The text to print.
        style (str): Optional prompt_toolkit style, e.g. ``"ansigreen"``.
    """
    formatted: FormattedText | str
    if style:
        formatted = FormattedText([(style, message)])
    else:
        formatted = message
    print_formatted_text(formatted)


def print_boxed_title(title: str, color: str = "") -> None:
    """Print ``title`` centered inside a ╔═╗ box of width BOX_WIDTH."""
    inner_width = BOX_WIDTH - 2
    pad_left = (inner_width - len(title)) // 2
    pad_right = inner_width - len(title) - pad_left
    top = f"╔{'═' * inner_width}╗"
    mid = f"║{' ' * pad_left}{title}{' ' * pad_right}║"
    bot = f"╚{'═' * inner_width}╝"
    for line in (top, mid, bot):
        console_print(line, color)


class ConsoleControl:
    """
    Shared state between the console loop and the runtime.

    Attributes:
        service (ModerationService): The service commands operate on.
        shutdown_event (asyncio.Event): Set when the operator asks to exit.
        background_tasks (set[asyncio.Task]): Commands still running off the input loop.
    """

    def __init__(self, service: ModerationService) -> None:
        self.service = service
        self.shutdown_event = asyncio.Event()
        self.background_tasks: set[asyncio.Task] = set()

    def request_shutdown(self) -> None:
        self.shutdown_event.set()

    def is_shutdown_requested(self) -> bool:
        return self.shutdown_event.is_set()

    def run_in_background(self, coro: Awaitable[None]) -> asyncio.Task:
        """Run ``coro`` without blocking the input loop, keeping a reference until it ends."""
        task = asyncio.ensure_future(coro)
        self.background_tasks.add(task)
        task.add_done_callback(self.background_tasks.discard)
        return task

    async def wait_background(self) -> None:
        if self.background_tasks:
            await asyncio.gather(*self.background_tasks, return_exceptions=True)

    async def cancel_background(self) -> None:
        for task in list(self.background_tasks):
            task.cancel()
        await self.wait_background()


# Type alias for console handler functions
CommandHandler = Callable[[ConsoleControl, list[str]], Awaitable[None]]


@dataclass
class Command:
    """
    A console command with its handler and help text.

    Attributes:
        name (str): Primary name, typed after the ``/`` prefix.
        handler (CommandHandler): Coroutine run when the command is invoked.
        aliases (list[str]): Alternative names.
        description (str): Shown by ``/help``.
        usage (str): Optional usage string.
    """
    name: str
    handler: CommandHandler
    aliases: list[str]
    description: str
    usage: str = ""

    def matches(self, input_cmd: str) -> bool:
        return input_cmd == self.name or input_cmd in self.aliases


# ==================== Command Handlers ====================

async def cmd_help(control: ConsoleControl, args: list[str]) -> None:
    print_boxed_title("Console Commands Reference", "ansigreen")
    console_print("\n  <player>: <message>", "ansicyan")
    console_print("    Feed a chat line into the moderation buffer")
    for cmd in COMMANDS:
        aliases_str = f" (aliases: {', '.join('/' + a for a in cmd.aliases)})" if cmd.aliases else ""
        console_print(f"\n  /{cmd.name}{aliases_str}", "ansicyan")
        console_print(f"    {cmd.description}")
        if cmd.usage:
            console_print(f"    Usage: {cmd.usage}", "ansibrightblack")
    console_print("")


async def cmd_status(control: ConsoleControl, args: list[str]) -> None:
    """Show buffer, ledger and dispatcher counters."""
    status = control.service.status()
    print_boxed_title("AntiToxicity Status", "ansimagenta")
    console_print(f"  Scheduler:          {'🟢 Running' if status.scheduler_running else '🔴 Stopped'}")
    console_print(f"  Stored messages:    {status.stored_messages} ({status.distinct_authors} players)")
    console_print(f"  Pending analysis:   {status.pending_messages}")
    console_print(f"  Messages analyzed:  {status.messages_analyzed}")
    console_print(f"  Cycles completed:   {status.cycles}")
    console_print(f"  Sanctions applied:  {status.total_sanctions}")
    console_print(f"  False positives:    {status.false_positives}")
    console_print(f"  Commands run/fail:  {status.commands_executed}/{status.commands_failed}")
    console_print("")


async def cmd_analyze(control: ConsoleControl, args: list[str]) -> None:
    """Force an analysis cycle now; chat lines keep being captured while it runs."""
    console_print("Forcing analysis...", "ansiyellow")
    control.run_in_background(_forced_analysis(control))


async def _forced_analysis(control: ConsoleControl) -> None:
    try:
        outcome = await control.service.force_analysis()
    except Exception as exc:
        logger.exception("Forced analysis failed: %s", exc)
        console_print(f"Error executing command: {exc}", "ansibrightred")
        return
    console_print(f"Cycle {outcome.status.value}: {len(outcome.sanctions)} sanction(s)", "ansibrightcyan")
    for command in outcome.commands:
        console_print(f"  {command}", "ansibrightblack")


async def cmd_false_positive(control: ConsoleControl, args: list[str]) -> None:
    count = control.service.report_false_positive()
    console_print(f"False positive recorded (total: {count}).", "ansigreen")


async def cmd_clear(control: ConsoleControl, args: list[str]) -> None:
    os.system('cls' if os.name == 'nt' else 'clear')
    console_print("Console cleared.", "ansibrightcyan")


async def cmd_shutdown(control: ConsoleControl, args: list[str]) -> None:
    console_print("Shutdown requested.", "ansiyellow")
    control.request_shutdown()


# ==================== Command Registry ====================

COMMANDS: list[Command] = [
    Command(
        name="help",
        handler=cmd_help,
        aliases=["h", "?"],
        description="Show this help message with all available commands",
    ),
    Command(
        name="status",
        handler=cmd_status,
        aliases=["stat", "info"],
        description="Display buffer, ledger and dispatcher counters",
    ),
    Command(
        name="analyze",
        handler=cmd_analyze,
        aliases=["force", "a"],
        description="Run an analysis cycle immediately",
    ),
    Command(
        name="falsepositive",
        handler=cmd_false_positive,
        aliases=["fp"],
        description="Record that a sanction was a false positive",
    ),
    Command(
        name="clear",
        handler=cmd_clear,
        aliases=["cls"],
        description="Clear the console screen",
    ),
    Command(
        name="shutdown",
        handler=cmd_shutdown,
        aliases=["stop", "quit", "exit"],
        description="Gracefully shut down",
    ),
]


# ==================== Input Dispatch ====================

def parse_chat_line(line: str) -> tuple[str, str] | None:
    """Split ``"author: text"`` into its parts, or return None when it is not a chat line."""
    author, sep, text = line.partition(":")
    author, text = author.strip(), text.strip()
    if not sep or not author or not text or " " in author:
        return None
    return author, text


async def handle_console_line(line: str, control: ConsoleControl) -> None:
    """
    Execute a ``/command`` or capture an ``author: text`` chat line.

    Args:
        line (str): Raw input.
        control (ConsoleControl): Console state passed to handlers.
    """
    line = line.strip()
    if not line:
        return

    if not line.startswith("/"):
        parsed = parse_chat_line(line)
        if parsed is None:
            console_print("Expected '<player>: <message>' or a /command. Type /help.", "ansibrightred")
            return
        control.service.capture(*parsed, source="console")
        return

    parts = line[1:].split()
    if not parts:
        return
    cmd_name = parts[0].lower()
    args = parts[1:]

    for cmd in COMMANDS:
        if cmd.matches(cmd_name):
            try:
                await cmd.handler(control, args)
            except Exception as exc:
                logger.exception("Error executing console command '%s': %s", cmd_name, exc)
                console_print(f"Error executing command: {exc}", "ansibrightred")
            return

    console_print(f"Unknown command '/{cmd_name}'. Type /help for available commands.", "ansibrightred")


async def run_console(control: ConsoleControl) -> None:
    """Read lines until shutdown is requested or input ends."""
    session = PromptSession("> ")

    print_boxed_title("AntiToxicity Interactive Console", "ansicyan")
    console_print("Type '<player>: <message>' to chat, '/help' for commands.\n", "ansibrightblack")

    with patch_stdout():
        while not control.is_shutdown_requested():
            try:
                line = await session.prompt_async()
                await handle_console_line(line, control)
            except (EOFError, KeyboardInterrupt):
                console_print("\nShutdown requested by user.", "ansibrightyellow")
                control.request_shutdown()
                break
            except Exception as exc:
                logger.exception("Error in console input loop: %s", exc)
                console_print(f"Error: {exc}", "ansibrightred")


@asynccontextmanager
async def console_session(control: ConsoleControl) -> AsyncIterator[ConsoleControl]:
    """
    Run the console in a background task for the duration of the context.

    Example:
        async with console_session(control):
            await control.shutdown_event.wait()
    """
    console_task = asyncio.create_task(run_console(control))
    try:
        yield control
    finally:
        control.request_shutdown()
        console_task.cancel()
        try:
            await console_task
        except asyncio.CancelledError:
            pass
        await control.cancel_background()
