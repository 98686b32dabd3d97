"""
AntiToxicity Moderation Runtime
===============================

Runs the analysis engine with the interactive console as its chat source:
lines typed as ``player: message`` are buffered, analyzed every polling
interval, and the resulting moderation commands are written to the log.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.
    Resolution order:
    1. ANTITOX_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("ANTITOX_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
from dotenv import load_dotenv

from antitox.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> None:
    """Load ``.env`` from the base directory into the process environment."""
    load_dotenv(dotenv_path=BASE_DIR / ".env")


def log_command(command: str) -> None:
    """Command executor for the console runtime: record the command instead of running it."""
    logger.info("[COMMAND] %s", command)


async def async_main() -> int:
    """Build the service, run it alongside the console, and return an exit code."""
    load_environment()

    # Imported after .env is loaded so the configuration sees its variables
    from antitox.configuration.app_configuration import app_config
    from antitox.console.control_panel import ConsoleControl, console_session
    from antitox.service import ModerationService

    bypass_names = {name.casefold() for name in app_config.moderation.bypass_players}
    try:
        service = ModerationService.from_config(
            app_config,
            execute=log_command,
            bypass=(lambda author: author.casefold() in bypass_names) if bypass_names else None,
        )
    except ValueError as exc:
        logger.critical("Invalid configuration: %s", exc)
        return 1

    await service.start()
    control = ConsoleControl(service)
    try:
        async with console_session(control):
            await control.shutdown_event.wait()
    except asyncio.CancelledError:
        logger.info("Runtime cancelled; proceeding to shutdown")
    finally:
        await service.shutdown()

    logger.info("Shutdown complete.")
    return 0


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process code."""
    sys.excepthook = handle_exception
    logger.info("Starting AntiToxicity moderation…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except Exception as exc:
        logger.critical("An unexpected error occurred: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
