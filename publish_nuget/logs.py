"""
logs.py

Responsibility: Route `logging` records onto GitHub Actions workflow commands.

DEBUG -> `::debug::`, WARNING -> `::warning::`, ERROR and above -> `::error::`,
INFO is printed as-is.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

_COMMANDS = {
    logging.DEBUG: "debug",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def _escape(message: str) -> str:
    # Workflow commands are line based; data must keep `%`, CR and LF escaped.
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class ActionsFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = _COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{_escape(message)}"


def configure_logging(*, verbose: bool = False, stream: TextIO | None = None) -> None:
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(ActionsFormatter("%(message)s"))

    root = logging.getLogger("publish_nuget")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
