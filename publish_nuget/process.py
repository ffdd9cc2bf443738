"""
process.py

Responsibility: Run external tools (`dotnet`, `git`) as argument vectors.

Commands are never built as strings and re-split on spaces, so arguments
containing whitespace (paths, credentials) reach the tool intact.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    pass


@dataclass(frozen=True)
class CommandResult:
    args: tuple[str, ...]
    returncode: int
    stdout: str


class Runner(Protocol):
    def __call__(self, cmd: list[str], *, cwd: Path | None = None, capture: bool = False) -> CommandResult: ...


def _redact(cmd: list[str]) -> str:
    out: list[str] = []
    hide_next = False
    for part in cmd:
        if hide_next:
            out.append("***")
            hide_next = False
            continue
        out.append(part)
        if part in ("-k", "--api-key", "-p", "--password"):
            hide_next = True
    return " ".join(out)


def run(cmd: list[str], *, cwd: Path | None = None, capture: bool = False) -> CommandResult:
    """
    Run a subprocess command, raising a CommandError on a non-zero exit.

    With `capture=False` the tool writes straight to this process's stdout/stderr.
    With `capture=True` stdout and stderr are merged and returned.
    """
    logger.info("executing: [%s]", _redact(cmd))
    try:
        if capture:
            proc = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        else:
            proc = subprocess.run(cmd, cwd=str(cwd) if cwd else None, check=True, text=True)
    except subprocess.CalledProcessError as e:
        raise CommandError(f"Command failed ({e.returncode}): {_redact(cmd)}\n\n{e.stdout or ''}".rstrip()) from e
    except FileNotFoundError as e:
        raise CommandError(f"Command not found: {cmd[0]}") from e
    return CommandResult(args=tuple(cmd), returncode=proc.returncode, stdout=proc.stdout or "")
