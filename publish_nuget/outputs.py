"""
outputs.py

Responsibility: Write step outputs for the CI platform.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Mapping, TextIO


class OutputWriter:
    """
    Emit `::set-output name=KEY::value` lines on a stream, and `KEY=value` lines to the
    file named by GITHUB_OUTPUT when it is set.
    """

    def __init__(self, stream: TextIO | None = None, output_file: str | Path | None = None) -> None:
        self._stream = stream
        self._output_file = Path(output_file) if output_file else None
        self.values: dict[str, str] = {}

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OutputWriter:
        env = os.environ if environ is None else environ
        return cls(output_file=env.get("GITHUB_OUTPUT") or None)

    def set(self, name: str, value: str | Path) -> None:
        value = str(value)
        self.values[name] = value
        stream = self._stream or sys.stdout
        stream.write(f"::set-output name={name}::{value}\n")
        stream.flush()
        if self._output_file is not None:
            with self._output_file.open("a", encoding="utf-8") as f:
                f.write(f"{name}={value}\n")
