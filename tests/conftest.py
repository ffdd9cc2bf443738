from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest

from publish_nuget.process import CommandError, CommandResult
from publish_nuget.settings import Settings, classify_source, compile_version_regex

PROJECT_XML = """<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <TargetFramework>net8.0</TargetFramework>
    <Version>3.4.5</Version>
  </PropertyGroup>
</Project>
"""


class FakeRunner:
    """Records commands instead of running them; `dotnet pack` drops artifact files into cwd."""

    def __init__(
        self,
        *,
        artifacts: tuple[str, ...] = ("MyLib.2.0.0.nupkg",),
        stdout: dict[tuple[str, ...], str] | None = None,
        fail_on: tuple[tuple[str, ...], ...] = (),
    ) -> None:
        self.calls: list[list[str]] = []
        self.artifacts = artifacts
        self.stdout = stdout or {}
        self.fail_on = fail_on

    def __call__(self, cmd: list[str], *, cwd: Path | None = None, capture: bool = False) -> CommandResult:
        self.calls.append(list(cmd))
        for prefix in self.fail_on:
            if tuple(cmd[: len(prefix)]) == prefix:
                raise CommandError(f"Command failed (1): {' '.join(cmd)}")
        if cmd[:2] == ["dotnet", "pack"] and cwd is not None:
            for name in self.artifacts:
                (cwd / name).write_bytes(b"PK")
        out = ""
        for prefix, text in self.stdout.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                out = text
        return CommandResult(args=tuple(cmd), returncode=0, stdout=out)

    def commands(self, *prefix: str) -> list[list[str]]:
        return [c for c in self.calls if tuple(c[: len(prefix)]) == prefix]


class FakeResponse:
    def __init__(self, status_code: int, body: Any = None, reason: str = "") -> None:
        self.status_code = status_code
        self.reason = reason
        self.text = body if isinstance(body, str) else json.dumps(body)

    def json(self) -> Any:
        return json.loads(self.text)


class FakeSession:
    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.requests: list[tuple[str, dict[str, Any]]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append((url, kwargs))
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    (src / "MyLib.csproj").write_text(PROJECT_XML, encoding="utf-8")
    return tmp_path


@pytest.fixture
def make_settings(project_dir: Path):
    def _make(**overrides: Any) -> Settings:
        base = Settings(
            project_file=Path("src/MyLib.csproj"),
            source=classify_source("https://api.nuget.org"),
            version_regex=compile_version_regex(r"^\s*<Version>(.*)<\/Version>\s*$"),
            nuget_key="secret-key",
            workdir=project_dir,
        )
        return replace(base, **overrides)

    return _make
