"""
settings.py

Responsibility: Read the action inputs into a deterministic, typed, immutable model.

Inputs come from the CI platform as `INPUT_<NAME>` environment variables.
Defaults for every input are declared once, in the `inputs:` block of
`action.yml`, and loaded from there with PyYAML.

The rest of the package should treat the parsed result as the single source of truth.
"""

from __future__ import annotations

import enum
import json
import os
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml


class SettingsError(ValueError):
    pass


NUGET_HOST = "api.nuget.org"
GITHUB_HOST = "nuget.pkg.github.com"

DEFAULT_TIMEOUT = 30.0

BOOLEAN_INPUTS = ("TAG_COMMIT", "INCLUDE_SYMBOLS", "ERROR_CONTINUE", "NO_BUILD")


class SourceKind(enum.Enum):
    NUGET = "nuget"
    GITHUB = "github"


@dataclass(frozen=True)
class RegistrySource:
    """Classification of the registry URL; decides every URL shape used later."""

    url: str
    name: str
    kind: SourceKind

    @property
    def is_github(self) -> bool:
        return self.kind is SourceKind.GITHUB

    @property
    def requires_push_key(self) -> bool:
        # GitHub Packages credentials are stored with the source at registration.
        return not self.is_github

    @property
    def index_url(self) -> str:
        if self.is_github:
            return f"{self.url}/index.json"
        return f"{self.url}/v3/index.json"


def classify_source(url: str) -> RegistrySource:
    """
    `https://api.nuget.org` -> source `nuget.org`; `https://nuget.pkg.github.com/<owner>`
    -> GitHub Packages; anything else is a NuGet v3 feed named by its URL.
    """
    url = url.strip().rstrip("/")
    if not url:
        raise SettingsError("NUGET_SOURCE must not be empty.")
    host = (urlparse(url).hostname or "").lower()
    if host == NUGET_HOST:
        return RegistrySource(url=url, name="nuget.org", kind=SourceKind.NUGET)
    if host == GITHUB_HOST:
        return RegistrySource(url=url, name=url, kind=SourceKind.GITHUB)
    return RegistrySource(url=url, name=url, kind=SourceKind.NUGET)


@dataclass(frozen=True)
class Settings:
    """Everything a run needs, fixed before the first side effect."""

    project_file: Path
    source: RegistrySource
    version_regex: re.Pattern[str] | None = None
    package_name: str = ""
    version_file: Path | None = None
    version: str = ""
    tag_commit: bool = False
    tag_format: str = "v*"
    nuget_key: str = ""
    include_symbols: bool = False
    error_continue: bool = False
    no_build: bool = False
    signing_cert: Path | None = None
    github_user: str = ""
    workdir: Path = Path(".")
    timeout: float = DEFAULT_TIMEOUT

    @property
    def effective_version_file(self) -> Path:
        return self.version_file or self.project_file

    @property
    def effective_package_name(self) -> str:
        return self.package_name or default_package_name(self.project_file)

    def with_version(self, version: str) -> Settings:
        return replace(self, version=version)


def default_package_name(project_file: str | Path) -> str:
    """`src/MyLib.csproj` -> `MyLib`: drop the final extension of the final path segment."""
    name = Path(project_file).name
    stem, dot, _ext = name.rpartition(".")
    return stem if dot else ""


def parse_bool(name: str, raw: str) -> bool:
    """
    Booleans are JSON literals (`true` / `false`), matching how workflow inputs are passed.
    """
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SettingsError(f"Input {name} must be a JSON boolean, got {raw!r}.") from e
    if not isinstance(value, bool):
        raise SettingsError(f"Input {name} must be a JSON boolean, got {raw!r}.")
    return value


def compile_version_regex(pattern: str) -> re.Pattern[str]:
    try:
        compiled = re.compile(pattern, re.MULTILINE)
    except re.error as e:
        raise SettingsError(f"VERSION_REGEX is not a valid regular expression: {e}") from e
    if compiled.groups < 1:
        raise SettingsError("VERSION_REGEX must contain at least one capture group.")
    return compiled


def default_metadata_path() -> Path:
    action_path = os.environ.get("GITHUB_ACTION_PATH")
    if action_path:
        return Path(action_path) / "action.yml"
    return Path(__file__).resolve().parent.parent / "action.yml"


def load_input_defaults(metadata_path: str | Path | None = None) -> dict[str, str]:
    """
    Return `{INPUT_NAME: default}` from the `inputs:` block of an action metadata file.
    A missing file yields no defaults.
    """
    path = Path(metadata_path) if metadata_path is not None else default_metadata_path()
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise SettingsError(f"{path} must be a mapping/object at the top level.")

    inputs = data.get("inputs") or {}
    if not isinstance(inputs, dict):
        raise SettingsError(f"`inputs` in {path} must be an object/mapping.")

    out: dict[str, str] = {}
    for name, declared in inputs.items():
        default: Any = declared.get("default") if isinstance(declared, dict) else None
        if default is None:
            continue
        # YAML turns `default: false` into a bool; inputs are always strings.
        out[str(name).upper()] = json.dumps(default) if isinstance(default, bool) else str(default)
    return out


def read_inputs(environ: Mapping[str, str], defaults: Mapping[str, str]) -> dict[str, str]:
    """
    Merge `INPUT_*` environment variables over the metadata defaults.
    Empty values fall back to the default, like the runner does.
    """
    merged = dict(defaults)
    for key, value in environ.items():
        if not key.startswith("INPUT_"):
            continue
        name = key[len("INPUT_") :].upper().replace(" ", "_")
        if value.strip():
            merged[name] = value.strip()
    return merged


def settings_from_inputs(
    inputs: Mapping[str, str],
    *,
    workdir: str | Path = ".",
    timeout: float = DEFAULT_TIMEOUT,
    actor: str = "",
) -> Settings:
    """
    Build `Settings` from a flat `{INPUT_NAME: value}` mapping.

    Recognised inputs:
    - PROJECT_FILE_PATH (required), PACKAGE_NAME, VERSION_FILE_PATH, VERSION_REGEX, VERSION_STATIC
    - TAG_COMMIT, TAG_FORMAT
    - NUGET_KEY, NUGET_SOURCE, GITHUB_USER
    - INCLUDE_SYMBOLS, ERROR_CONTINUE, NO_BUILD (JSON booleans)
    - SIGNING_CERT_FILE_NAME
    """

    def get(name: str) -> str:
        return str(inputs.get(name) or "").strip()

    def flag(name: str) -> bool:
        raw = get(name)
        return parse_bool(name, raw) if raw else False

    flags = {name: flag(name) for name in BOOLEAN_INPUTS}

    version = get("VERSION_STATIC")
    regex_raw = get("VERSION_REGEX")
    if not version and not regex_raw:
        raise SettingsError("Either VERSION_STATIC or VERSION_REGEX must be provided.")
    version_regex = compile_version_regex(regex_raw) if regex_raw else None

    tag_format = get("TAG_FORMAT") or "v*"

    version_file = get("VERSION_FILE_PATH")
    signing_cert = get("SIGNING_CERT_FILE_NAME")

    return Settings(
        project_file=Path(get("PROJECT_FILE_PATH")),
        source=classify_source(get("NUGET_SOURCE") or f"https://{NUGET_HOST}"),
        version_regex=version_regex,
        package_name=get("PACKAGE_NAME"),
        version_file=Path(version_file) if version_file else None,
        version=version,
        tag_commit=flags["TAG_COMMIT"],
        tag_format=tag_format,
        nuget_key=get("NUGET_KEY"),
        include_symbols=flags["INCLUDE_SYMBOLS"],
        error_continue=flags["ERROR_CONTINUE"],
        no_build=flags["NO_BUILD"],
        signing_cert=Path(signing_cert) if signing_cert else None,
        github_user=get("GITHUB_USER") or actor,
        workdir=Path(workdir),
        timeout=timeout,
    )


def load_settings(
    environ: Mapping[str, str] | None = None,
    *,
    metadata_path: str | Path | None = None,
    overrides: Mapping[str, str] | None = None,
    workdir: str | Path = ".",
    timeout: float = DEFAULT_TIMEOUT,
) -> Settings:
    """
    Load settings the way a workflow step sees them: metadata defaults, then
    `INPUT_*` environment variables, then explicit overrides (CLI flags).
    """
    env = os.environ if environ is None else environ
    inputs = read_inputs(env, load_input_defaults(metadata_path))
    for name, value in (overrides or {}).items():
        if value is not None and str(value).strip():
            inputs[name] = str(value).strip()
    return settings_from_inputs(inputs, workdir=workdir, timeout=timeout, actor=env.get("GITHUB_ACTOR", ""))
