"""
sources.py

Responsibility: Make sure `dotnet nuget` knows and has enabled the target registry.

This touches the user-level NuGet.Config only through the `dotnet` CLI. The
operation is idempotent: an already registered source is not added twice, and
enabling an enabled source is a no-op.
"""

from __future__ import annotations

import logging

from publish_nuget.process import CommandError, Runner, run
from publish_nuget.settings import Settings

logger = logging.getLogger(__name__)


class SourceError(RuntimeError):
    pass


def list_sources(runner: Runner = run) -> str:
    return runner(["dotnet", "nuget", "list", "source"], capture=True).stdout


def add_source_args(settings: Settings) -> list[str]:
    source = settings.source
    args = ["dotnet", "nuget", "add", "source", source.index_url, "--name", source.name]
    if source.is_github:
        if not settings.github_user or not settings.nuget_key:
            raise SourceError("GitHub Packages sources need both GITHUB_USER (or GITHUB_ACTOR) and NUGET_KEY.")
        args += [
            "--username",
            settings.github_user,
            "--password",
            settings.nuget_key,
            "--store-password-in-clear-text",
        ]
    return args


def ensure_source(settings: Settings, runner: Runner = run) -> None:
    """
    Register the configured registry with `dotnet nuget` when missing, then enable it.
    Any failure raises SourceError.
    """
    source = settings.source
    logger.info("NuGet Source: %s", source.url)
    try:
        listing = list_sources(runner)
        if source.url not in listing:
            logger.info("registering source %s", source.name)
            runner(add_source_args(settings))

        logger.debug("registered sources:\n%s", list_sources(runner))
        runner(["dotnet", "nuget", "enable", "source", source.name])
    except CommandError as e:
        raise SourceError(f"Unable to register NuGet source '{source.name}': {e}") from e
