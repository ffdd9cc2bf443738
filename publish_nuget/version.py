"""
version.py

Responsibility: Produce the version string for this run.

Either the static version input is used verbatim, or group 1 of VERSION_REGEX
is taken from the contents of the version file.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from publish_nuget.settings import Settings

logger = logging.getLogger(__name__)


class VersionError(RuntimeError):
    pass


def extract_version(text: str, pattern: re.Pattern[str]) -> str:
    match = pattern.search(text)
    if match is None:
        raise VersionError("unable to extract version info!")
    return match.group(1)


def resolve_version(settings: Settings) -> str:
    if settings.version:
        if settings.version_file is not None:
            logger.info("You provided 'version', extract-* keys are being ignored")
        return settings.version

    version_file = settings.effective_version_file
    # The project file has been checked already.
    if version_file != settings.project_file and not _resolve(settings, version_file).is_file():
        raise VersionError(f"version file '{version_file}' not found")
    if settings.version_regex is None:
        raise VersionError("no VERSION_REGEX configured to extract version info")

    logger.info("Version Filepath: %s", version_file)
    logger.info("Version Regex: %s", settings.version_regex.pattern)

    try:
        # Stray bytes in a comment must not hide the version.
        text = _resolve(settings, version_file).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise VersionError(f"unable to read version file '{version_file}': {e}") from e
    return extract_version(text, settings.version_regex)


def _resolve(settings: Settings, path: Path) -> Path:
    return path if path.is_absolute() else settings.workdir / path
