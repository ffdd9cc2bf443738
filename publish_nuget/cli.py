"""
cli.py

Responsibility: CLI entrypoint for publish-nuget.

High-level flow (single command `run`):
1) Load settings (action.yml defaults -> INPUT_* env -> CLI flags)
2) Ensure the NuGet source, resolve the version, check the registry
3) Publish + tag when the version is new

This module should orchestrate behavior but keep concerns isolated:
- Inputs: `settings.py`
- Orchestration and error policy: `action.py`
- Logging: `logs.py`
"""

from __future__ import annotations

import argparse
import logging
import os

from publish_nuget.action import Action, ActionError
from publish_nuget.logs import configure_logging
from publish_nuget.outputs import OutputWriter
from publish_nuget.publisher import TagError
from publish_nuget.settings import DEFAULT_TIMEOUT, SettingsError, load_settings
from publish_nuget.sources import SourceError

logger = logging.getLogger(__name__)


def _bool_flag(value: bool | None) -> str | None:
    if value is None:
        return None
    return "true" if value else "false"


def _overrides(args: argparse.Namespace) -> dict[str, str | None]:
    return {
        "PROJECT_FILE_PATH": args.project_file,
        "PACKAGE_NAME": args.package_name,
        "VERSION_FILE_PATH": args.version_file,
        "VERSION_REGEX": args.version_regex,
        "VERSION_STATIC": args.version,
        "TAG_FORMAT": args.tag_format,
        "NUGET_SOURCE": args.nuget_source,
        "SIGNING_CERT_FILE_NAME": args.signing_cert,
        "TAG_COMMIT": _bool_flag(args.tag_commit),
        "INCLUDE_SYMBOLS": _bool_flag(args.include_symbols),
        "ERROR_CONTINUE": _bool_flag(args.error_continue),
        "NO_BUILD": _bool_flag(args.no_build),
    }


def run_cmd(args: argparse.Namespace) -> int:
    settings = load_settings(
        metadata_path=args.action_file,
        overrides=_overrides(args),
        workdir=args.workdir,
        timeout=args.timeout,
    )
    Action(settings, outputs=OutputWriter.from_env()).run()
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="publish-nuget",
        description="Publish a NuGet package when its version is not on the feed yet",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    r = sub.add_parser("run", help="Resolve version, check the registry, build/pack/push/tag when new")
    r.add_argument("--action-file", default=None, help="Action metadata with input defaults (default: action.yml)")
    r.add_argument("--workdir", default=".", help="Directory the project paths are relative to (default: .)")
    r.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="HTTP timeout in seconds (default: 30)")

    r.add_argument("--project-file", default=None, help="Project file to pack (INPUT_PROJECT_FILE_PATH)")
    r.add_argument("--package-name", default=None, help="Package id, defaults to the project name")
    r.add_argument("--version-file", default=None, help="File holding the version, defaults to the project file")
    r.add_argument("--version-regex", default=None, help="Pattern with a capture group for the version")
    r.add_argument("--version", default=None, help="Static version, skips extraction")
    r.add_argument("--tag-format", default=None, help="Tag template, '*' is replaced by the version")
    r.add_argument("--nuget-source", default=None, help="Registry URL (default: https://api.nuget.org)")
    r.add_argument("--signing-cert", default=None, help="Certificate used to sign packages")

    r.add_argument("--tag-commit", dest="tag_commit", action="store_true", default=None, help="Tag the commit")
    r.add_argument("--no-tag-commit", dest="tag_commit", action="store_false", help="Do not tag the commit")
    r.add_argument("--include-symbols", dest="include_symbols", action="store_true", default=None)
    r.add_argument("--no-include-symbols", dest="include_symbols", action="store_false")
    r.add_argument("--error-continue", dest="error_continue", action="store_true", default=None)
    r.add_argument("--no-error-continue", dest="error_continue", action="store_false")
    r.add_argument("--no-build", dest="no_build", action="store_true", default=None, help="Skip `dotnet build`")

    r.set_defaults(func=run_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=bool(args.verbose) or os.environ.get("RUNNER_DEBUG") == "1")
    try:
        return int(args.func(args))
    except ActionError:
        # Already reported by the error policy.
        return 1
    except (SettingsError, SourceError, TagError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
