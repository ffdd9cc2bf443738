"""
publisher.py

Responsibility: Turn a project + version into pushed NuGet artifacts.

High-level flow:
1) Remove stale *.nupkg / *.snupkg from the working directory
2) `dotnet build` (unless NO_BUILD)
3) `dotnet pack`
4) For each package: `dotnet nuget sign` (optional), `dotnet nuget push`, step outputs
5) (Optional) git tag + push tag

Build, pack, sign and push failures surface as CommandError / PublishError and are
subject to the continue-on-error policy in `action.py`. Tagging failures raise
TagError, which is always fatal.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path

from publish_nuget.outputs import OutputWriter
from publish_nuget.process import CommandError, Runner, run
from publish_nuget.settings import Settings

logger = logging.getLogger(__name__)

PACKAGE_SUFFIX = ".nupkg"
SYMBOLS_SUFFIX = ".snupkg"
TIMESTAMPER_URL = "http://timestamp.digicert.com"

_PUSH_ERROR_RE = re.compile(r"error.*")


class PublishError(RuntimeError):
    pass


class TagError(RuntimeError):
    pass


@dataclass(frozen=True)
class PublishResult:
    package_name: str
    package_path: Path
    symbols_package_name: str | None = None
    symbols_package_path: Path | None = None
    tag: str | None = None


def tag_name(tag_format: str, version: str) -> str:
    """Replace the first `*` in `tag_format` with `version`: `v*` -> `v1.2.3`."""
    return tag_format.replace("*", version, 1)


def find_push_error(output: str) -> str | None:
    """
    `dotnet nuget push` can exit 0 while reporting a failure, so its output is
    scanned too. Returns the text from the first "error" to the end of that line.
    """
    match = _PUSH_ERROR_RE.search(output)
    return match.group(0) if match else None


def build_args(settings: Settings, version: str) -> list[str]:
    return ["dotnet", "build", "-c", "Release", str(settings.project_file), f"-p:Version={version}"]


def pack_args(settings: Settings, version: str) -> list[str]:
    args = ["dotnet", "pack", "--no-build", "-c", "Release", f"-p:PackageVersion={version}"]
    if settings.include_symbols:
        args += ["--include-symbols", "-p:SymbolPackageFormat=snupkg"]
    return args + [str(settings.project_file), "-o", "."]


def sign_args(package: str, certificate: Path) -> list[str]:
    return [
        "dotnet",
        "nuget",
        "sign",
        package,
        "--certificate-path",
        str(certificate),
        "--timestamper",
        TIMESTAMPER_URL,
    ]


def push_args(settings: Settings, package: str) -> list[str]:
    source = settings.source
    if source.is_github:
        # Credentials were stored with the source when it was registered.
        args = ["dotnet", "nuget", "push", package, "-s", source.name]
    else:
        args = ["dotnet", "nuget", "push", package, "-s", source.index_url, "-k", settings.nuget_key]
    args.append("--skip-duplicate")
    if not settings.include_symbols:
        args.append("--no-symbols")
    return args


class Publisher:
    def __init__(self, settings: Settings, *, runner: Runner = run, outputs: OutputWriter | None = None) -> None:
        self._settings = settings
        self._runner = runner
        self._outputs = outputs or OutputWriter()

    @property
    def workdir(self) -> Path:
        return self._settings.workdir

    def _artifacts(self) -> list[str]:
        names = [p.name for p in self.workdir.iterdir() if p.is_file() and p.name.endswith("nupkg")]
        return sorted(names)

    def _remove_stale_artifacts(self) -> None:
        for p in self.workdir.iterdir():
            if p.is_file() and p.name.endswith((PACKAGE_SUFFIX, SYMBOLS_SUFFIX)):
                logger.debug("removing stale artifact %s", p.name)
                p.unlink()

    def _push(self, package: str) -> None:
        result = self._runner(push_args(self._settings, package), cwd=self.workdir, capture=True)
        logger.info(result.stdout)
        error = find_push_error(result.stdout)
        if error:
            raise PublishError(error)

    def _emit(self, package: str) -> PublishResult:
        package_path = (self.workdir / package).resolve()
        self._outputs.set("PACKAGE_NAME", package)
        self._outputs.set("PACKAGE_PATH", package_path)

        symbols = package[: -len(PACKAGE_SUFFIX)] + SYMBOLS_SUFFIX
        symbols_path = (self.workdir / symbols).resolve()
        if not symbols_path.exists():
            logger.warning("Symbols package %s was not generated", symbols)
            return PublishResult(package_name=package, package_path=package_path)

        self._outputs.set("SYMBOLS_PACKAGE_NAME", symbols)
        self._outputs.set("SYMBOLS_PACKAGE_PATH", symbols_path)
        return PublishResult(
            package_name=package,
            package_path=package_path,
            symbols_package_name=symbols,
            symbols_package_path=symbols_path,
        )

    def tag_commit(self, version: str) -> str:
        tag = tag_name(self._settings.tag_format, version)
        logger.info("creating new tag %s", tag)
        try:
            self._runner(["git", "tag", tag], cwd=self.workdir)
            self._runner(["git", "push", "origin", tag], cwd=self.workdir)
        except CommandError as e:
            raise TagError(f"Unable to create or push tag {tag}: {e}") from e
        self._outputs.set("VERSION", tag)
        return tag

    def publish(self, version: str, name: str) -> PublishResult | None:
        """
        Build, pack and push `name` at `version`. Returns None when no push key is
        configured for a registry that needs one.
        """
        settings = self._settings
        logger.info("found new version (%s) of %s", version, name)

        if settings.source.requires_push_key and not settings.nuget_key:
            logger.warning("NUGET_KEY not given")
            return None

        self._remove_stale_artifacts()

        if not settings.no_build:
            self._runner(build_args(settings, version), cwd=self.workdir)
        self._runner(pack_args(settings, version), cwd=self.workdir)

        artifacts = self._artifacts()
        logger.info("Generated Package(s): %s", ", ".join(artifacts))
        packages = [a for a in artifacts if a.endswith(PACKAGE_SUFFIX)]
        if not packages:
            raise PublishError(f"dotnet pack produced no {PACKAGE_SUFFIX} in {self.workdir}")

        result: PublishResult | None = None
        for package in packages:
            if settings.signing_cert is not None:
                self._runner(sign_args(package, settings.signing_cert), cwd=self.workdir)
            self._push(package)
            result = self._emit(package)

        if settings.tag_commit and result is not None:
            result = replace(result, tag=self.tag_commit(version))
        return result
