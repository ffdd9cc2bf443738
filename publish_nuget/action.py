"""
action.py

Responsibility: Orchestrate one publish run.

Flow:
1) Ensure the NuGet source is registered and enabled (always fatal on failure)
2) Check the project file, resolve the version
3) Ask the registry whether that version is published
4) Publish only when it is not

Failures in steps 2-4 go through a single policy: with ERROR_CONTINUE they are
logged as warnings and the run ends without publishing; otherwise they are logged
as errors and raised as ActionError. SourceError and TagError bypass the policy.
"""

from __future__ import annotations

import logging

from publish_nuget.outputs import OutputWriter
from publish_nuget.process import CommandError, Runner, run
from publish_nuget.publisher import PublishError, Publisher, PublishResult
from publish_nuget.registry_client import RegistryClient, RegistryError
from publish_nuget.settings import Settings
from publish_nuget.sources import ensure_source
from publish_nuget.version import VersionError, resolve_version

logger = logging.getLogger(__name__)


class ActionError(RuntimeError):
    pass


class ProjectFileError(RuntimeError):
    pass


RECOVERABLE_ERRORS = (ProjectFileError, VersionError, RegistryError, CommandError, PublishError)


class Action:
    def __init__(
        self,
        settings: Settings,
        *,
        runner: Runner = run,
        client: RegistryClient | None = None,
        outputs: OutputWriter | None = None,
    ) -> None:
        self._settings = settings
        self._runner = runner
        self._client = client or RegistryClient(
            settings.source,
            user=settings.github_user,
            key=settings.nuget_key,
            timeout=settings.timeout,
        )
        self._outputs = outputs or OutputWriter()

    def _fail(self, error: Exception) -> None:
        if self._settings.error_continue:
            logger.warning("%s", error)
            return
        logger.error("%s", error)
        raise ActionError(str(error)) from error

    def _check_project_file(self) -> None:
        project_file = self._settings.project_file
        path = project_file if project_file.is_absolute() else self._settings.workdir / project_file
        if not str(project_file) or str(project_file) == "." or not path.is_file():
            raise ProjectFileError(f"Project file '{project_file}' not found")
        logger.info("Project Filepath: %s", project_file)

    def check_and_publish(self) -> PublishResult | None:
        self._check_project_file()
        logger.debug("Version (pre): '%s'", self._settings.version)

        version = resolve_version(self._settings)
        settings = self._settings.with_version(version)
        logger.info("Version: %s", version)

        name = settings.effective_package_name
        logger.info("Package Name: %s", name)

        if self._client.version_exists(name, version):
            logger.info("Found the version: %s", self._client.package_url(name, version))
            return None

        return Publisher(settings, runner=self._runner, outputs=self._outputs).publish(version, name)

    def run(self) -> PublishResult | None:
        ensure_source(self._settings, self._runner)
        try:
            return self.check_and_publish()
        except RECOVERABLE_ERRORS as e:
            self._fail(e)
            return None
