"""
registry_client.py

Responsibility: Isolate all direct registry HTTP API interaction.

This module must be the only place that:
- Constructs version lookup endpoints (nuget.org flat container / GitHub Packages download index)
- Sends HTTP requests to the registry
- Interprets registry responses / error payloads

Publishing itself goes through `dotnet nuget push`, see `publisher.py`.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

import requests

from publish_nuget.settings import DEFAULT_TIMEOUT, GITHUB_HOST, RegistrySource

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/100.0.4896.127 Safari/537.36 Edg/100.0.1185.44"
)


class RegistryError(RuntimeError):
    pass


class RegistryClient:
    def __init__(
        self,
        source: RegistrySource,
        *,
        user: str = "",
        key: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self._source = source
        self._user = user
        self._key = key
        self._timeout = timeout
        self._session = session or requests.Session()

    def version_index_url(self, package_name: str) -> str:
        """
        GitHub Packages: https://nuget.pkg.github.com/<owner>/download/<id>/index.json
        NuGet v3:        <source>/v3-flatcontainer/<id>/index.json
        """
        if self._source.is_github:
            path = urlparse(self._source.url).path.strip("/")
            owner = path.split("/")[0] if path else ""
            url = f"https://{GITHUB_HOST}/{owner}/download/{package_name}/index.json"
        else:
            url = f"{self._source.url}/v3-flatcontainer/{package_name}/index.json"
        return url.lower()

    def package_url(self, package_name: str, version: str) -> str:
        """Human-facing gallery URL, for log messages."""
        return f"{self._source.url.replace('api.', '')}/packages/{package_name}/{version}"

    def _get(self, url: str) -> requests.Response:
        kwargs: dict[str, Any] = {"timeout": self._timeout}
        if self._source.is_github:
            kwargs["auth"] = (self._user, self._key)
        else:
            kwargs["headers"] = {"User-Agent": BROWSER_USER_AGENT}
        try:
            return self._session.get(url, **kwargs)
        except requests.RequestException as e:
            raise RegistryError(f"error: {e}") from e

    def published_versions(self, package_name: str) -> list[str] | None:
        """
        Return the versions the registry lists for `package_name`, or None when the
        registry answers 404 (the package was never uploaded).
        """
        url = self.version_index_url(package_name)
        logger.info("Url of checking Version: %s", url)
        r = self._get(url)

        if r.status_code == 404:
            logger.warning("Url '%s' is not available now or '%s' was never uploaded on NuGet", url, package_name)
            return None
        if r.status_code != 200:
            raise RegistryError(f"Registry error {r.status_code} {r.reason} GET {url}")

        try:
            payload = r.json()
        except ValueError as e:
            raise RegistryError(f"Registry returned invalid JSON for {url}") from e
        versions = payload.get("versions") if isinstance(payload, dict) else None
        if not isinstance(versions, list):
            raise RegistryError(f"Registry response for {url} has no `versions` list")
        return [str(v) for v in versions]

    def version_exists(self, package_name: str, version: str) -> bool:
        versions = self.published_versions(package_name)
        if versions is None:
            return False
        if version in versions:
            return True
        logger.info("Current version %s is not found in NuGet. Versions: %s", version, ", ".join(versions))
        return False
