from __future__ import annotations

import pytest
import requests

from publish_nuget.registry_client import BROWSER_USER_AGENT, RegistryClient, RegistryError
from publish_nuget.settings import classify_source

from conftest import FakeResponse, FakeSession

NUGET = classify_source("https://api.nuget.org")
GPR = classify_source("https://nuget.pkg.github.com/Acme")


def test_flat_container_url_is_lower_cased() -> None:
    client = RegistryClient(NUGET, session=FakeSession())
    assert client.version_index_url("MyLib") == "https://api.nuget.org/v3-flatcontainer/mylib/index.json"


def test_github_download_index_url() -> None:
    client = RegistryClient(GPR, session=FakeSession())
    assert client.version_index_url("MyLib") == "https://nuget.pkg.github.com/acme/download/mylib/index.json"


def test_nuget_lookup_sends_browser_user_agent() -> None:
    session = FakeSession(FakeResponse(200, {"versions": ["1.0.0"]}))
    RegistryClient(NUGET, timeout=5, session=session).published_versions("MyLib")

    url, kwargs = session.requests[0]
    assert url == "https://api.nuget.org/v3-flatcontainer/mylib/index.json"
    assert kwargs["headers"] == {"User-Agent": BROWSER_USER_AGENT}
    assert kwargs["timeout"] == 5
    assert "auth" not in kwargs


def test_github_lookup_uses_basic_auth() -> None:
    session = FakeSession(FakeResponse(200, {"versions": []}))
    RegistryClient(GPR, user="octocat", key="ghp_x", session=session).published_versions("MyLib")
    _url, kwargs = session.requests[0]
    assert kwargs["auth"] == ("octocat", "ghp_x")


@pytest.mark.parametrize("version", ["1.0.0", "1.1.0", "2.0.0-rc.1"])
def test_listed_versions_exist(version: str) -> None:
    session = FakeSession(FakeResponse(200, {"versions": ["1.0.0", "1.1.0", "2.0.0-rc.1"]}))
    assert RegistryClient(NUGET, session=session).version_exists("MyLib", version)


@pytest.mark.parametrize("version", ["1.0.1", "2.0.0", ""])
def test_unlisted_versions_do_not_exist(version: str) -> None:
    session = FakeSession(FakeResponse(200, {"versions": ["1.0.0", "1.1.0"]}))
    assert not RegistryClient(NUGET, session=session).version_exists("MyLib", version)


def test_404_means_never_published() -> None:
    session = FakeSession(FakeResponse(404, "Not Found", reason="Not Found"))
    client = RegistryClient(NUGET, session=session)
    assert client.published_versions("MyLib") is None
    assert not client.version_exists("MyLib", "1.0.0")


def test_other_status_is_an_error() -> None:
    session = FakeSession(FakeResponse(503, "", reason="Service Unavailable"))
    with pytest.raises(RegistryError, match="503 Service Unavailable"):
        RegistryClient(NUGET, session=session).version_exists("MyLib", "1.0.0")


def test_transport_error_is_an_error() -> None:
    session = FakeSession(error=requests.ConnectionError("name resolution failed"))
    with pytest.raises(RegistryError, match="name resolution failed"):
        RegistryClient(NUGET, session=session).version_exists("MyLib", "1.0.0")


@pytest.mark.parametrize("body", ["<html>", {"data": []}, {"versions": "1.0.0"}])
def test_malformed_body_is_an_error(body: object) -> None:
    session = FakeSession(FakeResponse(200, body))
    with pytest.raises(RegistryError):
        RegistryClient(NUGET, session=session).published_versions("MyLib")


def test_package_url() -> None:
    client = RegistryClient(NUGET, session=FakeSession())
    assert client.package_url("MyLib", "1.0.0") == "https://nuget.org/packages/MyLib/1.0.0"
