"""Pytest configuration and shared fixtures for tfe-client-core tests."""

import pytest

from tfe_client_core import ClientCache
from tfe_client_core.auth import CredentialResolver
from tfe_client_core.testing import MockTFEServer


@pytest.fixture(autouse=True)
def clear_env(monkeypatch, tmp_path):
    """Auto-cleanup: Clear TFE/Terraform environment variables before each test.

    HOME points at an empty directory so the developer's own CLI config and
    credentials files are never read.
    """
    import os

    test_prefixes = ("TFE_", "TF_", "TFC_", "TERRAFORM_")

    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in test_prefixes):
            monkeypatch.delenv(key, raising=False)

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("APPDATA", str(home))

    yield


@pytest.fixture
def home(tmp_path):
    """The fake home directory set up by clear_env."""
    return tmp_path / "home"


@pytest.fixture
def resolver():
    """Resolver that does not read any .env file."""
    return CredentialResolver(load_dotenv=False)


@pytest.fixture
def cache():
    cache = ClientCache()
    yield cache
    cache.clear()


@pytest.fixture
def server():
    return MockTFEServer()
