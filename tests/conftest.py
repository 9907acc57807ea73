"""Test configuration and shared fixtures for docupsert tests."""

import pytest

from docupsert.core.config import DocUpsertConfig
from docupsert.store.local import LocalDocumentStore
from docupsert.store.memory import InMemoryDocumentStore


@pytest.fixture
def memory_store():
    """Provide a clean in-memory store for each test."""
    return InMemoryDocumentStore()


@pytest.fixture
def local_store(tmp_path):
    """Provide a local filesystem store rooted in a temp directory."""
    return LocalDocumentStore(base_path=tmp_path / "store")


@pytest.fixture(params=["memory", "local"])
def store(request, tmp_path):
    """Run a test against every backend that needs no cloud account."""
    if request.param == "memory":
        return InMemoryDocumentStore()
    return LocalDocumentStore(base_path=tmp_path / "store")


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Point configuration at a temp file and drop any cached instance."""
    path = tmp_path / "config.yaml"
    monkeypatch.setenv("DOCUPSERT_CONFIG", str(path))
    monkeypatch.delenv("AZURE_STORAGE_CONNECTION_STRING", raising=False)
    DocUpsertConfig.reset()
    yield path
    DocUpsertConfig.reset()
