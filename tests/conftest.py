"""
Shared fixtures: every test gets its own storage directory under tmp_path.
"""

from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from catalog.store import DocumentStore
from core.config import Settings
from main import create_app
from uploads.manager import UploadManager


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path / "data", upload_dir=tmp_path / "uploads")


@pytest.fixture
def store(settings: Settings) -> DocumentStore:
    document_store = DocumentStore(settings.catalog_path)
    document_store.open()
    return document_store


@pytest.fixture
def uploads(settings: Settings) -> UploadManager:
    manager = UploadManager(settings.uploads_path)
    manager.ensure_directory()
    return manager


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    with TestClient(create_app(settings)) as test_client:
        yield test_client
