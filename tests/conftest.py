"""Shared fixtures: an app wired to an in-memory store."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from config import Settings
from main import create_app

from fakes import FakeStore


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def bundle_dir(tmp_path: Path) -> Path:
    """A minimal compiled frontend: entry document plus one asset."""
    dist = tmp_path / "dist"
    (dist / "assets").mkdir(parents=True)
    (dist / "index.html").write_text("<!doctype html><div id=\"root\"></div>")
    (dist / "assets" / "app.js").write_text("console.log('app');")
    return dist


@pytest.fixture
def settings(bundle_dir: Path) -> Settings:
    return Settings(mongodb_uri="mongodb://localhost:27017/portfolio", static_dir=str(bundle_dir))


@pytest.fixture
def app(settings: Settings, store: FakeStore) -> FastAPI:
    return create_app(settings, store)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
