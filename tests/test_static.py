"""Tests for the frontend bundle mount and client-side routing fallback."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app

from fakes import FakeStore


@pytest.mark.unit
def test_root_serves_entry_document(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert 'id="root"' in response.text


@pytest.mark.unit
@pytest.mark.parametrize("path", ["/dashboard", "/projects/42/edit", "/contact?plan=pro"])
def test_unmatched_paths_fall_back_to_entry_document(client: TestClient, path: str) -> None:
    response = client.get(path)

    assert response.status_code == 200
    assert 'id="root"' in response.text


@pytest.mark.unit
def test_assets_are_served_from_bundle(client: TestClient) -> None:
    response = client.get("/assets/app.js")

    assert response.status_code == 200
    assert "javascript" in response.headers["content-type"]
    assert response.text == "console.log('app');"


@pytest.mark.unit
def test_unknown_api_path_does_not_fall_back(client: TestClient) -> None:
    response = client.get("/api/unknown")

    assert response.status_code == 404
    assert 'id="root"' not in response.text


@pytest.mark.unit
def test_missing_bundle_leaves_api_working(tmp_path: Path, store: FakeStore) -> None:
    settings = Settings(static_dir=str(tmp_path / "no-dist"))
    client = TestClient(create_app(settings, store))

    assert client.get("/dashboard").status_code == 404
    assert client.get("/api/projects").status_code == 200
