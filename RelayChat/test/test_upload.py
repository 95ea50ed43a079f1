"""
Tests for the HTTP front: upload endpoint, status and static content.
"""

import os
import re

import pytest
from fastapi.testclient import TestClient

from RelayChat.core.server.relay import EventRelay
from RelayChat.web.routes import create_app
from RelayChat.web.storage import make_stored_name


@pytest.fixture
def dirs(tmp_path):
    public_dir = tmp_path / "public"
    upload_dir = public_dir / "uploads"
    return str(public_dir), str(upload_dir)


@pytest.fixture
def relay():
    return EventRelay(max_history=10)


@pytest.fixture
def client(dirs, relay):
    public_dir, upload_dir = dirs
    app = create_app(relay, upload_dir=upload_dir, public_dir=public_dir, max_file_size=16)
    return TestClient(app)


class TestUploadEndpoint:
    """Tests for POST /upload."""

    def test_stores_file_and_returns_descriptor(self, client, dirs):
        _, upload_dir = dirs

        response = client.post("/upload", files={"file": ("notes.txt", b"hello", "text/plain")})

        assert response.status_code == 200
        data = response.json()
        assert data["originalName"] == "notes.txt"
        assert data["mimeType"] == "text/plain"
        assert data["sizeBytes"] == 5
        assert re.fullmatch(r"\d+-\d+-notes\.txt", data["storedName"])
        assert data["publicPath"] == f"/uploads/{data['storedName']}"
        with open(os.path.join(upload_dir, data["storedName"]), "rb") as f:
            assert f.read() == b"hello"

    def test_uploaded_file_is_served(self, client):
        data = client.post("/upload", files={"file": ("a.txt", b"abc", "text/plain")}).json()

        response = client.get(data["publicPath"])

        assert response.status_code == 200
        assert response.content == b"abc"

    def test_missing_file_is_rejected(self, client):
        response = client.post("/upload", files={"other": ("a.txt", b"abc", "text/plain")})

        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded"}

    def test_oversized_file_is_rejected_and_discarded(self, client, dirs):
        _, upload_dir = dirs

        response = client.post("/upload", files={"file": ("big.bin", b"x" * 17, "application/octet-stream")})

        assert response.status_code == 413
        assert response.json() == {"error": "File too large"}
        assert os.listdir(upload_dir) == []

    def test_file_at_limit_is_accepted(self, client):
        response = client.post("/upload", files={"file": ("ok.bin", b"x" * 16, "application/octet-stream")})
        assert response.status_code == 200
        assert response.json()["sizeBytes"] == 16


class TestStatusAndIndex:
    """Tests for GET /api/status and GET /."""

    def test_status_reports_relay_state(self, client, relay):
        relay.connect("a")
        relay.connect("b")
        relay.engine.on_chat_message("a", "hi", "alice")

        data = client.get("/api/status").json()

        assert data["connections"] == 2
        assert data["logged_in"] == 0
        assert data["history"] == 1
        assert "version" in data

    def test_index_missing(self, client):
        assert client.get("/").status_code == 404

    def test_index_served(self, client, dirs):
        public_dir, _ = dirs
        with open(os.path.join(public_dir, "index.html"), "w", encoding="utf-8") as f:
            f.write("<h1>chat</h1>")

        response = client.get("/")

        assert response.status_code == 200
        assert "chat" in response.text


class TestStoredName:
    """Tests for upload naming."""

    def test_format(self):
        assert make_stored_name("cat.png", now_ms=1714564800000, suffix=42) == "1714564800000-42-cat.png"

    def test_strips_directories(self):
        assert make_stored_name("../../etc/passwd", now_ms=1, suffix=2) == "1-2-passwd"
        assert make_stored_name("C:\\Users\\me\\a.txt", now_ms=1, suffix=2) == "1-2-a.txt"

    def test_random_suffix_in_range(self):
        name = make_stored_name("a.txt", now_ms=1)
        suffix = int(name.split("-")[1])
        assert 0 <= suffix <= 10 ** 9
