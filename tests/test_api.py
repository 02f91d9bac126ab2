from fastapi.testclient import TestClient
import pytest

from peelforge_service import api

from .helpers import png_bytes


class FakeS3:
    def __init__(self, fail=False):
        self.fail = fail
        self.objects = {}

    def put_object(self, Bucket, Key, Body, ContentType):
        if self.fail:
            raise RuntimeError("bucket unavailable")
        self.objects[Key] = (Bucket, Body, ContentType)


@pytest.fixture
def client():
    return TestClient(api.app)


@pytest.fixture
def storage(monkeypatch):
    s3 = FakeS3()
    monkeypatch.setattr(api, "_get_s3_client", lambda: s3)
    monkeypatch.setattr(api, "_build_public_url", lambda key: f"https://cdn.example.com/{key}")
    return s3


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_remove_bg_uploads_cutout(monkeypatch, client, storage, square_10x10):
    monkeypatch.setattr(api, "_download_image", lambda url: png_bytes(square_10x10))
    resp = client.post("/remove-bg", json={"imageUrl": "https://images.example.com/a.png"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["strategy"] == "edge_flood_fill"
    assert body["outputUrl"].startswith("https://cdn.example.com/cutouts/")
    (bucket, data, content_type), = storage.objects.values()
    assert content_type == "image/png"
    assert data.startswith(b"\x89PNG")


def test_remove_bg_with_heuristic_strategy(monkeypatch, client, storage, white_4x4):
    monkeypatch.setattr(api, "_download_image", lambda url: png_bytes(white_4x4))
    resp = client.post(
        "/remove-bg",
        json={"imageUrl": "https://images.example.com/a.png", "strategy": "heuristic_scored"},
    )
    assert resp.status_code == 200
    assert resp.json()["strategy"] == "heuristic_scored"


def test_download_failure_is_400(monkeypatch, client, storage):
    def fail(url):
        raise OSError("connection refused")

    monkeypatch.setattr(api, "_download_image", fail)
    resp = client.post("/remove-bg", json={"imageUrl": "https://images.example.com/a.png"})
    assert resp.status_code == 400


def test_bad_strategy_is_400(monkeypatch, client, storage, white_4x4):
    monkeypatch.setattr(api, "_download_image", lambda url: png_bytes(white_4x4))
    resp = client.post(
        "/remove-bg", json={"imageUrl": "https://images.example.com/a.png", "strategy": "grabcut"}
    )
    assert resp.status_code == 400


def test_undecodable_image_is_400(monkeypatch, client, storage):
    monkeypatch.setattr(api, "_download_image", lambda url: b"garbage")
    resp = client.post("/remove-bg", json={"imageUrl": "https://images.example.com/a.png"})
    assert resp.status_code == 400


def test_storage_failure_is_500(monkeypatch, client, white_4x4):
    monkeypatch.setattr(api, "_download_image", lambda url: png_bytes(white_4x4))
    monkeypatch.setattr(api, "_get_s3_client", lambda: FakeS3(fail=True))
    resp = client.post("/remove-bg", json={"imageUrl": "https://images.example.com/a.png"})
    assert resp.status_code == 500
