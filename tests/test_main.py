"""HTTP boundary with S3 calls stubbed out."""
import pytest
from fastapi.testclient import TestClient

import main
from conftest import png_bytes


@pytest.fixture
def stored(monkeypatch):
    objects = {}

    def fake_put(key, data, content_type, filename=None):
        objects[key] = (data, content_type)

    monkeypatch.setattr(main, "put_bytes", fake_put)
    monkeypatch.setattr(main, "object_exists", lambda key: key in objects)
    monkeypatch.setattr(main, "signed_url", lambda key, seconds=300: f"https://signed/{key}")
    return objects


@pytest.fixture
def client():
    return TestClient(main.app)


def test_health(client):
    assert client.get("/").json()["ok"] is True


def test_create_job_stores_artifacts(client, stored):
    resp = client.post(
        "/jobs",
        files={"file": ("cat.png", png_bytes(100, 100, (220, 120, 20, 255)), "image/png")},
        data={"view_mode": "embroidery", "thread_pattern": "wave", "grid_size": "10"},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    job = body["jobId"]
    assert (body["width"], body["height"]) == (100, 100)
    assert body["palette"]
    dst, mime = stored[f"jobs/{job}/output.dst"]
    assert len(dst) == 539 and mime == "application/octet-stream"
    assert stored[f"jobs/{job}/colors.txt"][1] == "text/plain"

    assert client.get(f"/jobs/{job}").json() == {
        "status": "ready", "previewUrl": f"https://signed/jobs/{job}/preview.png"}
    assert client.get(f"/download-link/{job}").json()["url"].endswith("output.dst")
    assert client.get(f"/colors-link/{job}").json()["url"].endswith("colors.txt")


def test_unknown_job_is_not_ready(client, stored):
    assert client.get("/jobs/nope").json() == {"status": "processing"}
    assert client.get("/download-link/nope").json() == {"error": "not_ready"}
    assert client.get("/colors-link/nope").json() == {"error": "not_ready"}


def test_bad_image_is_400(client, stored):
    resp = client.post("/jobs", files={"file": ("x.png", b"garbage", "image/png")})
    assert resp.status_code == 400
    assert "image load failed" in resp.json()["detail"]
    assert stored == {}


def test_bad_setting_is_422(client, stored):
    resp = client.post(
        "/jobs",
        files={"file": ("x.png", png_bytes(10, 10, (1, 2, 3, 255)), "image/png")},
        data={"thread_spacing": "-2"},
    )
    assert resp.status_code == 422


def test_bad_dst_mode_is_422(client, stored):
    resp = client.post(
        "/jobs",
        files={"file": ("x.png", png_bytes(10, 10, (1, 2, 3, 255)), "image/png")},
        data={"dst_mode": "pes"},
    )
    assert resp.status_code == 422


def test_oversized_upload_is_413(client, stored, monkeypatch):
    monkeypatch.setattr(main, "MAX_UPLOAD_BYTES", 100)
    resp = client.post("/jobs", files={"file": ("big.png", png_bytes(64, 64, (9, 9, 9, 255)) + bytes(200), "image/png")})
    assert resp.status_code == 413
    assert stored == {}
