"""
Tests for the /scans routes.

The Gemini call and URL downloads are mocked; every test shares the
in-memory `history_store` fixture through the client fixture.
"""

import json

from aiguard.config import settings
from tests.conftest import HIGH_MARKER, gemini_payload, make_mock_session, patch_gemini, patch_session


# ---------------------------------------------------------------------------
# POST /scans
# ---------------------------------------------------------------------------


def test_scan_upload_returns_saved_record(client, history_store):
    with patch_gemini(gemini_payload(88.0, "bad", [HIGH_MARKER])):
        response = client.post(
            "/scans",
            files={"file": ("clip.mp4", b"\x00\x01\x02", "video/mp4")},
            data={"mode": "video"},
        )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "fake"
    assert body["probability_score"] == 88.0
    assert body["source_type"] == "upload"
    assert body["markers"][0]["severity"] == "high"
    assert body["id"]


def test_scan_upload_infers_image_mode_from_content_type(client):
    with patch_gemini(gemini_payload(10.0, "fine")) as mock_gemini:
        response = client.post("/scans", files={"file": ("face.png", b"png", "image/png")})

    assert response.status_code == 201
    assert response.json()["mode"] == "image"
    assert mock_gemini.await_args.args[2].value == "image"


def test_scan_json_url(client):
    session = make_mock_session(content=b"vid", content_type="video/mp4")
    with patch_session(session), patch_gemini(gemini_payload(50.0, "unsure")):
        response = client.post("/scans", json={"url": "https://example.com/v/clip.mp4", "mode": "video"})

    assert response.status_code == 201
    body = response.json()
    assert body["source_type"] == "url"
    assert body["source_url"] == "https://example.com/v/clip.mp4"
    assert body["filename"] == "clip.mp4"
    assert body["status"] == "suspicious"


def test_scan_form_url(client):
    session = make_mock_session(content=b"img", content_type="image/jpeg")
    with patch_session(session), patch_gemini(gemini_payload(1.0, "fine")):
        response = client.post("/scans", data={"url": "https://example.com/a.jpg", "mode": "image"})
    assert response.status_code == 201


def test_scan_unreachable_url_returns_400_and_saves_nothing(client, history_store):
    session = make_mock_session(status=404)
    with patch_session(session), patch_gemini():
        response = client.post("/scans", json={"url": "https://example.com/missing.mp4"})

    assert response.status_code == 400
    assert "publicly reachable" in response.json()["detail"]
    assert client.get("/scans").json()["scans"] == []


def test_scan_malformed_url_returns_400(client):
    with patch_gemini():
        response = client.post("/scans", json={"url": "http://[bad/clip.mp4"})
    assert response.status_code == 400
    assert "Invalid URL" in response.json()["detail"]


def test_scan_remote_failure_returns_502(client):
    with patch_gemini(side_effect=RuntimeError("model overloaded")):
        response = client.post("/scans", files={"file": ("clip.mp4", b"x", "video/mp4")})

    assert response.status_code == 502
    assert "model overloaded" in response.json()["detail"]
    assert client.get("/scans").json()["scans"] == []


def test_scan_decode_failure_returns_502(client):
    with patch_gemini("not json"):
        response = client.post("/scans", files={"file": ("clip.mp4", b"x", "video/mp4")})
    assert response.status_code == 502


# ---------------------------------------------------------------------------
# POST /scans — request validation
# ---------------------------------------------------------------------------


def test_scan_missing_url_in_json(client):
    response = client.post("/scans", json={"mode": "video"})
    assert response.status_code == 400


def test_scan_invalid_json_body(client):
    response = client.post("/scans", content=b"{oops", headers={"Content-Type": "application/json"})
    assert response.status_code == 400


def test_scan_invalid_mode(client):
    response = client.post("/scans", json={"url": "https://example.com/a.mp4", "mode": "audio"})
    assert response.status_code == 400


def test_scan_form_without_file_or_url(client):
    response = client.post("/scans", data={"mode": "video"})
    assert response.status_code == 400


def test_scan_unsupported_content_type(client):
    response = client.post("/scans", content=b"raw", headers={"Content-Type": "text/plain"})
    assert response.status_code == 415


def test_scan_upload_too_large(client, monkeypatch):
    monkeypatch.setattr(settings, "max_image_upload_mb", 0)
    response = client.post("/scans", files={"file": ("face.png", b"png", "image/png")}, data={"mode": "image"})
    assert response.status_code == 413


def test_scan_empty_upload(client):
    response = client.post("/scans", files={"file": ("clip.mp4", b"", "video/mp4")})
    assert response.status_code == 400


# ---------------------------------------------------------------------------
# POST /scans/stream
# ---------------------------------------------------------------------------


def _events(response) -> list:
    return [json.loads(line) for line in response.text.splitlines() if line.strip()]


def test_stream_ends_with_result(client):
    with patch_gemini(gemini_payload(12.34, "ok")):
        response = client.post("/scans/stream", files={"file": ("clip.mp4", b"x", "video/mp4")})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")
    events = _events(response)
    assert events[-1]["type"] == "result"
    assert events[-1]["record"]["status"] == "clean"
    assert all(e["type"] == "progress" for e in events[:-1])
    assert any("Decoding JSON" in e["message"] for e in events[:-1])


def test_stream_reports_error_event(client):
    with patch_gemini(side_effect=RuntimeError("quota exceeded")):
        response = client.post("/scans/stream", files={"file": ("clip.mp4", b"x", "video/mp4")})

    events = _events(response)
    assert events[-1]["type"] == "error"
    assert "quota exceeded" in events[-1]["detail"]


def test_stream_validates_before_streaming(client):
    response = client.post("/scans/stream", json={"mode": "video"})
    assert response.status_code == 400


# ---------------------------------------------------------------------------
# GET /scans, GET /scans/{id}
# ---------------------------------------------------------------------------


def test_history_lists_newest_first(client):
    with patch_gemini(gemini_payload()):
        for name in ("one.mp4", "two.mp4", "three.mp4"):
            client.post("/scans", files={"file": (name, b"x", "video/mp4")})

    body = client.get("/scans").json()
    assert [s["filename"] for s in body["scans"]] == ["three.mp4", "two.mp4", "one.mp4"]
    assert body["capacity"] == 10


def test_get_scan_by_id(client):
    with patch_gemini(gemini_payload()):
        created = client.post("/scans", files={"file": ("clip.mp4", b"x", "video/mp4")}).json()

    response = client.get(f"/scans/{created['id']}")
    assert response.status_code == 200
    assert response.json() == created


def test_get_unknown_scan_404(client):
    response = client.get("/scans/nope")
    assert response.status_code == 404
