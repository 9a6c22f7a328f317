from __future__ import annotations

import re
from pathlib import Path

from tubely.domain import FastStartRewriter, GeometryClassifier


def _install_runner(client, runner) -> None:
    client.app.state.classifier = GeometryClassifier(runner)
    client.app.state.rewriter = FastStartRewriter(runner)


def _create_video(client, headers, title: str = "Boots on the beach") -> dict:
    resp = client.post("/api/videos", json={"title": title, "description": "A short clip."}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health_ok(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_requests_without_token_are_rejected(client):
    resp = client.post("/api/videos", json={"title": "x"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "missing_authorization"


def test_invalid_token_is_rejected(client):
    resp = client.get("/api/videos", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "invalid_token"


def test_video_crud(client, user_headers, other_user_headers):
    created = _create_video(client, user_headers)
    assert created["user_id"] == "user-1"
    assert created["video_url"] is None

    listing = client.get("/api/videos", headers=user_headers).json()
    assert [video["id"] for video in listing] == [created["id"]]
    assert client.get("/api/videos", headers=other_user_headers).json() == []

    fetched = client.get(f"/api/videos/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["title"] == "Boots on the beach"

    forbidden = client.delete(f"/api/videos/{created['id']}", headers=other_user_headers)
    assert forbidden.status_code == 403
    assert forbidden.json()["detail"] == "not_video_owner"

    deleted = client.delete(f"/api/videos/{created['id']}", headers=user_headers)
    assert deleted.status_code == 204
    assert client.get(f"/api/videos/{created['id']}").status_code == 404


def test_video_upload_records_address(client, user_headers, make_runner, scratch_dir: Path):
    runner = make_runner(probe={"streams": [{"width": 1280, "height": 720}]})
    _install_runner(client, runner)
    video = _create_video(client, user_headers)

    resp = client.post(
        f"/api/video_upload/{video['id']}",
        files={"video": ("clip.mp4", b"fake-mp4-payload", "video/mp4")},
        headers=user_headers,
    )

    assert resp.status_code == 200, resp.text
    video_url = resp.json()["video_url"]
    assert re.search(r"/landscape/[0-9a-f]{64}\.mp4$", video_url)
    assert client.get(f"/api/videos/{video['id']}").json()["video_url"] == video_url
    assert list(scratch_dir.iterdir()) == []


def test_video_upload_rejects_other_containers(client, user_headers, make_runner, scratch_dir: Path):
    runner = make_runner()
    _install_runner(client, runner)
    video = _create_video(client, user_headers)

    resp = client.post(
        f"/api/video_upload/{video['id']}",
        files={"video": ("clip.webm", b"webm-payload", "video/webm")},
        headers=user_headers,
    )

    assert resp.status_code == 415
    assert resp.json()["detail"]["error"] == "unsupported_media_type"
    assert resp.json()["detail"]["stage"] == "validate"
    assert runner.calls == []
    assert list(scratch_dir.iterdir()) == []


def test_video_upload_remux_failure_reports_stage(client, user_headers, make_runner, scratch_dir: Path):
    _install_runner(client, make_runner(remux_exit=1, remux_stderr="moov atom not found"))
    video = _create_video(client, user_headers)

    resp = client.post(
        f"/api/video_upload/{video['id']}",
        files={"video": ("clip.mp4", b"garbage", "video/mp4")},
        headers=user_headers,
    )

    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["error"] == "remux_failure"
    assert detail["stage"] == "rewrite"
    assert "moov atom not found" in detail["message"]
    assert client.get(f"/api/videos/{video['id']}").json()["video_url"] is None
    assert list(scratch_dir.iterdir()) == []


def test_video_upload_by_non_owner_is_forbidden(client, user_headers, other_user_headers, make_runner):
    runner = make_runner()
    _install_runner(client, runner)
    video = _create_video(client, user_headers)

    resp = client.post(
        f"/api/video_upload/{video['id']}",
        files={"video": ("clip.mp4", b"payload", "video/mp4")},
        headers=other_user_headers,
    )

    assert resp.status_code == 403
    assert resp.json()["detail"]["error"] == "ownership_mismatch"
    assert runner.calls == []


def test_video_upload_for_unknown_record(client, user_headers, make_runner):
    _install_runner(client, make_runner())
    resp = client.post(
        "/api/video_upload/missing",
        files={"video": ("clip.mp4", b"payload", "video/mp4")},
        headers=user_headers,
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["message"] == "Couldn't find video"


def test_thumbnail_round_trip(client, user_headers):
    video = _create_video(client, user_headers)
    image = b"\x89PNG\r\n\x1a\nthumbnail"

    resp = client.post(
        f"/api/thumbnail_upload/{video['id']}",
        files={"thumbnail": ("thumb.png", image, "image/png")},
        headers=user_headers,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["thumbnail_url"] == f"http://localhost:8091/api/thumbnails/{video['id']}"

    served = client.get(f"/api/thumbnails/{video['id']}")
    assert served.status_code == 200
    assert served.content == image
    assert served.headers["content-type"] == "image/png"
    assert served.headers["cache-control"] == "no-store"


def test_thumbnail_rejects_non_images(client, user_headers):
    video = _create_video(client, user_headers)
    resp = client.post(
        f"/api/thumbnail_upload/{video['id']}",
        files={"thumbnail": ("notes.txt", b"hello", "text/plain")},
        headers=user_headers,
    )
    assert resp.status_code == 415


def test_thumbnail_rejects_oversized_images(client, user_headers, configure_environment):
    video = _create_video(client, user_headers)
    oversized = b"x" * (configure_environment.max_thumbnail_size_bytes + 1)
    resp = client.post(
        f"/api/thumbnail_upload/{video['id']}",
        files={"thumbnail": ("big.png", oversized, "image/png")},
        headers=user_headers,
    )
    assert resp.status_code == 413
    detail = resp.json()["detail"]
    assert detail["error"] == "payload_too_large"
    limit = configure_environment.max_thumbnail_size_bytes
    assert str(limit) in detail["message"]
    assert str(limit + 1) not in detail["message"]


def test_thumbnail_lookup_misses(client, user_headers):
    missing_video = client.get("/api/thumbnails/missing")
    assert missing_video.status_code == 404
    assert missing_video.json()["detail"] == "video_not_found"

    video = _create_video(client, user_headers)
    missing_thumbnail = client.get(f"/api/thumbnails/{video['id']}")
    assert missing_thumbnail.status_code == 404
    assert missing_thumbnail.json()["detail"] == "thumbnail_not_found"
