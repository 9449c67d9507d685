from headshot.core.archive import read_archive
from headshot.utils.image import decode_image


def test_health(test_client):
    response = test_client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_process_returns_archive(test_client, make_image):
    response = test_client.post(
        "/api/process",
        files=[
            ("files", ("second.jpg", make_image(640, 480, ext=".jpg"), "image/jpeg")),
            ("files", ("first.png", make_image(300, 600), "image/png")),
        ],
        data={"size": "1000"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert response.headers["content-disposition"] == 'attachment; filename="headshots.zip"'
    assert response.headers["x-processed-count"] == "2"

    entries = read_archive(response.content)
    assert [e.name for e in entries] == ["second.png", "first.png"]
    for entry in entries:
        assert decode_image(entry.data).shape[:2] == (1000, 1000)


def test_process_invalid_size_uses_default(test_client, make_image):
    response = test_client.post(
        "/api/process",
        files=[("files", ("a.png", make_image(100, 100), "image/png"))],
        data={"size": "750"},
    )
    assert response.status_code == 200
    entry = read_archive(response.content)[0]
    assert decode_image(entry.data).shape[:2] == (500, 500)


def test_process_skips_unsupported_files(test_client, make_image):
    response = test_client.post(
        "/api/process",
        files=[
            ("files", ("notes.txt", b"hello", "text/plain")),
            ("files", ("a.png", make_image(100, 100), "image/png")),
        ],
    )
    assert response.status_code == 200
    assert response.headers["x-processed-count"] == "1"
    assert [e.name for e in read_archive(response.content)] == ["a.png"]


def test_process_without_files(test_client):
    response = test_client.post("/api/process", data={"size": "500"})
    assert response.status_code == 400
    assert response.json()["detail"] == "No files uploaded"


def test_process_nothing_processed(test_client):
    response = test_client.post(
        "/api/process",
        files=[
            ("files", ("notes.txt", b"hello", "text/plain")),
            ("files", ("broken.jpg", b"not an image", "image/jpeg")),
        ],
    )
    assert response.status_code == 400
    assert response.json()["detail"] == (
        "No images processed: notes.txt: unsupported format; "
        "broken.jpg: Failed to decode image data"
    )


def test_process_keeps_good_files_when_one_fails(test_client, make_image, monkeypatch):
    def _detect(image):
        if image.shape[:2] == (50, 70):
            raise RuntimeError("boom")
        return []

    monkeypatch.setattr("headshot.core.processing.detect_faces", _detect)
    response = test_client.post(
        "/api/process",
        files=[
            ("files", ("good.png", make_image(100, 100), "image/png")),
            ("files", ("bad.png", make_image(70, 50), "image/png")),
        ],
    )
    assert response.status_code == 200
    assert response.headers["x-processed-count"] == "1"
    assert [e.name for e in read_archive(response.content)] == ["good.png"]


def test_process_runs_batch_in_threadpool(test_client, make_image, monkeypatch):
    calls = []

    async def _record(func, *args, **kwargs):
        calls.append(func.__name__)
        return func(*args, **kwargs)

    monkeypatch.setattr("headshot.api.routes.run_in_threadpool", _record)
    response = test_client.post(
        "/api/process",
        files=[("files", ("a.png", make_image(100, 100), "image/png"))],
    )
    assert response.status_code == 200
    assert calls == ["process_batch"]


def test_process_unexpected_error(test_client, make_image, monkeypatch):
    def _explode(files, target_size):
        raise RuntimeError("boom")

    monkeypatch.setattr("headshot.api.routes.process_batch", _explode)
    response = test_client.post(
        "/api/process",
        files=[("files", ("a.png", make_image(100, 100), "image/png"))],
    )
    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "boom"
