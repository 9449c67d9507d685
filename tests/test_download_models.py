import urllib.error

from headshot.core.face_detection import CAFFEMODEL_NAME, PROTOTXT_NAME
from headshot.download_models import MODEL_FILES, download_models


def test_downloads_missing_files(tmp_path, monkeypatch):
    fetched = []

    def _urlretrieve(url, filename):
        fetched.append(url)
        filename.write_bytes(b"weights")

    (tmp_path / PROTOTXT_NAME).write_text("already here")
    monkeypatch.setattr("urllib.request.urlretrieve", _urlretrieve)

    assert download_models(tmp_path) is True
    assert fetched == [MODEL_FILES[CAFFEMODEL_NAME]]
    assert (tmp_path / PROTOTXT_NAME).read_text() == "already here"
    assert (tmp_path / CAFFEMODEL_NAME).read_bytes() == b"weights"


def test_failed_download_removes_partial_file(tmp_path, monkeypatch):
    def _urlretrieve(url, filename):
        filename.write_bytes(b"partial")
        raise urllib.error.URLError("offline")

    monkeypatch.setattr("urllib.request.urlretrieve", _urlretrieve)
    models_dir = tmp_path / "models"

    assert download_models(models_dir) is False
    assert models_dir.is_dir()
    assert list(models_dir.iterdir()) == []
