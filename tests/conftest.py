import logging

import cv2
import numpy as np
import pytest

logger = logging.getLogger(__name__)


@pytest.fixture
def make_image():
    """Return a factory encoding a solid-colour BGR image."""
    def _make(width, height, color=(255, 0, 0), ext=".png"):
        image = np.zeros((height, width, 3), dtype=np.uint8)
        image[:, :] = color
        ok, buffer = cv2.imencode(ext, image)
        assert ok
        return buffer.tobytes()
    return _make


@pytest.fixture
def no_faces(monkeypatch):
    """Replace the global detector with one that never finds a face."""
    calls = []

    def _detect(image):
        calls.append(image.shape)
        return []

    monkeypatch.setattr("headshot.core.processing.detect_faces", _detect)
    return calls


@pytest.fixture
def test_client(no_faces): # pylint: disable=redefined-outer-name,unused-argument
    from fastapi.testclient import TestClient
    from headshot.main import app

    with TestClient(app) as client:
        logger.info("TestClient started")
        yield client
