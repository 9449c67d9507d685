"""Face detection module.

This module wraps existing face detection models and maps their output to
``FaceRect`` boxes in source-image pixel space. Two backends are supported:
OpenCV's ResNet-10 SSD (default, gives real confidence scores) and the
``face_recognition`` HOG detector.
"""

import logging
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

from .framing import round_half_away
from ..config import settings
from ..models.types import FaceRect

logger = logging.getLogger(__name__)

PROTOTXT_NAME = 'deploy.prototxt'
CAFFEMODEL_NAME = 'res10_300x300_ssd_iter_140000.caffemodel'


class FaceDetectionError(Exception):
    """Base exception for face detection errors."""
    pass


class ModelNotFoundError(FaceDetectionError):
    """Exception raised when detector weights are missing."""
    pass


class FaceDetector:
    """Runs a face detection model and returns source-space face boxes."""

    # Constants for the SSD network
    SSD_INPUT_SIZE = (300, 300)
    SSD_MEAN = (104.0, 177.0, 123.0)

    # Constants for HOG filtering
    MIN_FACE_RATIO = 0.01  # Minimum face size relative to image
    MIN_ASPECT_RATIO = 0.5  # Minimum width/height ratio
    MAX_ASPECT_RATIO = 1.5  # Maximum width/height ratio

    def __init__(
        self,
        backend: str = "ssd",
        models_dir: Path = Path("models"),
        confidence_threshold: float = 0.7
    ):
        """Configure the detector. Model weights are loaded on first use."""
        self.backend = backend.lower()
        self.models_dir = Path(models_dir)
        self.confidence_threshold = confidence_threshold
        self._net = None

    def _get_net(self):
        if self._net is not None:
            return self._net

        prototxt = self.models_dir / PROTOTXT_NAME
        caffemodel = self.models_dir / CAFFEMODEL_NAME
        for path in (prototxt, caffemodel):
            if not path.exists():
                raise ModelNotFoundError(
                    f"Model file not found: {path}. Run 'headshot download-models' first."
                )

        logger.info(f"Loading SSD face detector from {self.models_dir}")
        self._net = cv2.dnn.readNetFromCaffe(str(prototxt), str(caffemodel))
        return self._net

    def detect_ssd(self, image: np.ndarray) -> List[FaceRect]:
        """Detect faces with the OpenCV DNN SSD model.

        Args:
            image: Input image in BGR format.

        Returns:
            Faces at or above the confidence threshold, in network order.
        """
        net = self._get_net()
        height, width = image.shape[:2]

        blob = cv2.dnn.blobFromImage(
            cv2.resize(image, self.SSD_INPUT_SIZE),
            1.0,
            self.SSD_INPUT_SIZE,
            self.SSD_MEAN
        )
        net.setInput(blob)
        detections = net.forward()

        faces: List[FaceRect] = []
        for i in range(detections.shape[2]):
            confidence = float(detections[0, 0, i, 2])
            if confidence < self.confidence_threshold:
                continue

            # Boxes are (x1, y1, x2, y2) normalized to [0, 1]
            x1 = float(detections[0, 0, i, 3]) * width
            y1 = float(detections[0, 0, i, 4]) * height
            x2 = float(detections[0, 0, i, 5]) * width
            y2 = float(detections[0, 0, i, 6]) * height

            face = FaceRect(
                x=round_half_away(x1),
                y=round_half_away(y1),
                width=round_half_away(x2 - x1),
                height=round_half_away(y2 - y1),
                confidence=confidence
            )
            if face.width <= 0 or face.height <= 0:
                continue
            faces.append(face)

        return faces

    def detect_hog(self, image: np.ndarray) -> List[FaceRect]:
        """Detect faces using the face_recognition HOG detector.

        HOG gives no score, so every kept face has confidence 1.0.

        Args:
            image: Input image in BGR format.

        Returns:
            Faces that pass the size and aspect ratio filters.
        """
        import face_recognition

        # Convert BGR to RGB (face_recognition uses RGB)
        rgb_image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        face_locations = face_recognition.face_locations(rgb_image, model="hog")

        height, width = image.shape[:2]
        img_area = height * width
        faces: List[FaceRect] = []

        for (top, right, bottom, left) in face_locations:
            w = right - left
            h = bottom - top
            if w <= 0 or h <= 0:
                continue

            # Filter out small faces (likely false detections)
            if (w * h) / img_area < self.MIN_FACE_RATIO:
                continue

            if not (self.MIN_ASPECT_RATIO <= w / h <= self.MAX_ASPECT_RATIO):
                continue

            faces.append(FaceRect(x=left, y=top, width=w, height=h, confidence=1.0))

        return faces

    def detect_faces(self, image: np.ndarray) -> List[FaceRect]:
        """Detect faces with the configured backend.

        Args:
            image: Input image in BGR format.

        Returns:
            Detected faces; empty when none is found.

        Raises:
            ValueError: If the input image is invalid.
            FaceDetectionError: If the model cannot be loaded or run.
        """
        if image is None or image.size == 0:
            raise ValueError("Input image is empty")

        if self.backend == "hog":
            faces = self.detect_hog(image)
        else:
            faces = self.detect_ssd(image)

        logger.debug(f"{self.backend}: found {len(faces)} faces in {image.shape[1]}x{image.shape[0]} image")
        return faces


# Create global detector instance
detector = FaceDetector(
    backend=settings.DETECTOR_BACKEND,
    models_dir=settings.MODELS_DIR,
    confidence_threshold=settings.CONFIDENCE_THRESHOLD
)


def detect_faces(image: np.ndarray, face_detector: Optional[FaceDetector] = None) -> List[FaceRect]:
    """Detect faces with the global detector (or ``face_detector``).

    Args:
        image: Input image in BGR format.
        face_detector: Detector to use instead of the global one.

    Returns:
        List of detected faces.
    """
    return (face_detector or detector).detect_faces(image)
