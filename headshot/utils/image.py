"""Image processing utilities.

This module provides utility functions for image processing operations,
including decoding uploads, cropping, resizing and PNG encoding.
"""

import cv2
import numpy as np
from pathlib import PurePath

from ..models.types import CropRegion

ALLOWED_EXTENSIONS = frozenset({'.jpg', '.jpeg', '.png', '.webp'})


class ImageProcessingError(Exception):
    """Base exception for image processing errors."""
    pass


class ImageDecodingError(ImageProcessingError):
    """Exception raised when image decoding fails."""
    pass


class ImageFormatError(ImageProcessingError):
    """Exception raised when image format is invalid."""
    pass


def decode_image(data: bytes) -> np.ndarray:
    """Decode uploaded file bytes to an OpenCV image.

    Args:
        data: Encoded image bytes (JPEG, PNG, WebP).

    Returns:
        Decoded image as numpy array. Alpha channels are preserved, so the
        result may be gray, BGR or BGRA.

    Raises:
        ImageDecodingError: If the data is empty.
        ImageFormatError: If the data cannot be read as an image.
    """
    if not data:
        raise ImageDecodingError("Empty image data")

    try:
        nparr = np.frombuffer(data, np.uint8)
        image = cv2.imdecode(nparr, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise ImageFormatError(f"Failed to decode image data: {str(e)}")

    if image is None or image.size == 0:
        raise ImageFormatError("Failed to decode image data")

    return image


def to_bgr(image: np.ndarray) -> np.ndarray:
    """Convert a gray, BGR or BGRA image to 3-channel BGR."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


def crop_and_resize(image: np.ndarray, region: CropRegion, target_size: int) -> np.ndarray:
    """Extract a square region and resize it to ``target_size``.

    Args:
        image: Source image.
        region: Square crop contained in the image.
        target_size: Output width and height in pixels.

    Returns:
        Resized crop.

    Raises:
        ImageProcessingError: If the region is empty or outside the image.
    """
    height, width = image.shape[:2]
    left, top, right, bottom = region.as_box()
    if region.size <= 0 or left < 0 or top < 0 or right > width or bottom > height:
        raise ImageProcessingError(
            f"Crop {region} does not fit {width}x{height} image"
        )

    cropped = image[top:bottom, left:right]
    if region.size == target_size:
        return cropped.copy()

    # Area averaging when shrinking, Lanczos when enlarging
    interpolation = cv2.INTER_AREA if region.size > target_size else cv2.INTER_LANCZOS4
    return cv2.resize(cropped, (target_size, target_size), interpolation=interpolation)


def encode_png(image: np.ndarray) -> bytes:
    """Encode an image as PNG bytes."""
    ok, buffer = cv2.imencode('.png', image)
    if not ok:
        raise ImageProcessingError("Failed to encode PNG")
    return buffer.tobytes()


def is_allowed_filename(filename: str) -> bool:
    """Return True if ``filename`` has a supported image extension."""
    return PurePath(filename).suffix.lower() in ALLOWED_EXTENSIONS


def output_name(filename: str) -> str:
    """Map an upload name to its result name: basename with a .png suffix."""
    # Browsers may send Windows paths
    base = PurePath(filename.replace('\\', '/')).name
    stem = PurePath(base).stem or 'unknown'
    return f"{stem}.png"
