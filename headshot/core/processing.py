"""Batch headshot pipeline.

Each upload is decoded, searched for faces, framed and re-encoded as PNG.
Results are collected in upload order and packed into one stored archive.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .archive import write_archive
from .face_detection import FaceDetectionError, detect_faces
from .framing import frame_subject
from ..config import settings
from ..models.types import ArchiveEntry, BatchResult, FaceRect
from ..utils.image import (
    ImageProcessingError,
    crop_and_resize,
    decode_image,
    encode_png,
    is_allowed_filename,
    output_name,
    to_bgr
)

logger = logging.getLogger(__name__)

Detector = Callable[[np.ndarray], List[FaceRect]]


def resolve_target_size(value) -> int:
    """Parse the requested output size, falling back to the default.

    Args:
        value: Raw size parameter (number, numeric string such as "1e3", or None).

    Returns:
        ``value`` as an int if it is a valid size, else the default size.
    """
    try:
        size = float(value)
    except (TypeError, ValueError):
        return settings.DEFAULT_SIZE
    if not size.is_integer() or int(size) not in settings.VALID_SIZES:
        return settings.DEFAULT_SIZE
    return int(size)


def process_image(
    data: bytes,
    target_size: int,
    top_padding_px: Optional[int] = None,
    detector: Optional[Detector] = None
) -> bytes:
    """Turn one uploaded photo into a square PNG headshot.

    Args:
        data: Encoded source image.
        target_size: Output width and height in pixels.
        top_padding_px: Crown padding in pixels of a 1000px output.
        detector: Face detector callable; defaults to the global detector.

    Returns:
        PNG bytes.

    Raises:
        ImageProcessingError: If the image cannot be decoded or encoded.
        FaceDetectionError: If the detector cannot run.
    """
    if top_padding_px is None:
        top_padding_px = settings.TOP_PADDING_PX
    if detector is None:
        detector = detect_faces

    image = decode_image(data)
    height, width = image.shape[:2]

    faces = detector(to_bgr(image))
    region = frame_subject(faces, width, height, top_padding_px)
    if faces:
        logger.info(f"{len(faces)} face(s) in {width}x{height} image, crop {region}")
    else:
        logger.info(f"No face in {width}x{height} image, using fallback crop {region}")

    return encode_png(crop_and_resize(image, region, target_size))


def _unique_name(name: str, taken: set) -> str:
    if name not in taken:
        return name
    stem, suffix = name[:-len('.png')], '.png'
    counter = 2
    while f"{stem}-{counter}{suffix}" in taken:
        counter += 1
    return f"{stem}-{counter}{suffix}"


def process_batch(
    files: Sequence[Tuple[str, bytes]],
    target_size: int,
    top_padding_px: Optional[int] = None,
    detector: Optional[Detector] = None
) -> BatchResult:
    """Process uploads in order and pack the results into one archive.

    Unsupported or failing files are reported in ``errors`` and do not stop
    the batch.

    Args:
        files: ``(filename, data)`` pairs in upload order.
        target_size: Output width and height in pixels.
        top_padding_px: Crown padding in pixels of a 1000px output.
        detector: Face detector callable; defaults to the global detector.

    Returns:
        Batch result with the archive bytes, entry names and error messages.
    """
    entries: List[ArchiveEntry] = []
    taken = set()
    errors: List[str] = []

    # Process images sequentially to avoid memory issues
    for filename, data in files:
        filename = filename or 'unknown'
        if not is_allowed_filename(filename):
            errors.append(f"{filename}: unsupported format")
            continue

        try:
            png = process_image(data, target_size, top_padding_px, detector)
        except (ImageProcessingError, FaceDetectionError, ValueError) as e:
            logger.warning(f"Error processing {filename}: {str(e)}")
            errors.append(f"{filename}: {str(e)}")
            continue
        except Exception as e:
            logger.exception(f"Unexpected error processing {filename}")
            errors.append(f"{filename}: {str(e) or 'processing failed'}")
            continue

        name = _unique_name(output_name(filename), taken)
        taken.add(name)
        entries.append(ArchiveEntry(name=name, data=png))

    archive = write_archive(entries)
    logger.info(f"Processed {len(entries)} of {len(files)} file(s)")

    return {
        'processed': len(entries),
        'archive': archive,
        'names': [entry.name for entry in entries],
        'errors': errors
    }
