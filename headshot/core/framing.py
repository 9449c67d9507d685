"""Subject selection and headshot crop geometry.

Given face boxes from the detector, pick the face most likely to be the
photo's subject and compute a square crop around it that runs from just
above the crown down to the upper shoulders. When no face is available a
top-anchored centred square is used instead.

All rounding is half away from zero. The builtin ``round`` rounds half to
even and must not be used here.
"""

import math
from typing import Optional, Sequence

from ..models.types import CropRegion, FaceRect

# Position weights by vertical face centre
UPPER_REGION = 0.5
MIDDLE_REGION = 0.65
UPPER_WEIGHT = 3.0
MIDDLE_WEIGHT = 1.0
LOWER_WEIGHT = 0.05

# Crop proportions relative to face box height
HEAD_TOP_RATIO = 0.35     # crown sits this far above the box top
CROP_RATIO = 2.2          # head through upper shoulders
MIN_CROP_RATIO = 1.6

# Top padding is expressed in pixels of a 1000px output
TOP_PADDING_PX = 20
REFERENCE_OUTPUT_SIZE = 1000


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def position_weight(center_y: float, image_height: int) -> float:
    """Weight a face by how high its centre sits in the frame."""
    if center_y < image_height * UPPER_REGION:
        return UPPER_WEIGHT
    if center_y < image_height * MIDDLE_REGION:
        return MIDDLE_WEIGHT
    return LOWER_WEIGHT


def select_best_face(faces: Sequence[FaceRect], image_height: int) -> Optional[FaceRect]:
    """Pick the face most likely to be the subject.

    Args:
        faces: Detected faces, in detector order.
        image_height: Source image height in pixels.

    Returns:
        The face with the greatest ``confidence * position_weight``, the
        earliest one on ties, or None when ``faces`` is empty.
    """
    best_face = None
    best_score = -1.0

    for face in faces:
        score = face.confidence * position_weight(face.center_y, image_height)
        if score > best_score:
            best_score = score
            best_face = face

    return best_face


def headshot_crop(
    image_width: int,
    image_height: int,
    face: FaceRect,
    top_padding_px: int = TOP_PADDING_PX
) -> CropRegion:
    """Compute a square head-and-shoulders crop around ``face``.

    Args:
        image_width: Source image width.
        image_height: Source image height.
        face: Subject face box.
        top_padding_px: Gap between crop top and crown, in pixels of a
            1000px output.

    Returns:
        Crop region contained in the image.
    """
    max_size = min(image_width, image_height)
    face_cx = face.x + face.width / 2
    head_top = face.y - round_half_away(HEAD_TOP_RATIO * face.height)

    crop_size = round_half_away(face.height * CROP_RATIO)
    crop_size = min(crop_size, max_size)
    crop_size = max(crop_size, round_half_away(face.height * MIN_CROP_RATIO))
    # the lower bound above can exceed the image for very large faces
    crop_size = min(crop_size, max_size)

    padding = round_half_away((top_padding_px / REFERENCE_OUTPUT_SIZE) * crop_size)

    top = head_top - padding
    left = face_cx - crop_size / 2

    if left < 0:
        left = 0
    if top < 0:
        top = 0
    if left + crop_size > image_width:
        left = image_width - crop_size
    if top + crop_size > image_height:
        top = image_height - crop_size

    return CropRegion(
        left=max(0, round_half_away(left)),
        top=max(0, round_half_away(top)),
        size=crop_size
    )


def fallback_crop(image_width: int, image_height: int) -> CropRegion:
    """Largest square, horizontally centred and anchored to the top edge."""
    crop_size = min(image_width, image_height)
    left = round_half_away((image_width - crop_size) / 2)
    return CropRegion(left=left, top=0, size=crop_size)


def compute_crop(
    image_width: int,
    image_height: int,
    face: Optional[FaceRect],
    top_padding_px: int = TOP_PADDING_PX
) -> CropRegion:
    """Headshot crop around ``face``, or the fallback crop when it is None."""
    if face is None:
        return fallback_crop(image_width, image_height)
    return headshot_crop(image_width, image_height, face, top_padding_px)


def frame_subject(
    faces: Sequence[FaceRect],
    image_width: int,
    image_height: int,
    top_padding_px: int = TOP_PADDING_PX
) -> CropRegion:
    """Select the subject among ``faces`` and compute its crop."""
    face = select_best_face(faces, image_height)
    return compute_crop(image_width, image_height, face, top_padding_px)
