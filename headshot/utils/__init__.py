"""Utility functions for image processing"""
from .image import (
    decode_image,
    to_bgr,
    crop_and_resize,
    encode_png,
    is_allowed_filename,
    output_name
)

__all__ = [
    'decode_image',
    'to_bgr',
    'crop_and_resize',
    'encode_png',
    'is_allowed_filename',
    'output_name'
]
