"""Data models and type definitions"""
from .types import FaceRect, CropRegion, ArchiveEntry, BatchResult, ErrorResponse

__all__ = [
    'FaceRect',
    'CropRegion',
    'ArchiveEntry',
    'BatchResult',
    'ErrorResponse'
]
