"""Data models and type definitions"""
from dataclasses import dataclass
from typing import List, Optional
from typing_extensions import TypedDict


@dataclass(frozen=True)
class FaceRect:
    """Detected face box in source-image pixel coordinates."""
    x: int
    y: int
    width: int
    height: int
    confidence: float

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


@dataclass(frozen=True)
class CropRegion:
    """Square crop rectangle, always contained in the source image."""
    left: int
    top: int
    size: int

    def as_box(self) -> tuple:
        """Return (left, top, right, bottom)."""
        return (self.left, self.top, self.left + self.size, self.top + self.size)


@dataclass(frozen=True)
class ArchiveEntry:
    """Named blob stored in an archive."""
    name: str
    data: bytes


class BatchResult(TypedDict):
    processed: int
    archive: bytes
    names: List[str]
    errors: List[str]


class ErrorResponse(TypedDict):
    error: str
    traceback: Optional[str]
