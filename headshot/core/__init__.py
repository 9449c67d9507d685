"""Core framing, archive and processing functionality"""
from .archive import (
    write_archive,
    read_archive,
    ArchiveError,
    UnsupportedInputError,
    DecodeError
)
from .checksum import crc32
from .framing import (
    select_best_face,
    headshot_crop,
    fallback_crop,
    compute_crop
)

__all__ = [
    'write_archive',
    'read_archive',
    'ArchiveError',
    'UnsupportedInputError',
    'DecodeError',
    'crc32',
    'select_best_face',
    'headshot_crop',
    'fallback_crop',
    'compute_crop'
]
