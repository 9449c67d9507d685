"""Minimal ZIP archive codec.

This module writes and reads a constrained subset of the ZIP format: every
entry is stored (compression method 0), there is no archive comment, no
extra fields are written and no ZIP64 records are used. Payloads are already
compressed images, so the archive trades size for a trivially simple reader.

The reader walks local file headers forward from offset 0 and never looks at
the central directory or the end record.
"""

import logging
import struct
from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union

from .checksum import crc32
from ..models.types import ArchiveEntry

logger = logging.getLogger(__name__)

LOCAL_HEADER_SIGNATURE = 0x04034b50
CENTRAL_DIRECTORY_SIGNATURE = 0x02014b50
END_RECORD_SIGNATURE = 0x06054b50
DATA_DESCRIPTOR_SIGNATURE = 0x08074b50

LOCAL_HEADER = struct.Struct("<IHHHHHIIIHH")
CENTRAL_DIRECTORY_HEADER = struct.Struct("<IHHHHHHIIIHHHHHII")
END_RECORD = struct.Struct("<IHHHHIIH")
DATA_DESCRIPTOR = struct.Struct("<III")

VERSION = 20
METHOD_STORED = 0
FLAG_DATA_DESCRIPTOR = 0x0008
FLAG_UTF8 = 0x0800

# 1980-01-01 00:00:00, the earliest representable DOS timestamp
DOS_TIME = 0
DOS_DATE = (1 << 5) | 1

MAX_UINT16 = 0xFFFF
MAX_UINT32 = 0xFFFFFFFF


class ArchiveError(Exception):
    """Base exception for archive errors."""
    pass


class UnsupportedInputError(ArchiveError):
    """Exception raised when an entry cannot be represented in the archive."""
    pass


class DecodeError(ArchiveError):
    """Exception raised when archive bytes are truncated or corrupt."""
    pass


@dataclass(frozen=True)
class _EntryRecord:
    name: bytes
    data: bytes
    flags: int
    crc32: int
    offset: int


EntryLike = Union[ArchiveEntry, Tuple[str, bytes]]


def _coerce_entry(entry: EntryLike) -> ArchiveEntry:
    if isinstance(entry, ArchiveEntry):
        return entry
    name, data = entry
    return ArchiveEntry(name=name, data=bytes(data))


def _encode_name(name: str) -> Tuple[bytes, int]:
    """Encode an entry name, returning the bytes and general-purpose flags."""
    if not isinstance(name, str) or not name:
        raise UnsupportedInputError("Entry name must be a non-empty string")
    if "\x00" in name:
        raise UnsupportedInputError(f"Entry name contains NUL: {name!r}")
    try:
        return name.encode("ascii"), 0
    except UnicodeEncodeError:
        pass
    try:
        return name.encode("utf-8"), FLAG_UTF8
    except UnicodeEncodeError as e:
        raise UnsupportedInputError(f"Entry name is not UTF-8 encodable: {name!r}") from e


def _plan_records(entries: Iterable[EntryLike]) -> Tuple[List[_EntryRecord], int]:
    """Validate entries and lay out their local headers.

    Returns:
        The entry records in input order and the byte offset at which the
        central directory starts.

    Raises:
        UnsupportedInputError: If any entry exceeds the fixed header widths.
    """
    records: List[_EntryRecord] = []
    seen = set()
    offset = 0

    for entry in map(_coerce_entry, entries):
        name, flags = _encode_name(entry.name)
        if len(name) > MAX_UINT16:
            raise UnsupportedInputError(
                f"Entry name too long ({len(name)} bytes, max {MAX_UINT16}): {entry.name[:40]!r}..."
            )
        if entry.name in seen:
            raise UnsupportedInputError(f"Duplicate entry name: {entry.name!r}")
        if len(entry.data) > MAX_UINT32:
            raise UnsupportedInputError(
                f"Entry data too large ({len(entry.data)} bytes, max {MAX_UINT32}): {entry.name!r}"
            )
        if offset > MAX_UINT32:
            raise UnsupportedInputError(f"Archive too large: {entry.name!r} starts beyond 4 GiB")
        seen.add(entry.name)

        records.append(_EntryRecord(
            name=name,
            data=entry.data,
            flags=flags,
            crc32=crc32(entry.data),
            offset=offset,
        ))
        offset += LOCAL_HEADER.size + len(name) + len(entry.data)

    if len(records) > MAX_UINT16:
        raise UnsupportedInputError(f"Too many entries ({len(records)}, max {MAX_UINT16})")

    directory_size = sum(CENTRAL_DIRECTORY_HEADER.size + len(r.name) for r in records)
    if offset > MAX_UINT32 or directory_size > MAX_UINT32:
        raise UnsupportedInputError("Archive too large for a non-ZIP64 central directory")

    return records, offset


def write_archive(entries: Iterable[EntryLike]) -> bytes:
    """Serialize named blobs into a stored-only ZIP archive.

    Args:
        entries: Ordered ``ArchiveEntry`` items or ``(name, data)`` pairs.
            Names must be unique and non-empty.

    Returns:
        Archive bytes. Identical input always yields identical output.

    Raises:
        UnsupportedInputError: If a name or payload does not fit the fixed
            header fields. Raised before any output is produced.
    """
    records, directory_offset = _plan_records(entries)
    out = bytearray()

    for record in records:
        out += LOCAL_HEADER.pack(
            LOCAL_HEADER_SIGNATURE,
            VERSION,
            record.flags,
            METHOD_STORED,
            DOS_TIME,
            DOS_DATE,
            record.crc32,
            len(record.data),
            len(record.data),
            len(record.name),
            0,
        )
        out += record.name
        out += record.data

    for record in records:
        out += CENTRAL_DIRECTORY_HEADER.pack(
            CENTRAL_DIRECTORY_SIGNATURE,
            VERSION,
            VERSION,
            record.flags,
            METHOD_STORED,
            DOS_TIME,
            DOS_DATE,
            record.crc32,
            len(record.data),
            len(record.data),
            len(record.name),
            0,  # extra
            0,  # comment
            0,  # disk number start
            0,  # internal attributes
            0,  # external attributes
            record.offset,
        )
        out += record.name

    directory_size = len(out) - directory_offset
    out += END_RECORD.pack(
        END_RECORD_SIGNATURE,
        0,
        0,
        len(records),
        len(records),
        directory_size,
        directory_offset,
        0,
    )

    logger.debug(f"Wrote archive with {len(records)} entries ({len(out)} bytes)")
    return bytes(out)


def _decode_name(raw: bytes, flags: int) -> str:
    if flags & FLAG_UTF8:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Entry name flagged UTF-8 is not valid UTF-8: {raw!r}") from e
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("cp437")


def _read_data_descriptor(view: memoryview, offset: int, name: str) -> Tuple[int, int]:
    """Parse the data descriptor following an entry's data.

    Returns:
        The descriptor's CRC-32 and the offset just past the descriptor.
    """
    total = len(view)
    if total - offset >= 4 and struct.unpack_from("<I", view, offset)[0] == DATA_DESCRIPTOR_SIGNATURE:
        offset += 4
    if total - offset < DATA_DESCRIPTOR.size:
        raise DecodeError(f"Truncated data descriptor for entry {name!r} at offset {offset}")
    crc, _, _ = DATA_DESCRIPTOR.unpack_from(view, offset)
    return crc, offset + DATA_DESCRIPTOR.size


def read_archive(data: bytes, verify_crc: bool = True) -> List[ArchiveEntry]:
    """Read stored entries by walking local file headers.

    Reading stops at the first position that does not start with a local
    file header signature, which is normally the central directory.

    Entries flagged with a data descriptor are read only when their local
    header still carries the sizes; the descriptor after the data is then
    skipped and its CRC-32 used for verification.

    Args:
        data: Archive bytes.
        verify_crc: Raise ``DecodeError`` when an entry's data does not match
            its recorded CRC-32.

    Returns:
        Entries in the order they appear in ``data``. Entries with a
        compression method other than stored are skipped.

    Raises:
        DecodeError: If a header, name, data region or data descriptor is
            truncated, if the sizes are deferred to a data descriptor, or if
            a checksum does not match.
    """
    view = memoryview(data)
    total = len(view)
    entries: List[ArchiveEntry] = []
    cursor = 0

    while total - cursor >= 4:
        signature = struct.unpack_from("<I", view, cursor)[0]
        if signature != LOCAL_HEADER_SIGNATURE:
            break

        if total - cursor < LOCAL_HEADER.size:
            raise DecodeError(
                f"Truncated local file header at offset {cursor} "
                f"({total - cursor} of {LOCAL_HEADER.size} bytes)"
            )

        (_, _, flags, method, _, _, expected_crc,
         compressed_size, uncompressed_size,
         name_length, extra_length) = LOCAL_HEADER.unpack_from(view, cursor)

        name_start = cursor + LOCAL_HEADER.size
        name_end = name_start + name_length
        if name_end > total:
            raise DecodeError(f"Entry name at offset {name_start} extends past end of archive")
        name = _decode_name(bytes(view[name_start:name_end]), flags)

        data_start = name_end + extra_length
        if compressed_size != 0:
            data_length = compressed_size
        else:
            data_length = uncompressed_size
        if flags & FLAG_DATA_DESCRIPTOR and data_length == 0:
            raise DecodeError(
                f"Entry {name!r} at offset {cursor}: sizes deferred to data descriptor; unsupported"
            )
        data_end = data_start + data_length
        if data_end > total:
            raise DecodeError(
                f"Entry {name!r} data ({data_length} bytes at offset {data_start}) "
                f"extends past end of archive ({total} bytes)"
            )

        next_cursor = data_end
        if flags & FLAG_DATA_DESCRIPTOR:
            expected_crc, next_cursor = _read_data_descriptor(view, data_end, name)

        if method != METHOD_STORED:
            logger.debug(f"Skipping entry {name!r} with unsupported compression method {method}")
            cursor = next_cursor
            continue

        payload = bytes(view[data_start:data_end])
        if verify_crc:
            actual_crc = crc32(payload)
            if actual_crc != expected_crc:
                raise DecodeError(
                    f"CRC-32 mismatch for entry {name!r}: "
                    f"header {expected_crc:#010x}, data {actual_crc:#010x}"
                )

        entries.append(ArchiveEntry(name=name, data=payload))
        cursor = next_cursor

    return entries
