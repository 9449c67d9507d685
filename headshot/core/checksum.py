"""CRC-32 checksum.

Standard reflected CRC-32 (polynomial 0xEDB88320) as used by ZIP, gzip and
PNG. Results are identical to ``zlib.crc32`` for the same bytes.
"""

POLYNOMIAL = 0xEDB88320


def _build_table() -> tuple:
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            if c & 1:
                c = POLYNOMIAL ^ (c >> 1)
            else:
                c >>= 1
        table.append(c)
    return tuple(table)


CRC_TABLE = _build_table()


def crc32(data: bytes, crc: int = 0) -> int:
    """Compute the CRC-32 of ``data``.

    Args:
        data: Bytes to checksum.
        crc: Checksum of preceding bytes, for continuing a running checksum.

    Returns:
        Unsigned 32-bit checksum. ``crc32(b"") == 0``.
    """
    table = CRC_TABLE
    crc = (crc & 0xFFFFFFFF) ^ 0xFFFFFFFF
    for byte in data:
        crc = table[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ 0xFFFFFFFF
