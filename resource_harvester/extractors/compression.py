# ==============================================================================
# COMPRESSION MODULE
# ==============================================================================
# Decompression for DBPF package entries.
#
# Compression types (from the index entry's compression field):
#   0x0000  uncompressed
#   0x5A42  zlib
#   0xFFFF  internal RefPack ("QFS")
#   0xFFFE  streamable RefPack
#   0xFFE0  deleted record (no data)
#
# Usage:
#   from resource_harvester.extractors.compression import decompress
#   data = decompress(raw, COMPRESSION_ZLIB, expected_size)
# ==============================================================================

import zlib
from typing import Optional

from ..core.errors import DecodeError


COMPRESSION_NONE = 0x0000
COMPRESSION_ZLIB = 0x5A42
COMPRESSION_REFPACK = 0xFFFF
COMPRESSION_STREAMABLE = 0xFFFE
COMPRESSION_DELETED = 0xFFE0

COMPRESSION_NAMES = {
    COMPRESSION_NONE: "None",
    COMPRESSION_ZLIB: "Zlib",
    COMPRESSION_REFPACK: "RefPack",
    COMPRESSION_STREAMABLE: "Streamable",
    COMPRESSION_DELETED: "Deleted",
}


# ==============================================================================
# REFPACK
# ==============================================================================

def refpack_decompress(data: bytes) -> bytes:
    """
    Decompress a RefPack (QFS) stream.

    Header: 2 bytes flags/magic (0x10FB, 0x80 in the first byte selects a
    4-byte size), followed by a big-endian decompressed size. The body is a
    sequence of control codes, each carrying some literal bytes and an
    optional back-reference copy.

    Args:
        data: Compressed stream including header

    Returns:
        Decompressed bytes

    Raises:
        DecodeError: If the stream is malformed
    """
    if len(data) < 5 or data[1] != 0xFB:
        raise DecodeError("not a RefPack stream")

    size_bytes = 4 if data[0] & 0x80 else 3
    pos = 2
    # A stream with the 0x01 flag carries an extra compressed-size field
    if data[0] & 0x01:
        pos += size_bytes
    expected = int.from_bytes(data[pos:pos + size_bytes], 'big')
    pos += size_bytes

    output = bytearray()
    length = len(data)

    try:
        while pos < length:
            b0 = data[pos]

            if b0 < 0x80:
                b1 = data[pos + 1]
                pos += 2
                plain = b0 & 0x03
                distance = ((b0 & 0x60) << 3) + b1 + 1
                copy = ((b0 & 0x1C) >> 2) + 3
            elif b0 < 0xC0:
                b1, b2 = data[pos + 1], data[pos + 2]
                pos += 3
                plain = (b1 >> 6) & 0x03
                distance = ((b1 & 0x3F) << 8) + b2 + 1
                copy = (b0 & 0x3F) + 4
            elif b0 < 0xE0:
                b1, b2, b3 = data[pos + 1], data[pos + 2], data[pos + 3]
                pos += 4
                plain = b0 & 0x03
                distance = ((b0 & 0x10) << 12) + (b1 << 8) + b2 + 1
                copy = ((b0 & 0x0C) << 6) + b3 + 5
            elif b0 < 0xFC:
                pos += 1
                plain = ((b0 & 0x1F) << 2) + 4
                distance = 0
                copy = 0
            else:
                # Stop code: up to 3 trailing literals
                pos += 1
                plain = b0 & 0x03
                if pos + plain > length:
                    raise DecodeError("RefPack literal run past end of stream")
                output += data[pos:pos + plain]
                break

            if pos + plain > length:
                raise DecodeError("RefPack literal run past end of stream")
            output += data[pos:pos + plain]
            pos += plain

            if copy:
                start = len(output) - distance
                if start < 0:
                    raise DecodeError("RefPack back-reference before start of output")
                # Byte-wise: a copy may overlap the bytes it produces
                for i in range(copy):
                    output.append(output[start + i])
    except IndexError:
        raise DecodeError("truncated RefPack stream")

    if len(output) != expected:
        raise DecodeError(
            f"RefPack size mismatch (expected {expected}, got {len(output)})",
            {"expected": expected, "actual": len(output)},
        )
    return bytes(output)


# ==============================================================================
# DISPATCH
# ==============================================================================

def decompress(data: bytes, compression_type: int,
               expected_size: Optional[int] = None) -> bytes:
    """
    Decompress an entry's stored bytes.

    Args:
        data: Bytes as stored in the package
        compression_type: Compression field from the index entry
        expected_size: Decompressed size from the index entry, if known

    Returns:
        Decompressed bytes

    Raises:
        DecodeError: On an unknown compression type or a corrupt stream
    """
    if compression_type == COMPRESSION_NONE:
        return data

    if compression_type == COMPRESSION_ZLIB:
        try:
            result = zlib.decompress(data)
        except zlib.error as e:
            # Some tools write raw deflate without the zlib header
            try:
                result = zlib.decompress(data, -zlib.MAX_WBITS)
            except zlib.error:
                raise DecodeError(f"zlib decompression failed: {e}")
    elif compression_type in (COMPRESSION_REFPACK, COMPRESSION_STREAMABLE):
        result = refpack_decompress(data)
    else:
        raise DecodeError(
            f"unsupported compression type 0x{compression_type:04X}",
            {"compression": compression_type},
        )

    if expected_size is not None and expected_size and len(result) != expected_size:
        print(f"[WARN] Decompressed size {len(result)} differs from index size {expected_size}")
    return result


def compress_zlib(data: bytes) -> bytes:
    """Compress bytes for storage with COMPRESSION_ZLIB."""
    return zlib.compress(data)
