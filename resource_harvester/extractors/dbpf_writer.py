# ==============================================================================
# DBPF WRITER MODULE
# ==============================================================================
# Builds DBPF 2.1 packages from keyed payloads.
#
# Output layout:
#   header (96 bytes) | payloads in insertion order | index
# The index never uses constant fields, and every entry is written with the
# extended size flag so compression and committed are always present.
#
# Usage:
#   writer = DBPFWriter()
#   writer.add(ResourceKey(0x6017E896, 0, 1), xml_bytes)
#   writer.save("Mod.package")
# ==============================================================================

import struct
from dataclasses import dataclass
from typing import List

from ..core.keys import ResourceKey
from .compression import COMPRESSION_NONE, COMPRESSION_ZLIB, compress_zlib
from .dbpf_extractor import (
    DBPF_HEADER_SIZE, DBPF_MAJOR_VERSION, DBPF_MINOR_VERSION, DBPF_SIGNATURE,
    HEADER_INDEX_COUNT, HEADER_INDEX_POSITION, HEADER_INDEX_SIZE, SIZE_EXTENDED_FLAG,
)


INDEX_MINOR_VERSION = 3


@dataclass
class _PendingEntry:
    key: ResourceKey
    stored: bytes
    decompressed_size: int
    compression: int


class DBPFWriter:
    """
    Accumulates resources and serializes them as a package.

    Args:
        compress: Default for add(); zlib-compress payloads when True
    """

    def __init__(self, compress: bool = True):
        self.compress = compress
        self._entries: List[_PendingEntry] = []

    def add(self, key: ResourceKey, data: bytes, compress: bool = None) -> 'DBPFWriter':
        """
        Add a resource.

        Args:
            key: Resource key
            data: Decompressed payload
            compress: Override the writer's default compression

        Returns:
            self, so calls can be chained
        """
        if compress is None:
            compress = self.compress

        if compress:
            stored, compression = compress_zlib(data), COMPRESSION_ZLIB
        else:
            stored, compression = data, COMPRESSION_NONE

        self._entries.append(_PendingEntry(key, stored, len(data), compression))
        return self

    def add_raw(self, key: ResourceKey, stored: bytes, decompressed_size: int,
                compression: int) -> 'DBPFWriter':
        """Add already-stored bytes with an explicit compression type."""
        self._entries.append(_PendingEntry(key, stored, decompressed_size, compression))
        return self

    def __len__(self) -> int:
        return len(self._entries)

    def to_bytes(self) -> bytes:
        """Serialize the package."""
        body = bytearray()
        index = bytearray(struct.pack('<I', 0))

        for entry in self._entries:
            position = DBPF_HEADER_SIZE + len(body)
            body += entry.stored
            index += struct.pack(
                '<IIIIIIIHH',
                entry.key.type,
                entry.key.group,
                entry.key.instance >> 32,
                entry.key.instance & 0xFFFFFFFF,
                position,
                len(entry.stored) | SIZE_EXTENDED_FLAG,
                entry.decompressed_size,
                entry.compression,
                1,
            )

        index_position = DBPF_HEADER_SIZE + len(body)

        header = bytearray(DBPF_HEADER_SIZE)
        header[0:4] = DBPF_SIGNATURE
        struct.pack_into('<II', header, 4, DBPF_MAJOR_VERSION, DBPF_MINOR_VERSION)
        struct.pack_into('<I', header, HEADER_INDEX_COUNT, len(self._entries))
        struct.pack_into('<I', header, HEADER_INDEX_SIZE, len(index))
        struct.pack_into('<I', header, 0x3C, INDEX_MINOR_VERSION)
        struct.pack_into('<I', header, HEADER_INDEX_POSITION, index_position)

        return bytes(header) + bytes(body) + bytes(index)

    def save(self, path: str):
        """Write the package to disk."""
        with open(path, 'wb') as f:
            f.write(self.to_bytes())
