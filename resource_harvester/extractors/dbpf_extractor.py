# ==============================================================================
# DBPF EXTRACTOR MODULE
# ==============================================================================
# Extractor for Sims 4 DBPF 2.1 packages.
#
# DBPF Format Overview:
#   - Header: 96 bytes, signature "DBPF", major version 2, minor version 1
#       0x24  index entry count (uint32)
#       0x28  index position, legacy field (uint32)
#       0x2C  index size (uint32)
#       0x40  index position (uint32, used when non-zero)
#   - Resource data: entry payloads, each possibly compressed
#   - Index:
#       flags (uint32): bit 0 = constant type, bit 1 = constant group,
#                       bit 2 = constant instance-high
#       constant values for each set flag (uint32 each)
#       per entry: type, group, instance-high (when not constant),
#                  instance-low, position, size (bit 31 = extended),
#                  decompressed size, and when extended compression (uint16)
#                  and committed (uint16)
#
# Usage:
#   with DBPFExtractor("Mod.package") as pkg:
#       for entry in pkg.iter_entries():
#           print(entry.key)
#
#   entries = extract(data, lambda t, g, i: is_tuning_type(t))
# ==============================================================================

import os
import struct
from typing import List, Optional

from ..core.errors import DecodeError
from ..core.keys import ResourceKey
from .base_extractor import (
    BaseExtractor, ExtractorRegistry, IndexEntry, ResourceEntry, ResourceFilter,
)
from .compression import COMPRESSION_DELETED, COMPRESSION_NONE, decompress


# ==============================================================================
# DBPF CONSTANTS
# ==============================================================================

DBPF_SIGNATURE = b"DBPF"
DBPF_HEADER_SIZE = 96
DBPF_MAJOR_VERSION = 2
DBPF_MINOR_VERSION = 1

HEADER_INDEX_COUNT = 0x24
HEADER_INDEX_POSITION_LOW = 0x28
HEADER_INDEX_SIZE = 0x2C
HEADER_INDEX_POSITION = 0x40

FLAG_CONSTANT_TYPE = 0x1
FLAG_CONSTANT_GROUP = 0x2
FLAG_CONSTANT_INSTANCE_HIGH = 0x4

SIZE_EXTENDED_FLAG = 0x80000000


# ==============================================================================
# INDEX PARSING
# ==============================================================================

def read_index(data: bytes) -> List[IndexEntry]:
    """
    Parse a package's header and index.

    Deleted records are left out.

    Args:
        data: Whole package bytes

    Returns:
        Index entries in stored order

    Raises:
        DecodeError: If the header or index is invalid
    """
    if len(data) < DBPF_HEADER_SIZE or data[:4] != DBPF_SIGNATURE:
        raise DecodeError("not a DBPF package (bad signature)")

    major, minor = struct.unpack_from('<II', data, 4)
    if major != DBPF_MAJOR_VERSION:
        raise DecodeError(f"unsupported DBPF version {major}.{minor}",
                          {"major": major, "minor": minor})

    (count,) = struct.unpack_from('<I', data, HEADER_INDEX_COUNT)
    (index_position,) = struct.unpack_from('<I', data, HEADER_INDEX_POSITION)
    if index_position == 0:
        (index_position,) = struct.unpack_from('<I', data, HEADER_INDEX_POSITION_LOW)

    if count == 0:
        return []
    if index_position >= len(data):
        raise DecodeError("DBPF index position is past end of file",
                          {"position": index_position, "size": len(data)})

    entries = []
    try:
        pos = index_position
        (flags,) = struct.unpack_from('<I', data, pos)
        pos += 4

        constant_type = constant_group = constant_instance_high = None
        if flags & FLAG_CONSTANT_TYPE:
            (constant_type,) = struct.unpack_from('<I', data, pos)
            pos += 4
        if flags & FLAG_CONSTANT_GROUP:
            (constant_group,) = struct.unpack_from('<I', data, pos)
            pos += 4
        if flags & FLAG_CONSTANT_INSTANCE_HIGH:
            (constant_instance_high,) = struct.unpack_from('<I', data, pos)
            pos += 4

        for _ in range(count):
            if constant_type is None:
                (type_code,) = struct.unpack_from('<I', data, pos)
                pos += 4
            else:
                type_code = constant_type

            if constant_group is None:
                (group,) = struct.unpack_from('<I', data, pos)
                pos += 4
            else:
                group = constant_group

            if constant_instance_high is None:
                (instance_high,) = struct.unpack_from('<I', data, pos)
                pos += 4
            else:
                instance_high = constant_instance_high

            instance_low, position, raw_size, decompressed_size = struct.unpack_from('<IIII', data, pos)
            pos += 16

            compression = COMPRESSION_NONE
            committed = 1
            if raw_size & SIZE_EXTENDED_FLAG:
                compression, committed = struct.unpack_from('<HH', data, pos)
                pos += 4

            if compression == COMPRESSION_DELETED:
                continue

            entries.append(IndexEntry(
                key=ResourceKey(type_code, group, (instance_high << 32) | instance_low),
                position=position,
                size=raw_size & ~SIZE_EXTENDED_FLAG,
                decompressed_size=decompressed_size,
                compression=compression,
                committed=committed,
            ))
    except struct.error as e:
        raise DecodeError(f"truncated DBPF index: {e}")

    return entries


# ==============================================================================
# DBPF EXTRACTOR CLASS
# ==============================================================================
class DBPFExtractor(BaseExtractor):
    """
    Extractor for Sims 4 .package files.

    The whole package is read into memory when opened; packages are small
    enough that this is simpler than seeking per entry.

    Attributes:
        archive_path (str): Path of the open package (None for in-memory data)
    """

    def __init__(self, archive_path: str = None):
        self._data = b""
        super().__init__(archive_path)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'DBPFExtractor':
        """Open a package that is already in memory."""
        extractor = cls()
        extractor._load(data)
        return extractor

    # ==========================================================================
    # ABSTRACT PROPERTY IMPLEMENTATIONS
    # ==========================================================================

    @property
    def format_name(self) -> str:
        return "DBPF Package"

    @property
    def supported_extensions(self) -> List[str]:
        return ['.package']

    @property
    def extractor_id(self) -> str:
        return "dbpf"

    # ==========================================================================
    # ABSTRACT METHOD IMPLEMENTATIONS
    # ==========================================================================

    def detect(self, path: str) -> bool:
        """
        Claim any file with a package extension.

        The signature is checked by open(), so a damaged package surfaces as
        a DecodeError instead of being silently ignored.
        """
        return (os.path.isfile(path)
                and os.path.splitext(path)[1].lower() in self.supported_extensions)

    def open(self, archive_path: str) -> bool:
        with open(archive_path, 'rb') as f:
            data = f.read()
        self.archive_path = archive_path
        self._load(data)
        return True

    def _load(self, data: bytes):
        self._entries = read_index(data)
        self._data = data
        self._is_open = True

    def close(self):
        self._data = b""
        self._entries = []
        self._is_open = False

    def get_stored_data(self, entry: IndexEntry) -> bytes:
        return self._data[entry.position:entry.position + entry.size]

    def get_entry_data(self, entry: IndexEntry) -> bytes:
        stored = self.get_stored_data(entry)
        if len(stored) != entry.size:
            raise DecodeError("entry data runs past end of package",
                              {"key": str(entry.key), "position": entry.position})
        return decompress(stored, entry.compression, entry.decompressed_size)

    def find_entry(self, key: ResourceKey) -> Optional[IndexEntry]:
        for entry in self._entries:
            if entry.key == key:
                return entry
        return None


# Register this extractor
ExtractorRegistry.register(DBPFExtractor)


# ==============================================================================
# CONVENIENCE FUNCTION
# ==============================================================================

def extract(data: bytes, resource_filter: Optional[ResourceFilter] = None) -> List[ResourceEntry]:
    """
    Decode every entry of an in-memory package.

    Entries whose payload does not decode are kept as RawFallback.

    Args:
        data: Package bytes
        resource_filter: Optional (type, group, instance) -> bool

    Returns:
        List of ResourceEntry in index order

    Raises:
        DecodeError: If the package header or index is invalid
    """
    with DBPFExtractor.from_bytes(data) as package:
        return package.extract_entries(resource_filter)
