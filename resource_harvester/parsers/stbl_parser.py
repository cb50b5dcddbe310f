# ==============================================================================
# STBL PARSER MODULE
# ==============================================================================
# Parser and writer for binary string tables (STBL v5), and conversion to the
# locale-keyed JSON form written into projects.
#
# STBL Format (little-endian):
#   Header (21 bytes):
#     - Signature: "STBL" (4 bytes)
#     - Version (uint16, always 5)
#     - Compressed flag (uint8)
#     - Entry count (uint64)
#     - Reserved (2 bytes)
#     - String data length (uint32, total of all string lengths + 1 per entry)
#   Entries:
#     - Key (uint32, hash of the string id)
#     - Flags (uint8)
#     - Length (uint16)
#     - UTF-8 string bytes
#
# The locale of a table is the top byte of its instance id.
# ==============================================================================

import json
import struct
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional, Tuple

from ..core.errors import DecodeError
from ..core.keys import ResourceKey, format_hex


STBL_SIGNATURE = b"STBL"
STBL_VERSION = 5
STBL_HEADER_SIZE = 21

# Top instance byte -> locale name
LOCALES: Dict[int, str] = {
    0x00: "English",
    0x01: "ChineseSimplified",
    0x02: "ChineseTraditional",
    0x03: "Czech",
    0x04: "Danish",
    0x05: "Dutch",
    0x06: "Finnish",
    0x07: "French",
    0x08: "German",
    0x0B: "Italian",
    0x0C: "Japanese",
    0x0D: "Korean",
    0x0E: "Norwegian",
    0x0F: "Polish",
    0x11: "Portuguese",
    0x12: "Russian",
    0x13: "Spanish",
    0x15: "Swedish",
}

LOCALE_CODES: Dict[str, int] = {name: code for code, name in LOCALES.items()}

LOCALE_SHIFT = 56
INSTANCE_BASE_MASK = 0x00FFFFFFFFFFFFFF


# ==============================================================================
# LOCALE HELPERS
# ==============================================================================

def locale_code_for_instance(instance: int) -> int:
    """Get the locale byte of a string table instance."""
    return (instance >> LOCALE_SHIFT) & 0xFF


def locale_for_instance(instance: int) -> str:
    """
    Get the locale name of a string table instance.

    Unknown locale bytes are named by their hex value.

    Example:
        >>> locale_for_instance(0x07AB000000000001)
        'French'
    """
    code = locale_code_for_instance(instance)
    return LOCALES.get(code, f"Locale{code:02X}")


def instance_base(instance: int) -> int:
    """Clear the locale byte of a string table instance."""
    return instance & INSTANCE_BASE_MASK


# ==============================================================================
# DATA CLASSES
# ==============================================================================

@dataclass
class StringTable:
    """
    A decoded string table.

    Attributes:
        entries: (key, value) pairs in file order
        version: STBL version read from the header
    """
    kind: ClassVar[str] = "StringTable"

    entries: List[Tuple[int, str]] = field(default_factory=list)
    version: int = STBL_VERSION

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: int) -> Optional[str]:
        for entry_key, value in self.entries:
            if entry_key == key:
                return value
        return None

    def to_json_dict(self, key: ResourceKey) -> dict:
        """
        Build the project JSON form of this table.

        Args:
            key: Resource key the table was stored under (locale, group and
                 instance are taken from it)
        """
        return {
            "locale": locale_for_instance(key.instance),
            "group": format_hex(key.group, 8),
            "instanceBase": format_hex(instance_base(key.instance), 14),
            "entries": [
                {"key": format_hex(entry_key, 8), "value": value}
                for entry_key, value in self.entries
            ],
        }

    def to_json(self, key: ResourceKey) -> str:
        return json.dumps(self.to_json_dict(key), indent=2, ensure_ascii=False)


# ==============================================================================
# STBL PARSER CLASS
# ==============================================================================

class STBLParser:
    """
    Parser for binary string tables.

    Usage:
        table = STBLParser().load_from_bytes(data)
        data = STBLParser().write(table)
    """

    def load(self, filepath: str) -> StringTable:
        with open(filepath, 'rb') as f:
            return self.load_from_bytes(f.read())

    def load_from_bytes(self, data: bytes) -> StringTable:
        """
        Parse STBL bytes.

        Raises:
            DecodeError: If the bytes are not a well-formed STBL v5 table
        """
        if len(data) < STBL_HEADER_SIZE or data[:4] != STBL_SIGNATURE:
            raise DecodeError("missing STBL signature")

        try:
            version, _compressed, count, _reserved, _data_length = struct.unpack_from(
                '<HBQHI', data, 4)
        except struct.error as e:
            raise DecodeError(f"truncated STBL header: {e}")

        if version != STBL_VERSION:
            raise DecodeError(f"unsupported STBL version {version}", {"version": version})

        entries = []
        offset = STBL_HEADER_SIZE
        for index in range(count):
            try:
                entry_key, _flags, length = struct.unpack_from('<IBH', data, offset)
            except struct.error:
                raise DecodeError(f"truncated STBL entry {index}", {"entry": index})
            offset += 7

            raw = data[offset:offset + length]
            if len(raw) != length:
                raise DecodeError(f"truncated STBL string {index}", {"entry": index})
            offset += length

            try:
                entries.append((entry_key, raw.decode('utf-8')))
            except UnicodeDecodeError as e:
                raise DecodeError(f"invalid UTF-8 in STBL string {index}: {e}")

        if offset != len(data):
            raise DecodeError(
                f"{len(data) - offset} trailing bytes after STBL entries",
                {"offset": offset, "size": len(data)},
            )

        return StringTable(entries=entries, version=version)

    def write(self, table: StringTable) -> bytes:
        """Serialize a string table to STBL v5 bytes."""
        body = bytearray()
        data_length = 0
        for entry_key, value in table.entries:
            raw = value.encode('utf-8')
            body += struct.pack('<IBH', entry_key, 0, len(raw))
            body += raw
            data_length += len(raw) + 1

        header = STBL_SIGNATURE + struct.pack(
            '<HBQHI', STBL_VERSION, 0, len(table.entries), 0, data_length)
        return header + bytes(body)


def string_table_from_json(text: str) -> Tuple[StringTable, str]:
    """
    Read the project JSON form back into a table.

    Returns:
        (table, locale name)
    """
    obj = json.loads(text)
    entries = [(int(item["key"], 16), item["value"]) for item in obj.get("entries", [])]
    return StringTable(entries=entries), obj.get("locale", "English")
