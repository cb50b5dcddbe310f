# ==============================================================================
# RESOURCE KEY MODULE
# ==============================================================================
# The Type-Group-Instance (TGI) identity of a resource.
#
# Every resource inside a package (or loose on disk) is identified by three
# numbers:
#   - type:     32-bit resource type code (what kind of resource it is)
#   - group:    32-bit group (usually 0, or a SimData group)
#   - instance: 64-bit instance id (usually a hash of the resource name)
#
# Keys are immutable. A new identity is a new key.
#
# Usage:
#   key = ResourceKey(0x6017E896, 0, 0x12345678)
#   format_resource_key(key, "-")   # '6017E896-00000000-0000000012345678'
# ==============================================================================

from dataclasses import dataclass
from typing import Optional


MAX_UINT32 = 0xFFFFFFFF
MAX_UINT64 = 0xFFFFFFFFFFFFFFFF


# ==============================================================================
# RESOURCE KEY DATA CLASS
# ==============================================================================
@dataclass(frozen=True)
class ResourceKey:
    """
    Immutable Type-Group-Instance key.

    Attributes:
        type (int):     Resource type code (u32)
        group (int):    Resource group (u32)
        instance (int): Instance id (u64)
    """
    type: int
    group: int
    instance: int

    def __post_init__(self):
        if not 0 <= self.type <= MAX_UINT32:
            raise ValueError(f"type out of range: {self.type}")
        if not 0 <= self.group <= MAX_UINT32:
            raise ValueError(f"group out of range: {self.group}")
        if not 0 <= self.instance <= MAX_UINT64:
            raise ValueError(f"instance out of range: {self.instance}")

    def with_values(self, type: Optional[int] = None, group: Optional[int] = None,
                    instance: Optional[int] = None) -> 'ResourceKey':
        """Return a new key with the given fields replaced."""
        return ResourceKey(
            self.type if type is None else type,
            self.group if group is None else group,
            self.instance if instance is None else instance,
        )

    def __str__(self):
        return format_resource_key(self, "-")


# ==============================================================================
# FORMATTING
# ==============================================================================

def format_hex(value: int, width: int, prefix: bool = True) -> str:
    """
    Format an integer as zero-padded uppercase hex.

    Args:
        value: Value to format
        width: Number of hex digits
        prefix: Whether to prepend '0x'

    Returns:
        Formatted string

    Example:
        >>> format_hex(255, 8)
        '0x000000FF'
    """
    text = f"{value:0{width}X}"
    return f"0x{text}" if prefix else text


def format_resource_type(type_code: int) -> str:
    """Format a type (or group) code as 8 hex digits without prefix."""
    return format_hex(type_code, 8, prefix=False)


def format_resource_key(key: ResourceKey, separator: str = "-") -> str:
    """
    Format a key as TTTTTTTT{sep}GGGGGGGG{sep}IIIIIIIIIIIIIIII.

    This is the same convention used for loose TGI file names, so the
    result can be parsed back with key_from_filename().
    """
    return separator.join((
        format_hex(key.type, 8, prefix=False),
        format_hex(key.group, 8, prefix=False),
        format_hex(key.instance, 16, prefix=False),
    ))


def parse_hex(text: str) -> int:
    """Parse a hex string, with or without a 0x prefix."""
    text = text.strip()
    if text.lower().startswith("0x"):
        text = text[2:]
    return int(text, 16)
