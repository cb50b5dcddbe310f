# ==============================================================================
# HASHER MODULE
# ==============================================================================
# String hashing used to derive resource ids, plus payload fingerprints.
#
# Instance ids are content-addressed: hashing the same name always produces
# the same id, on every machine and in every run, so renaming a resource by
# name gives a reproducible id without any central registry.
#
#   - fnv32 / fnv64: FNV-1 over the lowercased UTF-8 text (seedless)
#   - reduce_bits:   narrow a hash to a class-scoped id-space
#   - hash_bytes_md5: payload fingerprint recorded in the run history
#
# Usage:
#   instance = fnv64("creator:buff_Example")
#   instance = reduce_bits(fnv64("creator:trait_Example"), 32)
# ==============================================================================

import hashlib
from typing import Dict, Optional

from .taxonomy import bit_width_for_class, FULL_BIT_WIDTH


# FNV-1 parameters
FNV32_OFFSET = 0x811C9DC5
FNV32_PRIME = 0x01000193
FNV64_OFFSET = 0xCBF29CE484222325
FNV64_PRIME = 0x100000001B3

MASK32 = 0xFFFFFFFF
MASK64 = 0xFFFFFFFFFFFFFFFF

# Tuning root tag for instance tuning (<I ...>)
INSTANCE_ROOT = "I"


# ==============================================================================
# FNV HASHING
# ==============================================================================

def fnv32(text: str, high_bit: bool = False) -> int:
    """
    Compute the 32-bit FNV-1 hash of a string.

    Args:
        text: String to hash (lowercased before hashing)
        high_bit: Set the most significant bit of the result

    Returns:
        Unsigned 32-bit hash
    """
    value = FNV32_OFFSET
    for byte in text.lower().encode('utf-8'):
        value = (value * FNV32_PRIME) & MASK32
        value ^= byte
    if high_bit:
        value |= 0x80000000
    return value


def fnv64(text: str, high_bit: bool = False) -> int:
    """
    Compute the 64-bit FNV-1 hash of a string.

    Args:
        text: String to hash (lowercased before hashing)
        high_bit: Set the most significant bit of the result

    Returns:
        Unsigned 64-bit hash

    Example:
        >>> fnv64("")
        14695981039346656037
    """
    value = FNV64_OFFSET
    for byte in text.lower().encode('utf-8'):
        value = (value * FNV64_PRIME) & MASK64
        value ^= byte
    if high_bit:
        value |= 0x8000000000000000
    return value


def reduce_bits(value: int, width: int) -> int:
    """
    Mask a hash down to its low `width` bits.

    Widths of 64 or more leave the value unchanged.
    """
    if width >= FULL_BIT_WIDTH:
        return value
    return value & ((1 << width) - 1)


# ==============================================================================
# INSTANCE DERIVATION
# ==============================================================================

def instance_for_name(name: str, width: int = FULL_BIT_WIDTH) -> int:
    """Hash a name into an instance id of the given bit width."""
    hashed = fnv64(name)
    return reduce_bits(hashed, width) if width < FULL_BIT_WIDTH else hashed


def tuning_instance_for_name(name: str, root_kind: Optional[str],
                             class_name: Optional[str],
                             class_bit_widths: Optional[Dict[str, int]] = None) -> int:
    """
    Derive the instance id a tuning resource should have for a given name.

    Instance tuning (<I> roots) is hashed and narrowed to its class id-space.
    Module tuning (<M> roots) uses the full hash of the name with dots
    replaced, so 'a.b' and 'a-b' style names from different namespaces do not
    collide with instance tuning.

    Args:
        name: Declared tuning name (the n attribute)
        root_kind: Root element tag ('I' or 'M')
        class_name: Tuning class (the c attribute)
        class_bit_widths: Optional class -> width overrides

    Returns:
        Instance id
    """
    if root_kind == INSTANCE_ROOT:
        return instance_for_name(name, bit_width_for_class(class_name, class_bit_widths))
    return fnv64(name.replace(".", "-"))


# ==============================================================================
# PAYLOAD FINGERPRINTS
# ==============================================================================

def hash_bytes_md5(data: bytes) -> str:
    """
    Compute MD5 hash of raw bytes.

    Used to fingerprint written payloads in the run history.

    Returns:
        32-character hexadecimal MD5 hash string
    """
    return hashlib.md5(data).hexdigest()
