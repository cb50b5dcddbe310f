# ==============================================================================
# CODEC MODULE
# ==============================================================================
# Decodes a resource payload into a typed value chosen by its key.
#
# Decoded values are a closed set of variants, each tagged with `kind`:
#   - TuningDocument   (Tuning)
#   - SimDataDocument  (SimData)
#   - StringTable      (StringTable)
#   - ImageInfo        (Image)
#   - BinaryBlob       (Binary)      known or unknown binary, kept as bytes
#   - RawFallback      (RawFallback) the payload did not decode as its type
#
# Dispatch is by category kind through a table, never by probing the shape
# of the payload.
#
# Usage:
#   decoded = decode_entry(key, payload)
#   if decoded.kind == RAW_FALLBACK:
#       print(decoded.error)
# ==============================================================================

from dataclasses import dataclass
from typing import Callable, ClassVar, Dict, Union

from ..core.errors import DecodeError
from ..core.keys import ResourceKey
from ..core.taxonomy import CategoryKind, classify
from .image_parser import ImageInfo, read_image_info
from .simdata_parser import SimDataDocument, SimDataParser
from .stbl_parser import STBLParser, StringTable
from .tuning_parser import TuningDocument, TuningParser


RAW_FALLBACK = "RawFallback"


@dataclass(frozen=True)
class BinaryBlob:
    """A payload that is carried as bytes without interpretation."""
    kind: ClassVar[str] = "Binary"

    data: bytes


@dataclass(frozen=True)
class RawFallback:
    """
    A payload that failed to decode as the type its key declares.

    Attributes:
        payload (bytes): The undecoded bytes
        error (str):     Why decoding failed
    """
    kind: ClassVar[str] = RAW_FALLBACK

    payload: bytes
    error: str


TypedValue = Union[TuningDocument, SimDataDocument, StringTable, ImageInfo, BinaryBlob]
Decoded = Union[TypedValue, RawFallback]


# ==============================================================================
# DECODING
# ==============================================================================

def _decode_binary(data: bytes) -> BinaryBlob:
    return BinaryBlob(data)


_DECODERS: Dict[CategoryKind, Callable[[bytes], TypedValue]] = {
    CategoryKind.TUNING: TuningParser().load_from_bytes,
    CategoryKind.STRUCTURED_DATA: SimDataParser().load_from_bytes,
    CategoryKind.STRING_TABLE: STBLParser().load_from_bytes,
    CategoryKind.IMAGE: read_image_info,
    CategoryKind.RAW_BINARY: _decode_binary,
    CategoryKind.UNSUPPORTED: _decode_binary,
}


def decode_typed(key: ResourceKey, payload: bytes) -> TypedValue:
    """
    Decode a payload as the type implied by its key.

    Raises:
        DecodeError: If the payload does not match its declared type
    """
    return _DECODERS[classify(key).kind](payload)


def decode_entry(key: ResourceKey, payload: bytes) -> Decoded:
    """Decode a payload, turning a DecodeError into a RawFallback."""
    try:
        return decode_typed(key, payload)
    except DecodeError as e:
        return RawFallback(payload, e.message)


# ==============================================================================
# ENCODING
# ==============================================================================

def encode(value: TypedValue) -> bytes:
    """
    Re-encode a typed value to bytes.

    Image info carries no pixels and cannot be encoded; binary SimData is
    decoded header-only and cannot be re-encoded either.

    Raises:
        DecodeError: For values that cannot be encoded
    """
    if isinstance(value, TuningDocument):
        return value.text.encode('utf-8')
    if isinstance(value, SimDataDocument):
        if value.text is None:
            raise DecodeError("binary SimData cannot be re-encoded")
        return value.text.encode('utf-8')
    if isinstance(value, StringTable):
        return STBLParser().write(value)
    if isinstance(value, BinaryBlob):
        return value.data
    raise DecodeError(f"cannot encode {value.kind} values")
