# ==============================================================================
# PARSERS MODULE
# ==============================================================================
# Payload parsers for Sims 4 resources.
#
# Supported formats:
#   - Tuning:  XML tuning (identity inference and override comments)
#   - SimData: XML and binary (DATA) SimData
#   - STBL:    Binary string tables and their JSON project form
#   - Images:  DDS / PNG headers via Pillow
#
# The codec ties them together: decode_entry(key, payload) picks the parser
# from the key's category and returns a typed value or a RawFallback.
# ==============================================================================

from .codec import (
    BinaryBlob, Decoded, RawFallback, TypedValue, RAW_FALLBACK,
    decode_entry, decode_typed, encode,
)
from .image_parser import ImageInfo, read_image_info
from .simdata_parser import SimDataDocument, SimDataParser, rename_simdata_instance
from .stbl_parser import STBLParser, StringTable, locale_for_instance
from .tuning_parser import (
    KeyOverride, TuningDocument, TuningMetadata, TuningParser,
    infer_key, infer_metadata, insert_override, rewrite_root_identity,
)

__all__ = [
    # Codec
    'BinaryBlob', 'Decoded', 'RawFallback', 'TypedValue', 'RAW_FALLBACK',
    'decode_entry', 'decode_typed', 'encode',

    # Images
    'ImageInfo', 'read_image_info',

    # SimData
    'SimDataDocument', 'SimDataParser', 'rename_simdata_instance',

    # String tables
    'STBLParser', 'StringTable', 'locale_for_instance',

    # Tuning
    'KeyOverride', 'TuningDocument', 'TuningMetadata', 'TuningParser',
    'infer_key', 'infer_metadata', 'insert_override', 'rewrite_root_identity',
]
