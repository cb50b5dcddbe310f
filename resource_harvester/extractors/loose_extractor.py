# ==============================================================================
# LOOSE FILE EXTRACTOR MODULE
# ==============================================================================
# Extractor for loose resource files whose key is encoded in the file name.
#
# File name convention (hex is case-insensitive, separator used throughout):
#   [S4_]TTTTTTTT{sep}GGGGGGGG{sep}IIIIIIIIIIIIIIII[.anything]
#   sep is one of '-', '_' or '!'
#
# Examples:
#   6017E896-00000000-0000000012345678.xml
#   S4_220557DA_80000000_0012345678ABCDEF.stbl
#
# Names that do not follow the convention are not resources; the extractor
# simply does not claim them.
# ==============================================================================

import os
import re
from typing import List, Optional

from ..core.errors import UnrecognizedFilename
from ..core.keys import ResourceKey
from .base_extractor import BaseExtractor, ExtractorRegistry, IndexEntry


TGI_FILENAME_PATTERN = re.compile(
    r'^(?:S4_)?'
    r'(?P<type>[0-9A-F]{8})(?P<sep>[-_!])'
    r'(?P<group>[0-9A-F]{8})(?P=sep)'
    r'(?P<instance>[0-9A-F]{16})'
    r'(?:\.|$)',
    re.IGNORECASE,
)


def key_from_filename(filename: str) -> Optional[ResourceKey]:
    """
    Parse a resource key from a loose TGI file name.

    Args:
        filename: File name (a full path is reduced to its base name)

    Returns:
        ResourceKey, or None when the name is not a TGI name

    Example:
        >>> key_from_filename("6017E896-00000000-0000000012345678.xml")
        ResourceKey(type=1612179606, group=0, instance=305419896)
    """
    match = TGI_FILENAME_PATTERN.match(os.path.basename(filename))
    if not match:
        return None
    return ResourceKey(
        int(match.group('type'), 16),
        int(match.group('group'), 16),
        int(match.group('instance'), 16),
    )


# ==============================================================================
# LOOSE EXTRACTOR CLASS
# ==============================================================================
class LooseFileExtractor(BaseExtractor):
    """
    Treats a single TGI-named file as a one-entry source.

    Raises:
        UnrecognizedFilename: When opened on a file without a TGI name
    """

    def __init__(self, archive_path: str = None):
        self._data = b""
        super().__init__(archive_path)

    @property
    def format_name(self) -> str:
        return "Loose TGI File"

    @property
    def supported_extensions(self) -> List[str]:
        # Any extension; the name carries the key
        return []

    @property
    def extractor_id(self) -> str:
        return "loose"

    def detect(self, path: str) -> bool:
        return os.path.isfile(path) and key_from_filename(path) is not None

    def open(self, archive_path: str) -> bool:
        key = key_from_filename(archive_path)
        if key is None:
            raise UnrecognizedFilename(os.path.basename(archive_path))

        with open(archive_path, 'rb') as f:
            self._data = f.read()

        self.archive_path = archive_path
        self._entries = [IndexEntry(key=key, size=len(self._data))]
        self._is_open = True
        return True

    def close(self):
        self._data = b""
        self._entries = []
        self._is_open = False

    def get_entry_data(self, entry: IndexEntry) -> bytes:
        return self._data


# Register this extractor (after DBPF so .package files are claimed first)
ExtractorRegistry.register(LooseFileExtractor)
