# ==============================================================================
# BASE EXTRACTOR MODULE
# ==============================================================================
# Abstract base class that all resource source readers implement, plus an
# ExtractorRegistry for picking the right one for a path.
#
# A source is either a package (many keyed resources) or a single loose
# resource file whose key is encoded in its file name. Both produce the same
# ResourceEntry objects, so the rest of the pipeline never cares which one a
# resource came from.
#
# To add a new source kind:
#   1. Create a new extractor class that inherits from BaseExtractor
#   2. Implement all abstract methods
#   3. Register the extractor with ExtractorRegistry
#
# Example:
#   extractor = ExtractorRegistry.get_extractor_for_file("Mod.package")
#   with extractor:
#       for entry in extractor.iter_entries():
#           print(entry.key, entry.decoded.kind)
# ==============================================================================

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional

from ..core.errors import DecodeError
from ..core.keys import ResourceKey
from ..parsers.codec import Decoded, RawFallback, decode_entry


# Filter over (type, group, instance); True keeps the entry
ResourceFilter = Callable[[int, int, int], bool]


# ==============================================================================
# DATA CLASSES
# ==============================================================================
@dataclass
class IndexEntry:
    """
    One record of a source's index.

    Attributes:
        key (ResourceKey):      Declared key of the resource
        position (int):         Byte offset of the stored data
        size (int):             Stored (possibly compressed) size
        decompressed_size (int): Size after decompression
        compression (int):      Compression type code
        committed (int):        Committed flag from the index
    """
    key: ResourceKey
    position: int = 0
    size: int = 0
    decompressed_size: int = 0
    compression: int = 0
    committed: int = 1

    def __post_init__(self):
        # Default decompressed_size to size if not specified
        if self.decompressed_size == 0:
            self.decompressed_size = self.size


@dataclass(frozen=True)
class ResourceEntry:
    """
    A decompressed resource and its decode result.

    Attributes:
        key (ResourceKey): Declared key
        payload (bytes):   Decompressed bytes
        decoded (Decoded): Typed value, or RawFallback when decoding failed
    """
    key: ResourceKey
    payload: bytes
    decoded: Decoded

    @property
    def is_raw_fallback(self) -> bool:
        return isinstance(self.decoded, RawFallback)


# ==============================================================================
# BASE EXTRACTOR ABSTRACT CLASS
# ==============================================================================
class BaseExtractor(ABC):
    """
    Abstract base class for resource source readers.

    The typical workflow is:
        1. Create extractor instance
        2. Open a source with open()
        3. List the index with list_entries()
        4. Pull typed entries with extract_entries() or iter_entries()
        5. Close with close()

    Or use as a context manager:
        with DBPFExtractor("Mod.package") as ext:
            entries = ext.extract_entries()
    """

    def __init__(self, archive_path: str = None):
        """
        Initialize the extractor.

        Args:
            archive_path: Optional path to a source to open immediately
        """
        self.archive_path = archive_path
        self._is_open = False
        self._entries: List[IndexEntry] = []

        if archive_path:
            self.open(archive_path)

    # ==========================================================================
    # ABSTRACT PROPERTIES - Must be implemented by subclasses
    # ==========================================================================

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Human-readable name of the source format (e.g. "DBPF Package")."""

    @property
    @abstractmethod
    def supported_extensions(self) -> List[str]:
        """File extensions this extractor handles, including the dot."""

    @property
    @abstractmethod
    def extractor_id(self) -> str:
        """Short unique id (e.g. "dbpf", "loose")."""

    # ==========================================================================
    # ABSTRACT METHODS - Must be implemented by subclasses
    # ==========================================================================

    @abstractmethod
    def detect(self, path: str) -> bool:
        """
        Check if this extractor can handle the given file.

        Args:
            path: Path to a file

        Returns:
            True if this extractor can handle the path, False otherwise
        """

    @abstractmethod
    def open(self, archive_path: str) -> bool:
        """
        Open a source for reading and populate self._entries.

        Raises:
            DecodeError: If the source is not in this extractor's format
            OSError: If the file cannot be read
        """

    @abstractmethod
    def close(self):
        """Release the source."""

    @abstractmethod
    def get_entry_data(self, entry: IndexEntry) -> bytes:
        """
        Get the decompressed bytes of one index entry.

        Raises:
            DecodeError: If the stored bytes cannot be decompressed
        """

    # ==========================================================================
    # COMMON METHODS
    # ==========================================================================

    def list_entries(self) -> List[IndexEntry]:
        """Get the index of the open source."""
        return list(self._entries)

    def iter_entries(self, resource_filter: Optional[ResourceFilter] = None) -> Iterator[ResourceEntry]:
        """
        Yield decoded entries in index order.

        An entry whose data cannot be decompressed or decoded is still
        yielded, as a RawFallback carrying whatever bytes were available.

        Args:
            resource_filter: Optional (type, group, instance) -> bool
        """
        if not self._is_open:
            raise RuntimeError("Source is not open")

        for index_entry in self._entries:
            key = index_entry.key
            if resource_filter and not resource_filter(key.type, key.group, key.instance):
                continue
            yield self._decode_index_entry(index_entry)

    def extract_entries(self, resource_filter: Optional[ResourceFilter] = None) -> List[ResourceEntry]:
        """Decode all (filtered) entries into a list."""
        return list(self.iter_entries(resource_filter))

    def _decode_index_entry(self, index_entry: IndexEntry) -> ResourceEntry:
        try:
            payload = self.get_entry_data(index_entry)
        except DecodeError as e:
            raw = self.get_stored_data(index_entry)
            return ResourceEntry(index_entry.key, raw, RawFallback(raw, e.message))

        return ResourceEntry(index_entry.key, payload, decode_entry(index_entry.key, payload))

    def get_stored_data(self, entry: IndexEntry) -> bytes:
        """Bytes exactly as stored. Defaults to the decompressed data."""
        return self.get_entry_data(entry)

    def get_entry_count(self) -> int:
        """Get the total number of entries in the source."""
        return len(self._entries)

    def get_total_size(self) -> int:
        """Get the total decompressed size of all entries."""
        return sum(entry.decompressed_size for entry in self._entries)

    # ==========================================================================
    # CONTEXT MANAGER SUPPORT
    # ==========================================================================

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


# ==============================================================================
# EXTRACTOR REGISTRY
# ==============================================================================
class ExtractorRegistry:
    """
    Registry for managing available extractors.

    Usage:
        ExtractorRegistry.register(DBPFExtractor)
        extractor = ExtractorRegistry.get_extractor_for_file("Mod.package")
    """

    # Class-level storage for registered extractors, in registration order
    _extractors: Dict[str, type] = {}

    @classmethod
    def register(cls, extractor_class: type):
        """
        Register an extractor class.

        Args:
            extractor_class: Class that inherits from BaseExtractor
        """
        extractor_id = extractor_class().extractor_id
        cls._extractors[extractor_id] = extractor_class

    @classmethod
    def get_extractor_for_file(cls, file_path: str) -> Optional[BaseExtractor]:
        """
        Find and open an appropriate extractor for a file.

        Returns:
            An opened extractor instance, or None if no extractor claims the
            file (for example a loose file without a TGI name)

        Raises:
            DecodeError / OSError: If the claiming extractor cannot open it
        """
        for extractor_class in cls._extractors.values():
            extractor = extractor_class()
            if extractor.detect(file_path):
                return extractor_class(file_path)
        return None

    @classmethod
    def get_extractor_by_id(cls, extractor_id: str) -> Optional[type]:
        """Get an extractor class by its id."""
        return cls._extractors.get(extractor_id)

    @classmethod
    def get_all(cls) -> Dict[str, type]:
        """Get all registered extractors."""
        return cls._extractors.copy()

    @classmethod
    def list_supported_extensions(cls) -> List[str]:
        """Get all file extensions claimed by registered extractors."""
        extensions = []
        for extractor_class in cls._extractors.values():
            extensions.extend(extractor_class().supported_extensions)
        return sorted(set(extensions))


def is_package_path(path: str) -> bool:
    """Check whether a path names a package file."""
    return os.path.splitext(path)[1].lower() == ".package"
