# ==============================================================================
# EXTRACTORS MODULE INIT
# ==============================================================================
# Resource source readers for Resource Harvester.
#
# This package contains:
#   - BaseExtractor: Abstract base class defining the interface
#   - ExtractorRegistry: Registry for picking an extractor for a path
#   - DBPFExtractor: Sims 4 .package files
#   - LooseFileExtractor: Single files named by their TGI key
#   - DBPFWriter: Builds packages (tests, re-packing)
#
# Usage:
#   from resource_harvester.extractors import get_extractor
#   extractor = get_extractor("Mod.package")
#   if extractor:
#       with extractor:
#           entries = extractor.extract_entries()
# ==============================================================================

# Import base classes first (required by other extractors)
from .base_extractor import (
    BaseExtractor, ExtractorRegistry, IndexEntry, ResourceEntry, ResourceFilter,
    is_package_path,
)

# Import specific extractors (each one registers itself, packages first)
from .dbpf_extractor import DBPFExtractor, extract, read_index
from .loose_extractor import LooseFileExtractor, key_from_filename
from .dbpf_writer import DBPFWriter

__all__ = [
    # Base classes
    'BaseExtractor',
    'ExtractorRegistry',
    'IndexEntry',
    'ResourceEntry',
    'ResourceFilter',
    'is_package_path',

    # Sources
    'DBPFExtractor',
    'LooseFileExtractor',
    'DBPFWriter',
    'extract',
    'read_index',
    'key_from_filename',
]


# ==============================================================================
# CONVENIENCE FUNCTION
# ==============================================================================
def get_extractor(path: str) -> BaseExtractor:
    """
    Get an opened extractor for the given file.

    Returns:
        An opened extractor, or None if no extractor claims the file
    """
    return ExtractorRegistry.get_extractor_for_file(path)
