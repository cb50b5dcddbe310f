# ==============================================================================
# RESOURCE HARVESTER - SOURCE PACKAGE
# ==============================================================================
# Main package for Resource Harvester.
#
# Subpackages:
#   - core: Keys, hashing, conversion, rename/clone, indexing, configuration
#   - extractors: Package (.package) and loose TGI file readers
#   - parsers: Tuning, SimData, string table and image payloads
#   - gui: PyQt6 prompts for the rename/clone workflow
#
# Entry points:
#   - main.py: Launcher
#   - resource_harvester/cli.py: Command-line interface
# ==============================================================================

__version__ = "1.0.0"
__author__ = "Crow"
__description__ = "Sims 4 package to project converter and resource toolkit"

# Convenience imports
from .core import (
    HarvestSession, PackageCataloger, materialize_folder, rename_or_clone,
)
from .extractors import ExtractorRegistry, get_extractor

__all__ = [
    '__version__',
    '__author__',
    '__description__',

    # Core
    'HarvestSession',
    'PackageCataloger',
    'materialize_folder',
    'rename_or_clone',

    # Extractors
    'ExtractorRegistry',
    'get_extractor',
]
