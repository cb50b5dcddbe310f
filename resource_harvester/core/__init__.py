# ==============================================================================
# CORE MODULE INIT
# ==============================================================================
# Core engine modules for Resource Harvester.
#
# This package contains the fundamental building blocks:
#   - Keys / Taxonomy: Resource keys and type classification
#   - Hasher: FNV name hashing and instance id-spaces
#   - Destination / Correlation: Output paths and tuning/SimData pairing
#   - Reclassifier: Folder-to-project conversion
#   - Rewrite: Rename/clone of tuning files
#   - Cataloger: Package indexes and reports
#   - Config / Paths / Database / Session: Settings, locations, run history
#
# Usage:
#   from resource_harvester.core import HarvestSession, materialize_folder
#   report = materialize_folder("Mods", "Project", session=HarvestSession())
# ==============================================================================

# Leaf modules first; the cataloger, reclassifier and rewrite modules pull in
# the extractors and parsers, which import these back
from .keys import ResourceKey, format_hex, format_resource_key, format_resource_type, parse_hex
from .taxonomy import CategoryKind, ResourceCategory, classify, bit_width_for_class, is_tuning_type
from .hasher import fnv32, fnv64, reduce_bits, instance_for_name, tuning_instance_for_name
from .errors import (
    HarvesterError, DecodeError, UnrecognizedFilename, UserCancelled, PartialWriteFailure,
)
from .destination import DestinationPath, resolve_path, sanitize_name, append_folder
from .correlation import CorrelationEntry, InstanceCorrelationMap
from .paths import Paths
from .config import Config, DEFAULT_CONFIG, apply_defaults
from .database import Database, HarvestRun, HarvestedResource
from .prompts import Prompter, ConsolePrompter, AutoPrompter, YES, CANCEL
from .session import HarvestSession

from .cataloger import PackageCataloger, PackageIndex, IndexGroup, IndexedEntry, summarize
from .reclassifier import (
    FolderReclassifier, MaterializeReport, WrittenResource, FileWarning, materialize_folder,
)
from .rewrite import (
    IdentityRewriteWorkflow, RewriteResult, RewriteState, RewriteStatus,
    rename_or_clone, override_key,
)

__all__ = [
    # Keys and taxonomy
    'ResourceKey',
    'format_hex',
    'format_resource_key',
    'format_resource_type',
    'parse_hex',
    'CategoryKind',
    'ResourceCategory',
    'classify',
    'bit_width_for_class',
    'is_tuning_type',

    # Hashing
    'fnv32',
    'fnv64',
    'reduce_bits',
    'instance_for_name',
    'tuning_instance_for_name',

    # Errors
    'HarvesterError',
    'DecodeError',
    'UnrecognizedFilename',
    'UserCancelled',
    'PartialWriteFailure',

    # Destinations
    'DestinationPath',
    'resolve_path',
    'sanitize_name',
    'append_folder',
    'CorrelationEntry',
    'InstanceCorrelationMap',

    # Configuration and session
    'Paths',
    'Config',
    'DEFAULT_CONFIG',
    'apply_defaults',
    'Database',
    'HarvestRun',
    'HarvestedResource',
    'Prompter',
    'ConsolePrompter',
    'AutoPrompter',
    'YES',
    'CANCEL',
    'HarvestSession',

    # Cataloging
    'PackageCataloger',
    'PackageIndex',
    'IndexGroup',
    'IndexedEntry',
    'summarize',

    # Conversion
    'FolderReclassifier',
    'MaterializeReport',
    'WrittenResource',
    'FileWarning',
    'materialize_folder',

    # Rename / clone
    'IdentityRewriteWorkflow',
    'RewriteResult',
    'RewriteState',
    'RewriteStatus',
    'rename_or_clone',
    'override_key',
]
