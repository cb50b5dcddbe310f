# ==============================================================================
# PACKAGE CATALOGER MODULE
# ==============================================================================
# Builds a read-only, human-oriented index of a package's entries, grouped
# by category with a detail line and optional warnings per entry.
#
# Group labels:
#   - String Tables
#   - SimData
#   - Tuning
#   - <type name>   for images and other named binaries (e.g. "DdsImage")
#   - Unknown       for unsupported types
#
# Warnings appear only when an entry of a structured category (string table,
# SimData, tuning) failed to decode, which usually means it is corrupt.
#
# Usage:
#   cataloger = PackageCataloger()
#   index = cataloger.index_package("Mod.package")
#   print(cataloger.generate_report(index))
#   cataloger.save_index(index, "Mod.index.json", format="json")
# ==============================================================================

import csv
import json
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..extractors.base_extractor import ResourceEntry
from ..extractors.dbpf_extractor import DBPFExtractor
from ..parsers.codec import RawFallback
from ..parsers.image_parser import ImageInfo
from ..parsers.simdata_parser import SimDataDocument
from ..parsers.stbl_parser import StringTable, locale_code_for_instance, LOCALES
from ..parsers.tuning_parser import TuningDocument
from .keys import format_resource_key
from .taxonomy import (
    CategoryKind, ResourceCategory, GENERIC_TUNING_TYPE, SIMDATA_GROUPS, classify,
)


STRING_TABLES_LABEL = "String Tables"
SIMDATA_LABEL = "SimData"
TUNING_LABEL = "Tuning"
UNKNOWN_LABEL = "Unknown"

# Warnings for structured entries that did not decode
CORRUPT_WARNINGS = {
    CategoryKind.STRING_TABLE: "Not a valid string table (it may be corrupt)",
    CategoryKind.STRUCTURED_DATA: "Not a valid SimData (it may be corrupt)",
    CategoryKind.TUNING: "Not a valid tuning file (it may be corrupt)",
}


# ==============================================================================
# DATA CLASSES
# ==============================================================================

@dataclass
class IndexedEntry:
    """
    One row of a package index.

    Attributes:
        id (int):          Position of the entry in the package
        key_string (str):  Key as TTTTTTTT-GGGGGGGG-IIIIIIIIIIIIIIII
        detail_text (str): Category-specific description
        warnings (list):   Warning strings, or None when there are none
        size (int):        Decompressed payload size
    """
    id: int
    key_string: str
    detail_text: str
    warnings: Optional[List[str]] = None
    size: int = 0

    def to_dict(self) -> dict:
        result = {
            'id': self.id,
            'key': self.key_string,
            'details': self.detail_text,
            'size': self.size,
        }
        if self.warnings:
            result['warnings'] = list(self.warnings)
        return result


@dataclass
class IndexGroup:
    """Entries that share a group label."""
    category: str
    entries: List[IndexedEntry] = field(default_factory=list)


@dataclass
class PackageIndex:
    """
    Index of a whole package.

    Attributes:
        source (str):  Package path (or "" for in-memory data)
        size (int):    Number of entries
        groups (list): IndexGroup objects in first-seen order
    """
    source: str = ""
    size: int = 0
    groups: List[IndexGroup] = field(default_factory=list)

    def iter_entries(self):
        for group in self.groups:
            for entry in group.entries:
                yield group.category, entry

    def to_dict(self) -> dict:
        return {
            'source': self.source,
            'size': self.size,
            'groups': [
                {'group': group.category, 'entries': [e.to_dict() for e in group.entries]}
                for group in self.groups
            ],
        }


# ==============================================================================
# LABELS AND DETAILS
# ==============================================================================

def category_label(category: ResourceCategory) -> str:
    """Collapse a category into its display group label."""
    if category.kind == CategoryKind.STRING_TABLE:
        return STRING_TABLES_LABEL
    if category.kind == CategoryKind.STRUCTURED_DATA:
        return SIMDATA_LABEL
    if category.kind == CategoryKind.TUNING:
        return TUNING_LABEL
    if category.kind in (CategoryKind.IMAGE, CategoryKind.RAW_BINARY):
        return category.name
    return UNKNOWN_LABEL


def entry_details(entry: ResourceEntry, category: Optional[ResourceCategory] = None) -> str:
    """
    Describe an entry for the index.

    Examples:
        'English String Table (Strings: 12)'
        'Buff SimData (creator:buff_Fun)'
        'Buff Tuning (creator:buff_Fun)'
        'Generic Tuning (Unnamed)'
    """
    category = category or classify(entry.key)
    decoded = entry.decoded

    if category.kind == CategoryKind.STRING_TABLE:
        locale = LOCALES.get(locale_code_for_instance(entry.key.instance), "Unknown")
        count = len(decoded) if isinstance(decoded, StringTable) else 0
        return f"{locale} String Table (Strings: {count})"

    if category.kind == CategoryKind.STRUCTURED_DATA:
        group_name = SIMDATA_GROUPS.get(entry.key.group, "Unknown")
        name = decoded.name if isinstance(decoded, SimDataDocument) and decoded.name else "Unnamed"
        return f"{group_name} SimData ({name})"

    if category.kind == CategoryKind.TUNING:
        tuning_name = "Generic" if entry.key.type == GENERIC_TUNING_TYPE else category.name
        name = None
        if isinstance(decoded, TuningDocument):
            name = decoded.metadata.declared_name
        return f"{tuning_name} Tuning ({name or 'Unnamed'})"

    if category.kind == CategoryKind.IMAGE:
        if isinstance(decoded, ImageInfo):
            return f"{category.name} ({decoded.dimensions} {decoded.format})"
        return category.name

    if category.kind == CategoryKind.RAW_BINARY:
        return category.name

    return UNKNOWN_LABEL


def entry_warnings(entry: ResourceEntry, category: Optional[ResourceCategory] = None) -> Optional[List[str]]:
    """Warnings for an entry, or None when it decoded as expected."""
    category = category or classify(entry.key)
    if isinstance(entry.decoded, RawFallback) and category.kind in CORRUPT_WARNINGS:
        return [CORRUPT_WARNINGS[category.kind]]
    return None


def summarize(entries: List[ResourceEntry]) -> List[IndexGroup]:
    """
    Group entries by display label, with details and warnings.

    Args:
        entries: Decoded entries, in package order

    Returns:
        IndexGroup list in the order each label first appears
    """
    groups: Dict[str, IndexGroup] = {}

    for entry_id, entry in enumerate(entries):
        category = classify(entry.key)
        label = category_label(category)

        if label not in groups:
            groups[label] = IndexGroup(label)

        groups[label].entries.append(IndexedEntry(
            id=entry_id,
            key_string=format_resource_key(entry.key, "-"),
            detail_text=entry_details(entry, category),
            warnings=entry_warnings(entry, category),
            size=len(entry.payload),
        ))

    return list(groups.values())


# ==============================================================================
# PACKAGE CATALOGER CLASS
# ==============================================================================
class PackageCataloger:
    """
    Indexes packages and exports the index.

    This class provides methods for:
    - Building an index from a package file or decoded entries
    - Generating a text report
    - Saving the index as txt, json or csv
    """

    def index_entries(self, entries: List[ResourceEntry], source: str = "") -> PackageIndex:
        return PackageIndex(source=source, size=len(entries), groups=summarize(entries))

    def index_package(self, package_path: str) -> PackageIndex:
        """
        Read and index a package.

        Raises:
            DecodeError: If the file is not a valid package
            OSError: If the file cannot be read
        """
        with DBPFExtractor(package_path) as package:
            entries = package.extract_entries()
        return self.index_entries(entries, source=package_path)

    # ==========================================================================
    # REPORTING
    # ==========================================================================

    def generate_report(self, index: PackageIndex) -> str:
        """
        Generate a text report of a package index.

        Returns:
            Formatted report string
        """
        lines = ["=" * 60, "PACKAGE INDEX", "=" * 60, ""]

        lines.append("SUMMARY")
        lines.append("-" * 40)
        if index.source:
            lines.append(f"Package: {index.source}")
        lines.append(f"Total entries: {index.size}")

        warning_count = sum(1 for _, entry in index.iter_entries() if entry.warnings)
        lines.append(f"Entries with warnings: {warning_count}")
        lines.append("")

        for group in index.groups:
            lines.append(f"{group.category.upper()} ({len(group.entries)})")
            lines.append("-" * 40)
            for entry in group.entries:
                lines.append(f"  [{entry.id}] {entry.key_string}  {entry.detail_text}")
                for warning in entry.warnings or []:
                    lines.append(f"      ! {warning}")
            lines.append("")

        return "\n".join(lines)

    def save_index(self, index: PackageIndex, output_file: str, format: str = 'txt'):
        """
        Save a package index to a file.

        Args:
            index: PackageIndex to save
            output_file: Output file path
            format: Output format ('txt', 'json', 'csv')
        """
        folder = os.path.dirname(output_file)
        if folder:
            os.makedirs(folder, exist_ok=True)

        if format == 'txt':
            with open(output_file, 'w', encoding='utf-8') as f:
                f.write(self.generate_report(index))

        elif format == 'json':
            with open(output_file, 'w', encoding='utf-8') as f:
                json.dump(index.to_dict(), f, indent=2, ensure_ascii=False)

        elif format == 'csv':
            with open(output_file, 'w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)
                writer.writerow(['id', 'group', 'key', 'details', 'size', 'warnings'])
                for category, entry in index.iter_entries():
                    writer.writerow([entry.id, category, entry.key_string, entry.detail_text,
                                     entry.size, "; ".join(entry.warnings or [])])
        else:
            raise ValueError(f"Unknown index format: {format}")

        print(f"[INFO] Saved index to {output_file}")

    # ==========================================================================
    # STATISTICS
    # ==========================================================================

    def get_statistics(self, index: PackageIndex) -> dict:
        """
        Get counts and sizes per group.

        Returns:
            Dictionary with statistics
        """
        by_group = {}
        total_size = 0

        for category, entry in index.iter_entries():
            if category not in by_group:
                by_group[category] = {'count': 0, 'size': 0}
            by_group[category]['count'] += 1
            by_group[category]['size'] += entry.size
            total_size += entry.size

        return {
            'total_count': index.size,
            'total_size': total_size,
            'total_size_mb': round(total_size / (1024 * 1024), 2),
            'warnings': sum(1 for _, entry in index.iter_entries() if entry.warnings),
            'by_group': by_group,
        }
