# ==============================================================================
# FOLDER RECLASSIFIER MODULE
# ==============================================================================
# Converts a folder of packages and loose TGI files into a project tree.
#
# Output layout (under the destination):
#   Packages/<package name>/<Tuning class>/<name>.xml
#   Packages/<package name>/<Tuning class>/<name>.SimData.xml     (paired)
#   Packages/<package name>/<SimData group>/<key>.SimData.xml     (unpaired)
#   Packages/<package name>/StringTable/<Locale>.stbl.json
#   Packages/<package name>/<Type name>/<key>.dds|.png|.binary
#   Packages/<package name>/Unsupported/<TTTTTTTT>/<key>.binary
#   Loose Files/...                                               (same shape)
#
# Order matters: every package is read twice, tuning entries first, so each
# tuning's name is in the run's correlation map before its SimData (same
# instance id) is processed. The SimData then takes the tuning's name and is
# written beside it.
#
# Failures are per file: a source that cannot be read or decoded is reported
# as a warning and skipped, and the run carries on.
#
# Usage:
#   report = materialize_folder("E:/Mods/**/*", "E:/Project")
#   print(len(report.written), "files written")
# ==============================================================================

import glob
import json
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..extractors.base_extractor import (
    BaseExtractor, ExtractorRegistry, ResourceEntry, is_package_path,
)
from ..parsers.simdata_parser import SimDataDocument, rename_simdata_instance
from ..parsers.stbl_parser import StringTable
from ..parsers.tuning_parser import KeyOverride, TuningDocument, infer_key, insert_override
from .cataloger import CORRUPT_WARNINGS, category_label
from .correlation import InstanceCorrelationMap
from .destination import append_folder, resolve_path
from .errors import DecodeError, HarvesterError
from .hasher import hash_bytes_md5
from .keys import ResourceKey, format_resource_key, format_resource_type
from .prompts import YES, CANCEL
from .session import HarvestSession
from .taxonomy import CategoryKind, PNG_IMAGE_TYPE, ResourceCategory, classify, is_tuning_type


NON_EMPTY_DESTINATION_MESSAGE = (
    "The chosen output directory is not empty. "
    "Are you sure you want to generate your project files here?"
)

SIMDATA_SUFFIX = "_SimData"


# ==============================================================================
# REPORT DATA CLASSES
# ==============================================================================

@dataclass
class WrittenResource:
    """
    A file written by a run.

    Attributes:
        key (ResourceKey): Key of the resource
        category (str):    Group label ("Tuning", "SimData", ...)
        source (str):      Package or loose file it came from
        destination (str): Path that was written
        size (int):        Bytes written
        hash_md5 (str):    MD5 of the bytes written
    """
    key: ResourceKey
    category: str
    source: str
    destination: str
    size: int = 0
    hash_md5: str = ""

    def to_record(self) -> dict:
        return {
            'resource_key': format_resource_key(self.key, "-"),
            'category': self.category,
            'source_path': self.source,
            'destination_path': self.destination,
            'hash_md5': self.hash_md5,
            'size': self.size,
        }


@dataclass
class FileWarning:
    """A warning about one source file (and optionally one resource in it)."""
    path: str
    message: str
    key: Optional[ResourceKey] = None

    def __str__(self):
        if self.key is not None:
            return f"{self.path} [{format_resource_key(self.key, '-')}]: {self.message}"
        return f"{self.path}: {self.message}"


@dataclass
class MaterializeReport:
    """
    Outcome of a conversion run.

    Attributes:
        source_pattern (str):  Glob that was converted
        destination (str):     Project folder
        sources (list):        Source files that were read
        skipped (list):        Source files that were not resources, or failed
        written (list):        WrittenResource for every file written
        warnings (list):       FileWarning list
        cancelled (bool):      True when the user declined to continue
    """
    source_pattern: str
    destination: str
    sources: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    written: List[WrittenResource] = field(default_factory=list)
    warnings: List[FileWarning] = field(default_factory=list)
    cancelled: bool = False
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    def written_for(self, source: str) -> List[WrittenResource]:
        """Files written from one source."""
        return [item for item in self.written if item.source == source]

    def warnings_for(self, source: str) -> List[FileWarning]:
        return [item for item in self.warnings if item.path == source]

    def file_warnings(self) -> Dict[str, List[str]]:
        """Warning messages grouped by source path."""
        grouped: Dict[str, List[str]] = {}
        for warning in self.warnings:
            text = warning.message
            if warning.key is not None:
                text = f"{format_resource_key(warning.key, '-')}: {text}"
            grouped.setdefault(warning.path, []).append(text)
        return grouped

    def to_dict(self) -> dict:
        return {
            'sourcePattern': self.source_pattern,
            'destination': self.destination,
            'cancelled': self.cancelled,
            'startedAt': self.started_at.isoformat(),
            'finishedAt': self.finished_at.isoformat() if self.finished_at else None,
            'sources': list(self.sources),
            'skipped': list(self.skipped),
            'writtenResources': [
                {
                    'key': format_resource_key(item.key, "-"),
                    'category': item.category,
                    'source': item.source,
                    'destination': item.destination,
                    'size': item.size,
                }
                for item in self.written
            ],
            'fileWarnings': [
                {'path': path, 'warnings': messages}
                for path, messages in self.file_warnings().items()
            ],
        }

    def save(self, output_file: str):
        """Save the report as JSON."""
        folder = os.path.dirname(output_file)
        if folder:
            os.makedirs(folder, exist_ok=True)
        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        print(f"[INFO] Saved report to {output_file}")


# ==============================================================================
# HELPERS
# ==============================================================================

def is_non_empty_folder(path: str) -> bool:
    if not os.path.isdir(path):
        return False
    return any(not name.startswith(".") for name in os.listdir(path))


def _expand_pattern(source_pattern: str) -> str:
    # A plain folder means "everything under it"
    if os.path.isdir(source_pattern):
        return os.path.join(source_pattern, "**", "*")
    return source_pattern


def _write_bytes(path: str, data: bytes):
    with open(path, 'wb') as f:
        f.write(data)


def _strip_extension(path: str, extension: str) -> str:
    if path.lower().endswith(extension.lower()):
        return path[:-len(extension)]
    return os.path.splitext(path)[0]


# ==============================================================================
# FOLDER RECLASSIFIER CLASS
# ==============================================================================
class FolderReclassifier:
    """
    Runs folder-to-project conversions.

    Each call to materialize() is one run with its own correlation map.

    Attributes:
        session (HarvestSession): Configuration, prompter and history
    """

    def __init__(self, session: Optional[HarvestSession] = None):
        self.session = session or HarvestSession()
        self._handlers = {
            CategoryKind.TUNING: self._write_tuning,
            CategoryKind.STRUCTURED_DATA: self._write_simdata,
            CategoryKind.STRING_TABLE: self._write_string_table,
            CategoryKind.IMAGE: self._write_image,
            CategoryKind.RAW_BINARY: self._write_binary,
            CategoryKind.UNSUPPORTED: self._write_unsupported,
        }

        # Per-run state, reset by materialize()
        self._correlation: Optional[InstanceCorrelationMap] = None
        self._report: Optional[MaterializeReport] = None

    @property
    def config(self):
        return self.session.config

    # ==========================================================================
    # RUN
    # ==========================================================================

    def materialize(self, source_pattern: str, dest_root: str,
                    confirm_non_empty: Optional[bool] = None,
                    progress_callback: Callable[[int, int, str], None] = None) -> MaterializeReport:
        """
        Convert every matching source into the project at dest_root.

        Args:
            source_pattern: Glob pattern (recursive '**' allowed) or a folder
            dest_root: Project folder (created if needed)
            confirm_non_empty: Ask before writing into a non-empty folder;
                               None uses the configuration
            progress_callback: Optional callback(current, total, filename)

        Returns:
            MaterializeReport; cancelled and empty when the user declined
        """
        report = MaterializeReport(source_pattern=source_pattern, destination=dest_root)

        if confirm_non_empty is None:
            confirm_non_empty = self.config.confirm_non_empty_destination

        if confirm_non_empty and is_non_empty_folder(dest_root):
            choice = self.session.prompter.confirm(NON_EMPTY_DESTINATION_MESSAGE, (YES, CANCEL))
            if choice != YES:
                print("[INFO] Conversion cancelled")
                report.cancelled = True
                report.finished_at = datetime.now()
                return report

        os.makedirs(dest_root, exist_ok=True)

        matches = sorted(
            path for path in glob.glob(_expand_pattern(source_pattern), recursive=True)
            if os.path.isfile(path)
        )
        # Never read back what this run writes
        dest_abs = os.path.abspath(dest_root) + os.sep
        matches = [path for path in matches if not os.path.abspath(path).startswith(dest_abs)]

        database = self.session.database
        run = database.start_run(source_pattern, dest_root) if database else None

        self._correlation = self.session.new_correlation_map()
        self._report = report
        try:
            total = len(matches)
            for idx, source_path in enumerate(matches):
                if progress_callback:
                    progress_callback(idx + 1, total, source_path)
                self._process_source(source_path, dest_root)
        finally:
            self._correlation = None
            self._report = None
            report.finished_at = datetime.now()

            if run is not None:
                database.add_resources_bulk(run.id, [item.to_record() for item in report.written])
                database.finish_run(
                    run.id, "completed",
                    sources_processed=len(report.sources),
                    resources_written=len(report.written),
                    skipped_sources=len(report.skipped),
                    warnings=[str(w) for w in report.warnings],
                )

        print(f"[INFO] Converted {len(report.sources)} source(s): "
              f"{len(report.written)} file(s) written, "
              f"{len(report.skipped)} skipped, {len(report.warnings)} warning(s)")
        return report

    # ==========================================================================
    # SOURCES
    # ==========================================================================

    def _warn(self, path: str, message: str, key: Optional[ResourceKey] = None):
        warning = FileWarning(path, message, key)
        self._report.warnings.append(warning)
        print(f"[WARN] {warning}")

    def _open_source(self, source_path: str) -> Optional[BaseExtractor]:
        try:
            extractor = ExtractorRegistry.get_extractor_for_file(source_path)
        except (HarvesterError, OSError) as e:
            self._warn(source_path, f"Could not read file: {e}")
            self._report.skipped.append(source_path)
            return None

        if extractor is None:
            # Not a package and not a TGI name: not a resource
            self.session.debug(f"Skipping {source_path}")
            self._report.skipped.append(source_path)
        return extractor

    def _process_source(self, source_path: str, dest_root: str):
        extractor = self._open_source(source_path)
        if extractor is None:
            return

        with extractor:
            if is_package_path(source_path):
                package_name = os.path.splitext(os.path.basename(source_path))[0]
                folder = append_folder(dest_root, self.config.packages_folder, package_name)

                tuning = extractor.iter_entries(lambda t, g, i: is_tuning_type(t))
                for entry in tuning:
                    self._process_resource(entry, folder, source_path)

                others = extractor.iter_entries(lambda t, g, i: not is_tuning_type(t))
                for entry in others:
                    self._process_resource(entry, folder, source_path)
            else:
                folder = append_folder(dest_root, self.config.loose_files_folder)
                for entry in extractor.iter_entries():
                    self._process_resource(entry, folder, source_path)

        self._report.sources.append(source_path)

    def _process_resource(self, entry: ResourceEntry, folder: str, source_path: str):
        category = classify(entry.key)
        try:
            self._handlers[category.kind](entry, category, folder, source_path)
        except OSError as e:
            self._warn(source_path, f"Could not write resource: {e}", entry.key)

    def _record(self, entry: ResourceEntry, category: ResourceCategory,
                source_path: str, destination: str, data: bytes):
        _write_bytes(destination, data)
        self._report.written.append(WrittenResource(
            key=entry.key,
            category=category_label(category),
            source=source_path,
            destination=destination,
            size=len(data),
            hash_md5=hash_bytes_md5(data),
        ))

    def _write_corrupt(self, entry: ResourceEntry, category: ResourceCategory, folder: str,
                       subfolder: List[str], extension: str, source_path: str):
        self._warn(source_path, CORRUPT_WARNINGS[category.kind], entry.key)
        dest = resolve_path(folder, subfolder, format_resource_key(entry.key, "_"), extension)
        self._record(entry, category, source_path, dest.resolved_path, entry.payload)

    # ==========================================================================
    # CATEGORY HANDLERS
    # ==========================================================================

    def _write_tuning(self, entry: ResourceEntry, category: ResourceCategory,
                      folder: str, source_path: str):
        subfolder = [category.name]
        decoded = entry.decoded
        if not isinstance(decoded, TuningDocument):
            self._write_corrupt(entry, category, folder, subfolder, "binary", source_path)
            return

        key = entry.key
        inferred = infer_key(decoded.metadata, self.session.class_bit_widths)

        # Only record the fields the file would otherwise get wrong
        override = KeyOverride(
            type=key.type if key.type != inferred.type else None,
            group=key.group if key.group != inferred.group else None,
            instance=key.instance if key.instance != inferred.instance else None,
        )
        text = insert_override(decoded.text, override) or decoded.text

        name = decoded.metadata.declared_name or self.config.unnamed_tuning_name
        dest = resolve_path(folder, subfolder, name, "xml")
        self._record(entry, category, source_path, dest.resolved_path, text.encode('utf-8'))

        self._correlation.record(key.instance, name, dest.resolved_path)

    def _write_simdata(self, entry: ResourceEntry, category: ResourceCategory,
                       folder: str, source_path: str):
        key = entry.key
        subfolder = [category.name] if category.name else ["SimData", format_resource_type(key.group)]

        decoded = entry.decoded
        if not isinstance(decoded, SimDataDocument):
            self._write_corrupt(entry, category, folder, subfolder, "binary", source_path)
            return

        extension = "SimData.binary" if decoded.is_binary else "SimData.xml"
        data = entry.payload

        paired = self._correlation.lookup(key.instance)
        if paired is None:
            dest = resolve_path(folder, subfolder, format_resource_key(key, "_"), extension)
            self._record(entry, category, source_path, dest.resolved_path, data)
            return

        if not decoded.is_binary:
            try:
                data = rename_simdata_instance(decoded.text, paired.canonical_name + SIMDATA_SUFFIX).encode('utf-8')
            except DecodeError as e:
                self._warn(source_path, f"SimData kept its original name: {e.message}", key)

        # Beside the tuning: same base name, SimData extension
        tuning_base = _strip_extension(paired.written_path, ".xml")
        destination = f"{tuning_base}.{extension}"
        if os.path.exists(destination):
            resolved = resolve_path(os.path.dirname(tuning_base), [],
                                    os.path.basename(tuning_base), extension)
            self._warn(source_path,
                       f"{os.path.basename(destination)} already exists; "
                       f"wrote {os.path.basename(resolved.resolved_path)} instead", key)
            destination = resolved.resolved_path

        self._record(entry, category, source_path, destination, data)

    def _write_string_table(self, entry: ResourceEntry, category: ResourceCategory,
                            folder: str, source_path: str):
        subfolder = ["StringTable"]
        decoded = entry.decoded
        if not isinstance(decoded, StringTable):
            self._write_corrupt(entry, category, folder, subfolder, "stbl", source_path)
            return

        stbl_json = decoded.to_json_dict(entry.key)
        dest = resolve_path(folder, subfolder, stbl_json["locale"], "stbl.json")
        data = json.dumps(stbl_json, indent=2, ensure_ascii=False).encode('utf-8')
        self._record(entry, category, source_path, dest.resolved_path, data)

    def _write_image(self, entry: ResourceEntry, category: ResourceCategory,
                     folder: str, source_path: str):
        extension = "png" if entry.key.type == PNG_IMAGE_TYPE else "dds"
        dest = resolve_path(folder, [category.name], format_resource_key(entry.key, "_"), extension)
        self._record(entry, category, source_path, dest.resolved_path, entry.payload)

    def _write_binary(self, entry: ResourceEntry, category: ResourceCategory,
                      folder: str, source_path: str):
        dest = resolve_path(folder, [category.name], format_resource_key(entry.key, "_"), "binary")
        self._record(entry, category, source_path, dest.resolved_path, entry.payload)

    def _write_unsupported(self, entry: ResourceEntry, category: ResourceCategory,
                           folder: str, source_path: str):
        subfolder = ["Unsupported", format_resource_type(entry.key.type)]
        dest = resolve_path(folder, subfolder, format_resource_key(entry.key, "_"), "binary")
        self._record(entry, category, source_path, dest.resolved_path, entry.payload)


# ==============================================================================
# CONVENIENCE FUNCTION
# ==============================================================================

def materialize_folder(source_pattern: str, dest_root: str,
                       session: Optional[HarvestSession] = None,
                       confirm_non_empty: Optional[bool] = None,
                       progress_callback: Callable[[int, int, str], None] = None) -> MaterializeReport:
    """
    Convert a folder of packages and loose TGI files into a project tree.

    Args:
        source_pattern: Glob pattern or folder
        dest_root: Project folder
        session: Session to use (a default one is created when None)
        confirm_non_empty: Ask before writing into a non-empty folder
        progress_callback: Optional callback(current, total, filename)

    Returns:
        MaterializeReport
    """
    return FolderReclassifier(session).materialize(
        source_pattern, dest_root,
        confirm_non_empty=confirm_non_empty,
        progress_callback=progress_callback,
    )
