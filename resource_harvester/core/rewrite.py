# ==============================================================================
# IDENTITY REWRITE MODULE
# ==============================================================================
# Renames or clones a tuning file, and its SimData companion if it has one.
#
# Workflow states:
#   IDLE -> LOADED -> AWAITING_NAME -> VALIDATED -> REWRITTEN -> WRITTEN/RENAMED
#
#   LOADED:         tuning file read; companion detected (<base>.SimData.xml)
#   AWAITING_NAME:  user asked for a new name (pre-filled with the current one)
#   VALIDATED:      name is new; overwrite of an existing target confirmed
#   REWRITTEN:      n and s set on the root; instance re-hashed
#   WRITTEN:        clone written next to the original
#   RENAMED:        original moved, then rewritten in place
#
# Nothing is written before the final step, so cancelling at a prompt leaves
# the disk untouched. A companion that fails after the tuning was written is
# reported as a PartialWriteFailure on the result.
#
# Usage:
#   result = rename_or_clone("Buff/buff_Fun.xml", "clone", session)
#   if result.status == RewriteStatus.PARTIAL:
#       print(result.error)
# ==============================================================================

import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..parsers.simdata_parser import rename_simdata_instance
from ..parsers.tuning_parser import (
    KeyOverride, TuningDocument, TuningParser, insert_override, rewrite_root_identity,
)
from .destination import sanitize_name
from .errors import DecodeError, HarvesterError, PartialWriteFailure, UserCancelled
from .hasher import tuning_instance_for_name
from .prompts import YES, CANCEL
from .session import HarvestSession


CLONE = "clone"
RENAME = "rename"
MODES = (CLONE, RENAME)

OVERRIDE_KINDS = ("type", "group", "instance")

NAME_PROMPT = "Name will be hashed for a new instance."
SAME_NAME_MESSAGE = "Cannot use current filename."
OVERWRITE_MESSAGE = "Tuning file with this name already exists. Do you want to overwrite it?"
CLONE_ONTO_SOURCE_MESSAGE = "A clone cannot replace the file it was cloned from."

COMPANION_EXTENSION = ".SimData.xml"
COMPANION_SUFFIX = "_SimData"

_XML_EXTENSION = re.compile(r'\.xml$', re.IGNORECASE)


class RewriteState(Enum):
    IDLE = "Idle"
    LOADED = "Loaded"
    AWAITING_NAME = "AwaitingName"
    VALIDATED = "Validated"
    REWRITTEN = "Rewritten"
    WRITTEN = "Written"
    RENAMED = "Renamed"


class RewriteStatus(Enum):
    WRITTEN = "written"      # clone finished
    RENAMED = "renamed"      # rename finished
    CANCELLED = "cancelled"  # user dismissed or declined a prompt
    ABORTED = "aborted"      # source missing or not a tuning file
    PARTIAL = "partial"      # tuning written, companion not


@dataclass
class RewriteResult:
    """
    Outcome of a rename or clone.

    Attributes:
        status (RewriteStatus):  How the workflow ended
        mode (str):              "rename" or "clone"
        source_path (str):       Tuning file the workflow started from
        target_path (str):       Tuning file written (None if nothing was)
        companion_source (str):  SimData companion found, if any
        companion_target (str):  SimData companion written, if any
        old_name (str):          Declared name before the rewrite
        new_name (str):          Declared name after the rewrite
        new_instance (int):      Re-hashed instance id
        error (HarvesterError):  UserCancelled, DecodeError or PartialWriteFailure
    """
    status: RewriteStatus
    mode: str
    source_path: str
    target_path: Optional[str] = None
    companion_source: Optional[str] = None
    companion_target: Optional[str] = None
    old_name: Optional[str] = None
    new_name: Optional[str] = None
    new_instance: Optional[int] = None
    error: Optional[HarvesterError] = None

    @property
    def succeeded(self) -> bool:
        return self.status in (RewriteStatus.WRITTEN, RewriteStatus.RENAMED)


def companion_path_for(tuning_path: str) -> str:
    """Path of the SimData companion that belongs with a tuning file."""
    if _XML_EXTENSION.search(tuning_path):
        return _XML_EXTENSION.sub(COMPANION_EXTENSION, tuning_path)
    return tuning_path + COMPANION_EXTENSION


def _write_text(path: str, text: str):
    with open(path, 'wb') as f:
        f.write(text.encode('utf-8'))


def _read_text(path: str) -> str:
    with open(path, 'rb') as f:
        return f.read().decode('utf-8')


# ==============================================================================
# IDENTITY REWRITE WORKFLOW CLASS
# ==============================================================================
class IdentityRewriteWorkflow:
    """
    One rename or clone of a tuning file.

    The workflow object is single use: create it, call run(), read the
    result. `state` tracks how far it got.

    Attributes:
        path (str):               Tuning file to rewrite
        mode (str):               "rename" or "clone"
        session (HarvestSession): Prompter and class bit widths
        state (RewriteState):     Current state
    """

    def __init__(self, path: str, mode: str, session: Optional[HarvestSession] = None):
        if mode not in MODES:
            raise ValueError(f"Unknown rewrite mode: {mode}")
        self.path = path
        self.mode = mode
        self.session = session or HarvestSession()
        self.state = RewriteState.IDLE

        self.document: Optional[TuningDocument] = None
        self.companion_source: Optional[str] = None
        self.result = RewriteResult(RewriteStatus.ABORTED, mode, path)

    # ==========================================================================
    # STEPS
    # ==========================================================================

    def load(self) -> bool:
        """IDLE -> LOADED. Returns False (and stays IDLE) on failure."""
        if not os.path.isfile(self.path):
            print(f"[ERROR] File not found: {self.path}")
            return False
        if self.path.lower().endswith(COMPANION_EXTENSION.lower()):
            self.result.error = DecodeError("SimData files are renamed with their tuning",
                                            {"path": self.path})
            return False

        try:
            self.document = TuningParser().load(self.path)
        except DecodeError as e:
            print(f"[ERROR] {self.path}: {e.message}")
            self.result.error = e
            return False

        companion = companion_path_for(self.path)
        if os.path.isfile(companion):
            self.companion_source = companion
            self.result.companion_source = companion

        self.result.old_name = self.document.metadata.declared_name
        self.state = RewriteState.LOADED
        return True

    def ask_name(self) -> Optional[str]:
        """LOADED -> AWAITING_NAME -> VALIDATED (or cancelled)."""
        self.state = RewriteState.AWAITING_NAME

        file_types = "Tuning & SimData" if self.companion_source else "Tuning"
        current = self.result.old_name or ""
        new_name = self.session.prompter.ask_text(
            f"Enter New Name of {file_types}", NAME_PROMPT, current,
        )

        if not new_name:
            self._cancel(UserCancelled("No name entered"))
            return None
        if new_name == current:
            print(f"[ERROR] {SAME_NAME_MESSAGE}")
            self._cancel(UserCancelled(SAME_NAME_MESSAGE, {"name": new_name}))
            return None

        target = os.path.join(os.path.dirname(self.path), sanitize_name(new_name) + ".xml")
        if self.mode == CLONE and self._is_source(target):
            print(f"[ERROR] {CLONE_ONTO_SOURCE_MESSAGE}")
            self._cancel(UserCancelled(CLONE_ONTO_SOURCE_MESSAGE, {"path": target}))
            return None
        if os.path.exists(target) and not self._is_source(target):
            choice = self.session.prompter.confirm(OVERWRITE_MESSAGE, (YES, CANCEL))
            if choice != YES:
                self._cancel(UserCancelled("Overwrite declined", {"path": target}))
                return None

        self.result.new_name = new_name
        self.result.target_path = target
        self.state = RewriteState.VALIDATED
        return new_name

    def rewrite(self) -> str:
        """VALIDATED -> REWRITTEN. Returns the rewritten tuning text."""
        metadata = self.document.metadata
        new_name = self.result.new_name

        instance = tuning_instance_for_name(new_name, metadata.root_kind,
                                            metadata.class_attribute,
                                            self.session.class_bit_widths)
        text = rewrite_root_identity(self.document.text, new_name, instance)

        self.result.new_instance = instance
        self.state = RewriteState.REWRITTEN
        self.session.debug(f"{metadata.declared_name} -> {new_name} ({instance:016X})")
        return text

    def write(self, text: str):
        """REWRITTEN -> WRITTEN/RENAMED."""
        target = self.result.target_path
        self._put(self.path, target, text)

        if self.companion_source:
            companion_target = _XML_EXTENSION.sub(COMPANION_EXTENSION, target)
            try:
                companion_text = rename_simdata_instance(
                    _read_text(self.companion_source), self.result.new_name + COMPANION_SUFFIX,
                )
                self._put(self.companion_source, companion_target, companion_text)
                self.result.companion_target = companion_target
            except (DecodeError, OSError, UnicodeDecodeError) as e:
                reason = e.message if isinstance(e, HarvesterError) else str(e)
                error = PartialWriteFailure(target, companion_target, reason)
                print(f"[WARN] {error.message}")
                self.result.status = RewriteStatus.PARTIAL
                self.result.error = error
                self.state = RewriteState.WRITTEN if self.mode == CLONE else RewriteState.RENAMED
                return

        if self.mode == CLONE:
            self.result.status = RewriteStatus.WRITTEN
            self.state = RewriteState.WRITTEN
        else:
            self.result.status = RewriteStatus.RENAMED
            self.state = RewriteState.RENAMED

    # ==========================================================================
    # RUN
    # ==========================================================================

    def run(self) -> RewriteResult:
        """
        Run the whole workflow.

        Returns:
            RewriteResult (never raises for cancellation or bad input)

        Raises:
            OSError: If the tuning file itself cannot be written or moved
        """
        if not self.load():
            return self.result
        if self.ask_name() is None:
            return self.result

        try:
            text = self.rewrite()
        except DecodeError as e:
            self.result.error = e
            self.state = RewriteState.IDLE
            return self.result

        self.write(text)
        verb = "Cloned" if self.mode == CLONE else "Renamed"
        print(f"[INFO] {verb} {self.path} -> {self.result.target_path}")
        return self.result

    # ==========================================================================
    # HELPERS
    # ==========================================================================

    def _cancel(self, error: UserCancelled):
        self.result.status = RewriteStatus.CANCELLED
        self.result.error = error
        self.result.target_path = None
        self.state = RewriteState.IDLE

    def _is_source(self, path: str) -> bool:
        return os.path.normcase(os.path.abspath(path)) == os.path.normcase(os.path.abspath(self.path))

    def _put(self, original: str, target: str, text: str):
        # Rename moves first and rewrites in place, so a failed write never
        # leaves both the old and the new file missing
        if self.mode == RENAME:
            os.replace(original, target)
        _write_text(target, text)


# ==============================================================================
# CONVENIENCE FUNCTIONS
# ==============================================================================

def rename_or_clone(path: str, mode: str, session: Optional[HarvestSession] = None) -> RewriteResult:
    """
    Rename or clone a tuning file (and its SimData companion).

    Args:
        path: Tuning .xml file
        mode: "rename" or "clone"
        session: Session providing the prompter and class bit widths

    Returns:
        RewriteResult
    """
    return IdentityRewriteWorkflow(path, mode, session).run()


def override_key(path: str, kind: str, value: int) -> bool:
    """
    Write a single-field TGI override comment into a tuning file.

    Args:
        path: Tuning .xml file
        kind: "type", "group" or "instance"
        value: Value to record

    Returns:
        True if the file now carries the override, False if it has no root
        declaration to annotate

    Example:
        >>> override_key("buff_Fun.xml", "group", 0x80000000)
        True
    """
    if kind not in OVERRIDE_KINDS:
        raise ValueError(f"Unknown override kind: {kind}")

    text = _read_text(path)
    new_text = insert_override(text, KeyOverride(**{kind: value}))
    if new_text is None:
        print(f"[WARN] {path}: no root declaration to annotate")
        return False

    if new_text != text:
        _write_text(path, new_text)
    return True
