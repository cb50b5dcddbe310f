# ==============================================================================
# DESTINATION MODULE
# ==============================================================================
# Turns a category and a candidate name into a collision-free output path.
#
# Paths are probed in order:
#   {base}.{ext}, {base}_0.{ext}, {base}_1.{ext}, ...
# until one is free. An existing file is never overwritten, so resolving the
# same name twice in one run yields two different files.
#
# Probing is a plain existence check followed by a later write; there is no
# locking across processes.
#
# Usage:
#   dest = resolve_path(root, ["Packages", "MyMod", "Buff"], "creator:buff_Fun", "xml")
#   with open(dest.resolved_path, 'w') as f: ...
# ==============================================================================

import os
import re
from dataclasses import dataclass
from typing import Optional, Sequence, Union


# Characters that are illegal in Windows/Unix file names
_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x80-\x9f]')

# Names Windows refuses regardless of extension
_RESERVED_NAMES = re.compile(r'^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$', re.IGNORECASE)

MAX_NAME_LENGTH = 255


# ==============================================================================
# DESTINATION PATH DATA CLASS
# ==============================================================================
@dataclass
class DestinationPath:
    """
    A resolved, unused output path.

    Attributes:
        requested_name (str):     Name as given by the caller
        sanitized_name (str):     Name after prefix stripping and sanitizing
        resolved_path (str):      Full path that does not exist yet
        collision_suffix (int):   Suffix that was appended, or None
    """
    requested_name: str
    sanitized_name: str
    resolved_path: str
    collision_suffix: Optional[int] = None

    def __str__(self):
        return self.resolved_path


# ==============================================================================
# NAME HELPERS
# ==============================================================================

def strip_creator_prefix(name: str) -> str:
    """
    Drop a leading 'creator:' namespace segment.

    Example:
        >>> strip_creator_prefix("frankk:buff_Happy")
        'buff_Happy'
    """
    if ":" in name:
        return name.split(":", 1)[1]
    return name


def sanitize_name(name: str, replacement: str = "_") -> str:
    """
    Make a candidate name safe to use as a file name.

    Strips a creator prefix, replaces illegal characters, trims trailing
    dots/spaces and falls back to the replacement for empty results.

    Args:
        name: Candidate name
        replacement: Substitute for illegal characters

    Returns:
        Safe file name (without extension)
    """
    name = strip_creator_prefix(name)
    name = _ILLEGAL_CHARS.sub(replacement, name)
    name = name.rstrip(". ")

    if name in ("", ".", ".."):
        name = replacement
    if _RESERVED_NAMES.match(name):
        name = replacement + name

    return name[:MAX_NAME_LENGTH]


# ==============================================================================
# DIRECTORIES
# ==============================================================================

def append_folder(base_path: str, *parts: str) -> str:
    """
    Join path parts onto a base folder and create it if needed.

    Creating a folder that already exists is not an error.

    Returns:
        The joined folder path
    """
    folder = os.path.join(base_path, *parts)
    os.makedirs(folder, exist_ok=True)
    return folder


# ==============================================================================
# PATH RESOLUTION
# ==============================================================================

def resolve_path(dest_root: str, category_path: Union[str, Sequence[str]],
                 candidate_name: str, extension: str) -> DestinationPath:
    """
    Produce a sanitized path that does not exist yet.

    Args:
        dest_root: Root output folder
        category_path: Subfolder (string or sequence of segments) under the root
        candidate_name: Desired file name, without extension
        extension: Extension without leading dot (may itself contain dots,
                   e.g. 'SimData.xml')

    Returns:
        DestinationPath whose resolved_path is unused at call time

    Example:
        >>> resolve_path("/out", "Buff", "creator:buff_Fun", "xml").resolved_path
        '/out/Buff/buff_Fun.xml'
    """
    if isinstance(category_path, str):
        category_path = [category_path] if category_path else []

    folder = append_folder(dest_root, *category_path)
    sanitized = sanitize_name(candidate_name)
    base_path = os.path.join(folder, sanitized)

    candidate = f"{base_path}.{extension}"
    suffix = None
    index = 0
    while os.path.exists(candidate):
        suffix = index
        candidate = f"{base_path}_{index}.{extension}"
        index += 1

    return DestinationPath(
        requested_name=candidate_name,
        sanitized_name=sanitized,
        resolved_path=candidate,
        collision_suffix=suffix,
    )
