# ==============================================================================
# CORRELATION MODULE
# ==============================================================================
# Run-scoped table linking a tuning instance id to the name and path it was
# written under.
#
# Tuning resources are recorded as they are written; their companion SimData
# (same instance id) looks the entry up later in the same run so it can take
# the tuning's name and sit beside it. A map lives for exactly one run and is
# never persisted.
# ==============================================================================

from dataclasses import dataclass
from typing import Dict, Iterator, Optional


@dataclass(frozen=True)
class CorrelationEntry:
    """
    Attributes:
        canonical_name (str): Declared name the tuning was written with
        written_path (str):   Path of the written tuning file
    """
    canonical_name: str
    written_path: str


class InstanceCorrelationMap:
    """
    Mapping of instance id -> CorrelationEntry for a single run.

    The first tuning written with a given instance id wins; later tuning
    with the same id does not replace it.
    """

    def __init__(self):
        self._entries: Dict[int, CorrelationEntry] = {}

    def record(self, instance: int, name: str, path: str) -> CorrelationEntry:
        """Record a written tuning resource (first write wins)."""
        entry = self._entries.get(instance)
        if entry is None:
            entry = CorrelationEntry(name, path)
            self._entries[instance] = entry
        return entry

    def lookup(self, instance: int) -> Optional[CorrelationEntry]:
        return self._entries.get(instance)

    def clear(self):
        self._entries.clear()

    def __contains__(self, instance: int) -> bool:
        return instance in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)
