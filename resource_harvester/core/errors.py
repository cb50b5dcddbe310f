# ==============================================================================
# ERRORS MODULE
# ==============================================================================
# Error taxonomy for Resource Harvester.
#
#   - DecodeError:         payload does not match its declared type
#                          (recovered locally as a raw fallback)
#   - UnrecognizedFilename: loose file name is not a TGI name (file skipped)
#   - UserCancelled:       a prompt was dismissed or a confirmation declined
#   - PartialWriteFailure: one half of a tuning/SimData pair was written
#
# Name collisions are never errors: the destination materializer resolves
# them by suffixing.
# ==============================================================================

from dataclasses import dataclass
from typing import Any, Dict, Optional

E_DECODE = "E_DECODE"
E_FILENAME = "E_FILENAME"
E_CANCELLED = "E_CANCELLED"
E_PARTIAL_WRITE = "E_PARTIAL_WRITE"


@dataclass
class HarvesterError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class DecodeError(HarvesterError):
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(E_DECODE, message, context)


class UnrecognizedFilename(HarvesterError):
    def __init__(self, filename: str):
        super().__init__(E_FILENAME, f"not a TGI filename: {filename}", {"filename": filename})


class UserCancelled(HarvesterError):
    def __init__(self, message: str = "Operation cancelled",
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(E_CANCELLED, message, context)


class PartialWriteFailure(HarvesterError):
    """
    One artifact of a pair was written and the other was not.

    Attributes (in context):
        succeeded: Path that was written
        failed:    Path that could not be written
    """

    def __init__(self, succeeded: str, failed: str, reason: str):
        super().__init__(
            E_PARTIAL_WRITE,
            f"wrote {succeeded} but failed to write {failed}: {reason}",
            {"succeeded": succeeded, "failed": failed, "reason": reason},
        )

    @property
    def succeeded(self) -> str:
        return self.context["succeeded"]

    @property
    def failed(self) -> str:
        return self.context["failed"]


__all__ = [
    "HarvesterError",
    "DecodeError",
    "UnrecognizedFilename",
    "UserCancelled",
    "PartialWriteFailure",
    "E_DECODE",
    "E_FILENAME",
    "E_CANCELLED",
    "E_PARTIAL_WRITE",
]
