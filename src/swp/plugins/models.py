"""Data models shared by the large-file scanner, the selector, and cleanup."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path
from typing import List


class RiskLevel(IntEnum):
    """How risky it is to delete a file.

    Comparison operators follow declaration order (``SAFE < ... < CRITICAL``).
    Display sorting uses :func:`severity_rank` instead, which ranks the most
    severe level first.
    """

    SAFE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.title()

    def __str__(self) -> str:
        return self.label


_SEVERITY_RANK = {
    RiskLevel.CRITICAL: 0,
    RiskLevel.HIGH: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.LOW: 3,
    RiskLevel.SAFE: 4,
}


def declaration_order(level: RiskLevel) -> int:
    """Return the base comparison key of ``level`` (Safe=0 ... Critical=4)."""
    return int(level)


def severity_rank(level: RiskLevel) -> int:
    """Return the display sort key of ``level`` (Critical=0 ... Safe=4)."""
    return _SEVERITY_RANK[level]


class FileType(str, Enum):
    """Coarse file classification derived from the extension or filename."""

    TEST_DATA = "TestData"
    DATABASE = "Database"
    ARCHIVE = "Archive"
    MEDIA = "Media"
    LOG = "Log"
    BINARY = "Binary"
    DOCUMENT = "Document"
    SOURCE = "Source"
    CONFIGURATION = "Configuration"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


class GitFileStatus(str, Enum):
    """Status of a file relative to the repository that contains it."""

    TRACKED = "Tracked"
    MODIFIED = "Modified"
    UNTRACKED = "Untracked"
    IGNORED = "Ignored"
    NOT_IN_REPO = "NotInRepo"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ScanResult:
    """A single file reported by a scan.

    Attributes:
        path: Absolute path of the file.
        size: Size in bytes.
        description: Human-readable summary (size, age, type, git status).
        risk_level: Deletion risk classification.
    """

    path: Path
    size: int
    description: str
    risk_level: RiskLevel

    def to_payload(self) -> dict[str, object]:
        """Return a JSON-serializable mapping for CLI output."""
        return {
            "path": str(self.path),
            "size": self.size,
            "description": self.description,
            "risk_level": self.risk_level.label,
        }


@dataclass(slots=True)
class LargeFile:
    """Intermediate record produced by the scanner before it is summarized."""

    path: Path
    size: int
    last_modified: float
    last_accessed: float
    risk_level: RiskLevel
    file_type: FileType
    git_status: GitFileStatus


@dataclass(slots=True)
class CleanupReport:
    """Outcome of a cleanup run.

    Attributes:
        items_cleaned: Number of files removed (or that would be removed in a dry run).
        space_freed: Bytes reclaimed.
        errors: Per-item failure messages.
    """

    items_cleaned: int = 0
    space_freed: int = 0
    errors: List[str] = field(default_factory=list)


__all__ = [
    "RiskLevel",
    "declaration_order",
    "severity_rank",
    "FileType",
    "GitFileStatus",
    "ScanResult",
    "LargeFile",
    "CleanupReport",
]
