"""Data models for manifest generation and verification."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class ManifestRecord:
    """Single (digest, path) line of a manifest."""

    digest: str  # lowercase hex
    path: str  # relative, forward slashes, no leading "./"

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"{self.digest[:12]}  {self.path}"


class RecordStatus(str, Enum):
    """Outcome of checking one manifest record."""

    OK = "OK"
    MISSING = "MISSING"
    MISMATCH = "MISMATCH"
    MALFORMED = "MALFORMED"
    UNEXPECTED = "UNEXPECTED"  # on disk, not in manifest (--detect-new)

    @property
    def is_failure(self) -> bool:
        """Every status except OK fails the run."""
        return self is not RecordStatus.OK


@dataclass
class RecordResult:
    """Result of verifying a single manifest record."""

    status: RecordStatus
    path: str
    expected_digest: str | None = None
    actual_digest: str | None = None
    line_number: int | None = None
    detail: str | None = None

    @property
    def label(self) -> str:
        """Path, or a line reference when the record could not be parsed."""
        if self.status is RecordStatus.MALFORMED:
            return f"line {self.line_number}"
        return self.path

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the audit log."""
        return {
            "status": self.status.value,
            "path": self.path,
            "expected_digest": self.expected_digest,
            "actual_digest": self.actual_digest,
            "line_number": self.line_number,
            "detail": self.detail,
        }


@dataclass
class VerificationReport:
    """Aggregate result of a verification pass."""

    manifest_path: Path
    results: list[RecordResult] = field(default_factory=list)
    pass_count: int = 0
    fail_count: int = 0

    def add(self, result: RecordResult) -> None:
        """Record one result and update the counters."""
        self.results.append(result)
        if result.status.is_failure:
            self.fail_count += 1
        else:
            self.pass_count += 1

    @property
    def passed(self) -> bool:
        """True only when no record failed."""
        return self.fail_count == 0

    @property
    def failures(self) -> list[RecordResult]:
        """All failing results, in report order."""
        return [r for r in self.results if r.status.is_failure]

    def count(self, status: RecordStatus) -> int:
        """Number of results with the given status."""
        return sum(1 for r in self.results if r.status is status)


@dataclass
class GenerationSummary:
    """Summary of a manifest generation run."""

    source: str  # enumeration backend: "git" or "filesystem"
    manifest_path: Path
    total: int = 0
    written: int = 0
    skipped: int = 0
    duplicates: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the audit log."""
        return {
            "source": self.source,
            "manifest_path": str(self.manifest_path),
            "total": self.total,
            "written": self.written,
            "skipped": self.skipped,
            "duplicates": self.duplicates,
        }
