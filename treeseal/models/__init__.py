"""Data models for manifest generation and verification."""

from treeseal.models.integrity import (
    GenerationSummary,
    ManifestRecord,
    RecordResult,
    RecordStatus,
    VerificationReport,
)

__all__ = [
    "ManifestRecord",
    "RecordStatus",
    "RecordResult",
    "VerificationReport",
    "GenerationSummary",
]
