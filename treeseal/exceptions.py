"""treeseal exception hierarchy.

All public exceptions inherit from TreesealError so the CLI can report any
treeseal-specific failure with a single handler.
"""


class TreesealError(Exception):
    """Base exception for all treeseal errors."""


class ConfigError(TreesealError):
    """Raised when a run cannot start.

    Covers a missing root marker, an unusable hashing algorithm, a missing
    manifest at verification time, invalid ignore rules and invalid
    configuration values.
    """


class EnumerationError(TreesealError):
    """Raised when generation cannot produce a consistent manifest.

    A listed file that vanished or became unreadable before hashing aborts
    the whole generation run.
    """


class DigestError(TreesealError):
    """Raised when a file cannot be opened or read for hashing."""

    def __init__(self, path: str, reason: str, missing: bool = False) -> None:
        super().__init__(f"Cannot hash {path}: {reason}")
        self.path = path
        self.reason = reason
        self.missing = missing


class MalformedRecordError(TreesealError):
    """Raised when a manifest line is not a valid record."""

    def __init__(self, line_number: int, line: str, reason: str) -> None:
        super().__init__(f"Malformed record at line {line_number}: {reason}")
        self.line_number = line_number
        self.line = line
        self.reason = reason
