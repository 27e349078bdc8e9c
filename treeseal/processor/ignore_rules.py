"""Regex-based exclusion rules loaded from the ignore file."""

import re
from dataclasses import dataclass, field
from pathlib import Path

from treeseal.exceptions import ConfigError
from treeseal.utils.logging import logger

DEFAULT_IGNORE_FILE = ".integrityignore"


@dataclass
class IgnoreRules:
    """Ordered set of exclusion patterns.

    Each rule is a regular expression searched anywhere in the normalized
    relative path (``re.search``), not a glob and not anchored.
    """

    patterns: list[re.Pattern[str]] = field(default_factory=list)

    @classmethod
    def from_lines(cls, lines: list[str], source: str = "<rules>") -> "IgnoreRules":
        """Build a rule set from raw rule-file lines.

        Blank lines, including whitespace-only ones, and lines starting with
        ``#`` are skipped.

        Args:
            lines: Lines of the rules file.
            source: Name used in error messages.

        Returns:
            IgnoreRules instance.

        Raises:
            ConfigError: If a rule is not a valid regular expression.
        """
        patterns = []
        for line_number, raw in enumerate(lines, start=1):
            rule = raw.rstrip("\r\n")
            if not rule.strip() or rule.startswith("#"):
                continue
            try:
                patterns.append(re.compile(rule))
            except re.error as e:
                raise ConfigError(
                    f"Invalid ignore rule at {source}:{line_number}: {rule!r} ({e})"
                ) from e
        return cls(patterns=patterns)

    @classmethod
    def load(cls, path: Path) -> "IgnoreRules":
        """Load rules from file; a missing file yields an empty rule set.

        Args:
            path: Path to the rules file.

        Returns:
            IgnoreRules instance.
        """
        path = Path(path)
        if not path.is_file():
            logger.debug(f"No ignore file at {path}, nothing excluded by rules")
            return cls()

        with open(path, "r", encoding="utf-8", newline="") as f:
            rules = cls.from_lines(f.readlines(), source=path.name)

        logger.debug(f"Loaded {len(rules)} ignore rules from {path}")
        return rules

    def match(self, path: str) -> str | None:
        """Return the first rule matching path.

        Args:
            path: Normalized relative path.

        Returns:
            Matching pattern string, or None if no rule matches.
        """
        for pattern in self.patterns:
            if pattern.search(path):
                return pattern.pattern
        return None

    def is_excluded(self, path: str) -> bool:
        """Check if path matches any rule."""
        return self.match(path) is not None

    def __len__(self) -> int:
        return len(self.patterns)
