"""Configuration loading and validation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from treeseal.exceptions import ConfigError
from treeseal.utils.hashing import ensure_algorithm

CONFIG_FILENAMES = ["treeseal.yaml", "treeseal.yml", ".treeseal.yaml"]


@dataclass
class ProjectConfig:
    """Project root detection."""

    root_marker: str = "Cargo.toml"
    metadata_dir: str = ".git"


@dataclass
class ManifestConfig:
    """Manifest and ignore file locations, relative to the project root."""

    path: str = "INTEGRITY.sha256"
    ignore_file: str = ".integrityignore"


@dataclass
class HashingConfig:
    """Digest engine options."""

    algorithm: str = "sha256"
    chunk_size: int = 65536
    jobs: int = 1


@dataclass
class LoggingConfig:
    """Logging options."""

    level: str = "WARNING"
    log_file: Path | None = None
    audit_log: Path | None = None


@dataclass
class Config:
    """Complete application configuration."""

    project: ProjectConfig = field(default_factory=ProjectConfig)
    manifest: ManifestConfig = field(default_factory=ManifestConfig)
    hashing: HashingConfig = field(default_factory=HashingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(root: Path, config_path: Path | None = None) -> Config:
    """Load configuration from file.

    Args:
        root: Project root searched for a default config file.
        config_path: Explicit path to YAML config file.

    Returns:
        Loaded Config object (defaults when no file exists).

    Raises:
        ConfigError: If an explicit config file is missing or unreadable.
    """
    if config_path is not None and not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")

    # Try default paths if not specified
    if config_path is None:
        for default_name in CONFIG_FILENAMES:
            if (root / default_name).is_file():
                config_path = root / default_name
                break

    if config_path is None:
        return Config()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    return _parse_config(data)


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """Return one config section, which must be a mapping or empty."""
    section = data[name] or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return section


def _parse_config(data: dict[str, Any]) -> Config:
    """Parse configuration dictionary into Config object.

    Args:
        data: Raw configuration dictionary.

    Returns:
        Config object.

    Raises:
        ConfigError: If a section is not a mapping.
    """
    config = Config()

    # Project section
    if "project" in data:
        project_data = _section(data, "project")
        config.project = ProjectConfig(
            root_marker=project_data.get("root_marker", "Cargo.toml"),
            metadata_dir=project_data.get("metadata_dir", ".git"),
        )

    # Manifest section
    if "manifest" in data:
        manifest_data = _section(data, "manifest")
        config.manifest = ManifestConfig(
            path=manifest_data.get("path", "INTEGRITY.sha256"),
            ignore_file=manifest_data.get("ignore_file", ".integrityignore"),
        )

    # Hashing section
    if "hashing" in data:
        hashing_data = _section(data, "hashing")
        config.hashing = HashingConfig(
            algorithm=hashing_data.get("algorithm", "sha256"),
            chunk_size=hashing_data.get("chunk_size", 65536),
            jobs=hashing_data.get("jobs", 1),
        )

    # Logging section
    if "logging" in data:
        logging_data = _section(data, "logging")
        log_file = logging_data.get("log_file")
        audit_log = logging_data.get("audit_log")
        config.logging = LoggingConfig(
            level=logging_data.get("level", "WARNING"),
            log_file=Path(log_file) if log_file else None,
            audit_log=Path(audit_log) if audit_log else None,
        )

    return config


def validate_config(config: Config) -> list[str]:
    """Validate configuration, return list of issues.

    Args:
        config: Configuration to validate.

    Returns:
        List of validation issue messages.
    """
    issues = []

    # Check hashing capability
    try:
        ensure_algorithm(config.hashing.algorithm)
    except ConfigError as e:
        issues.append(str(e))

    if not isinstance(config.hashing.jobs, int) or config.hashing.jobs < 1:
        issues.append(f"hashing.jobs must be a positive integer: {config.hashing.jobs}")

    if not isinstance(config.hashing.chunk_size, int) or config.hashing.chunk_size < 1:
        issues.append(
            f"hashing.chunk_size must be a positive integer: {config.hashing.chunk_size}"
        )

    manifest_path = config.manifest.path
    if not manifest_path or Path(manifest_path).is_absolute() or ".." in Path(manifest_path).parts:
        issues.append(f"manifest.path must be relative to the project root: {manifest_path}")

    if not config.project.root_marker:
        issues.append("project.root_marker cannot be empty")

    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if str(config.logging.level).upper() not in valid_levels:
        issues.append(f"Invalid logging level: {config.logging.level}")

    return issues


def require_project_root(root: Path, config: Config) -> None:
    """Check that root is a project root.

    Args:
        root: Directory to check.
        config: Configuration naming the root marker.

    Raises:
        ConfigError: If the directory or its root marker file is missing.
    """
    if not root.is_dir():
        raise ConfigError(f"Project root is not a directory: {root}")

    marker = root / config.project.root_marker
    if not marker.is_file():
        raise ConfigError(
            f"Please run this in the project root ({config.project.root_marker} not found in {root})"
        )


def create_default_config(path: Path) -> None:
    """Create default configuration file.

    Args:
        path: Path to write config file.
    """
    default_config = """# treeseal configuration
# Paths are relative to the project root.

project:
  # File whose presence marks the project root
  root_marker: "Cargo.toml"
  # Version-control metadata directory, never hashed
  metadata_dir: ".git"

manifest:
  path: "INTEGRITY.sha256"
  # One regular expression per line, searched anywhere in the relative path
  ignore_file: ".integrityignore"

hashing:
  # Any 256-bit hashlib algorithm: sha256, sha3_256, blake2s
  algorithm: "sha256"
  chunk_size: 65536
  jobs: 1

logging:
  level: "WARNING"
  # log_file: "./logs/treeseal.log"
  # audit_log: "./logs/audit.jsonl"
"""
    with open(path, "w", encoding="utf-8") as f:
        f.write(default_config)
