"""Utility modules for logging, manifest I/O, and hashing."""

from treeseal.utils.hashing import compute_file_hash, ensure_algorithm
from treeseal.utils.manifest import ManifestWriter, parse_record, read_manifest

__all__ = [
    "compute_file_hash",
    "ensure_algorithm",
    "ManifestWriter",
    "parse_record",
    "read_manifest",
]
