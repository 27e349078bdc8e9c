"""Manifest generation and verification pipeline."""

from treeseal.processor.enumerator import (
    FileEnumerator,
    GitEnumerator,
    WalkEnumerator,
    select_enumerator,
)
from treeseal.processor.generator import ManifestGenerator
from treeseal.processor.ignore_rules import IgnoreRules
from treeseal.processor.verifier import ManifestVerifier

__all__ = [
    "FileEnumerator",
    "GitEnumerator",
    "WalkEnumerator",
    "select_enumerator",
    "IgnoreRules",
    "ManifestGenerator",
    "ManifestVerifier",
]
