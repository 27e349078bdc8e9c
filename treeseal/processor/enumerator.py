"""Candidate file enumeration for manifest generation.

Two interchangeable backends list the files a project wants covered. The
git backend is preferred because it honours the project's own ignore
configuration; the filesystem walk is the fallback outside a work tree.
"""

import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator

from treeseal.exceptions import EnumerationError
from treeseal.utils.logging import logger

DEFAULT_METADATA_DIR = ".git"


def normalize_path(path: str) -> str:
    """Normalize a relative path for use in a manifest.

    Converts OS separators to forward slashes and strips any leading "./".

    Args:
        path: Relative path as produced by a backend.

    Returns:
        Normalized path.
    """
    if os.sep != "/":
        path = path.replace(os.sep, "/")
    while path.startswith("./"):
        path = path[2:]
    return path


class FileEnumerator(ABC):
    """Lists candidate files relative to a project root.

    Subclasses yield raw relative paths from ``_list_paths``; this base
    class normalizes them and applies the hard exclusions shared by every
    backend: the metadata directory, the manifest itself, and directories.
    """

    source = ""

    def __init__(
        self,
        root: Path,
        manifest_name: str,
        metadata_dir: str = DEFAULT_METADATA_DIR,
    ) -> None:
        """Initialize enumerator.

        Args:
            root: Project root directory.
            manifest_name: Manifest path relative to root (always excluded).
            metadata_dir: Version-control metadata directory name.
        """
        self.root = Path(root)
        self.manifest_name = normalize_path(manifest_name)
        self.metadata_dir = metadata_dir

    def iter_files(self) -> Iterator[str]:
        """Yield normalized relative paths of candidate files, lazily."""
        for raw in self._list_paths():
            path = normalize_path(raw)
            if not path or self._is_hard_excluded(path):
                continue
            if (self.root / path).is_dir():
                # git lists submodules as paths
                logger.debug(f"Skipping directory entry: {path}")
                continue
            yield path

    def _is_hard_excluded(self, path: str) -> bool:
        if path == self.manifest_name:
            return True
        # ".git" may also be a plain file in worktrees and submodules
        return self.metadata_dir in path.split("/")

    @abstractmethod
    def _list_paths(self) -> Iterator[str]:
        """Yield raw relative file paths."""


class GitEnumerator(FileEnumerator):
    """Tracked plus untracked-but-not-ignored files of a git work tree."""

    source = "git"

    def _list_paths(self) -> Iterator[str]:
        try:
            result = subprocess.run(
                ["git", "ls-files", "-z", "--cached", "--others", "--exclude-standard"],
                cwd=self.root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
            )
        except OSError as e:
            raise EnumerationError(f"Cannot run git: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise EnumerationError(f"git ls-files failed: {stderr}")

        for entry in result.stdout.split(b"\0"):
            if entry:
                yield os.fsdecode(entry)


class WalkEnumerator(FileEnumerator):
    """Every regular file below the root, in sorted walk order."""

    source = "filesystem"

    def _list_paths(self) -> Iterator[str]:
        for dirpath, dirnames, filenames in os.walk(self.root):
            # Prune metadata directories in place and fix the walk order
            dirnames[:] = sorted(d for d in dirnames if d != self.metadata_dir)

            rel_dir = os.path.relpath(dirpath, self.root)
            for name in sorted(filenames):
                full_path = os.path.join(dirpath, name)
                if os.path.islink(full_path) or not os.path.isfile(full_path):
                    continue
                yield name if rel_dir == os.curdir else os.path.join(rel_dir, name)


def is_git_work_tree(root: Path) -> bool:
    """Check whether root lies inside a git work tree.

    Args:
        root: Directory to probe.

    Returns:
        True if git is installed and reports a work tree.
    """
    if shutil.which("git") is None:
        return False

    try:
        result = subprocess.run(
            ["git", "rev-parse", "--is-inside-work-tree"],
            cwd=root,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            check=False,
        )
    except OSError:
        return False

    return result.returncode == 0 and result.stdout.strip() == "true"


def select_enumerator(
    root: Path,
    manifest_name: str,
    metadata_dir: str = DEFAULT_METADATA_DIR,
) -> FileEnumerator:
    """Pick the enumeration backend for root.

    Args:
        root: Project root directory.
        manifest_name: Manifest path relative to root.
        metadata_dir: Version-control metadata directory name.

    Returns:
        GitEnumerator inside a git work tree, WalkEnumerator otherwise.
    """
    if is_git_work_tree(root):
        enumerator: FileEnumerator = GitEnumerator(root, manifest_name, metadata_dir)
    else:
        enumerator = WalkEnumerator(root, manifest_name, metadata_dir)

    logger.debug(f"Enumerating files with the {enumerator.source} backend")
    return enumerator
