"""Pytest configuration and shared fixtures."""

import shutil
import subprocess
from pathlib import Path

import pytest

from treeseal.utils.logging import logger


@pytest.fixture(autouse=True)
def reset_logger():
    """Drop handlers installed by CLI runs so streams don't leak between tests."""
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Create a small project tree with a root marker."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "Cargo.toml").write_text("[package]\nname = \"demo\"\n")
    (root / "a.txt").write_text("hi")
    (root / "b.txt").write_text("bye")
    (root / "src").mkdir()
    (root / "src" / "main.rs").write_text("fn main() {}\n")
    (root / "src" / "lib.rs").write_text("pub fn add(a: u32, b: u32) -> u32 { a + b }\n")
    return root


@pytest.fixture
def example_root(tmp_path: Path) -> Path:
    """Tree with a.txt and b.txt where the rules file excludes b.txt.

    The root marker and the rules file are excluded too, so the manifest
    holds exactly one record.
    """
    root = tmp_path / "example"
    root.mkdir()
    (root / "Cargo.toml").write_text("[package]\n")
    (root / "a.txt").write_text("hi")
    (root / "b.txt").write_text("bye")
    (root / ".integrityignore").write_text(
        "# excluded from the manifest\n"
        "b\\.txt\n"
        "\n"
        "^Cargo\\.toml$\n"
        "^\\.integrityignore$\n"
    )
    return root


@pytest.fixture
def no_git(monkeypatch):
    """Force the filesystem-walk backend regardless of the environment."""
    monkeypatch.setattr("treeseal.processor.enumerator.is_git_work_tree", lambda root: False)


def _git(root: Path, *args: str) -> None:
    subprocess.run(
        ["git", *args],
        cwd=root,
        check=True,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )


@pytest.fixture
def git_root(project_root: Path) -> Path:
    """Turn project_root into a git work tree with an ignored build dir."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    _git(project_root, "init", "-q")
    (project_root / ".gitignore").write_text("target/\n")
    (project_root / "target").mkdir()
    (project_root / "target" / "app.bin").write_bytes(b"\x00\x01binary")
    _git(project_root, "add", "Cargo.toml", "a.txt", "src/main.rs", ".gitignore")
    return project_root


# Markers for test categories
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "git: marks tests that need the git binary"
    )
