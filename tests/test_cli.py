"""Tests for the treeseal command-line interface."""

import hashlib
import json
import os
from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

from treeseal.cli import commands
from treeseal.cli.commands import app


@pytest.fixture
def runner() -> CliRunner:
    """Create a CliRunner for invoking commands."""
    return CliRunner()


@pytest.fixture(autouse=True)
def plain_console(monkeypatch):
    """Render CLI output without colour and with a wide console."""
    monkeypatch.setattr(commands.output, "console", Console(color_system=None, width=200))


def run(runner: CliRunner, *args: str):
    return runner.invoke(app, list(args))


@pytest.mark.usefixtures("no_git")
class TestGenerateCommand:
    """Tests for ``treeseal generate``."""

    def test_prints_summary(self, runner: CliRunner, project_root: Path):
        """Test summary lines and exit code."""
        result = run(runner, "generate", "--root", str(project_root))

        assert result.exit_code == 0, result.output
        assert "Source: filesystem" in result.output
        assert "Total files: 5; Added: 5; Skipped: 0" in result.output
        assert "Generated INTEGRITY.sha256" in result.output
        assert (project_root / "INTEGRITY.sha256").exists()

    def test_applies_ignore_file(self, runner: CliRunner, example_root: Path):
        """Test rules file is loaded from the project root."""
        result = run(runner, "generate", "--root", str(example_root))

        assert result.exit_code == 0, result.output
        assert "Total files: 4; Added: 1; Skipped: 3" in result.output
        manifest = (example_root / "INTEGRITY.sha256").read_text()
        assert manifest == f"{hashlib.sha256(b'hi').hexdigest()}  a.txt\n"

    def test_missing_root_marker(self, runner: CliRunner, tmp_path: Path):
        """Test generation refuses to run outside a project root."""
        (tmp_path / "a.txt").write_text("hi")

        result = run(runner, "generate", "--root", str(tmp_path))

        assert result.exit_code == 1
        assert "Cargo.toml not found" in result.output
        assert not (tmp_path / "INTEGRITY.sha256").exists()

    def test_custom_root_marker(self, runner: CliRunner, tmp_path: Path):
        """Test --root-marker overrides the default marker."""
        (tmp_path / "pyproject.toml").write_text("[project]\n")
        (tmp_path / "a.txt").write_text("hi")

        result = run(runner, "generate", "--root", str(tmp_path), "--root-marker", "pyproject.toml")
        assert result.exit_code == 0, result.output

    def test_custom_manifest_name(self, runner: CliRunner, project_root: Path):
        """Test --manifest writes elsewhere."""
        result = run(runner, "generate", "--root", str(project_root), "--manifest", "CHECKSUMS")

        assert result.exit_code == 0, result.output
        assert (project_root / "CHECKSUMS").exists()
        assert "Generated CHECKSUMS" in result.output

    def test_invalid_ignore_rule(self, runner: CliRunner, project_root: Path):
        """Test bad regex is a one-line fatal error."""
        (project_root / ".integrityignore").write_text("(oops\n")

        result = run(runner, "generate", "--root", str(project_root))

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Invalid ignore rule" in result.output

    def test_unavailable_algorithm(self, runner: CliRunner, project_root: Path):
        """Test missing hashing capability is fatal."""
        (project_root / "treeseal.yaml").write_text("hashing:\n  algorithm: md5\n")

        result = run(runner, "generate", "--root", str(project_root))

        assert result.exit_code == 1
        assert "256-bit" in result.output

    def test_audit_log_option(self, runner: CliRunner, project_root: Path, tmp_path: Path):
        """Test --audit-log writes JSONL entries."""
        audit_path = tmp_path / "audit.jsonl"
        result = run(runner, "generate", "--root", str(project_root), "--audit-log", str(audit_path))

        assert result.exit_code == 0, result.output
        events = [json.loads(line)["event"] for line in audit_path.read_text().splitlines()]
        assert events == ["run_start", "run_complete"]

    def test_non_utf8_file_name(self, runner: CliRunner, project_root: Path):
        """Test a file name that is not UTF-8 is recorded and verifies."""
        try:
            (project_root / os.fsdecode(b"bad\xff.txt")).write_text("odd")
        except (OSError, UnicodeEncodeError):
            pytest.skip("filesystem rejects non-UTF-8 file names")

        result = run(runner, "generate", "--root", str(project_root))

        assert result.exit_code == 0, result.output
        assert "Added: 6" in result.output
        assert b"  bad\xff.txt\n" in (project_root / "INTEGRITY.sha256").read_bytes()

        result = run(runner, "verify", "--root", str(project_root))
        assert result.exit_code == 0, result.output
        assert "PASS: 6, FAIL: 0" in result.output


@pytest.mark.usefixtures("no_git")
class TestVerifyCommand:
    """Tests for ``treeseal verify``."""

    def test_example_scenario(self, runner: CliRunner, example_root: Path):
        """Test generate, verify, tamper, reverify."""
        assert run(runner, "generate", "--root", str(example_root)).exit_code == 0

        result = run(runner, "verify", "--root", str(example_root))
        assert result.exit_code == 0, result.output
        assert "OK  a.txt" in result.output
        assert "PASS: 1, FAIL: 0" in result.output

        (example_root / "a.txt").write_text("hi!")

        result = run(runner, "verify", "--root", str(example_root))
        assert result.exit_code == 1
        assert "MISMATCH  a.txt" in result.output
        assert "PASS: 0, FAIL: 1" in result.output

    def test_missing_file(self, runner: CliRunner, project_root: Path):
        """Test deleted file prints MISSING and fails."""
        run(runner, "generate", "--root", str(project_root))
        (project_root / "b.txt").unlink()

        result = run(runner, "verify", "--root", str(project_root))

        assert result.exit_code == 1
        assert "MISSING  b.txt" in result.output
        assert "PASS: 4, FAIL: 1" in result.output

    def test_full_report_on_failure(self, runner: CliRunner, project_root: Path):
        """Test every record is printed even when some fail."""
        run(runner, "generate", "--root", str(project_root))
        (project_root / "a.txt").unlink()
        (project_root / "src" / "lib.rs").write_text("tampered")

        result = run(runner, "verify", "--root", str(project_root))

        for line in ("OK  Cargo.toml", "MISSING  a.txt", "OK  b.txt", "MISMATCH  src/lib.rs", "OK  src/main.rs"):
            assert line in result.output
        assert "PASS: 3, FAIL: 2" in result.output

    def test_missing_manifest(self, runner: CliRunner, project_root: Path):
        """Test verification without a manifest is a config error."""
        result = run(runner, "verify", "--root", str(project_root))

        assert result.exit_code == 1
        assert "Manifest not found" in result.output
        assert "PASS:" not in result.output

    def test_missing_root_marker(self, runner: CliRunner, project_root: Path):
        """Test verification requires the root marker."""
        run(runner, "generate", "--root", str(project_root))
        (project_root / "Cargo.toml").unlink()

        result = run(runner, "verify", "--root", str(project_root))

        assert result.exit_code == 1
        assert "Cargo.toml not found" in result.output

    def test_malformed_line(self, runner: CliRunner, project_root: Path):
        """Test malformed record is reported by line number."""
        (project_root / "INTEGRITY.sha256").write_text("not-a-record\n")

        result = run(runner, "verify", "--root", str(project_root))

        assert result.exit_code == 1
        assert "MALFORMED  line 1" in result.output
        assert "PASS: 0, FAIL: 1" in result.output

    def test_detect_new(self, runner: CliRunner, project_root: Path):
        """Test --detect-new reports inserted files."""
        run(runner, "generate", "--root", str(project_root))
        (project_root / "src" / "backdoor.rs").write_text("// injected\n")

        assert run(runner, "verify", "--root", str(project_root)).exit_code == 0

        result = run(runner, "verify", "--root", str(project_root), "--detect-new")
        assert result.exit_code == 1
        assert "UNEXPECTED  src/backdoor.rs" in result.output

    def test_jobs_option(self, runner: CliRunner, project_root: Path):
        """Test threaded verification through the CLI."""
        run(runner, "generate", "--root", str(project_root))

        result = run(runner, "verify", "--root", str(project_root), "--jobs", "3")
        assert result.exit_code == 0, result.output
        assert "PASS: 5, FAIL: 0" in result.output

    def test_invalid_jobs(self, runner: CliRunner, project_root: Path):
        """Test non-positive job count is rejected."""
        result = run(runner, "verify", "--root", str(project_root), "--jobs", "0")

        assert result.exit_code == 1
        assert "hashing.jobs" in result.output

    def test_non_utf8_manifest_line(self, runner: CliRunner, project_root: Path):
        """Test undecodable manifest bytes give a normal report, not a crash."""
        (project_root / "INTEGRITY.sha256").write_bytes(b"0" * 64 + b"  \xff.txt\n")

        result = run(runner, "verify", "--root", str(project_root))

        assert result.exit_code == 1
        assert "MISSING  \\udcff.txt" in result.output
        assert "PASS: 0, FAIL: 1" in result.output

    def test_ignore_file_with_detect_new(self, runner: CliRunner, project_root: Path):
        """Test verify applies the same custom rules file as generate."""
        (project_root / "custom.ignore").write_text("^src/\n")
        result = run(runner, "generate", "--root", str(project_root), "-i", "custom.ignore")
        assert "Added: 4; Skipped: 2" in result.output

        result = run(
            runner, "verify", "--root", str(project_root), "--detect-new", "--ignore-file", "custom.ignore"
        )
        assert result.exit_code == 0, result.output
        assert "UNEXPECTED" not in result.output

        result = run(runner, "verify", "--root", str(project_root), "--detect-new")
        assert result.exit_code == 1
        assert "UNEXPECTED  src/lib.rs" in result.output


class TestInitConfigCommand:
    """Tests for ``treeseal init-config``."""

    def test_writes_config(self, runner: CliRunner, tmp_path: Path):
        """Test default config is created."""
        path = tmp_path / "treeseal.yaml"
        result = run(runner, "init-config", str(path))

        assert result.exit_code == 0, result.output
        assert "root_marker" in path.read_text()

    def test_refuses_overwrite(self, runner: CliRunner, tmp_path: Path):
        """Test existing file is kept without --force."""
        path = tmp_path / "treeseal.yaml"
        path.write_text("keep: me\n")

        result = run(runner, "init-config", str(path))

        assert result.exit_code == 1
        assert path.read_text() == "keep: me\n"

    def test_force_overwrites(self, runner: CliRunner, tmp_path: Path):
        """Test --force replaces the file."""
        path = tmp_path / "treeseal.yaml"
        path.write_text("keep: me\n")

        result = run(runner, "init-config", str(path), "--force")

        assert result.exit_code == 0
        assert "hashing" in path.read_text()
