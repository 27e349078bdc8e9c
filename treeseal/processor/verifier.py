"""Verification of a project tree against its manifest."""

import time
from pathlib import Path
from typing import Callable

from treeseal.exceptions import ConfigError, DigestError, MalformedRecordError
from treeseal.models.integrity import RecordResult, RecordStatus, VerificationReport
from treeseal.processor.enumerator import FileEnumerator
from treeseal.processor.ignore_rules import IgnoreRules
from treeseal.utils.hashing import DEFAULT_ALGORITHM, DEFAULT_CHUNK_SIZE, compute_file_hash
from treeseal.utils.logging import OperationLogger
from treeseal.utils.manifest import iter_manifest_lines, parse_record
from treeseal.utils.parallel import ordered_map


class ManifestVerifier:
    """Rehashes every file listed in a manifest and compares digests.

    A run never stops at a failing record: every line yields exactly one
    RecordResult, so the report is always complete. Only a missing manifest
    aborts, before any record is read.
    """

    def __init__(
        self,
        root: Path,
        manifest_path: Path,
        algorithm: str = DEFAULT_ALGORITHM,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        jobs: int = 1,
        operation_logger: OperationLogger | None = None,
    ) -> None:
        """Initialize verifier.

        Args:
            root: Directory the manifest paths are relative to.
            manifest_path: Manifest to verify against.
            algorithm: hashlib algorithm the manifest was generated with.
            chunk_size: Read size for hashing.
            jobs: Number of hashing threads.
            operation_logger: Optional audit logger.
        """
        self.root = Path(root)
        self.manifest_path = Path(manifest_path)
        self.algorithm = algorithm
        self.chunk_size = chunk_size
        self.jobs = jobs
        self.op_logger = operation_logger or OperationLogger()

    def verify(
        self,
        detect_new: FileEnumerator | None = None,
        rules: IgnoreRules | None = None,
        result_callback: Callable[[RecordResult], None] | None = None,
    ) -> VerificationReport:
        """Verify the tree.

        Args:
            detect_new: If given, enumerate the tree with this backend and
                report included files absent from the manifest as UNEXPECTED.
            rules: Ignore rules applied to new-file detection.
            result_callback: Called with each result in report order.

        Returns:
            VerificationReport with per-record results and counters.

        Raises:
            ConfigError: If the manifest file does not exist.
        """
        if not self.manifest_path.is_file():
            raise ConfigError(
                f"Manifest not found: {self.manifest_path} (run 'treeseal generate' first)"
            )

        start_time = time.time()
        report = VerificationReport(manifest_path=self.manifest_path)
        self.op_logger.log_run_start(
            "verify", self.root, {"manifest": str(self.manifest_path)}
        )

        listed: set[str] = set()
        lines = list(iter_manifest_lines(self.manifest_path))

        for result in ordered_map(self._check_line, lines, self.jobs):
            if result.status is not RecordStatus.MALFORMED:
                listed.add(result.path)
            self._record(report, result, result_callback)

        if detect_new is not None:
            for result in self.find_unexpected(detect_new, listed, rules):
                self._record(report, result, result_callback)

        self.op_logger.log_run_complete(
            "verify",
            success=report.passed,
            counts={"pass": report.pass_count, "fail": report.fail_count},
            duration_seconds=time.time() - start_time,
        )
        return report

    def check_record(self, path: str, expected_digest: str) -> RecordResult:
        """Check one file against its expected digest.

        Args:
            path: Relative path from the manifest.
            expected_digest: Digest recorded in the manifest.

        Returns:
            RecordResult with status OK, MISSING or MISMATCH.
        """
        file_path = self.root / path

        try:
            is_file = file_path.is_file()
        except OSError as e:
            # ENAMETOOLONG, or EACCES on an unsearchable parent directory
            missing = isinstance(e, (FileNotFoundError, NotADirectoryError))
            return RecordResult(
                status=RecordStatus.MISSING if missing else RecordStatus.MISMATCH,
                path=path,
                expected_digest=expected_digest,
                detail=e.strerror or str(e),
            )

        if not is_file:
            return RecordResult(
                status=RecordStatus.MISSING,
                path=path,
                expected_digest=expected_digest,
            )

        try:
            actual = compute_file_hash(file_path, self.algorithm, self.chunk_size)
        except DigestError as e:
            status = RecordStatus.MISSING if e.missing else RecordStatus.MISMATCH
            return RecordResult(
                status=status,
                path=path,
                expected_digest=expected_digest,
                detail=e.reason,
            )

        status = RecordStatus.OK if actual == expected_digest else RecordStatus.MISMATCH
        return RecordResult(
            status=status,
            path=path,
            expected_digest=expected_digest,
            actual_digest=actual,
        )

    def find_unexpected(
        self,
        enumerator: FileEnumerator,
        listed: set[str],
        rules: IgnoreRules | None = None,
    ) -> list[RecordResult]:
        """Find included files that the manifest does not list.

        Args:
            enumerator: Enumeration backend for the tree.
            listed: Paths present in the manifest.
            rules: Ignore rules; excluded files are never unexpected.

        Returns:
            UNEXPECTED results in enumeration order.
        """
        rules = rules or IgnoreRules()
        results = []
        for path in enumerator.iter_files():
            if path in listed or rules.is_excluded(path):
                continue
            listed.add(path)
            results.append(
                RecordResult(
                    status=RecordStatus.UNEXPECTED,
                    path=path,
                    detail="not listed in manifest",
                )
            )
        return results

    def _check_line(self, numbered_line: tuple[int, str]) -> RecordResult:
        line_number, line = numbered_line
        try:
            record = parse_record(line, line_number)
        except MalformedRecordError as e:
            return RecordResult(
                status=RecordStatus.MALFORMED,
                path=line,
                line_number=line_number,
                detail=e.reason,
            )

        result = self.check_record(record.path, record.digest)
        result.line_number = line_number
        return result

    def _record(
        self,
        report: VerificationReport,
        result: RecordResult,
        result_callback: Callable[[RecordResult], None] | None,
    ) -> None:
        report.add(result)
        self.op_logger.log_record("verify", result)
        if result_callback:
            result_callback(result)
