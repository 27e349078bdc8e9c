"""Manifest generation: enumerate, filter, hash, write."""

import time
from pathlib import Path
from typing import Callable

from treeseal.exceptions import DigestError, EnumerationError
from treeseal.models.integrity import GenerationSummary, ManifestRecord
from treeseal.processor.enumerator import FileEnumerator
from treeseal.processor.ignore_rules import IgnoreRules
from treeseal.utils.hashing import DEFAULT_ALGORITHM, DEFAULT_CHUNK_SIZE, compute_file_hash
from treeseal.utils.logging import OperationLogger, logger
from treeseal.utils.manifest import ManifestWriter
from treeseal.utils.parallel import ordered_map


class ManifestGenerator:
    """Builds a fresh manifest for a project tree.

    Orchestrates the full workflow: enumerate -> filter -> hash -> write.
    Generation is all-or-nothing: if any included file cannot be hashed the
    run aborts and the previous manifest, if any, is kept.
    """

    def __init__(
        self,
        root: Path,
        manifest_path: Path,
        enumerator: FileEnumerator,
        rules: IgnoreRules | None = None,
        algorithm: str = DEFAULT_ALGORITHM,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        jobs: int = 1,
        operation_logger: OperationLogger | None = None,
    ) -> None:
        """Initialize generator.

        Args:
            root: Project root directory.
            manifest_path: Manifest output path.
            enumerator: Enumeration backend.
            rules: Ignore rules applied to every candidate.
            algorithm: hashlib algorithm name.
            chunk_size: Read size for hashing.
            jobs: Number of hashing threads.
            operation_logger: Optional audit logger.
        """
        self.root = Path(root)
        self.manifest_path = Path(manifest_path)
        self.enumerator = enumerator
        self.rules = rules or IgnoreRules()
        self.algorithm = algorithm
        self.chunk_size = chunk_size
        self.jobs = jobs
        self.op_logger = operation_logger or OperationLogger()

    def collect_candidates(self, summary: GenerationSummary) -> list[str]:
        """Enumerate and filter candidate paths.

        Updates the total, skipped and duplicate counters of summary.

        Args:
            summary: Summary being built for this run.

        Returns:
            Included paths in enumeration order.
        """
        included = []
        seen: set[str] = set()

        for path in self.enumerator.iter_files():
            if path in seen:
                summary.duplicates += 1
                logger.warning(f"Duplicate path from {self.enumerator.source}: {path}")
                continue
            seen.add(path)
            summary.total += 1

            rule = self.rules.match(path)
            if rule is not None:
                summary.skipped += 1
                logger.debug(f"Skipped {path} (rule {rule!r})")
                continue

            included.append(path)

        return included

    def generate(
        self,
        progress_callback: Callable[[int, int, str], None] | None = None,
    ) -> GenerationSummary:
        """Generate the manifest.

        Args:
            progress_callback: Optional callback(current, total, path).

        Returns:
            GenerationSummary with counts.

        Raises:
            EnumerationError: If a listed file can't be hashed or listing fails.
        """
        start_time = time.time()
        summary = GenerationSummary(
            source=self.enumerator.source,
            manifest_path=self.manifest_path,
        )
        self.op_logger.log_run_start(
            "generate",
            self.root,
            {"source": summary.source, "manifest": str(self.manifest_path)},
        )

        try:
            included = self.collect_candidates(summary)

            with ManifestWriter(self.manifest_path) as writer:
                records = ordered_map(self._hash_path, included, self.jobs)
                for i, record in enumerate(records, start=1):
                    writer.write(record)
                    if progress_callback:
                        progress_callback(i, len(included), record.path)

            summary.written = writer.written

        except EnumerationError as e:
            self.op_logger.log_error("generate", e)
            raise

        self.op_logger.log_run_complete(
            "generate",
            success=True,
            counts={
                "total": summary.total,
                "written": summary.written,
                "skipped": summary.skipped,
            },
            duration_seconds=time.time() - start_time,
        )
        return summary

    def _hash_path(self, path: str) -> ManifestRecord:
        """Hash one included file.

        Args:
            path: Normalized relative path.

        Returns:
            ManifestRecord for the file.

        Raises:
            EnumerationError: If the file vanished or can't be read.
        """
        try:
            digest = compute_file_hash(self.root / path, self.algorithm, self.chunk_size)
        except DigestError as e:
            if e.missing:
                raise EnumerationError(
                    f"File disappeared before it could be hashed: {path}"
                ) from e
            raise EnumerationError(f"Cannot read {path}: {e.reason}") from e

        logger.debug(f"Hashed {path}")
        return ManifestRecord(digest=digest, path=path)
