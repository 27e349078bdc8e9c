"""Reading and writing the plain-text integrity manifest.

Each line is ``<hex digest><two spaces><relative path>\\n``, the format
produced by ``sha256sum`` in text mode. There is no header or footer.
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Iterator

from treeseal.exceptions import EnumerationError, MalformedRecordError
from treeseal.models.integrity import ManifestRecord
from treeseal.utils.logging import logger

SEPARATOR = "  "


def format_record(record: ManifestRecord) -> str:
    """Render a record as one manifest line.

    Args:
        record: Record to render.

    Returns:
        Canonical line including the trailing newline.

    Raises:
        EnumerationError: If the path cannot be represented on one line.
    """
    if "\n" in record.path or "\r" in record.path:
        raise EnumerationError(f"Path contains a line break: {record.path!r}")
    if record.path.startswith("./"):
        raise EnumerationError(f"Path is not normalized: {record.path}")
    return f"{record.digest}{SEPARATOR}{record.path}\n"


def parse_record(line: str, line_number: int = 0) -> ManifestRecord:
    """Parse one manifest line into a record.

    The line is split on the first occurrence of two consecutive spaces, so
    paths may themselves contain spaces.

    Args:
        line: Line with line endings already removed.
        line_number: 1-based line number for error messages.

    Returns:
        Parsed ManifestRecord.

    Raises:
        MalformedRecordError: If the separator is missing or a field is empty.
    """
    digest, sep, path = line.partition(SEPARATOR)
    if not sep:
        raise MalformedRecordError(line_number, line, "missing two-space separator")
    if not digest:
        raise MalformedRecordError(line_number, line, "empty digest")
    if not path:
        raise MalformedRecordError(line_number, line, "empty path")
    return ManifestRecord(digest=digest, path=path)


def iter_manifest_lines(manifest_path: Path) -> Iterator[tuple[int, str]]:
    """Yield non-blank manifest lines with their line numbers.

    Trailing CR characters are stripped so manifests written with CRLF line
    endings read the same as LF ones. Bytes that are not valid UTF-8 decode
    to surrogate escapes, the same way ``os.fsdecode`` decodes file names,
    so such paths still resolve to the files they name.

    Args:
        manifest_path: Path to the manifest file.

    Yields:
        (line_number, line) tuples.
    """
    with open(
        manifest_path, "r", encoding="utf-8", errors="surrogateescape", newline=""
    ) as f:
        for line_number, raw in enumerate(f, start=1):
            line = raw.rstrip("\r\n")
            if not line:
                continue
            yield line_number, line


def read_manifest(manifest_path: Path) -> list[ManifestRecord]:
    """Read all records of a well-formed manifest.

    Args:
        manifest_path: Path to the manifest file.

    Returns:
        Records in file order.

    Raises:
        MalformedRecordError: On the first line that is not a valid record.
    """
    return [parse_record(line, n) for n, line in iter_manifest_lines(manifest_path)]


class ManifestWriter:
    """Writes a manifest atomically.

    Records go to a temporary file next to the manifest, which replaces the
    manifest only when the ``with`` block exits cleanly. On error the
    temporary file is removed and any previous manifest is left untouched.
    """

    def __init__(self, manifest_path: Path) -> None:
        """Initialize writer.

        Args:
            manifest_path: Final manifest location.
        """
        self.manifest_path = Path(manifest_path)
        self.written = 0
        self._seen: set[str] = set()
        self._file: Any = None
        self._temp_path: Path | None = None

    def write(self, record: ManifestRecord) -> bool:
        """Append one record.

        Args:
            record: Record to write.

        Returns:
            True if written, False if the path was already written.
        """
        if self._file is None:
            raise RuntimeError("ManifestWriter used outside of a with block")

        if record.path in self._seen:
            logger.warning(f"Duplicate path not written twice: {record.path}")
            return False

        self._file.write(format_record(record))
        self._seen.add(record.path)
        self.written += 1
        return True

    def __enter__(self) -> "ManifestWriter":
        """Open the temporary file."""
        self.manifest_path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self.manifest_path.parent,
            prefix=f".{self.manifest_path.name}.",
            suffix=".tmp",
        )
        self._temp_path = Path(temp_path)
        # Undecodable file names are written back as their original bytes
        self._file = os.fdopen(
            fd, "w", encoding="utf-8", errors="surrogateescape", newline="\n"
        )
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Publish the manifest, or discard it on error."""
        file, self._file = self._file, None
        temp_path = self._temp_path

        if exc_type is not None:
            file.close()
            temp_path.unlink(missing_ok=True)
            logger.debug(f"Discarded partial manifest {temp_path}")
            return

        try:
            file.flush()
            os.fsync(file.fileno())
            file.close()
            os.chmod(temp_path, 0o644)
            os.replace(temp_path, self.manifest_path)
        except OSError:
            if not file.closed:
                file.close()
            temp_path.unlink(missing_ok=True)
            raise

        logger.debug(f"Wrote {self.written} records to {self.manifest_path}")
