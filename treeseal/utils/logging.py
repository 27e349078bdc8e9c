"""Logging configuration and utilities."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from treeseal.models.integrity import RecordResult

# Create module logger
logger = logging.getLogger("treeseal")


def setup_logging(
    level: str = "WARNING",
    log_file: Path | None = None,
    verbose: bool = False,
) -> None:
    """Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path to log file.
        verbose: If True, log debug information with timestamps.
    """
    # Set level
    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING)
    logger.setLevel(logging.DEBUG if log_file else log_level)

    # Clear existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)

    # Format - simpler for console
    if verbose:
        console_format = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    else:
        console_format = logging.Formatter("%(message)s")

    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    # File handler if specified
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # Always verbose in file

        file_format = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        file_handler.setFormatter(file_format)
        logger.addHandler(file_handler)


class OperationLogger:
    """Structured audit trail of generate/verify runs with JSONL output."""

    def __init__(self, log_path: Path | None = None) -> None:
        """Initialize operation logger.

        Args:
            log_path: Path to JSONL log file. None disables the audit trail.
        """
        self.log_path = log_path
        if log_path:
            log_path.parent.mkdir(parents=True, exist_ok=True)

    def log_run_start(
        self,
        operation: str,
        root: Path,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Log start of a generate or verify run.

        Args:
            operation: "generate" or "verify".
            root: Project root.
            details: Additional details (enumeration source, manifest path).
        """
        logger.info(f"Starting {operation} in {root}")
        self._append(
            {
                "event": "run_start",
                "operation": operation,
                "root": str(root),
                "details": details or {},
            }
        )

    def log_record(self, operation: str, result: "RecordResult") -> None:
        """Log a single verification record.

        Only failures are written to the audit file; passing records are
        logged at DEBUG.

        Args:
            operation: Operation name.
            result: Record result.
        """
        if not result.status.is_failure:
            logger.debug(f"{operation}: {result.path} - OK")
            return

        logger.warning(f"{operation}: {result.label} - {result.status.value}")
        self._append({"event": "record", "operation": operation, **result.to_dict()})

    def log_run_complete(
        self,
        operation: str,
        success: bool,
        counts: dict[str, int],
        duration_seconds: float,
    ) -> None:
        """Log completion of a run.

        Args:
            operation: Operation name.
            success: Whether the run succeeded.
            counts: Summary counters.
            duration_seconds: Total run time.
        """
        summary = ", ".join(f"{k}={v}" for k, v in counts.items())
        logger.info(
            f"{operation} {'succeeded' if success else 'failed'}: {summary} "
            f"in {duration_seconds:.2f}s"
        )
        self._append(
            {
                "event": "run_complete",
                "operation": operation,
                "success": success,
                "counts": counts,
                "duration_seconds": duration_seconds,
            }
        )

    def log_error(self, operation: str, error: Exception) -> None:
        """Log a fatal error that aborted a run.

        Args:
            operation: Operation that failed.
            error: Exception that occurred.
        """
        logger.error(f"{operation} failed: {error}")
        self._append(
            {
                "event": "run_error",
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
            }
        )

    def _append(self, entry: dict[str, Any]) -> None:
        """Append entry to the JSONL file, if enabled."""
        if not self.log_path:
            return

        import json

        entry = {"timestamp": datetime.now().isoformat(), **entry}
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")
