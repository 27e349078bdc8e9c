"""CLI commands using Typer."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from treeseal.cli.config import (
    Config,
    create_default_config,
    load_config,
    require_project_root,
    validate_config,
)
from treeseal.cli.output import RichOutput, display_text
from treeseal.exceptions import ConfigError, EnumerationError, TreesealError
from treeseal.utils.logging import OperationLogger, setup_logging

app = typer.Typer(
    name="treeseal",
    help="Tamper-evident file integrity manifests - record every file's SHA-256 and detect changes later.",
    add_completion=False,
)
console = Console()
output = RichOutput(console)

ROOT_OPTION = typer.Option(Path("."), "--root", "-r", help="Project root directory")
CONFIG_OPTION = typer.Option(None, "--config", help="Path to config file")
MANIFEST_OPTION = typer.Option(None, "--manifest", "-m", help="Manifest file, relative to root")
ROOT_MARKER_OPTION = typer.Option(
    None, "--root-marker", help="File that must exist in the project root"
)
IGNORE_FILE_OPTION = typer.Option(
    None, "--ignore-file", "-i", help="Ignore rules file, relative to root"
)
JOBS_OPTION = typer.Option(None, "--jobs", "-j", help="Number of hashing threads")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Show debug logging")
LOG_FILE_OPTION = typer.Option(None, "--log-file", help="Write debug log to file")
AUDIT_LOG_OPTION = typer.Option(None, "--audit-log", help="Append JSONL audit records to file")


def get_config(
    root: Path,
    config_path: Optional[Path],
    manifest: Optional[str] = None,
    root_marker: Optional[str] = None,
    jobs: Optional[int] = None,
    ignore_file: Optional[str] = None,
    log_file: Optional[Path] = None,
    audit_log: Optional[Path] = None,
    verbose: bool = False,
) -> Config:
    """Load configuration, apply CLI overrides and check prerequisites.

    Args:
        root: Project root.
        config_path: Optional path to config file.
        manifest: Manifest path override.
        root_marker: Root marker override.
        jobs: Hashing threads override.
        ignore_file: Ignore file override.
        log_file: Log file override.
        audit_log: Audit log override.
        verbose: Enable debug logging.

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If configuration is invalid or the root marker is missing.
    """
    config = load_config(root, config_path)

    if manifest is not None:
        config.manifest.path = manifest
    if ignore_file is not None:
        config.manifest.ignore_file = ignore_file
    if root_marker is not None:
        config.project.root_marker = root_marker
    if jobs is not None:
        config.hashing.jobs = jobs
    if log_file is not None:
        config.logging.log_file = log_file
    elif config.logging.log_file and not config.logging.log_file.is_absolute():
        config.logging.log_file = root / config.logging.log_file
    if audit_log is not None:
        config.logging.audit_log = audit_log
    elif config.logging.audit_log and not config.logging.audit_log.is_absolute():
        config.logging.audit_log = root / config.logging.audit_log

    issues = validate_config(config)
    if issues:
        raise ConfigError("; ".join(issues))

    setup_logging(config.logging.level, config.logging.log_file, verbose)
    require_project_root(root, config)
    return config


@app.command()
def generate(
    root: Path = ROOT_OPTION,
    config_path: Optional[Path] = CONFIG_OPTION,
    manifest: Optional[str] = MANIFEST_OPTION,
    ignore_file: Optional[str] = IGNORE_FILE_OPTION,
    root_marker: Optional[str] = ROOT_MARKER_OPTION,
    jobs: Optional[int] = JOBS_OPTION,
    verbose: bool = VERBOSE_OPTION,
    log_file: Optional[Path] = LOG_FILE_OPTION,
    audit_log: Optional[Path] = AUDIT_LOG_OPTION,
) -> None:
    """Generate the integrity manifest for the project tree.

    Lists files with git when inside a work tree (the filesystem otherwise),
    drops paths matching the ignore rules, and writes one digest per file.
    """
    from treeseal.processor.enumerator import select_enumerator
    from treeseal.processor.generator import ManifestGenerator
    from treeseal.processor.ignore_rules import IgnoreRules

    try:
        config = get_config(
            root,
            config_path,
            manifest=manifest,
            root_marker=root_marker,
            jobs=jobs,
            ignore_file=ignore_file,
            log_file=log_file,
            audit_log=audit_log,
            verbose=verbose,
        )

        rules = IgnoreRules.load(root / config.manifest.ignore_file)
        enumerator = select_enumerator(
            root, config.manifest.path, config.project.metadata_dir
        )
        generator = ManifestGenerator(
            root=root,
            manifest_path=root / config.manifest.path,
            enumerator=enumerator,
            rules=rules,
            algorithm=config.hashing.algorithm,
            chunk_size=config.hashing.chunk_size,
            jobs=config.hashing.jobs,
            operation_logger=OperationLogger(config.logging.audit_log),
        )

        if output.console.is_terminal:
            with output.create_progress_bar() as progress:
                task = progress.add_task("Hashing...", total=None)

                def progress_callback(current: int, total: int, path: str) -> None:
                    progress.update(
                        task,
                        completed=current,
                        total=total,
                        description=display_text(path[-50:]),
                    )

                summary = generator.generate(progress_callback=progress_callback)
        else:
            summary = generator.generate()

    except EnumerationError as e:
        output.print_error(str(e), "Manifest not written; any previous manifest is unchanged")
        raise typer.Exit(1)
    except TreesealError as e:
        output.print_error(str(e))
        raise typer.Exit(1)

    output.print_generation_summary(summary)


@app.command()
def verify(
    root: Path = ROOT_OPTION,
    config_path: Optional[Path] = CONFIG_OPTION,
    manifest: Optional[str] = MANIFEST_OPTION,
    ignore_file: Optional[str] = IGNORE_FILE_OPTION,
    root_marker: Optional[str] = ROOT_MARKER_OPTION,
    detect_new: bool = typer.Option(
        False,
        "--detect-new",
        help="Also fail on files present in the tree but absent from the manifest",
    ),
    jobs: Optional[int] = JOBS_OPTION,
    verbose: bool = VERBOSE_OPTION,
    log_file: Optional[Path] = LOG_FILE_OPTION,
    audit_log: Optional[Path] = AUDIT_LOG_OPTION,
) -> None:
    """Verify the project tree against the integrity manifest.

    Prints one line per record and a PASS/FAIL summary. Exits with status 1
    if any file is missing or modified.
    """
    from treeseal.processor.enumerator import select_enumerator
    from treeseal.processor.ignore_rules import IgnoreRules
    from treeseal.processor.verifier import ManifestVerifier

    try:
        config = get_config(
            root,
            config_path,
            manifest=manifest,
            root_marker=root_marker,
            jobs=jobs,
            ignore_file=ignore_file,
            log_file=log_file,
            audit_log=audit_log,
            verbose=verbose,
        )

        verifier = ManifestVerifier(
            root=root,
            manifest_path=root / config.manifest.path,
            algorithm=config.hashing.algorithm,
            chunk_size=config.hashing.chunk_size,
            jobs=config.hashing.jobs,
            operation_logger=OperationLogger(config.logging.audit_log),
        )

        enumerator = None
        rules = None
        if detect_new:
            enumerator = select_enumerator(
                root, config.manifest.path, config.project.metadata_dir
            )
            rules = IgnoreRules.load(root / config.manifest.ignore_file)

        report = verifier.verify(
            detect_new=enumerator,
            rules=rules,
            result_callback=output.print_record_result,
        )

    except TreesealError as e:
        output.print_error(str(e))
        raise typer.Exit(1)

    output.print_verification_summary(report)
    if not report.passed:
        raise typer.Exit(1)


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(
        Path("treeseal.yaml"),
        help="Config file to create",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing file",
    ),
) -> None:
    """Write a commented default configuration file."""
    if path.exists() and not force:
        output.print_error(f"{path} already exists (use --force to overwrite)")
        raise typer.Exit(1)

    create_default_config(path)
    output.print_success(f"Configuration written to {path}")


if __name__ == "__main__":
    app()
