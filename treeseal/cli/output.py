"""Rich console output formatting."""

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from treeseal.models.integrity import (
    GenerationSummary,
    RecordResult,
    RecordStatus,
    VerificationReport,
)

STATUS_STYLES = {
    RecordStatus.OK: "green",
    RecordStatus.MISSING: "red",
    RecordStatus.MISMATCH: "red",
    RecordStatus.MALFORMED: "red",
    RecordStatus.UNEXPECTED: "yellow",
}


def display_text(text: str) -> str:
    """Escape markup and make undecodable file name bytes printable."""
    return escape(text.encode("utf-8", "backslashreplace").decode("utf-8"))


class RichOutput:
    """Rich console output formatting."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize with Rich console.

        Args:
            console: Rich Console instance.
        """
        self.console = console or Console()

    def print_record_result(self, result: RecordResult) -> None:
        """Display one verification line: status then path.

        Args:
            result: Result to display.
        """
        style = STATUS_STYLES[result.status]
        line = f"[{style}]{result.status.value}[/{style}]  {display_text(result.label)}"
        if result.detail and result.status is not RecordStatus.UNEXPECTED:
            line += f" [dim]({display_text(result.detail)})[/dim]"
        self.console.print(line, soft_wrap=True, highlight=False)

    def print_verification_summary(self, report: VerificationReport) -> None:
        """Display final PASS/FAIL counts.

        Args:
            report: Verification report.
        """
        self.console.print("---", highlight=False)
        self.console.print(
            f"PASS: {report.pass_count}, FAIL: {report.fail_count}", highlight=False
        )
        if report.passed:
            self.print_success("All files verified")
        else:
            self.console.print("[bold red]Integrity check failed[/bold red]")

    def print_generation_summary(self, summary: GenerationSummary) -> None:
        """Display generation counts.

        Args:
            summary: Generation summary.
        """
        self.console.print("---", highlight=False)
        self.console.print(f"Source: {summary.source}", highlight=False)
        self.console.print(
            f"Total files: {summary.total}; Added: {summary.written}; "
            f"Skipped: {summary.skipped}",
            highlight=False,
        )
        if summary.duplicates:
            self.print_warning(f"{summary.duplicates} duplicate paths ignored")
        self.print_success(f"Generated {display_text(summary.manifest_path.name)}")

    def print_error(self, message: str, details: str | None = None) -> None:
        """Display error message.

        Args:
            message: Error message.
            details: Optional additional details.
        """
        self.console.print(f"[bold red]Error:[/bold red] {display_text(message)}", soft_wrap=True)
        if details:
            self.console.print(f"[dim]{display_text(details)}[/dim]")

    def print_success(self, message: str) -> None:
        """Display success message.

        Args:
            message: Success message.
        """
        self.console.print(f"[bold green]Success:[/bold green] {message}", soft_wrap=True)

    def print_warning(self, message: str) -> None:
        """Display warning message.

        Args:
            message: Warning message.
        """
        self.console.print(f"[bold yellow]Warning:[/bold yellow] {display_text(message)}", soft_wrap=True)

    def create_progress_bar(self) -> Progress:
        """Create a Rich progress bar.

        Returns:
            Progress instance.
        """
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
