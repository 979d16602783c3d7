"""
Shrink Console Output
======================

Rich-powered terminal display for footprint reduction results: one line
per processed file and a closing batch summary.

Uses the ShrinkConsole abstraction for consistent styling.
"""

from __future__ import annotations

from rich.markup import escape

from shared.console import ShrinkConsole

from shrink.core.engine import format_size
from shrink.core.models import BatchSummary, StripResult


class ShrinkConsoleOutput:
    """Rich terminal display for elfshrink results.

    Usage::

        output = ShrinkConsoleOutput()
        output.display(summary)
    """

    def __init__(self, console: ShrinkConsole | None = None) -> None:
        self._console: ShrinkConsole = console or ShrinkConsole()

    def display(self, summary: BatchSummary, program_name: str = "elfshrink") -> None:
        """Display every result followed by the summary line."""
        for result in summary.results:
            self.display_result(result, program_name)
        if summary.results:
            self._console.blank()
            self.display_summary(summary)

    def display_result(self, result: StripResult, program_name: str = "elfshrink") -> None:
        """Print the success or failure line for a single file.

        A file that had to grow (segments referencing bytes past its end)
        is shown as a warning rather than a success.
        """
        path = escape(result.path)
        if not result.success:
            self._console.error(
                f"[shrink.path]{escape(program_name)}:[/shrink.path] "
                f"[shrink.warning]{path}:[/shrink.warning] "
                f"[shrink.error]{escape(result.error or 'unknown error')}[/shrink.error]"
            )
            return

        target = ""
        if result.output_path:
            target = f" → [shrink.path]{escape(result.output_path)}[/shrink.path]"
        line = (
            f"[shrink.path]{path}[/shrink.path]{target}: "
            f"[shrink.size_old]{format_size(result.original_size)}[/shrink.size_old] → "
            f"[shrink.size_new]{format_size(result.final_size)}[/shrink.size_new] "
        )
        if result.bytes_removed < 0:
            self._console.warning(
                line + f"[shrink.delta](+{-result.bytes_removed} bytes)[/shrink.delta]"
            )
            return
        self._console.success(
            line
            + f"[shrink.delta](−{result.bytes_removed} bytes, "
            f"{result.percent_removed:.2f}%)[/shrink.delta]"
        )

    def display_summary(self, summary: BatchSummary) -> None:
        failure_style = "shrink.error" if summary.failures else "shrink.dim"
        self._console.info(
            f"Summary: "
            f"[shrink.success]{summary.successes}[/shrink.success] files successfully processed, "
            f"[{failure_style}]{summary.failures}[/{failure_style}] failures"
        )
