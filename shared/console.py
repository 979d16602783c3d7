"""
elfshrink Console Interface
============================

Rich-powered console abstraction providing a unified presentation layer
for the command-line front end.

The class wraps :class:`rich.console.Console` and adds severity-coloured
message helpers with consistent styling.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.theme import Theme

# ---------------------------------------------------------------------------
# Theme -- consistent palette across all elfshrink output
# ---------------------------------------------------------------------------
_SHRINK_THEME = Theme(
    {
        "shrink.success": "bold green",
        "shrink.warning": "bold yellow",
        "shrink.error": "bold red",
        "shrink.info": "bold bright_blue",
        "shrink.dim": "dim white",
        "shrink.path": "bold",
        "shrink.size_old": "yellow",
        "shrink.size_new": "green",
        "shrink.delta": "magenta",
    }
)


class ShrinkConsole:
    """Unified console interface for elfshrink.

    Messages are printed with ``soft_wrap`` so long paths stay on one line.

    Usage::

        con = ShrinkConsole()
        con.success("/tmp/a.out: 16 KB -> 4 KB")
    """

    # ------------------------------------------------------------------ #
    #  Construction
    # ------------------------------------------------------------------ #

    def __init__(
        self,
        *,
        quiet: bool = False,
        record: bool = False,
        color: bool = True,
        file: Any = None,
    ) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (useful in library / test mode).
            record: Enable Rich recording for :meth:`export_text`.
            color:  Emit ANSI colour codes.
            file:   Optional text stream; defaults to stdout.
        """
        self._console = Console(
            theme=_SHRINK_THEME,
            quiet=quiet,
            record=record,
            highlight=False,
            no_color=not color,
            file=file,
        )

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        """Print a success message."""
        self._console.print(
            f"[shrink.success]✔[/shrink.success] {message}",
            soft_wrap=True,
        )

    def warning(self, message: str) -> None:
        """Print a warning message."""
        self._console.print(
            f"[shrink.warning]⚠[/shrink.warning] {message}",
            soft_wrap=True,
        )

    def error(self, message: str) -> None:
        """Print an error message."""
        self._console.print(
            f"[shrink.error]✘[/shrink.error] {message}",
            soft_wrap=True,
        )

    def info(self, message: str) -> None:
        """Print an informational message."""
        self._console.print(
            f"[shrink.info]ℹ[/shrink.info] {message}",
            soft_wrap=True,
        )

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def blank(self, count: int = 1) -> None:
        """Print *count* blank lines."""
        for _ in range(count):
            self._console.print()

    def export_text(self) -> str:
        """Export recorded console output as plain text (requires ``record=True``)."""
        return self._console.export_text()
