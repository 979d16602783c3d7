"""
Shrink Data Models
===================

Pydantic models describing the outcome of processing one file and of a
whole batch.  These are what the engine hands back to its callers and
what the ``--json`` output mode serialises.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StripResult(BaseModel):
    """Outcome of reducing a single ELF file.

    Attributes:
        path: Input file.
        output_path: Destination file when a copy was written, else ``None``.
        success: Whether the file was rewritten and resized.
        original_size: Input length in bytes.
        minimum_size: Footprint before optional zero stripping.
        new_size: Footprint that was committed (after zero stripping).
        final_size: Length the file was actually resized to.
        error_kind: Stable error identifier (e.g. ``"NotElf"``) on failure.
        error: Human-readable failure message.
    """

    model_config = ConfigDict(validate_assignment=True, extra="ignore")

    path: str = Field(..., min_length=1)
    output_path: Optional[str] = None
    success: bool = False
    original_size: int = Field(default=0, ge=0)
    minimum_size: int = Field(default=0, ge=0)
    new_size: int = Field(default=0, ge=0)
    final_size: int = Field(default=0, ge=0)
    error_kind: Optional[str] = None
    error: Optional[str] = None

    @property
    def bytes_removed(self) -> int:
        """Bytes removed from disk; negative if the file had to grow."""
        if not self.success:
            return 0
        return self.original_size - self.final_size

    @property
    def percent_removed(self) -> float:
        if not self.success or self.original_size == 0:
            return 0.0
        return self.bytes_removed / self.original_size * 100.0


class BatchSummary(BaseModel):
    """Aggregated results for a run over several files."""

    results: list[StripResult] = Field(default_factory=list)

    @property
    def successes(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failures(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def total_bytes_removed(self) -> int:
        return sum(r.bytes_removed for r in self.results)

    @property
    def ok(self) -> bool:
        """``True`` when every file was processed successfully."""
        return self.failures == 0

    def add(self, result: StripResult) -> None:
        self.results.append(result)

    def to_report(self) -> dict:
        """JSON-ready dictionary including the derived counters."""
        return {
            "results": [
                {
                    **r.model_dump(mode="json"),
                    "bytes_removed": r.bytes_removed,
                    "percent_removed": round(r.percent_removed, 2),
                }
                for r in self.results
            ],
            "successes": self.successes,
            "failures": self.failures,
            "total_bytes_removed": self.total_bytes_removed,
        }
