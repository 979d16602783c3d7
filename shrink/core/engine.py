"""
Shrink Engine
==============

Orchestrates the footprint reduction pipeline for one file and for a
batch of files.

Pipeline (per file):
    1. Stat the input to record its original size
    2. Read and validate the ELF header and program header table
    3. Compute the minimum loader-preserving size
    4. Optionally scan backward for trailing zero bytes
    5. Rewrite header and segment fields for the new size (pure)
    6. Commit: in place, or on a full copy written to the output path

Every file is processed start to finish before the next one begins.
Failures are recorded per file; a bad file never aborts the batch.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Optional

from shared.config import ShrinkConfig
from shared.logger import ShrinkLogger

from shrink.core.committer import FileCommitter
from shrink.core.exceptions import ElfShrinkError, ReadFailedError
from shrink.core.footprint import last_nonzero_offset, minimum_size
from shrink.core.models import BatchSummary, StripResult
from shrink.core.rewriter import rewrite_headers
from shrink.parsers.elf_parser import ELFReader


def format_size(size: int) -> str:
    """Format *size* as ``bytes``, ``KB`` or ``MB`` plus the raw count."""
    if size < 1024:
        return f"{size} bytes"
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB ({size} bytes)"
    return f"{size / (1024 * 1024):.2f} MB ({size} bytes)"


class ShrinkEngine:
    """Runs the reduce-and-truncate pipeline.

    Usage::

        engine = ShrinkEngine()
        result = engine.strip_file("/tmp/a.out", strip_zeros=True)
        print(result.original_size, "->", result.new_size)
    """

    def __init__(
        self,
        config: ShrinkConfig | None = None,
        logger: ShrinkLogger | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: Configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.
        """
        self._config: ShrinkConfig = config or ShrinkConfig()
        self._logger: ShrinkLogger = logger or ShrinkLogger("engine")
        self._committer = FileCommitter(self._config.shrink.buffer_size)

    # ------------------------------------------------------------------ #
    #  Public interface
    # ------------------------------------------------------------------ #

    def strip_file(
        self,
        path: str | Path,
        strip_zeros: Optional[bool] = None,
        output_path: str | Path | None = None,
    ) -> StripResult:
        """Process one file, recording any failure in the result.

        Args:
            path: ELF executable or shared object to reduce.
            strip_zeros: Also drop trailing zero bytes.  ``None`` means
                use the configured default.
            output_path: Write the result here and leave *path* untouched.

        Returns:
            A :class:`StripResult`; ``success`` is ``False`` on any error.
        """
        result = StripResult(
            path=str(path),
            output_path=str(output_path) if output_path is not None else None,
        )
        with self._logger.operation(str(path)):
            try:
                self._run(result, strip_zeros, output_path)
            except ElfShrinkError as exc:
                result.error_kind = exc.kind
                result.error = exc.message
                self._logger.error("%s: %s", path, exc.message)
            except OSError as exc:
                result.error_kind = type(exc).__name__
                result.error = exc.strerror or str(exc)
                self._logger.error("%s: %s", path, result.error)
        return result

    def strip_many(
        self,
        paths: Iterable[str | Path],
        strip_zeros: Optional[bool] = None,
        output_path: str | Path | None = None,
    ) -> BatchSummary:
        """Process *paths* one after another and collect the results.

        Raises:
            ValueError: *output_path* was given together with more than
                one input file.
        """
        paths = list(paths)
        if output_path is not None and len(paths) > 1:
            raise ValueError("an output path can only be used with a single input file")

        summary = BatchSummary()
        for path in paths:
            summary.add(self.strip_file(path, strip_zeros, output_path))

        self._logger.debug(
            "Batch finished: %d succeeded, %d failed",
            summary.successes,
            summary.failures,
        )
        return summary

    # ------------------------------------------------------------------ #
    #  Pipeline
    # ------------------------------------------------------------------ #

    def _run(
        self,
        result: StripResult,
        strip_zeros: Optional[bool],
        output_path: str | Path | None,
    ) -> None:
        if strip_zeros is None:
            strip_zeros = self._config.shrink.strip_zeros
        path = result.path

        try:
            original_size = os.stat(path).st_size
        except OSError as exc:
            raise ReadFailedError(
                f"cannot stat file: {exc.strerror or exc}"
            ) from exc
        result.original_size = original_size
        self._logger.info(
            "Processing: %s (original size: %s)", path, format_size(original_size)
        )

        with self._logger.timed(f"footprint of {path}"):
            try:
                stream = open(path, "rb")
            except OSError as exc:
                raise ReadFailedError(
                    f"cannot open file: {exc.strerror or exc}"
                ) from exc

            with stream:
                header, segments = ELFReader(stream).read()
                self._logger.debug(
                    "%s, %d program headers at 0x%x (entry size %d), "
                    "section headers at 0x%x",
                    header.type_name,
                    header.e_phnum,
                    header.e_phoff,
                    header.e_phentsize,
                    header.e_shoff,
                )
                for segment in segments:
                    self._logger.debug(
                        "  %-12s %s offset=0x%x filesz=0x%x memsz=0x%x",
                        segment.type_name,
                        segment.flags_str,
                        segment.p_offset,
                        segment.p_filesz,
                        segment.p_memsz,
                    )

                new_size = minimum_size(header, segments)
                result.minimum_size = new_size
                self._logger.info("Minimum required size: %s", format_size(new_size))
                if new_size > original_size:
                    self._logger.warning(
                        "Segments reference %d bytes past the end of the file; "
                        "the file will be extended",
                        new_size - original_size,
                    )

                if strip_zeros:
                    # Bytes past EOF would read back as zeros
                    new_size = last_nonzero_offset(
                        stream,
                        min(new_size, original_size),
                        self._config.shrink.buffer_size,
                    )
                    self._logger.info(
                        "Size after zero stripping: %s (removed %d bytes)",
                        format_size(new_size),
                        result.minimum_size - new_size,
                    )

        new_header, new_segments = rewrite_headers(header, segments, new_size)
        result.new_size = new_size

        if output_path is not None and not _same_file(path, output_path):
            result.final_size = self._committer.commit_to_output(
                path, output_path, original_size, new_header, new_segments, new_size
            )
        else:
            if output_path is not None:
                self._logger.warning(
                    "Output path refers to the input file; modifying it in place"
                )
                result.output_path = None
            result.final_size = self._committer.commit_in_place(
                path, new_header, new_segments, new_size
            )

        result.success = True


def _same_file(a: str | Path, b: str | Path) -> bool:
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False
