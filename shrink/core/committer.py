"""
File Committer
===============

Writes a rewritten ELF header and program header table back to disk and
resizes the file, either in place or on a fresh copy of the input.

Ordering in both modes is: header at offset 0, program header table at
``e_phoff``, then resize.  Nothing is rolled back on failure: if the
resize fails after the headers were written, the file keeps the new
headers and its old length, and the failure is reported to the caller.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO, Sequence

from shrink.core.exceptions import (
    ReadFailedError,
    ResizeFailedError,
    SeekFailedError,
    WriteFailedError,
)
from shrink.core.footprint import DEFAULT_CHUNK_SIZE
from shrink.parsers.elf_parser import ELF64_PHDR_SIZE, ElfHeader, ProgramHeader


def _os_reason(exc: OSError) -> str:
    return exc.strerror or str(exc)


class FileCommitter:
    """Commit rewritten headers and truncate the target file.

    Usage::

        committer = FileCommitter(buffer_size=8192)
        final_size = committer.commit_in_place(path, header, segments, new_size)
    """

    def __init__(self, buffer_size: int = DEFAULT_CHUNK_SIZE) -> None:
        """Initialise the committer.

        Args:
            buffer_size: Chunk length for the copy-to-output path.
        """
        if buffer_size <= 0:
            raise ValueError(f"buffer_size must be positive, got {buffer_size}")
        self._buffer_size = buffer_size

    # ------------------------------------------------------------------ #
    #  Public interface
    # ------------------------------------------------------------------ #

    @staticmethod
    def final_size(header: ElfHeader, new_size: int) -> int:
        """Length the file is resized to: never shorter than its phdr table."""
        return max(new_size, header.phdr_table_end)

    def commit_in_place(
        self,
        path: str | Path,
        header: ElfHeader,
        segments: Sequence[ProgramHeader],
        new_size: int,
    ) -> int:
        """Rewrite *path* itself and truncate it.

        Returns:
            The length the file was resized to.

        Raises:
            WriteFailedError: The file could not be opened or written.
            SeekFailedError: The stream could not be positioned.
            ResizeFailedError: The resize failed (headers already written).
        """
        try:
            stream = open(path, "r+b")
        except OSError as exc:
            raise WriteFailedError(
                f"cannot open {path} for writing: {_os_reason(exc)}"
            ) from exc

        with stream:
            self.write_headers(stream, header, segments)
            return self.resize(stream, self.final_size(header, new_size))

    def commit_to_output(
        self,
        source: str | Path,
        destination: str | Path,
        original_size: int,
        header: ElfHeader,
        segments: Sequence[ProgramHeader],
        new_size: int,
    ) -> int:
        """Copy *source* to *destination*, then rewrite and truncate the copy.

        The full ``original_size`` bytes are copied before any change is
        made; *source* is only ever opened read-only.

        Returns:
            The length *destination* was resized to.
        """
        self.copy_prefix(source, destination, original_size)
        return self.commit_in_place(destination, header, segments, new_size)

    # ------------------------------------------------------------------ #
    #  Building blocks
    # ------------------------------------------------------------------ #

    def copy_prefix(
        self, source: str | Path, destination: str | Path, size: int
    ) -> None:
        """Copy the first *size* bytes of *source* into a new *destination*."""
        try:
            src = open(source, "rb")
        except OSError as exc:
            raise ReadFailedError(
                f"cannot open {source} for reading: {_os_reason(exc)}"
            ) from exc

        with src:
            try:
                dst = open(destination, "wb")
            except OSError as exc:
                raise WriteFailedError(
                    f"cannot create output file {destination}: {_os_reason(exc)}"
                ) from exc

            with dst:
                remaining = size
                while remaining > 0:
                    try:
                        chunk = src.read(min(self._buffer_size, remaining))
                    except OSError as exc:
                        raise ReadFailedError(
                            f"failed to read {source}: {_os_reason(exc)}"
                        ) from exc
                    if not chunk:
                        break
                    try:
                        dst.write(chunk)
                    except OSError as exc:
                        raise WriteFailedError(
                            f"failed to write to output file {destination}: "
                            f"{_os_reason(exc)}"
                        ) from exc
                    remaining -= len(chunk)

    @staticmethod
    def write_headers(
        stream: BinaryIO,
        header: ElfHeader,
        segments: Sequence[ProgramHeader],
    ) -> None:
        """Write the header at offset 0 and each entry into its phdr slot.

        Entries are written ``e_phentsize`` apart; bytes past the first 56
        of a larger slot are left as they are.
        """
        order = header.byte_order

        _seek(stream, 0, "start of file")
        _write(stream, header.pack(), "ELF header")

        if header.e_phentsize == ELF64_PHDR_SIZE:
            _seek(stream, header.e_phoff, "program header table")
            _write(
                stream,
                b"".join(segment.pack(order) for segment in segments),
                "program header table",
            )
        else:
            for index, segment in enumerate(segments):
                _seek(
                    stream,
                    header.e_phoff + index * header.e_phentsize,
                    "program header table",
                )
                _write(stream, segment.pack(order), "program header table")

        try:
            stream.flush()
        except OSError as exc:
            raise WriteFailedError(
                f"failed to write program header table: {_os_reason(exc)}"
            ) from exc

    @staticmethod
    def resize(stream: BinaryIO, size: int) -> int:
        """Set the file length of *stream* to *size*."""
        try:
            stream.flush()
            os.ftruncate(stream.fileno(), size)
        except (OSError, OverflowError) as exc:
            reason = _os_reason(exc) if isinstance(exc, OSError) else str(exc)
            raise ResizeFailedError(f"failed to resize file: {reason}") from exc
        return size


def _seek(stream: BinaryIO, offset: int, what: str) -> None:
    try:
        stream.seek(offset)
    except (OSError, OverflowError, ValueError) as exc:
        raise SeekFailedError(f"failed to seek to {what}: {exc}") from exc


def _write(stream: BinaryIO, data: bytes, what: str) -> None:
    try:
        written = stream.write(data)
    except OSError as exc:
        raise WriteFailedError(
            f"failed to write {what}: {_os_reason(exc)}"
        ) from exc
    if written != len(data):
        raise WriteFailedError(
            f"failed to write {what}: wrote {written} of {len(data)} bytes"
        )
