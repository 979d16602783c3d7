"""
Footprint Calculator
=====================

Determines the smallest file length that still contains every byte the
runtime loader can reference: the ELF header, the program header table,
and the file image of every non-``PT_NULL`` segment.

The optional trailing-zero scan can only shrink that boundary further.
"""

from __future__ import annotations

from typing import BinaryIO, Iterable

from shrink.core.exceptions import (
    EmptyOrAllZeroFileError,
    MalformedHeaderError,
    ReadFailedError,
    SeekFailedError,
)
from shrink.parsers.elf_parser import UINT64_MAX, ElfHeader, ProgramHeader

DEFAULT_CHUNK_SIZE: int = 8192


def minimum_size(header: ElfHeader, segments: Iterable[ProgramHeader]) -> int:
    """Return the minimal file length preserving all referenced data.

    The result is the maximum of ``e_ehsize``, the end of the program
    header table, and ``p_offset + p_filesz`` for every segment whose type
    is not ``PT_NULL``.  Segment order does not matter.

    Raises:
        MalformedHeaderError: A segment's file range ends past 2**64-1.
    """
    size = max(header.e_ehsize, header.phdr_table_end)

    for segment in segments:
        if segment.is_null:
            continue
        end = segment.file_end
        if end > UINT64_MAX:
            raise MalformedHeaderError(
                f"{segment.type_name} segment at offset 0x{segment.p_offset:x} "
                f"extends beyond the 64-bit offset range"
            )
        size = max(size, end)

    return size


def last_nonzero_offset(
    stream: BinaryIO,
    start: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """Scan backward from *start* and return one past the last non-zero byte.

    The region ``[0, start)`` is read in chunks of *chunk_size* bytes,
    highest chunk first.  *chunk_size* only affects I/O granularity.

    Args:
        stream: Readable, seekable binary stream.
        start: Exclusive upper bound of the scan (the current footprint).
        chunk_size: Bytes read per step.

    Returns:
        ``index_of_last_nonzero_byte + 1``, always ``<= start``.

    Raises:
        ValueError: *chunk_size* is not positive.
        SeekFailedError: The stream could not be positioned.
        ReadFailedError: A chunk could not be read in full.
        EmptyOrAllZeroFileError: Every byte in ``[0, start)`` is zero.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    position = start
    while position > 0:
        length = min(position, chunk_size)
        position -= length

        try:
            stream.seek(position)
        except (OSError, OverflowError, ValueError) as exc:
            raise SeekFailedError(
                f"seek error while scanning for trailing zeros: {exc}"
            ) from exc
        try:
            chunk = stream.read(length)
        except OSError as exc:
            raise ReadFailedError(
                f"read error while scanning for trailing zeros: {exc}"
            ) from exc
        if len(chunk) != length:
            raise ReadFailedError(
                f"read error while scanning for trailing zeros: got "
                f"{len(chunk)} of {length} bytes at offset 0x{position:x}"
            )

        stripped = chunk.rstrip(b"\x00")
        if stripped:
            return position + len(stripped)

    raise EmptyOrAllZeroFileError("ELF file contains no non-zero bytes")
