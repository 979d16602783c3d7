"""
Header Rewriter
================

Pure transformation of the ELF header and program header table so that
they stay consistent with a file truncated to a given length.  No I/O is
performed here; :mod:`shrink.core.committer` writes the result.

Only file-image fields change.  ``p_memsz`` is never touched: the loader
zero-fills the part of a segment's memory image that the file does not
provide.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from shrink.parsers.elf_parser import ElfHeader, ProgramHeader


def rewrite_header(header: ElfHeader, new_size: int) -> ElfHeader:
    """Drop the section header table reference if it lies past *new_size*."""
    if header.e_shoff >= new_size:
        return replace(header, e_shoff=0, e_shnum=0, e_shstrndx=0)
    return header


def rewrite_segment(segment: ProgramHeader, new_size: int) -> ProgramHeader:
    """Clip one segment's file range to ``[0, new_size)``.

    A segment starting at or past *new_size* becomes an empty segment
    anchored at the new end of file.
    """
    if segment.p_offset >= new_size:
        return replace(segment, p_offset=new_size, p_filesz=0)
    if segment.file_end > new_size:
        return replace(segment, p_filesz=new_size - segment.p_offset)
    return segment


def rewrite_headers(
    header: ElfHeader,
    segments: Iterable[ProgramHeader],
    new_size: int,
) -> tuple[ElfHeader, tuple[ProgramHeader, ...]]:
    """Return ``(header, segments)`` adjusted for truncation to *new_size*.

    Applying this twice with the same *new_size* yields the same result
    as applying it once.
    """
    return (
        rewrite_header(header, new_size),
        tuple(rewrite_segment(segment, new_size) for segment in segments),
    )
