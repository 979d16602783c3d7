"""Shared fixtures: synthetic ELF64 images built with :mod:`struct`."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Callable, Sequence

import pytest

from shared.config import ShrinkConfig
from shared.logger import ShrinkLogger
from shrink.parsers.elf_parser import (
    ELFCLASS64,
    ELFDATA2LSB,
    ELFDATA2MSB,
    ET_DYN,
    PF_R,
    PF_X,
    PT_LOAD,
)

FILL = 0xAA


def seg(
    offset: int,
    filesz: int,
    p_type: int = PT_LOAD,
    memsz: int | None = None,
    flags: int = PF_R | PF_X,
    vaddr: int = 0x400000,
    align: int = 0x1000,
) -> tuple[int, ...]:
    """Program header tuple in Elf64_Phdr field order."""
    return (
        p_type,
        flags,
        offset,
        vaddr + offset,
        vaddr + offset,
        filesz,
        filesz if memsz is None else memsz,
        align,
    )


def build_elf(
    segments: Sequence[tuple[int, ...]],
    size: int,
    *,
    e_type: int = ET_DYN,
    ei_class: int = ELFCLASS64,
    ei_data: int = ELFDATA2LSB,
    phoff: int = 64,
    phnum: int | None = None,
    phentsize: int = 56,
    ehsize: int = 64,
    shoff: int = 0,
    shnum: int = 0,
    shstrndx: int = 0,
    zero_from: int | None = None,
    zero_to: int | None = None,
) -> bytes:
    """Assemble an ELF64 image of *size* bytes.

    Everything outside the header and program header table is filled with
    ``0xAA``; ``[zero_from, zero_to)`` is then cleared to zero.
    """
    order = ">" if ei_data == ELFDATA2MSB else "<"
    buf = bytearray([FILL]) * size

    ident = b"\x7fELF" + bytes([ei_class, ei_data, 1, 0]) + bytes(8)
    header = struct.pack(
        order + "16sHHIQQQIHHHHHH",
        ident, e_type, 62, 1, 0x401000, phoff, shoff, 0,
        ehsize, phentsize, len(segments) if phnum is None else phnum,
        64, shnum, shstrndx,
    )
    buf[0:64] = header

    for index, entry in enumerate(segments):
        raw = struct.pack(order + "IIQQQQQQ", *entry)
        raw += bytes(phentsize - len(raw))
        start = phoff + index * phentsize
        buf[start:start + phentsize] = raw

    if zero_from is not None:
        end = size if zero_to is None else zero_to
        buf[zero_from:end] = bytes(end - zero_from)

    return bytes(buf[:size])


@pytest.fixture
def write_elf(tmp_path: Path) -> Callable[..., Path]:
    """Write a :func:`build_elf` image into ``tmp_path`` and return its path."""

    def _write(name: str = "a.out", *args, **kwargs) -> Path:
        path = tmp_path / name
        path.write_bytes(build_elf(*args, **kwargs))
        return path

    return _write


@pytest.fixture
def example_image() -> bytes:
    """Two program headers (table ends at 176), LOAD spanning 176..1200,
    section headers at 2000, file length 4096."""
    return build_elf(
        [seg(64, 112, p_type=6), seg(176, 1024)],
        4096,
        shoff=2000,
        shnum=5,
        shstrndx=4,
    )


@pytest.fixture
def quiet_logger() -> ShrinkLogger:
    return ShrinkLogger("test", log_level="DEBUG", console_output=False)


@pytest.fixture
def config() -> ShrinkConfig:
    cfg = ShrinkConfig()
    cfg.shrink.buffer_size = 64
    return cfg
