"""
ELF64 Header Reader
====================

Manual struct-based reader for the parts of the Executable and Linkable
Format (ELF) that the runtime loader depends on: the file header and the
program header table.

Only ``ELFCLASS64`` images are accepted.  The byte order is taken from
``EI_DATA`` and every record is both unpacked and repacked with it, so a
header read here and written back is bit-identical to the input.

Section headers, symbol tables and dynamic entries are deliberately not
parsed: none of them is needed to compute a loader-preserving footprint.

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
    - Linux man page: elf(5).
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO

from shrink.core.exceptions import (
    MalformedHeaderError,
    NoProgramHeadersError,
    NotElfError,
    ReadFailedError,
    TruncatedProgramHeadersError,
    UnsupportedClassError,
    UnsupportedTypeError,
)


# ---------------------------------------------------------------------------
# ELF Constants
# ---------------------------------------------------------------------------

ELF_MAGIC: bytes = b"\x7fELF"
EI_NIDENT: int = 16
EI_CLASS: int = 4
EI_DATA: int = 5

ELFCLASS32: int = 1
ELFCLASS64: int = 2

ELFDATA2LSB: int = 1  # Little-endian
ELFDATA2MSB: int = 2  # Big-endian

ET_NONE: int = 0
ET_REL: int = 1
ET_EXEC: int = 2
ET_DYN: int = 3
ET_CORE: int = 4

_ET_NAMES: dict[int, str] = {
    ET_NONE: "NONE",
    ET_REL: "REL (Relocatable)",
    ET_EXEC: "EXEC (Executable)",
    ET_DYN: "DYN (Shared object)",
    ET_CORE: "CORE (Core dump)",
}

PT_NULL: int = 0
PT_LOAD: int = 1
PT_DYNAMIC: int = 2
PT_INTERP: int = 3
PT_NOTE: int = 4
PT_SHLIB: int = 5
PT_PHDR: int = 6
PT_TLS: int = 7
PT_GNU_EH_FRAME: int = 0x6474E550
PT_GNU_STACK: int = 0x6474E551
PT_GNU_RELRO: int = 0x6474E552

_PT_NAMES: dict[int, str] = {
    PT_NULL: "NULL",
    PT_LOAD: "LOAD",
    PT_DYNAMIC: "DYNAMIC",
    PT_INTERP: "INTERP",
    PT_NOTE: "NOTE",
    PT_SHLIB: "SHLIB",
    PT_PHDR: "PHDR",
    PT_TLS: "TLS",
    PT_GNU_EH_FRAME: "GNU_EH_FRAME",
    PT_GNU_STACK: "GNU_STACK",
    PT_GNU_RELRO: "GNU_RELRO",
}

PF_X: int = 0x1
PF_W: int = 0x2
PF_R: int = 0x4

# Elf64_Ehdr: e_ident[16] + 13 fixed-width fields = 64 bytes
_EHDR_FMT: str = "16sHHIQQQIHHHHHH"
# Elf64_Phdr: 56 bytes
_PHDR_FMT: str = "IIQQQQQQ"

ELF64_EHDR_SIZE: int = struct.calcsize("<" + _EHDR_FMT)
ELF64_PHDR_SIZE: int = struct.calcsize("<" + _PHDR_FMT)

UINT64_MAX: int = 0xFFFF_FFFF_FFFF_FFFF


def _byte_order(ident: bytes) -> str:
    return ">" if ident[EI_DATA] == ELFDATA2MSB else "<"


# ---------------------------------------------------------------------------
# Parsed structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ElfHeader:
    """Parsed Elf64_Ehdr.

    ``e_ident`` is kept verbatim so that repacking reproduces the
    identification bytes (OS ABI, padding) exactly.
    """

    e_ident: bytes
    e_type: int
    e_machine: int
    e_version: int
    e_entry: int
    e_phoff: int
    e_shoff: int
    e_flags: int
    e_ehsize: int
    e_phentsize: int
    e_phnum: int
    e_shentsize: int
    e_shnum: int
    e_shstrndx: int

    @property
    def byte_order(self) -> str:
        """``struct`` byte-order prefix derived from ``EI_DATA``."""
        return _byte_order(self.e_ident)

    @property
    def phdr_table_size(self) -> int:
        return self.e_phnum * self.e_phentsize

    @property
    def phdr_table_end(self) -> int:
        """File offset one past the last program header entry."""
        return self.e_phoff + self.phdr_table_size

    @property
    def type_name(self) -> str:
        return _ET_NAMES.get(self.e_type, f"0x{self.e_type:x}")

    @classmethod
    def unpack(cls, data: bytes) -> ElfHeader:
        """Decode the first 64 bytes of *data*."""
        return cls(*struct.unpack_from(_byte_order(data) + _EHDR_FMT, data, 0))

    def pack(self) -> bytes:
        return struct.pack(
            self.byte_order + _EHDR_FMT,
            self.e_ident, self.e_type, self.e_machine, self.e_version,
            self.e_entry, self.e_phoff, self.e_shoff, self.e_flags,
            self.e_ehsize, self.e_phentsize, self.e_phnum,
            self.e_shentsize, self.e_shnum, self.e_shstrndx,
        )


@dataclass(frozen=True, slots=True)
class ProgramHeader:
    """Parsed Elf64_Phdr (segment descriptor)."""

    p_type: int
    p_flags: int
    p_offset: int
    p_vaddr: int
    p_paddr: int
    p_filesz: int
    p_memsz: int
    p_align: int

    @property
    def is_null(self) -> bool:
        """``PT_NULL`` entries carry no load-time meaning."""
        return self.p_type == PT_NULL

    @property
    def file_end(self) -> int:
        return self.p_offset + self.p_filesz

    @property
    def type_name(self) -> str:
        return _PT_NAMES.get(self.p_type, f"0x{self.p_type:x}")

    @property
    def flags_str(self) -> str:
        """Permission flags as e.g. ``"R-X"``."""
        return "".join(
            ch if self.p_flags & bit else "-"
            for ch, bit in (("R", PF_R), ("W", PF_W), ("X", PF_X))
        )

    @classmethod
    def unpack(cls, data: bytes, offset: int, byte_order: str) -> ProgramHeader:
        return cls(*struct.unpack_from(byte_order + _PHDR_FMT, data, offset))

    def pack(self, byte_order: str) -> bytes:
        return struct.pack(
            byte_order + _PHDR_FMT,
            self.p_type, self.p_flags, self.p_offset, self.p_vaddr,
            self.p_paddr, self.p_filesz, self.p_memsz, self.p_align,
        )


# ---------------------------------------------------------------------------
# ELF Reader
# ---------------------------------------------------------------------------

class ELFReader:
    """Read and validate the ELF header and program header table.

    The reader only moves the stream's read cursor; it never writes.

    Usage::

        with open(path, "rb") as fh:
            header, segments = ELFReader(fh).read()
    """

    def __init__(self, stream: BinaryIO) -> None:
        """Initialise the reader.

        Args:
            stream: Readable, seekable binary stream positioned anywhere.
        """
        self._stream = stream

    def read(self) -> tuple[ElfHeader, tuple[ProgramHeader, ...]]:
        """Parse the header and the full program header table.

        Returns:
            ``(header, segments)`` with ``len(segments) == header.e_phnum``.

        Raises:
            MalformedHeaderError: Short or inconsistent header.
            NotElfError: Wrong magic number.
            UnsupportedClassError: Not an ELF64 image.
            UnsupportedTypeError: Neither ``ET_EXEC`` nor ``ET_DYN``.
            NoProgramHeadersError: ``e_phoff`` or ``e_phnum`` is zero.
            TruncatedProgramHeadersError: Table cannot be read in full.
        """
        header = self.read_header()
        return header, self.read_program_headers(header)

    def read_header(self) -> ElfHeader:
        """Read and validate the 64-byte ELF header at offset 0."""
        try:
            self._stream.seek(0)
            raw = self._stream.read(ELF64_EHDR_SIZE)
        except OSError as exc:
            raise ReadFailedError(f"failed to read ELF header: {exc}") from exc

        if len(raw) < ELF64_EHDR_SIZE:
            raise MalformedHeaderError(
                f"failed to read ELF header: got {len(raw)} of "
                f"{ELF64_EHDR_SIZE} bytes"
            )
        if raw[:4] != ELF_MAGIC:
            raise NotElfError("not a valid ELF file")

        if raw[EI_CLASS] != ELFCLASS64:
            raise UnsupportedClassError(
                f"unsupported ELF class {raw[EI_CLASS]} (only 64-bit ELF is supported)"
            )
        if raw[EI_DATA] not in (ELFDATA2LSB, ELFDATA2MSB):
            raise MalformedHeaderError(
                f"invalid ELF data encoding {raw[EI_DATA]}"
            )

        header = ElfHeader.unpack(raw)

        if header.e_type not in (ET_EXEC, ET_DYN):
            raise UnsupportedTypeError(
                f"not an executable or shared-object library "
                f"(type {header.type_name})"
            )
        if header.e_phoff == 0 or header.e_phnum == 0:
            raise NoProgramHeadersError("ELF file has no program header table")
        if header.e_phentsize < ELF64_PHDR_SIZE:
            raise MalformedHeaderError(
                f"program header entry size {header.e_phentsize} is smaller "
                f"than {ELF64_PHDR_SIZE}"
            )
        if header.phdr_table_end > UINT64_MAX:
            raise MalformedHeaderError(
                "program header table extends beyond the 64-bit offset range"
            )
        return header

    def read_program_headers(
        self, header: ElfHeader
    ) -> tuple[ProgramHeader, ...]:
        """Read ``e_phnum`` entries of ``e_phentsize`` bytes at ``e_phoff``.

        Only the first 56 bytes of each slot are decoded; any extra
        per-entry bytes are left on disk untouched.
        """
        table_size = header.phdr_table_size
        try:
            self._stream.seek(header.e_phoff)
        except (OSError, OverflowError, ValueError) as exc:
            raise TruncatedProgramHeadersError(
                f"cannot seek to program header table: {exc}"
            ) from exc
        try:
            raw = self._stream.read(table_size)
        except OSError as exc:
            raise TruncatedProgramHeadersError(
                f"failed to read program header table: {exc}"
            ) from exc
        if len(raw) != table_size:
            raise TruncatedProgramHeadersError(
                f"failed to read program header table: got {len(raw)} of "
                f"{table_size} bytes"
            )

        order = header.byte_order
        return tuple(
            ProgramHeader.unpack(raw, i * header.e_phentsize, order)
            for i in range(header.e_phnum)
        )
