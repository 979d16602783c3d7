"""
Shrink Error Taxonomy
======================

Every failure the core can raise while processing one file.  All of them
are per-file and non-retryable: they describe either a malformed or
unsupported input, or an OS-level I/O failure.

Each class carries a stable :attr:`kind` string so that results can be
serialised and compared without importing the exception types.
"""

from __future__ import annotations


class ElfShrinkError(Exception):
    """Base class for all elfshrink failures."""

    kind: str = "ElfShrinkError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotElfError(ElfShrinkError):
    """The file does not start with the ELF magic number."""

    kind = "NotElf"


class UnsupportedTypeError(ElfShrinkError):
    """The ELF file type is neither ``ET_EXEC`` nor ``ET_DYN``."""

    kind = "UnsupportedType"


class UnsupportedClassError(ElfShrinkError):
    """The ELF file is not a 64-bit (``ELFCLASS64``) image."""

    kind = "UnsupportedClass"


class NoProgramHeadersError(ElfShrinkError):
    """The ELF header declares no program header table."""

    kind = "NoProgramHeaders"


class MalformedHeaderError(ElfShrinkError):
    """The ELF header is short or internally inconsistent."""

    kind = "MalformedHeader"


class TruncatedProgramHeadersError(ElfShrinkError):
    """The program header table could not be read in full."""

    kind = "TruncatedProgramHeaders"


class SeekFailedError(ElfShrinkError):
    kind = "SeekFailed"


class ReadFailedError(ElfShrinkError):
    kind = "ReadFailed"


class WriteFailedError(ElfShrinkError):
    kind = "WriteFailed"


class ResizeFailedError(ElfShrinkError):
    kind = "ResizeFailed"


class EmptyOrAllZeroFileError(ElfShrinkError):
    """Zero stripping found no non-zero byte down to offset 0."""

    kind = "EmptyOrAllZeroFile"
