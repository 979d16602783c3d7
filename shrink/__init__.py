"""
elfshrink -- ELF Footprint Reducer
====================================

Truncates ELF64 executables and shared objects to the smallest length
that still holds everything the runtime loader reads: the ELF header,
the program header table, and the file image of every segment.
Trailing zero padding can optionally be dropped as well.

Components:
    - ELF reader (header and program header table validation)
    - Footprint calculator (minimum size, trailing-zero scan)
    - Header rewriter (pure adjustment of offsets and sizes)
    - File committer (in place, or on a copy of the input)

References:
    - TIS Committee. (1995). ELF Specification, Version 1.2.
    - Raiter, B. sstrip, ELFkickers.
"""

__version__ = "1.0.0"
