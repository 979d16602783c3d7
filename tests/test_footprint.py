"""Tests for minimum-size computation and the trailing-zero scan."""

from __future__ import annotations

import io
import itertools

import pytest

from shrink.core.exceptions import (
    EmptyOrAllZeroFileError,
    MalformedHeaderError,
    ReadFailedError,
)
from shrink.core.footprint import last_nonzero_offset, minimum_size
from shrink.parsers.elf_parser import PT_NULL, ELFReader

from tests.conftest import build_elf, seg


def parse(image: bytes):
    return ELFReader(io.BytesIO(image)).read()


class TestMinimumSize:
    def test_documented_example(self, example_image):
        header, segments = parse(example_image)
        assert minimum_size(header, segments) == 1200

    def test_covers_header_and_table(self):
        # Segment ends before the program header table does
        header, segments = parse(build_elf([seg(0, 10)], 512))
        assert minimum_size(header, segments) == header.phdr_table_end == 120

    def test_covers_declared_header_size(self):
        header, segments = parse(build_elf([seg(0, 10)], 512, ehsize=300))
        assert minimum_size(header, segments) == 300

    def test_null_segments_are_ignored(self):
        image = build_elf([seg(3000, 500, p_type=PT_NULL), seg(0, 400)], 4096)
        header, segments = parse(image)
        assert minimum_size(header, segments) == 400

    def test_order_independent(self):
        entries = [seg(0, 400), seg(1000, 24, p_type=4), seg(600, 300)]
        sizes = set()
        for perm in itertools.permutations(entries):
            header, segments = parse(build_elf(list(perm), 4096))
            sizes.add(minimum_size(header, segments))
        assert sizes == {1024}

    def test_bounds_every_non_null_segment(self):
        header, segments = parse(
            build_elf([seg(0, 400), seg(500, 100, p_type=7), seg(700, 0)], 4096)
        )
        size = minimum_size(header, segments)
        assert size >= header.phdr_table_end
        assert all(size >= s.file_end for s in segments if not s.is_null)

    def test_segment_end_overflow(self):
        header, segments = parse(
            build_elf([seg(0xFFFF_FFFF_FFFF_FF00, 0x1000, vaddr=0)], 512)
        )
        with pytest.raises(MalformedHeaderError):
            minimum_size(header, segments)


class TestLastNonzeroOffset:
    def test_documented_example(self, example_image):
        image = bytearray(example_image)
        image[1150:1200] = bytes(50)
        assert image[1149] != 0
        assert last_nonzero_offset(io.BytesIO(bytes(image)), 1200) == 1150

    def test_no_trailing_zeros(self, example_image):
        assert last_nonzero_offset(io.BytesIO(example_image), 1200) == 1200

    @pytest.mark.parametrize("chunk_size", [1, 7, 64, 8192])
    def test_chunk_size_does_not_change_result(self, chunk_size):
        data = b"\x01" + bytes(300) + b"\x02" + bytes(700)
        assert last_nonzero_offset(io.BytesIO(data), len(data), chunk_size) == 302

    def test_ignores_data_past_start(self):
        data = b"\x01" + bytes(99) + b"\xff" * 100
        assert last_nonzero_offset(io.BytesIO(data), 100) == 1

    def test_never_grows(self):
        data = bytes(range(1, 256)) * 4
        assert last_nonzero_offset(io.BytesIO(data), 500, 16) <= 500

    def test_all_zero_is_fatal(self):
        with pytest.raises(EmptyOrAllZeroFileError):
            last_nonzero_offset(io.BytesIO(bytes(4096)), 4096, 512)

    def test_scan_past_end_of_stream(self):
        with pytest.raises(ReadFailedError):
            last_nonzero_offset(io.BytesIO(b"\x01" * 100), 200, 64)

    def test_rejects_non_positive_chunk(self):
        with pytest.raises(ValueError):
            last_nonzero_offset(io.BytesIO(b"\x01"), 1, 0)
