"""Tests for the in-place and copy-to-output commit paths."""

from __future__ import annotations

import errno
import io

import pytest

from shrink.core import committer as committer_module
from shrink.core.committer import FileCommitter
from shrink.core.exceptions import ReadFailedError, ResizeFailedError, WriteFailedError
from shrink.core.rewriter import rewrite_headers
from shrink.parsers.elf_parser import ELFReader

from tests.conftest import build_elf, seg


def prepare(image: bytes, new_size: int):
    header, segments = ELFReader(io.BytesIO(image)).read()
    return rewrite_headers(header, segments, new_size)


class TestInPlace:
    def test_truncates_and_rewrites(self, tmp_path, example_image):
        path = tmp_path / "a.out"
        path.write_bytes(example_image)
        header, segments = prepare(example_image, 1200)

        final = FileCommitter(64).commit_in_place(path, header, segments, 1200)

        data = path.read_bytes()
        assert final == 1200
        assert len(data) == 1200
        assert data[:64] == header.pack()
        assert header.e_shoff == 0
        # Segment contents are byte-identical to the original
        assert data[176:1200] == example_image[176:1200]

    def test_never_shorter_than_program_header_table(self, tmp_path, example_image):
        path = tmp_path / "a.out"
        path.write_bytes(example_image)
        header, segments = prepare(example_image, 100)

        final = FileCommitter().commit_in_place(path, header, segments, 100)

        assert final == header.phdr_table_end == 176
        assert path.stat().st_size == 176

    def test_extra_phdr_bytes_are_left_alone(self, tmp_path):
        image = bytearray(build_elf([seg(0, 300), seg(300, 50)], 1024, phentsize=64))
        image[64 + 56:64 + 64] = b"\x11" * 8
        image = bytes(image)
        path = tmp_path / "wide"
        path.write_bytes(image)
        header, segments = prepare(image, 320)

        FileCommitter().commit_in_place(path, header, segments, 320)

        data = path.read_bytes()
        assert len(data) == 320
        assert data[64 + 56:64 + 64] == b"\x11" * 8
        reread = ELFReader(io.BytesIO(data)).read()[1]
        assert reread[1].p_filesz == 20

    def test_missing_file(self, tmp_path, example_image):
        header, segments = prepare(example_image, 1200)
        with pytest.raises(WriteFailedError):
            FileCommitter().commit_in_place(tmp_path / "nope", header, segments, 1200)

    def test_resize_failure_leaves_new_header(self, tmp_path, example_image, monkeypatch):
        path = tmp_path / "a.out"
        path.write_bytes(example_image)
        header, segments = prepare(example_image, 1200)

        def fail(fd, size):
            raise OSError(errno.EFBIG, "File too large")

        monkeypatch.setattr(committer_module.os, "ftruncate", fail)

        with pytest.raises(ResizeFailedError, match="File too large"):
            FileCommitter().commit_in_place(path, header, segments, 1200)

        data = path.read_bytes()
        assert len(data) == len(example_image)
        assert data[:64] == header.pack()


class TestCopyToOutput:
    def test_source_is_untouched(self, tmp_path, example_image):
        source = tmp_path / "a.out"
        dest = tmp_path / "a.small"
        source.write_bytes(example_image)
        header, segments = prepare(example_image, 1200)

        final = FileCommitter(100).commit_to_output(
            source, dest, len(example_image), header, segments, 1200
        )

        assert final == 1200
        assert source.read_bytes() == example_image
        data = dest.read_bytes()
        assert len(data) == 1200
        assert data[:64] == header.pack()
        assert data[176:1200] == example_image[176:1200]

    def test_overwrites_existing_destination(self, tmp_path, example_image):
        source = tmp_path / "a.out"
        dest = tmp_path / "a.small"
        source.write_bytes(example_image)
        dest.write_bytes(b"stale" * 10_000)
        header, segments = prepare(example_image, 1200)

        FileCommitter().commit_to_output(
            source, dest, len(example_image), header, segments, 1200
        )

        assert dest.stat().st_size == 1200

    def test_unwritable_destination(self, tmp_path, example_image):
        source = tmp_path / "a.out"
        source.write_bytes(example_image)
        header, segments = prepare(example_image, 1200)

        with pytest.raises(WriteFailedError):
            FileCommitter().commit_to_output(
                source,
                tmp_path / "missing-dir" / "out",
                len(example_image),
                header,
                segments,
                1200,
            )

    def test_missing_source(self, tmp_path, example_image):
        header, segments = prepare(example_image, 1200)
        with pytest.raises(ReadFailedError):
            FileCommitter().copy_prefix(tmp_path / "gone", tmp_path / "out", 10)


def test_rejects_non_positive_buffer():
    with pytest.raises(ValueError):
        FileCommitter(0)
