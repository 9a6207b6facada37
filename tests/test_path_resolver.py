#!/usr/bin/env python3
"""
Tests for opening both ends of a transfer and classifying devices
"""

import os
import stat
import sys

import pytest

from filetransfer.exceptions import ErrorKind, PathError
from filetransfer.path_resolver import (
    HandlePair, open_transfer, remove_if_exists, describe_device, free_space
)


class TestOpenTransfer:

    def test_opens_and_reports_metadata(self, tmp_path, make_file, standard_umask):
        source = make_file("source.bin", 5000, mode=0o640)
        destination = tmp_path / "dest.bin"

        handles, metadata = open_transfer(source, destination)
        try:
            assert metadata.total_size == 5000
            assert metadata.source_device == os.stat(source).st_dev
            assert metadata.destination_device is None
            assert destination.exists()
            if sys.platform != 'win32':
                assert metadata.permission_bits == 0o640
                assert stat.S_IMODE(os.stat(destination).st_mode) == 0o640
        finally:
            handles.close()

        assert handles.closed

    def test_move_reads_destination_device(self, tmp_path, make_file):
        source = make_file("source.bin", 10)
        destination = tmp_path / "dest.bin"

        handles, metadata = open_transfer(source, destination, for_move=True)
        handles.close()

        assert metadata.destination_device == os.stat(destination).st_dev
        assert metadata.destination_device == metadata.source_device

    def test_truncates_existing_destination(self, tmp_path, make_file):
        source = make_file("source.bin", 10)
        destination = tmp_path / "dest.bin"
        destination.write_bytes(b"old content that is longer")

        handles, _ = open_transfer(source, destination)
        handles.close()

        assert destination.read_bytes() == b""

    def test_missing_source(self, tmp_path):
        destination = tmp_path / "dest.bin"

        with pytest.raises(PathError) as excinfo:
            open_transfer(tmp_path / "missing.bin", destination)

        assert excinfo.value.kind is ErrorKind.NOT_FOUND
        assert excinfo.value.message == os.strerror(excinfo.value.errno)
        assert excinfo.value.destination_created is False
        assert not destination.exists()

    def test_destination_directory_missing(self, tmp_path, make_file):
        source = make_file("source.bin", 10)

        with pytest.raises(PathError) as excinfo:
            open_transfer(source, tmp_path / "no_such_dir" / "dest.bin")

        assert excinfo.value.kind is ErrorKind.NOT_FOUND
        assert excinfo.value.context['file_path'].endswith("dest.bin")

    def test_directory_source_rejected(self, tmp_path):
        folder = tmp_path / "folder"
        folder.mkdir()

        with pytest.raises(PathError):
            open_transfer(folder, tmp_path / "dest.bin")

        assert not (tmp_path / "dest.bin").exists()

    def test_same_file_rejected_without_truncation(self, make_file):
        source = make_file("source.bin", 300)

        with pytest.raises(PathError) as excinfo:
            open_transfer(source, source)

        assert "same file" in excinfo.value.message
        assert source.stat().st_size == 300

    @pytest.mark.skipif(sys.platform == 'win32' or os.geteuid() == 0,
                        reason="permission bits are not enforced here")
    def test_unreadable_source(self, tmp_path, make_file):
        source = make_file("locked.bin", 10, mode=0o000)
        try:
            with pytest.raises(PathError) as excinfo:
                open_transfer(source, tmp_path / "dest.bin")
            assert excinfo.value.kind is ErrorKind.PERMISSION_DENIED
        finally:
            os.chmod(source, 0o600)


class TestHandlePair:

    def test_close_is_idempotent(self, make_file):
        source = make_file("a.bin", 1)
        fd_in = os.open(source, os.O_RDONLY)
        fd_out = os.open(source, os.O_RDONLY)

        pair = HandlePair(fd_in, fd_out)
        pair.close()
        pair.close()

        assert pair.closed
        with pytest.raises(OSError):
            os.fstat(fd_in)

    def test_close_reports_first_error_after_closing_both(self, make_file):
        source = make_file("a.bin", 1)
        fd_out = os.open(source, os.O_RDONLY)
        bad_fd = os.open(source, os.O_RDONLY)
        os.close(bad_fd)

        pair = HandlePair(bad_fd, fd_out)
        with pytest.raises(OSError):
            pair.close()

        assert pair.closed
        with pytest.raises(OSError):
            os.fstat(fd_out)


class TestHelpers:

    def test_remove_if_exists(self, tmp_path):
        target = tmp_path / "x.bin"
        target.write_bytes(b"x")

        assert remove_if_exists(target) is True
        assert remove_if_exists(target) is False

    def test_describe_device_and_free_space(self, tmp_path):
        assert isinstance(describe_device(tmp_path), str)
        space = free_space(tmp_path / "not_yet_created.bin")
        assert space is None or space >= 0
