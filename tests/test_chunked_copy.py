#!/usr/bin/env python3
"""
Tests for the chunked copy engine: integrity, progress, short writes and
failure cleanup
"""

import errno
import os
import stat
import sys
from unittest.mock import patch

import pytest

from filetransfer.chunked_copy import ChunkedCopyEngine, write_fully
from filetransfer.exceptions import ErrorKind, TransferIOError
from filetransfer.models import TransferRequest, OPERATION_MOVE
from filetransfer.result_types import TransferResult

_real_write = os.write
_real_read = os.read


def _copy_request(source, destination, recorder, with_progress=True):
    return TransferRequest(
        source, destination, recorder.on_complete,
        recorder.on_progress if with_progress else None
    )


class TestWriteFully:

    def test_short_writes_are_retried_with_the_tail(self, tmp_path):
        target = tmp_path / "out.bin"
        data = bytes(range(256)) * 4
        sizes = []

        def short_write(fd, buf):
            sizes.append(len(buf))
            return _real_write(fd, bytes(buf[:100]))

        fd = os.open(target, os.O_WRONLY | os.O_CREAT)
        try:
            with patch('filetransfer.chunked_copy.os.write', side_effect=short_write):
                written = write_fully(fd, data)
        finally:
            os.close(fd)

        assert written == len(data)
        assert target.read_bytes() == data
        assert sizes[:3] == [1024, 924, 824]

    def test_repeated_zero_writes_fail(self, tmp_path):
        fd = os.open(tmp_path / "out.bin", os.O_WRONLY | os.O_CREAT)
        try:
            with patch('filetransfer.chunked_copy.os.write', return_value=0) as mocked:
                with pytest.raises(TransferIOError) as excinfo:
                    write_fully(fd, b"abc", max_zero_writes=3)
        finally:
            os.close(fd)

        assert mocked.call_count == 3
        assert excinfo.value.errno == errno.EIO
        assert excinfo.value.kind is ErrorKind.OTHER

    def test_zero_write_counter_resets_after_progress(self, tmp_path):
        target = tmp_path / "out.bin"
        results = iter([0, 0, 1, 0, 0, 2])

        def flaky_write(fd, buf):
            n = next(results)
            if n:
                _real_write(fd, bytes(buf[:n]))
            return n

        fd = os.open(target, os.O_WRONLY | os.O_CREAT)
        try:
            with patch('filetransfer.chunked_copy.os.write', side_effect=flaky_write):
                assert write_fully(fd, b"xyz", max_zero_writes=3) == 3
        finally:
            os.close(fd)

        assert target.read_bytes() == b"xyz"


class TestEngineCopy:

    def test_round_trip_preserves_content_and_mode(self, tmp_path, make_file, engine,
                                                   recorder, standard_umask):
        source = make_file("source.bin", 250_000, mode=0o640)
        destination = tmp_path / "copy.bin"

        result = engine.copy(_copy_request(source, destination, recorder))

        assert result.success
        assert isinstance(result, TransferResult)
        assert destination.read_bytes() == source.read_bytes()
        assert source.exists()
        if sys.platform != 'win32':
            assert stat.S_IMODE(os.stat(destination).st_mode) == 0o640
        assert recorder.completion == (None, True)

    def test_one_million_bytes_scenario(self, tmp_path, make_file, engine, recorder):
        source = make_file("million.bin", 1_000_000)
        destination = tmp_path / "million_copy.bin"

        result = engine.copy(_copy_request(source, destination, recorder))

        assert result.success
        assert result.value.chunks == 62
        assert result.value.bytes_transferred == 1_000_000
        assert result.bytes_transferred == 1_000_000

        # every full chunk crosses the 10000-byte step, then one final notification
        assert len(recorder.progress) == 62
        assert recorder.progress[-1] == (1_000_000, 1_000_000)
        assert all(total == 1_000_000 for _, total in recorder.progress)
        steps = [b - a for a, b in zip(recorder.done_values, recorder.done_values[1:-1])]
        assert all(step > 10_000 for step in steps)

        assert recorder.completion == (None, True)
        assert recorder.events[-1] == ('complete', None, True)

    def test_progress_is_monotonic_and_ends_at_total(self, tmp_path, make_file, engine, recorder):
        source = make_file("source.bin", 123_457)

        engine.copy(_copy_request(source, tmp_path / "dest.bin", recorder))

        values = recorder.done_values
        assert values == sorted(values)
        assert recorder.progress[-1] == (123_457, 123_457)

    def test_empty_file(self, tmp_path, make_file, engine, recorder):
        source = make_file("empty.bin", 0)
        destination = tmp_path / "empty_copy.bin"

        result = engine.copy(_copy_request(source, destination, recorder))

        assert result.success
        assert destination.exists()
        assert destination.stat().st_size == 0
        assert recorder.progress == [(0, 0)]
        assert recorder.completion == (None, True)

    def test_without_progress_channel(self, tmp_path, make_file, engine, recorder):
        source = make_file("source.bin", 40_000)

        result = engine.copy(_copy_request(source, tmp_path / "dest.bin", recorder, with_progress=False))

        assert result.success
        assert result.value.progress_notifications == 0
        assert recorder.progress == []
        assert recorder.completion == (None, True)

    def test_fsync_runs_before_success(self, tmp_path, make_file, engine, recorder):
        source = make_file("source.bin", 2000)

        with patch('filetransfer.chunked_copy.os.fsync') as mocked_fsync:
            engine.copy(_copy_request(source, tmp_path / "dest.bin", recorder))

        mocked_fsync.assert_called_once()

    def test_fsync_can_be_disabled(self, tmp_path, make_file, settings, recorder):
        settings.fsync_enabled = False
        source = make_file("source.bin", 2000)

        engine = ChunkedCopyEngine.from_settings(settings)
        assert engine.fsync is False

        from filetransfer.transfer_engine import TransferEngine
        with patch('filetransfer.chunked_copy.os.fsync') as mocked_fsync:
            result = TransferEngine(settings).copy(_copy_request(source, tmp_path / "dest.bin", recorder))

        assert result.success
        mocked_fsync.assert_not_called()

    def test_short_writes_still_copy_everything(self, tmp_path, make_file, engine, recorder):
        source = make_file("source.bin", 70_000)
        destination = tmp_path / "dest.bin"

        def short_write(fd, buf):
            return _real_write(fd, bytes(buf[:5000]))

        with patch('filetransfer.chunked_copy.os.write', side_effect=short_write):
            result = engine.copy(_copy_request(source, destination, recorder))

        assert result.success
        assert destination.read_bytes() == source.read_bytes()


class TestEngineCopyFailures:

    def test_disk_full_removes_partial_destination(self, tmp_path, make_file, engine, recorder):
        source = make_file("source.bin", 100_000)
        destination = tmp_path / "dest.bin"
        calls = {'count': 0}

        def filling_write(fd, buf):
            calls['count'] += 1
            if calls['count'] > 2:
                raise OSError(errno.ENOSPC, os.strerror(errno.ENOSPC))
            return _real_write(fd, buf)

        with patch('filetransfer.chunked_copy.os.write', side_effect=filling_write):
            result = engine.copy(_copy_request(source, destination, recorder))

        assert not result.success
        assert isinstance(result.error, TransferIOError)
        assert result.error.kind is ErrorKind.DISK_FULL
        assert result.error.bytes_transferred == 2 * 16384
        assert not destination.exists()
        assert source.read_bytes() == (bytes(range(256)) * 400)[:100_000]
        assert recorder.completion == (os.strerror(errno.ENOSPC), False)
        assert recorder.events[-1][0] == 'complete'

    def test_read_error_removes_partial_destination(self, tmp_path, make_file, engine, recorder):
        source = make_file("source.bin", 100_000)
        destination = tmp_path / "dest.bin"
        calls = {'count': 0}

        def failing_read(fd, size):
            calls['count'] += 1
            if calls['count'] > 1:
                raise OSError(errno.EIO, os.strerror(errno.EIO))
            return _real_read(fd, size)

        with patch('filetransfer.chunked_copy.os.read', side_effect=failing_read):
            result = engine.copy(_copy_request(source, destination, recorder))

        assert not result.success
        assert not destination.exists()
        assert source.exists()
        assert recorder.completion == (os.strerror(errno.EIO), False)

    def test_fsync_failure_is_reported(self, tmp_path, make_file, engine, recorder):
        source = make_file("source.bin", 2000)
        destination = tmp_path / "dest.bin"

        with patch('filetransfer.chunked_copy.os.fsync',
                   side_effect=OSError(errno.EIO, os.strerror(errno.EIO))):
            result = engine.copy(_copy_request(source, destination, recorder))

        assert not result.success
        assert not destination.exists()
        assert recorder.completion[1] is False

    def test_missing_source_leaves_existing_destination(self, tmp_path, engine, recorder):
        destination = tmp_path / "dest.bin"
        destination.write_bytes(b"keep me")

        result = engine.copy(_copy_request(tmp_path / "missing.bin", destination, recorder))

        assert not result.success
        assert result.error.kind is ErrorKind.NOT_FOUND
        assert destination.read_bytes() == b"keep me"
        assert recorder.progress == []
        assert recorder.completion == (os.strerror(errno.ENOENT), False)

    def test_descriptors_closed_before_completion(self, tmp_path, make_file, engine):
        source = make_file("source.bin", 50_000)
        destination = tmp_path / "dest.bin"
        closed = []
        real_close = os.close
        state = {}

        def tracking_close(fd):
            closed.append(fd)
            real_close(fd)

        def on_complete(error, success):
            state['closed_at_completion'] = list(closed)

        request = TransferRequest(source, destination, on_complete)
        with patch('filetransfer.path_resolver.os.close', side_effect=tracking_close):
            engine.copy(request)

        assert len(state['closed_at_completion']) >= 2
        assert len(set(state['closed_at_completion'])) == 2

    def test_descriptors_closed_once_before_failure_completion(self, tmp_path, make_file, engine):
        source = make_file("source.bin", 50_000)
        destination = tmp_path / "dest.bin"
        closed = []
        real_close = os.close
        state = {}

        def tracking_close(fd):
            closed.append(fd)
            real_close(fd)

        def on_complete(error, success):
            state['closed_at_completion'] = list(closed)
            state['outcome'] = (error, success)

        request = TransferRequest(source, destination, on_complete)
        with patch('filetransfer.path_resolver.os.close', side_effect=tracking_close), \
                patch('filetransfer.chunked_copy.os.write',
                      side_effect=OSError(errno.EIO, os.strerror(errno.EIO))):
            engine.copy(request)

        assert state['outcome'] == (os.strerror(errno.EIO), False)
        assert len(state['closed_at_completion']) == 2
        assert len(set(state['closed_at_completion'])) == 2
        assert closed == state['closed_at_completion']
        assert not destination.exists()

    def test_descriptors_closed_once_before_rename_failure(self, tmp_path, make_file, engine):
        source = make_file("source.bin", 500)
        closed = []
        real_close = os.close
        state = {}

        def tracking_close(fd):
            closed.append(fd)
            real_close(fd)

        def on_complete(error, success):
            state['closed_at_completion'] = list(closed)

        request = TransferRequest(source, tmp_path / "moved.bin", on_complete, None, OPERATION_MOVE)
        with patch('filetransfer.path_resolver.os.close', side_effect=tracking_close), \
                patch('filetransfer.move_orchestrator.os.replace',
                      side_effect=OSError(errno.EXDEV, os.strerror(errno.EXDEV))):
            result = engine.move(request)

        assert not result.success
        assert len(state['closed_at_completion']) == 2
        assert len(set(state['closed_at_completion'])) == 2
        assert closed == state['closed_at_completion']


def test_low_free_space_is_a_result_warning(tmp_path, make_file, engine, recorder):
    source = make_file("source.bin", 4096)

    with patch('filetransfer.chunked_copy.free_space', return_value=10):
        result = engine.copy(_copy_request(source, tmp_path / "dest.bin", recorder))

    assert result.success
    assert len(result.warnings) == 1
    assert "needs 4096" in result.warnings[0]
