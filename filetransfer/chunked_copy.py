#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Chunked copy engine

Streams bytes between two already-open descriptors in fixed-size chunks,
reporting throttled progress, and applies the two-phase cleanup policy:

- success: fsync the output, close both descriptors, optionally remove the
  source (copy-then-delete moves), then report success
- failure: close both descriptors, remove the partial destination, then
  report the OS error. The source is never touched on failure.

The loop is blocking I/O and is meant to run on a worker thread.
"""

import errno
import os
import time
from pathlib import Path
from typing import Optional

from .exceptions import TransferError, TransferIOError, PathError, ErrorSeverity
from .error_handler import handle_error
from .logger import logger
from .path_resolver import HandlePair, TransferMetadata, PathLike, remove_if_exists, free_space
from .reporter import CompletionReporter
from .result_types import Result, TransferMetrics, TransferResult
from .settings_manager import SettingsManager, DEFAULT_CHUNK_SIZE
from .throttled_progress import ByteProgressThrottle

# error_code of the PathError reported when a move copied the data but could
# not delete the source
SOURCE_NOT_REMOVED = 'SOURCE_NOT_REMOVED'


def write_fully(fd: int, data: bytes, max_zero_writes: int = 8) -> int:
    """
    Write all of ``data`` to ``fd``

    A short write is retried with the unwritten tail. A descriptor that keeps
    accepting zero bytes fails after ``max_zero_writes`` consecutive attempts
    instead of spinning forever.

    Returns:
        Number of bytes written (always ``len(data)``)

    Raises:
        OSError: From the underlying write
        TransferIOError: When the zero-progress limit is reached
    """
    view = memoryview(data)
    total = len(view)
    offset = 0
    zero_writes = 0

    while offset < total:
        written = os.write(fd, view[offset:])
        if written <= 0:
            zero_writes += 1
            if zero_writes >= max_zero_writes:
                raise TransferIOError.from_os_error(
                    OSError(errno.EIO, os.strerror(errno.EIO)),
                    bytes_transferred=offset,
                    context={'zero_length_writes': zero_writes}
                )
            continue
        zero_writes = 0
        offset += written

    return offset


class ChunkedCopyEngine:
    """Fixed-buffer copy loop with progress accounting"""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE,
                 progress_divisor: int = 100,
                 fsync: bool = True,
                 max_zero_writes: int = 8):
        self.chunk_size = chunk_size
        self.progress_divisor = progress_divisor
        self.fsync = fsync
        self.max_zero_writes = max_zero_writes

    @classmethod
    def from_settings(cls, settings: Optional[SettingsManager] = None) -> 'ChunkedCopyEngine':
        settings = settings or SettingsManager()
        return cls(
            chunk_size=settings.chunk_size,
            progress_divisor=settings.progress_divisor,
            fsync=settings.fsync_enabled,
            max_zero_writes=settings.max_zero_writes
        )

    def copy(self, handles: HandlePair, metadata: TransferMetadata,
             reporter: CompletionReporter,
             source: PathLike, destination: PathLike,
             remove_source: bool = False,
             strategy: str = 'copy') -> Result[TransferMetrics]:
        """
        Stream ``handles.input_fd`` into ``handles.output_fd``

        Takes ownership of ``handles``: both descriptors are closed before
        this returns, and before the reporter completes.

        Args:
            handles: Open descriptor pair
            metadata: Size and mode learned when the pair was opened
            reporter: Completion reporter for this operation
            source: Source path, removed on success when ``remove_source``
            destination: Destination path, removed on failure
            remove_source: Delete the source after a successful copy
            strategy: Label recorded in the metrics

        Returns:
            TransferResult on success, or an error Result
        """
        source = Path(source)
        destination = Path(destination)
        total_size = metadata.total_size

        metrics = TransferMetrics(
            strategy=strategy,
            total_size=total_size,
            start_time=time.time()
        )

        warnings = []
        available = free_space(destination)
        if available is not None and available < total_size:
            warnings.append(
                f"{destination.parent} reports {available} free bytes, "
                f"{source.name} needs {total_size}"
            )
            logger.warning(f"[COPY] {warnings[-1]}")

        throttle = ByteProgressThrottle(
            reporter.progress if reporter.has_progress_channel else None,
            total_size,
            self.progress_divisor
        )

        try:
            self._copy_loop(handles, throttle, metrics)

            # Observers always see 100%, even if the last chunk was throttled
            throttle.finish()

            if self.fsync:
                os.fsync(handles.output_fd)
            handles.close()

        except TransferError as e:
            return self._fail(handles, destination, e, metrics, reporter)

        except OSError as e:
            error = TransferIOError.from_os_error(
                e,
                bytes_transferred=metrics.bytes_transferred,
                context={'source': str(source), 'destination': str(destination)}
            )
            return self._fail(handles, destination, error, metrics, reporter)

        except Exception as e:
            error = TransferIOError(
                f"Unexpected error copying {source.name}: {e}",
                bytes_transferred=metrics.bytes_transferred,
                severity=ErrorSeverity.CRITICAL,
                context={'exception_type': e.__class__.__name__}
            )
            return self._fail(handles, destination, error, metrics, reporter)

        metrics.progress_notifications = throttle.notifications

        if remove_source:
            try:
                os.remove(source)
            except OSError as e:
                # The destination is complete; keep it so no data is lost
                logger.warning(
                    f"[COPY] {destination} is complete but {source} could not be removed: {e}"
                )
                error = PathError.from_os_error(
                    e,
                    file_path=str(source),
                    error_code=SOURCE_NOT_REMOVED,
                    user_message=(
                        f"{source.name} was copied to {destination}, "
                        "but the original could not be removed."
                    ),
                    context={'destination': str(destination), 'destination_complete': True}
                )
                handle_error(error, {'stage': 'remove_source', 'strategy': strategy})
                reporter.fail(error)
                return Result.error(error)

        metrics.end_time = time.time()
        result = TransferResult.create(metrics, warnings=warnings)

        logger.info(
            f"[COPY] {source.name} -> {destination}: "
            f"{metrics.bytes_transferred / (1024 * 1024):.1f} MB in {metrics.chunks} chunks, "
            f"{result.duration_seconds:.2f}s @ {result.average_speed_mbps:.1f} MB/s"
            + (" (source removed)" if remove_source else "")
        )

        reporter.succeed()
        return result

    def _copy_loop(self, handles: HandlePair, throttle: ByteProgressThrottle,
                   metrics: TransferMetrics):
        input_fd = handles.input_fd
        output_fd = handles.output_fd

        while True:
            chunk = os.read(input_fd, self.chunk_size)
            if not chunk:
                break

            try:
                written = write_fully(output_fd, chunk, self.max_zero_writes)
            except TransferIOError as e:
                e.bytes_transferred = metrics.bytes_transferred + e.bytes_transferred
                e.context['bytes_transferred'] = e.bytes_transferred
                raise

            metrics.chunks += 1
            metrics.bytes_transferred += written
            throttle.record(written)

    def _fail(self, handles: HandlePair, destination: Path, error: TransferError,
              metrics: TransferMetrics, reporter: CompletionReporter) -> Result:
        handles.close_quietly()

        # Never leave a truncated artifact behind
        remove_if_exists(destination)

        handle_error(error, {
            'stage': 'copy_loop',
            'strategy': metrics.strategy,
            'destination': str(destination),
            'bytes_transferred': metrics.bytes_transferred,
            'total_size': metrics.total_size
        })

        reporter.fail(error)
        return Result.error(error)
