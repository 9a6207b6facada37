#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Public fire-and-forget entry points

    copy(source, destination, on_complete)
    copy(source, destination, on_progress, on_complete)
    move(source, destination, on_complete)
    move(source, destination, on_progress, on_complete)

Arguments are validated before any file is touched; a malformed call raises
ArgumentError immediately. A valid call starts a TransferWorker and returns
it at once. Results arrive only through the callbacks:

    on_progress(bytes_done, bytes_total)
    on_complete(None, True) | on_complete(error_message, False)

Both callbacks run on the worker thread.
"""

import os
import threading
from pathlib import Path
from typing import List, Optional, Sequence

from .exceptions import ArgumentError
from .logger import logger
from .models import TransferRequest, OPERATION_COPY, OPERATION_MOVE
from .settings_manager import SettingsManager
from .workers.transfer_worker import TransferWorker

# Running workers are kept here so they are not garbage-collected mid-transfer
_active_workers: List[TransferWorker] = []
_registry_lock = threading.Lock()


def _is_path(value) -> bool:
    if not isinstance(value, (str, os.PathLike)):
        return False
    path = os.fspath(value)
    return isinstance(path, str) and path != ''


def build_request(operation: str, source, destination,
                  handlers: Sequence) -> TransferRequest:
    """
    Validate a public call and turn it into a TransferRequest

    Raises:
        ArgumentError: If the call is malformed
    """
    if len(handlers) < 1:
        raise ArgumentError("Not enough arguments", argument_index=2)
    if not _is_path(source):
        raise ArgumentError("First argument is not a path", argument_index=0)
    if not _is_path(destination):
        raise ArgumentError("Second argument is not a path", argument_index=1)
    if not callable(handlers[0]):
        raise ArgumentError("Missing result callback", argument_index=2)
    if len(handlers) > 2 or (len(handlers) == 2 and not callable(handlers[1])):
        raise ArgumentError("Unknown arguments", argument_index=3)

    if len(handlers) == 2:
        on_progress, on_complete = handlers
    else:
        on_progress, on_complete = None, handlers[0]

    return TransferRequest(
        source=Path(source),
        destination=Path(destination),
        on_complete=on_complete,
        on_progress=on_progress,
        operation=operation
    )


def _prune_finished():
    with _registry_lock:
        _active_workers[:] = [w for w in _active_workers if not w.isFinished()]


def _start(request: TransferRequest, settings: Optional[SettingsManager]) -> TransferWorker:
    _prune_finished()

    worker = TransferWorker(request, settings)
    with _registry_lock:
        _active_workers.append(worker)

    logger.debug(f"Starting {worker.objectName()}: {request.describe()}")
    worker.start()
    return worker


def copy(source, destination, *handlers,
         settings: Optional[SettingsManager] = None) -> TransferWorker:
    """
    Copy a file in the background

    Args:
        source: File to copy
        destination: File to create or overwrite
        *handlers: ``(on_complete,)`` or ``(on_progress, on_complete)``
        settings: Optional settings instance instead of the shared one

    Returns:
        The started worker, usable with ``wait()``

    Raises:
        ArgumentError: Synchronously, for malformed calls
    """
    return _start(build_request(OPERATION_COPY, source, destination, handlers), settings)


def move(source, destination, *handlers,
         settings: Optional[SettingsManager] = None) -> TransferWorker:
    """
    Move a file in the background

    Renames atomically when both paths are on the same device, otherwise
    copies and then removes the source. Arguments are the same as copy().
    """
    return _start(build_request(OPERATION_MOVE, source, destination, handlers), settings)


def active_transfers() -> int:
    """Number of transfers still running"""
    _prune_finished()
    with _registry_lock:
        return len(_active_workers)


def wait_for_all(timeout_ms: Optional[int] = None) -> bool:
    """
    Block until every started transfer has finished

    Args:
        timeout_ms: Per-worker timeout in milliseconds, or None to wait forever

    Returns:
        True if all workers finished
    """
    with _registry_lock:
        workers = list(_active_workers)

    finished = True
    for worker in workers:
        if timeout_ms is None:
            worker.wait()
        elif not worker.wait(timeout_ms):
            finished = False

    _prune_finished()
    return finished
