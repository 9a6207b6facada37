#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Completion reporter: the only path by which an operation talks to its caller

Each operation gets one CompletionReporter. It delivers zero or more
progress notifications followed by exactly one completion, and records the
same sequence as a tagged event stream (ProgressEvent | DoneEvent) whose
last element is always the single DoneEvent.
"""

import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from .exceptions import TransferError
from .logger import logger

ProgressCallback = Callable[[int, int], None]
CompletionCallback = Callable[[Optional[str], bool], None]


@dataclass(frozen=True)
class ProgressEvent:
    done: int
    total: int


@dataclass(frozen=True)
class DoneEvent:
    error: Optional[TransferError] = None

    @property
    def success(self) -> bool:
        return self.error is None


TransferEvent = Union[ProgressEvent, DoneEvent]


class CompletionReporter:
    """
    Exactly-once completion with advisory progress

    Guarantees:
    - progress is dropped once completion has been sent
    - reported ``done`` values never decrease and never exceed ``total``
    - without a progress channel, progress() returns immediately
    """

    def __init__(self, on_complete: CompletionCallback,
                 on_progress: Optional[ProgressCallback] = None):
        self._on_complete = on_complete
        self._on_progress = on_progress
        self._lock = threading.Lock()
        self._completed = False
        self._last_done = 0
        self.events: List[TransferEvent] = []

    @property
    def has_progress_channel(self) -> bool:
        return self._on_progress is not None

    @property
    def completed(self) -> bool:
        return self._completed

    def progress(self, done: int, total: int):
        """Send a progress notification unless the operation already completed"""
        if self._on_progress is None:
            return

        with self._lock:
            if self._completed:
                logger.debug(f"[REPORTER] Dropping progress {done}/{total} after completion")
                return
            done = max(min(done, total), self._last_done)
            self._last_done = done
            self.events.append(ProgressEvent(done, total))

        try:
            self._on_progress(done, total)
        except Exception as e:
            # Progress is advisory; a broken observer must not fail the transfer
            logger.warning(f"[REPORTER] Progress callback raised: {e}")

    def succeed(self):
        self._complete(None)

    def fail(self, error: TransferError):
        self._complete(error)

    def _complete(self, error: Optional[TransferError]):
        with self._lock:
            if self._completed:
                logger.warning("[REPORTER] Ignoring second completion for the same operation")
                return
            self._completed = True
            self.events.append(DoneEvent(error))

        if error is None:
            self._on_complete(None, True)
        else:
            self._on_complete(error.message, False)
