#!/usr/bin/env python3
"""
Throttled Progress - Limits progress notifications to roughly one per percent

The copy loop calls ``record(n)`` after every chunk. A notification is
forwarded only once more than ``total // divisor`` bytes have accumulated
since the last one, so a file produces about ``divisor`` notifications no
matter how many chunks it takes. ``finish()`` always sends ``(total, total)``
so observers see completion even if the last chunk was throttled.

Usage:
    throttle = ByteProgressThrottle(reporter.progress, total_size=1_000_000)

    for chunk in chunks:
        write(chunk)
        throttle.record(len(chunk))

    throttle.finish()
"""

from typing import Callable, Optional


class ByteProgressThrottle:
    """
    Byte-count based progress throttling

    For totals smaller than the divisor the threshold is zero and every
    chunk is reported.
    """

    def __init__(self, callback: Optional[Callable[[int, int], None]],
                 total_size: int, divisor: int = 100):
        """
        Args:
            callback: Function that receives (bytes_done, bytes_total), or None
            total_size: Total bytes expected, fixed for the whole operation
            divisor: Approximate number of notifications per file
        """
        self.callback = callback
        self.total_size = total_size
        self.bytes_per_update = total_size // max(divisor, 1)
        self.bytes_transferred = 0
        self.since_last_update = 0
        self.notifications = 0

    def record(self, byte_count: int):
        """Account for bytes written and notify if the threshold was crossed"""
        self.bytes_transferred += byte_count
        self.since_last_update += byte_count

        if self.callback is None:
            return

        if self.since_last_update > self.bytes_per_update:
            self._notify(self.bytes_transferred)
            self.since_last_update = 0

    def finish(self):
        """Send the final (total, total) notification"""
        if self.callback is not None:
            self._notify(self.total_size)
        self.since_last_update = 0

    def _notify(self, done: int):
        self.notifications += 1
        self.callback(done, self.total_size)
