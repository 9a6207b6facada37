#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Move orchestration: atomic rename on one device, copy-then-delete across devices

The decision is made by ``classify_move``, a pure function of the two device
ids and the configured behavior, so it can be tested without touching the
filesystem. Each outcome is carried out by a named strategy.
"""

import os
import time
from enum import Enum
from pathlib import Path

from .chunked_copy import ChunkedCopyEngine
from .error_handler import handle_error
from .exceptions import RenameError
from .logger import logger
from .path_resolver import HandlePair, TransferMetadata, remove_if_exists, describe_device
from .reporter import CompletionReporter
from .result_types import Result, TransferMetrics, TransferResult


class MoveStrategy(Enum):
    RENAME = "rename"
    COPY_DELETE = "copy_delete"


def classify_move(source_device: int, destination_device: int,
                  behavior: str = 'auto_rename') -> MoveStrategy:
    """
    Pick how a move is carried out

    Args:
        source_device: st_dev of the source
        destination_device: st_dev of the destination
        behavior: 'auto_rename' (rename whenever possible) or 'always_copy'

    Returns:
        MoveStrategy.RENAME when both ends share a device and renaming is
        allowed, otherwise MoveStrategy.COPY_DELETE
    """
    if behavior == 'always_copy':
        return MoveStrategy.COPY_DELETE
    if source_device == destination_device:
        return MoveStrategy.RENAME
    return MoveStrategy.COPY_DELETE


class RenameStrategy:
    """
    Same-device move

    No data is read. The destination created during resolution is replaced
    atomically by the source, so there is no moment where the destination
    name is missing.
    """

    name = MoveStrategy.RENAME.value

    def execute(self, handles: HandlePair, metadata: TransferMetadata,
                reporter: CompletionReporter, source: Path, destination: Path) -> Result:
        start_time = time.time()

        # Nothing is transferred through the descriptors on this path
        handles.close_quietly()

        try:
            os.replace(source, destination)
        except OSError as e:
            # The source is untouched; drop the empty file resolution created
            remove_if_exists(destination)
            error = RenameError.from_os_error(
                e, context={'source': str(source), 'destination': str(destination)}
            )
            handle_error(error, {'stage': 'rename', 'strategy': self.name})
            reporter.fail(error)
            return Result.error(error)

        total_size = metadata.total_size
        reporter.progress(total_size, total_size)

        metrics = TransferMetrics(
            strategy=self.name,
            total_size=total_size,
            bytes_transferred=total_size,
            progress_notifications=1 if reporter.has_progress_channel else 0,
            start_time=start_time,
            end_time=time.time()
        )
        logger.info(f"[MOVE] Renamed {source.name} -> {destination} ({total_size} bytes, no data copied)")

        reporter.succeed()
        return TransferResult.create(metrics)


class CopyDeleteStrategy:
    """Cross-device move: stream the bytes, then remove the source"""

    name = MoveStrategy.COPY_DELETE.value

    def __init__(self, copy_engine: ChunkedCopyEngine):
        self.copy_engine = copy_engine

    def execute(self, handles: HandlePair, metadata: TransferMetadata,
                reporter: CompletionReporter, source: Path, destination: Path) -> Result:
        return self.copy_engine.copy(
            handles, metadata, reporter, source, destination,
            remove_source=True,
            strategy=self.name
        )


class MoveOrchestrator:
    """Selects and runs the move strategy for an already-resolved transfer"""

    def __init__(self, copy_engine: ChunkedCopyEngine, behavior: str = 'auto_rename'):
        self.behavior = behavior
        self.strategies = {
            MoveStrategy.RENAME: RenameStrategy(),
            MoveStrategy.COPY_DELETE: CopyDeleteStrategy(copy_engine),
        }

    def move(self, handles: HandlePair, metadata: TransferMetadata,
             reporter: CompletionReporter, source: Path, destination: Path) -> Result:
        choice = classify_move(metadata.source_device, metadata.destination_device, self.behavior)

        if choice is MoveStrategy.RENAME:
            logger.debug(
                f"[MOVE] Same device {metadata.source_device} for {source.name}, renaming"
            )
        else:
            logger.info(
                f"[MOVE] Copy-then-delete for {source.name}: "
                f"{describe_device(source)} (device {metadata.source_device}) -> "
                f"{describe_device(destination)} (device {metadata.destination_device}), "
                f"behavior={self.behavior}"
            )

        return self.strategies[choice].execute(handles, metadata, reporter, source, destination)
