#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Transfer engine: runs one copy or move on the calling thread

Ties the resolver, the chunked copy engine and the move orchestrator
together. Every outcome goes through the request's CompletionReporter and is
also returned as a Result; nothing is raised to the caller.
"""

from pathlib import Path
from typing import Optional

from .chunked_copy import ChunkedCopyEngine
from .error_handler import handle_error
from .exceptions import PathError
from .logger import logger
from .models import TransferRequest, OPERATION_COPY, OPERATION_MOVE
from .move_orchestrator import MoveOrchestrator
from .path_resolver import open_transfer, remove_if_exists
from .reporter import CompletionReporter
from .result_types import Result
from .settings_manager import SettingsManager


class TransferEngine:
    """Synchronous copy/move entry points"""

    def __init__(self, settings: Optional[SettingsManager] = None,
                 copy_engine: Optional[ChunkedCopyEngine] = None):
        self.settings = settings or SettingsManager()
        self.copy_engine = copy_engine or ChunkedCopyEngine.from_settings(self.settings)
        self.orchestrator = MoveOrchestrator(self.copy_engine, self.settings.same_device_behavior)

        if self.settings.debug_logging and not logger.debug_enabled:
            logger.enable_debug(True)

    def run(self, request: TransferRequest,
            reporter: Optional[CompletionReporter] = None) -> Result:
        """Dispatch on ``request.operation``"""
        if request.operation == OPERATION_MOVE:
            return self.move(request, reporter)
        return self.copy(request, reporter)

    def copy(self, request: TransferRequest,
             reporter: Optional[CompletionReporter] = None) -> Result:
        """
        Copy ``request.source`` to ``request.destination``

        Args:
            request: The operation request
            reporter: Reporter to use instead of one built from the request

        Returns:
            TransferResult on success, or an error Result
        """
        reporter = reporter or self._reporter_for(request)
        logger.debug(f"[COPY] Starting {request.describe()}")

        try:
            handles, metadata = open_transfer(request.source, request.destination)
        except PathError as e:
            return self._path_failure(request, e, reporter)

        return self.copy_engine.copy(
            handles, metadata, reporter, request.source, request.destination
        )

    def move(self, request: TransferRequest,
             reporter: Optional[CompletionReporter] = None) -> Result:
        """
        Move ``request.source`` to ``request.destination``

        Renames when both paths share a device, otherwise copies and then
        removes the source.
        """
        reporter = reporter or self._reporter_for(request)
        logger.debug(f"[MOVE] Starting {request.describe()}")

        try:
            handles, metadata = open_transfer(request.source, request.destination, for_move=True)
        except PathError as e:
            return self._path_failure(request, e, reporter)

        return self.orchestrator.move(
            handles, metadata, reporter, Path(request.source), Path(request.destination)
        )

    @staticmethod
    def _reporter_for(request: TransferRequest) -> CompletionReporter:
        return CompletionReporter(request.on_complete, request.on_progress)

    def _path_failure(self, request: TransferRequest, error: PathError,
                      reporter: CompletionReporter) -> Result:
        # Only remove a destination this operation created
        if error.destination_created:
            remove_if_exists(request.destination)

        handle_error(error, {
            'stage': 'resolve',
            'operation': request.operation,
            'source': str(request.source),
            'destination': str(request.destination)
        })
        reporter.fail(error)
        return Result.error(error)


def run_copy(source, destination, on_complete, on_progress=None,
             settings: Optional[SettingsManager] = None) -> Result:
    """Convenience wrapper: synchronous copy on the calling thread"""
    request = TransferRequest(Path(source), Path(destination), on_complete, on_progress, OPERATION_COPY)
    return TransferEngine(settings).copy(request)


def run_move(source, destination, on_complete, on_progress=None,
             settings: Optional[SettingsManager] = None) -> Result:
    """Convenience wrapper: synchronous move on the calling thread"""
    request = TransferRequest(Path(source), Path(destination), on_complete, on_progress, OPERATION_MOVE)
    return TransferEngine(settings).move(request)
