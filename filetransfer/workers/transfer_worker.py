#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Transfer worker thread: one copy or move per QThread

The caller's callbacks are connected to the worker's signals with direct
connections, so they run on the worker thread in emission order and no Qt
event loop is required. The completion signal fires exactly once, after all
descriptors of the operation are closed.
"""

from typing import Optional

from PySide6.QtCore import Qt, Signal

from ..models import TransferRequest
from ..reporter import CompletionReporter
from ..result_types import Result
from ..settings_manager import SettingsManager
from ..transfer_engine import TransferEngine
from .base_worker import BaseWorkerThread


class TransferWorker(BaseWorkerThread):
    """
    Background worker for a single TransferRequest

    Signals:
        progress_update(bytes_done, bytes_total): advisory progress
        transfer_complete(error_message_or_None, success): terminal outcome
        result_ready(Result): structured outcome with metrics or the error
    """

    # object, not int: Qt ints are 32-bit and file sizes are not
    progress_update = Signal(object, object)
    transfer_complete = Signal(object, bool)

    def __init__(self, request: TransferRequest,
                 settings: Optional[SettingsManager] = None,
                 parent=None):
        super().__init__(parent)

        self.request = request
        self.settings = settings
        # Settings are read here, on the calling thread
        self.engine = TransferEngine(settings)

        if request.on_progress is not None:
            self.progress_update.connect(request.on_progress, Qt.ConnectionType.DirectConnection)
        self.transfer_complete.connect(request.on_complete, Qt.ConnectionType.DirectConnection)

        self.reporter = CompletionReporter(
            self.transfer_complete.emit,
            self.progress_update.emit if request.on_progress is not None else None
        )

        self.set_operation_name(f"File {request.operation.capitalize()} ({request.source.name})")

    def execute(self) -> Result:
        return self.engine.run(self.request, self.reporter)

    def handle_error(self, error, context: Optional[dict] = None):
        super().handle_error(error, context)
        # The engine reports its own failures; this covers errors raised
        # before it could, and is ignored if completion already happened
        self.reporter.fail(error)
