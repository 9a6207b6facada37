#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Base worker thread class with unified error handling

Every background transfer runs on a QThread subclass of BaseWorkerThread.
The worker emits a single Result through ``result_ready`` when it finishes.
"""

from PySide6.QtCore import QThread, Signal
from typing import Optional
from datetime import datetime

from ..result_types import Result
from ..exceptions import TransferError, ErrorSeverity
from ..error_handler import handle_error


class BaseWorkerThread(QThread):
    """
    Base class for worker threads with unified error handling

    Operations cannot be cancelled once started; a worker always runs its
    operation to success or failure.
    """

    result_ready = Signal(Result)

    def __init__(self, parent=None):
        """
        Initialize base worker thread

        Args:
            parent: Parent QObject for Qt lifecycle management
        """
        super().__init__(parent)

        self.operation_start_time = None
        self.operation_name = self.__class__.__name__
        self.last_result: Optional[Result] = None

        self.setObjectName(f"{self.__class__.__name__}_{id(self)}")

    def run(self):
        """
        Main thread execution method

        Subclasses implement execute(); anything it raises is converted into
        an error result here.
        """
        try:
            self.operation_start_time = datetime.utcnow()

            result = self.execute()

            if result is None:
                result = Result.success(None)
            self.emit_result(result)

        except Exception as e:
            self.handle_unexpected_error(e)

    def execute(self) -> Optional[Result]:
        """
        Execute the worker operation

        Returns:
            Result object indicating operation outcome, or None for default success
        """
        raise NotImplementedError("Subclasses must implement execute() method")

    def emit_result(self, result: Result):
        """
        Thread-safe result emission

        Args:
            result: Result object containing operation outcome
        """
        if self.operation_start_time:
            duration = (datetime.utcnow() - self.operation_start_time).total_seconds()
            result.add_metadata('duration_seconds', duration)
            result.add_metadata('operation_name', self.operation_name)

        result.add_metadata('worker_thread', self.objectName())

        self.last_result = result
        self.result_ready.emit(result)

    def handle_error(self, error: TransferError, context: Optional[dict] = None):
        """
        Log the error centrally and emit it as the worker's result

        Args:
            error: The transfer error that occurred
            context: Additional context information
        """
        context = context or {}
        context.update({
            'worker_class': self.__class__.__name__,
            'worker_object_name': self.objectName(),
            'operation_name': self.operation_name
        })

        if self.operation_start_time:
            context['operation_duration'] = (datetime.utcnow() - self.operation_start_time).total_seconds()

        handle_error(error, context)
        self.emit_result(Result.error(error))

    def handle_unexpected_error(self, exception: Exception):
        """
        Handle exceptions that weren't converted to TransferError

        Args:
            exception: The unexpected exception
        """
        if isinstance(exception, TransferError):
            self.handle_error(exception)
            return

        error = TransferError(
            f"Unexpected error in {self.operation_name}: {exception}",
            severity=ErrorSeverity.CRITICAL,
            user_message="An unexpected error occurred. Please try the operation again.",
            context={
                'exception_type': exception.__class__.__name__,
                'exception_str': str(exception)
            }
        )
        self.handle_error(error)

    def set_operation_name(self, name: str):
        """
        Set a descriptive name for this operation

        Args:
            name: Human-readable operation name for log messages
        """
        self.operation_name = name
