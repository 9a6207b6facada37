#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Thread-safe centralized error handling for transfer operations

Transfer workers report every failure here before the completion channel
fires. The handler logs the error with its context, keeps statistics and a
bounded history, and notifies registered observers through a Qt signal.
"""

from PySide6.QtCore import QObject, Signal, QThread, Qt
from typing import Callable, List, Dict, Any, Optional
import threading
from datetime import datetime

from .exceptions import TransferError, ErrorSeverity, ErrorKind
from .logger import logger


class ErrorHandler(QObject):
    """
    Centralized error handling system

    Observers are connected with a direct connection, so they run on the
    thread that reported the error and no event loop is needed.
    """

    error_occurred = Signal(object, dict)  # error, context

    def __init__(self, parent=None, max_recent_errors: int = 100):
        super().__init__(parent)

        self._lock = threading.Lock()
        self._callbacks: List[Callable[[TransferError, dict], None]] = []

        self._severity_counts = {severity: 0 for severity in ErrorSeverity}
        self._kind_counts = {kind: 0 for kind in ErrorKind}

        self._recent_errors: List[Dict[str, Any]] = []
        self._max_recent_errors = max_recent_errors

        self.error_occurred.connect(self._notify_callbacks, Qt.ConnectionType.DirectConnection)

    def register_callback(self, callback: Callable[[TransferError, dict], None]):
        """
        Register an observer for reported errors

        Args:
            callback: Function to call with (error, context) parameters
        """
        with self._lock:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[TransferError, dict], None]):
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                logger.warning("Attempted to unregister non-existent error callback")

    def handle_error(self, error: TransferError, context: Optional[dict] = None):
        """
        Handle an error from any thread

        Args:
            error: The transfer error that occurred
            context: Additional context information
        """
        context = dict(context or {})
        current_thread = QThread.currentThread()
        context.update({
            'handler_thread': current_thread.objectName() or threading.current_thread().name,
            'timestamp': datetime.utcnow().isoformat()
        })

        self._log_error(error, context)

        with self._lock:
            self._severity_counts[error.severity] += 1
            self._kind_counts[error.kind] += 1
            self._store_recent_error(error, context)

        self.error_occurred.emit(error, context)

    def _notify_callbacks(self, error: TransferError, context: dict):
        with self._lock:
            callbacks = list(self._callbacks)

        for callback in callbacks:
            try:
                callback(error, context)
            except Exception as callback_error:
                logger.error(f"Error callback failed: {callback_error}", exc_info=True)

    def _log_error(self, error: TransferError, context: dict):
        context_items = [
            f"{key}={value}" for key, value in context.items()
            if key not in ('timestamp', 'handler_thread')
        ]

        log_msg = f"[{error.error_code}] {error.message} (kind={error.kind.value}, errno={error.errno})"
        if context_items:
            log_msg += f" | Context: {', '.join(context_items)}"

        if error.severity == ErrorSeverity.CRITICAL:
            logger.critical(log_msg, exc_info=False)
        elif error.severity == ErrorSeverity.ERROR:
            logger.error(log_msg)
        elif error.severity == ErrorSeverity.WARNING:
            logger.warning(log_msg)
        else:
            logger.info(log_msg)

    def _store_recent_error(self, error: TransferError, context: dict):
        error_record = error.to_dict()
        error_record['handler_context'] = context.copy()

        self._recent_errors.append(error_record)

        if len(self._recent_errors) > self._max_recent_errors:
            self._recent_errors = self._recent_errors[-self._max_recent_errors:]

    def get_error_statistics(self) -> Dict[str, int]:
        """
        Get error count statistics

        Returns:
            Dictionary with error counts by severity and by kind
        """
        with self._lock:
            stats = {severity.value: count for severity, count in self._severity_counts.items()}
            stats.update({f"kind:{kind.value}": count for kind, count in self._kind_counts.items()})
        return stats

    def get_recent_errors(self, count: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Get recent errors for debugging

        Args:
            count: Number of recent errors to return (None for all)
        """
        with self._lock:
            if count is None:
                return self._recent_errors.copy()
            return self._recent_errors[-count:] if self._recent_errors else []

    def clear_statistics(self):
        """Clear error statistics and recent errors"""
        with self._lock:
            self._severity_counts = {severity: 0 for severity in ErrorSeverity}
            self._kind_counts = {kind: 0 for kind in ErrorKind}
            self._recent_errors.clear()


_global_error_handler: Optional[ErrorHandler] = None
_global_lock = threading.Lock()


def get_error_handler() -> ErrorHandler:
    """
    Get the global error handler instance

    Creates the instance if it doesn't exist.
    """
    global _global_error_handler

    with _global_lock:
        if _global_error_handler is None:
            _global_error_handler = ErrorHandler()
        return _global_error_handler


def handle_error(error: TransferError, context: Optional[dict] = None):
    """Handle an error using the global error handler"""
    get_error_handler().handle_error(error, context)
