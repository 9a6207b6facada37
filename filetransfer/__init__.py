"""
Asynchronous, progress-reporting file copy and move

Moves use an atomic rename when source and destination share a storage
device, and a streamed copy-then-delete otherwise.
"""

from .api import copy, move, active_transfers, wait_for_all, build_request
from .chunked_copy import SOURCE_NOT_REMOVED
from .exceptions import (
    ErrorKind, ErrorSeverity, TransferError, ArgumentError, PathError,
    TransferIOError, RenameError
)
from .models import TransferRequest
from .reporter import CompletionReporter, ProgressEvent, DoneEvent
from .result_types import Result, TransferMetrics, TransferResult
from .settings_manager import SettingsManager
from .transfer_engine import TransferEngine, run_copy, run_move

__version__ = "1.0.0"

__all__ = [
    'copy',
    'move',
    'active_transfers',
    'wait_for_all',
    'build_request',
    'SOURCE_NOT_REMOVED',
    'ErrorKind',
    'ErrorSeverity',
    'TransferError',
    'ArgumentError',
    'PathError',
    'TransferIOError',
    'RenameError',
    'TransferRequest',
    'CompletionReporter',
    'ProgressEvent',
    'DoneEvent',
    'Result',
    'TransferMetrics',
    'TransferResult',
    'SettingsManager',
    'TransferEngine',
    'run_copy',
    'run_move',
]
