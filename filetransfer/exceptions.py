#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exception hierarchy for file transfer operations

Every failure raised inside the engine is a TransferError. Errors that come
from the operating system carry a structured ErrorKind plus the original errno
and its platform text, so callers can branch on the kind while still showing
the same message the OS would print.
"""

import errno as errno_codes
import os
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional


class ErrorSeverity(Enum):
    """Error severity levels for categorization and logging"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorKind(Enum):
    """Coarse classification of OS-level failures"""
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    DISK_FULL = "disk_full"
    INTERRUPTED = "interrupted"
    OTHER = "other"


_ERRNO_KINDS = {
    errno_codes.ENOENT: ErrorKind.NOT_FOUND,
    errno_codes.ENOTDIR: ErrorKind.NOT_FOUND,
    errno_codes.EACCES: ErrorKind.PERMISSION_DENIED,
    errno_codes.EPERM: ErrorKind.PERMISSION_DENIED,
    errno_codes.EROFS: ErrorKind.PERMISSION_DENIED,
    errno_codes.ENOSPC: ErrorKind.DISK_FULL,
    errno_codes.EFBIG: ErrorKind.DISK_FULL,
    errno_codes.EINTR: ErrorKind.INTERRUPTED,
}
if hasattr(errno_codes, 'EDQUOT'):
    _ERRNO_KINDS[errno_codes.EDQUOT] = ErrorKind.DISK_FULL


def classify_errno(code: Optional[int]) -> ErrorKind:
    """Map an errno value onto an ErrorKind"""
    if code is None:
        return ErrorKind.OTHER
    return _ERRNO_KINDS.get(code, ErrorKind.OTHER)


class TransferError(Exception):
    """
    Base exception for all file transfer errors

    Captures a technical message for logs, a user-facing message, the
    structured OS error kind and any context useful for diagnostics.
    """

    def __init__(self,
                 message: str,
                 error_code: Optional[str] = None,
                 user_message: Optional[str] = None,
                 kind: ErrorKind = ErrorKind.OTHER,
                 os_errno: Optional[int] = None,
                 severity: ErrorSeverity = ErrorSeverity.ERROR,
                 context: Optional[Dict[str, Any]] = None):
        """
        Initialize transfer error

        Args:
            message: Error message delivered through the completion channel
            error_code: Unique error code for categorization
            user_message: Friendlier message for display
            kind: Structured classification of the failure
            os_errno: Original OS error number, if any
            severity: Error severity level
            context: Additional context information
        """
        super().__init__(message)

        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.kind = kind
        self.errno = os_errno
        self.severity = severity
        self.timestamp = datetime.utcnow()
        self.context = context or {}
        self.user_message = user_message or self._generate_user_message()

    def _generate_user_message(self) -> str:
        return "The file transfer failed. Please check the logs for details."

    @classmethod
    def from_os_error(cls, exc: OSError, **kwargs) -> 'TransferError':
        """
        Build an error of this class from an OSError

        The message is the platform's description of the errno, the same
        text strerror() produces.
        """
        code = exc.errno
        if code is not None:
            message = os.strerror(code)
        else:
            message = exc.strerror or str(exc)

        context = kwargs.pop('context', {})
        if exc.filename is not None:
            context.setdefault('filename', str(exc.filename))

        return cls(
            message,
            kind=classify_errno(code),
            os_errno=code,
            context=context,
            **kwargs
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging and serialization"""
        return {
            'error_code': self.error_code,
            'message': self.message,
            'user_message': self.user_message,
            'kind': self.kind.value,
            'errno': self.errno,
            'severity': self.severity.value,
            'timestamp': self.timestamp.isoformat(),
            'context': self.context
        }


class ArgumentError(TransferError, TypeError):
    """Malformed call: missing paths or missing/invalid callbacks"""

    def __init__(self, message: str, argument_index: Optional[int] = None, **kwargs):
        context = kwargs.get('context', {})
        if argument_index is not None:
            context['argument_index'] = argument_index
        kwargs['context'] = context
        kwargs.setdefault('severity', ErrorSeverity.WARNING)

        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        return "The transfer was called with invalid arguments."


class PathError(TransferError):
    """Source missing/unreadable, or destination cannot be created"""

    def __init__(self, message: str, file_path: Optional[str] = None,
                 destination_created: bool = False, **kwargs):
        """
        Initialize path error

        Args:
            message: Technical error message
            file_path: Path that could not be opened or inspected
            destination_created: Whether the destination was opened before the failure
            **kwargs: Additional TransferError arguments
        """
        self.destination_created = destination_created

        context = kwargs.get('context', {})
        if file_path:
            context['file_path'] = file_path
        kwargs['context'] = context

        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        if self.kind is ErrorKind.NOT_FOUND:
            return "File not found. Please check the file path."
        if self.kind is ErrorKind.PERMISSION_DENIED:
            return "Cannot access the file. Please check file permissions."
        return "Cannot open the file for transfer."


class TransferIOError(TransferError):
    """Read or write failure while bytes were being streamed"""

    def __init__(self, message: str, bytes_transferred: int = 0, **kwargs):
        self.bytes_transferred = bytes_transferred

        context = kwargs.get('context', {})
        context['bytes_transferred'] = bytes_transferred
        kwargs['context'] = context

        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        if self.kind is ErrorKind.DISK_FULL:
            return "The destination drive is full. The partial copy was removed."
        return "The copy failed while transferring data. The partial copy was removed."


class RenameError(TransferError):
    """Atomic rename on the same device failed"""

    def _generate_user_message(self) -> str:
        return "The file could not be renamed into place. The original file is unchanged."
