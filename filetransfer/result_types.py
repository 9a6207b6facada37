#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Result objects for file transfer operations

The engine never lets exceptions escape to its caller; every operation
returns a Result that either holds a value or a TransferError.
"""

from typing import TypeVar, Generic, Optional, List, Dict, Any
from dataclasses import dataclass, field

from .exceptions import TransferError

# Type variable for generic result values
T = TypeVar('T')


@dataclass
class Result(Generic[T]):
    """
    Universal result object for engine operations

    Provides type-safe error handling with context information
    and support for warnings and metadata.
    """
    success: bool
    value: Optional[T] = None
    error: Optional[TransferError] = None
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, value: T, warnings: Optional[List[str]] = None, **metadata) -> 'Result[T]':
        """
        Create a successful result

        Args:
            value: The successful result value
            warnings: Optional list of warnings
            **metadata: Additional metadata to store

        Returns:
            Result object indicating success
        """
        return cls(
            success=True,
            value=value,
            warnings=warnings or [],
            metadata=metadata
        )

    @classmethod
    def error(cls, error: TransferError, warnings: Optional[List[str]] = None) -> 'Result[T]':
        """
        Create an error result

        Args:
            error: The error that occurred
            warnings: Optional list of warnings that occurred before the error

        Returns:
            Result object indicating failure
        """
        return cls(
            success=False,
            error=error,
            warnings=warnings or []
        )

    def unwrap(self) -> T:
        """
        Get value or raise error

        Raises:
            TransferError: If the result indicates failure
        """
        if not self.success:
            raise self.error
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get value or return default"""
        return self.value if self.success else default

    def add_metadata(self, key: str, value: Any) -> 'Result[T]':
        """Add metadata to this result"""
        self.metadata[key] = value
        return self


@dataclass
class TransferMetrics:
    """Performance figures for a single copy or move"""
    strategy: str = "copy"
    total_size: int = 0
    bytes_transferred: int = 0
    chunks: int = 0
    progress_notifications: int = 0
    start_time: float = 0.0
    end_time: float = 0.0
    average_speed_mbps: float = 0.0

    @property
    def duration_seconds(self) -> float:
        if self.end_time > self.start_time:
            return self.end_time - self.start_time
        return 0.0

    def calculate_summary(self):
        """Calculate summary statistics"""
        duration = self.duration_seconds
        self.average_speed_mbps = (self.bytes_transferred / (1024 * 1024)) / duration if duration > 0 else 0.0


@dataclass
class TransferResult(Result[TransferMetrics]):
    """
    Result of one copy or move

    Mirrors the metrics onto flat fields so callers can read them without
    unwrapping.
    """
    bytes_transferred: int = 0
    duration_seconds: float = 0.0
    average_speed_mbps: float = 0.0

    @classmethod
    def create(cls, metrics: TransferMetrics, **kwargs) -> 'TransferResult':
        """Create a successful TransferResult from collected metrics"""
        metrics.calculate_summary()
        return cls(
            success=True,
            value=metrics,
            bytes_transferred=metrics.bytes_transferred,
            duration_seconds=metrics.duration_seconds,
            average_speed_mbps=metrics.average_speed_mbps,
            **kwargs
        )
