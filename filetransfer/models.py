#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Request model shared by the engine, the workers and the public API
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .reporter import CompletionCallback, ProgressCallback

OPERATION_COPY = 'copy'
OPERATION_MOVE = 'move'


@dataclass(frozen=True)
class TransferRequest:
    """One copy or move, immutable once constructed"""
    source: Path
    destination: Path
    on_complete: CompletionCallback
    on_progress: Optional[ProgressCallback] = None
    operation: str = OPERATION_COPY

    @property
    def reports_progress(self) -> bool:
        return self.on_progress is not None

    def describe(self) -> str:
        return f"{self.operation} {self.source} -> {self.destination}"
