#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Centralized settings management for the transfer engine
"""

from pathlib import Path
from typing import Any, Union
from PySide6.QtCore import QSettings


DEFAULT_CHUNK_SIZE = 16384
MIN_CHUNK_SIZE = 4096
MAX_CHUNK_SIZE = 10485760

SAME_DEVICE_BEHAVIORS = ('auto_rename', 'always_copy')


def _as_bool(value: Any, default: bool) -> bool:
    # INI-backed settings come back as strings
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


class SettingsManager:
    """Centralized settings management backed by QSettings"""

    # Canonical keys for all settings
    KEYS = {
        # Transfer settings
        'CHUNK_SIZE': 'transfer.chunk_size',
        'PROGRESS_DIVISOR': 'transfer.progress_divisor',
        'FSYNC': 'transfer.fsync',
        'MAX_ZERO_WRITES': 'transfer.max_zero_writes',
        'SAME_DEVICE_BEHAVIOR': 'transfer.same_device_behavior',

        # Debug settings
        'DEBUG_LOGGING': 'debug.enable_logging',
    }

    DEFAULTS = {
        'CHUNK_SIZE': DEFAULT_CHUNK_SIZE,
        'PROGRESS_DIVISOR': 100,
        'FSYNC': True,
        'MAX_ZERO_WRITES': 8,
        'SAME_DEVICE_BEHAVIOR': 'auto_rename',
        'DEBUG_LOGGING': False,
    }

    _instance = None

    def __new__(cls):
        """Singleton pattern for settings manager"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._initialized = True
        self._settings = QSettings('FileTransfer', 'Settings')
        self._set_defaults()

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'SettingsManager':
        """
        Create a standalone settings manager backed by an INI file

        The instance does not replace the shared singleton, which makes it
        suitable for tests and for embedding applications that keep their
        own configuration file.
        """
        manager = object.__new__(cls)
        manager._initialized = True
        manager._settings = QSettings(str(path), QSettings.Format.IniFormat)
        manager._set_defaults()
        return manager

    def _set_defaults(self):
        """Set default values for missing keys"""
        for name, default in self.DEFAULTS.items():
            key = self.KEYS[name]
            if not self._settings.contains(key):
                self._settings.setValue(key, default)

    def get(self, key: str, default: Any = None) -> Any:
        """Get setting value

        Args:
            key: Either a KEYS constant or direct key string
            default: Default value if key not found
        """
        canonical_key = self.KEYS.get(key, key)
        return self._settings.value(canonical_key, default)

    def set(self, key: str, value: Any):
        canonical_key = self.KEYS.get(key, key)
        self._settings.setValue(canonical_key, value)

    def sync(self):
        """Force settings to disk"""
        self._settings.sync()

    def contains(self, key: str) -> bool:
        canonical_key = self.KEYS.get(key, key)
        return self._settings.contains(canonical_key)

    def _get_int(self, name: str) -> int:
        raw_value = self.get(name, self.DEFAULTS[name])
        try:
            return int(raw_value)
        except (TypeError, ValueError):
            return self.DEFAULTS[name]

    @property
    def chunk_size(self) -> int:
        """Copy buffer size in bytes (clamped to 4KB-10MB)"""
        return min(max(self._get_int('CHUNK_SIZE'), MIN_CHUNK_SIZE), MAX_CHUNK_SIZE)

    @chunk_size.setter
    def chunk_size(self, value: int):
        self.set('CHUNK_SIZE', int(value))

    @property
    def progress_divisor(self) -> int:
        """Number of progress steps per file; the throttle sends one per total/divisor bytes"""
        return max(self._get_int('PROGRESS_DIVISOR'), 1)

    @progress_divisor.setter
    def progress_divisor(self, value: int):
        self.set('PROGRESS_DIVISOR', int(value))

    @property
    def fsync_enabled(self) -> bool:
        """Whether destinations are flushed to stable storage before success"""
        return _as_bool(self.get('FSYNC'), True)

    @fsync_enabled.setter
    def fsync_enabled(self, value: bool):
        self.set('FSYNC', bool(value))

    @property
    def max_zero_writes(self) -> int:
        """Consecutive zero-length writes tolerated before a chunk write fails"""
        return max(self._get_int('MAX_ZERO_WRITES'), 1)

    @property
    def same_device_behavior(self) -> str:
        """Move behavior on a shared device: 'auto_rename' or 'always_copy'"""
        value = str(self.get('SAME_DEVICE_BEHAVIOR', 'auto_rename'))
        if value not in SAME_DEVICE_BEHAVIORS:
            return 'auto_rename'  # Safe fallback
        return value

    @same_device_behavior.setter
    def same_device_behavior(self, value: str):
        if value not in SAME_DEVICE_BEHAVIORS:
            raise ValueError(
                f"Unsupported same-device behavior: {value}. "
                f"Must be one of {', '.join(SAME_DEVICE_BEHAVIORS)}"
            )
        self.set('SAME_DEVICE_BEHAVIOR', value)

    @property
    def debug_logging(self) -> bool:
        return _as_bool(self.get('DEBUG_LOGGING'), False)

    def reset_all_settings(self):
        """Clear all stored settings and restore defaults"""
        self._settings.clear()
        self._settings.sync()
        self._set_defaults()
