#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Centralized logging for transfers with Qt signal support

All engine modules log through the shared ``logger`` instance below. Messages
go to stdout, to a daily file under ``~/.file_transfer/logs/`` when that
directory is writable, and to ``AppLogger.log_message`` for embedding
applications that show a log view.
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional
from PySide6.QtCore import QObject, Signal


LOG_DIRECTORY = Path.home() / '.file_transfer' / 'logs'

CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s'


class AppLogger(QObject):
    """Singleton wrapper around the 'FileTransfer' logger"""

    # level name, message
    log_message = Signal(str, str)

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        super().__init__()
        self._initialized = True
        self._debug_enabled = False

        self.logger = logging.getLogger('FileTransfer')
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()

        # DEBUG stays off the console until enable_debug()
        self._console_handler = self._add_handler(
            logging.StreamHandler(sys.stdout), logging.INFO,
            logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S')
        )
        self._file_handler = self._open_file_handler()

    def _add_handler(self, handler: logging.Handler, level: int,
                     formatter: logging.Formatter) -> logging.Handler:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        self.logger.addHandler(handler)
        return handler

    def _open_file_handler(self) -> Optional[logging.Handler]:
        log_file = LOG_DIRECTORY / f"transfer_{datetime.now().strftime('%Y%m%d')}.log"

        try:
            LOG_DIRECTORY.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(log_file, encoding='utf-8')
        except OSError as e:
            # Read-only home directories still get console logging
            self.logger.warning(f"File logging disabled, cannot open {log_file}: {e}")
            return None

        return self._add_handler(handler, logging.DEBUG, logging.Formatter(FILE_FORMAT))

    @property
    def debug_enabled(self) -> bool:
        return self._debug_enabled

    def enable_debug(self, enabled: bool = True):
        """Show or hide DEBUG records on the console and the Qt signal"""
        self._debug_enabled = enabled
        self._console_handler.setLevel(logging.DEBUG if enabled else logging.INFO)
        self.info(f"Debug logging {'enabled' if enabled else 'disabled'}")

    def _log(self, level: int, message: str, exc_info: bool = False):
        self.logger.log(level, message, exc_info=exc_info)
        if level > logging.DEBUG or self._debug_enabled:
            self.log_message.emit(logging.getLevelName(level), message)

    def debug(self, message: str):
        self._log(logging.DEBUG, message)

    def info(self, message: str):
        self._log(logging.INFO, message)

    def warning(self, message: str):
        self._log(logging.WARNING, message)

    def error(self, message: str, exc_info: bool = False):
        self._log(logging.ERROR, message, exc_info)

    def critical(self, message: str, exc_info: bool = True):
        self._log(logging.CRITICAL, message, exc_info)

    def exception(self, message: str):
        """Log at ERROR with the active exception's traceback"""
        self._log(logging.ERROR, message, exc_info=True)

    def get_log_file_path(self) -> Optional[Path]:
        """Current log file, or None if file logging is off"""
        if self._file_handler is not None:
            return Path(self._file_handler.baseFilename)
        return None


logger = AppLogger()
