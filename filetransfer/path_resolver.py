#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Path resolution and device classification

Opens the source for reading, creates (or truncates) the destination with the
source's permission bits, and collects the metadata the rest of the engine
needs: size, mode and device ids. Creating or truncating the destination is
the expected overwrite behavior, even when a later stage fails.
"""

import errno
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import psutil

from .exceptions import PathError
from .logger import logger

PathLike = Union[str, os.PathLike]

# Windows needs O_BINARY to avoid newline translation; POSIX has no such flag
O_BINARY = getattr(os, 'O_BINARY', 0)

SOURCE_FLAGS = os.O_RDONLY | O_BINARY
DESTINATION_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_TRUNC | O_BINARY


@dataclass(frozen=True)
class TransferMetadata:
    """Facts about a transfer learned once, before any byte moves"""
    total_size: int
    mode: int
    source_device: int
    destination_device: Optional[int] = None

    @property
    def permission_bits(self) -> int:
        return stat.S_IMODE(self.mode)


class HandlePair:
    """
    Input and output descriptors owned by one operation

    ``close()`` closes each descriptor exactly once; later calls are no-ops.
    """

    def __init__(self, input_fd: int, output_fd: int):
        self.input_fd: Optional[int] = input_fd
        self.output_fd: Optional[int] = output_fd

    @property
    def closed(self) -> bool:
        return self.input_fd is None and self.output_fd is None

    def close(self):
        """
        Close both descriptors

        Both are always released. If closing either one fails, the first
        OSError is raised after the second descriptor has been closed.
        """
        first_error = None
        for attr in ('input_fd', 'output_fd'):
            fd = getattr(self, attr)
            if fd is None:
                continue
            setattr(self, attr, None)
            try:
                os.close(fd)
            except OSError as e:
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def close_quietly(self):
        """Close both descriptors on an error path, logging close failures"""
        try:
            self.close()
        except OSError as e:
            logger.debug(f"[RESOLVE] Ignoring close failure during cleanup: {e}")


def _close_fd(fd: int):
    try:
        os.close(fd)
    except OSError as e:
        logger.debug(f"[RESOLVE] Ignoring close failure during cleanup: {e}")


def _same_file(source_stat: os.stat_result, destination: Path) -> bool:
    try:
        dest_stat = os.stat(destination)
    except OSError:
        return False
    return (source_stat.st_dev, source_stat.st_ino) == (dest_stat.st_dev, dest_stat.st_ino)


def open_transfer(source: PathLike, destination: PathLike,
                  for_move: bool = False) -> Tuple[HandlePair, TransferMetadata]:
    """
    Open both ends of a transfer

    Args:
        source: File to read
        destination: File to create or truncate
        for_move: Also stat the destination to learn its device id

    Returns:
        (HandlePair, TransferMetadata)

    Raises:
        PathError: With ``destination_created`` set when the destination was
            opened before the failure and must be cleaned up by the caller
    """
    source = Path(source)
    destination = Path(destination)

    try:
        input_fd = os.open(source, SOURCE_FLAGS)
    except OSError as e:
        raise PathError.from_os_error(e, file_path=str(source))

    try:
        source_stat = os.fstat(input_fd)
    except OSError as e:
        _close_fd(input_fd)
        raise PathError.from_os_error(e, file_path=str(source))

    if stat.S_ISDIR(source_stat.st_mode):
        _close_fd(input_fd)
        raise PathError.from_os_error(
            OSError(errno.EISDIR, os.strerror(errno.EISDIR), str(source)),
            file_path=str(source)
        )

    # Opening the destination with O_TRUNC would empty the source
    if _same_file(source_stat, destination):
        _close_fd(input_fd)
        raise PathError(
            "Source and destination are the same file",
            file_path=str(destination)
        )

    try:
        output_fd = os.open(destination, DESTINATION_FLAGS, stat.S_IMODE(source_stat.st_mode))
    except OSError as e:
        _close_fd(input_fd)
        raise PathError.from_os_error(e, file_path=str(destination))

    destination_device = None
    if for_move:
        try:
            destination_device = os.fstat(output_fd).st_dev
        except OSError as e:
            _close_fd(input_fd)
            _close_fd(output_fd)
            raise PathError.from_os_error(
                e, file_path=str(destination), destination_created=True
            )

    metadata = TransferMetadata(
        total_size=source_stat.st_size,
        mode=source_stat.st_mode,
        source_device=source_stat.st_dev,
        destination_device=destination_device
    )

    logger.debug(
        f"[RESOLVE] {source.name}: {metadata.total_size} bytes, mode {oct(metadata.permission_bits)}, "
        f"device {metadata.source_device}"
        + (f" -> device {destination_device}" if for_move else "")
    )

    return HandlePair(input_fd, output_fd), metadata


def remove_if_exists(path: PathLike) -> bool:
    """
    Remove a file, treating "already gone" as success

    Returns:
        True if a file was removed
    """
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(f"[RESOLVE] Could not remove {path}: {e}")
        return False


def describe_device(path: PathLike) -> str:
    """
    Describe the mount a path lives on, for log messages

    Picks the longest mount point that prefixes the resolved path.
    """
    try:
        resolved = str(Path(path).resolve())
        best = None
        for partition in psutil.disk_partitions(all=True):
            mount = partition.mountpoint
            if resolved == mount or resolved.startswith(mount.rstrip(os.sep) + os.sep):
                if best is None or len(mount) > len(best.mountpoint):
                    best = partition
        if best is not None:
            return f"{best.mountpoint} ({best.fstype or 'unknown'})"
    except (OSError, RuntimeError) as e:
        logger.debug(f"[RESOLVE] Could not describe device for {path}: {e}")
    return "unknown device"


def free_space(path: PathLike) -> Optional[int]:
    """Free bytes on the filesystem holding ``path`` (or its parent), or None"""
    target = Path(path)
    if not target.exists():
        target = target.parent
    try:
        return psutil.disk_usage(str(target)).free
    except OSError as e:
        logger.debug(f"[RESOLVE] Could not query free space for {path}: {e}")
        return None
