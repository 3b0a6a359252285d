"""Lock files created with atomic exclusive open.

The existence of the file is the lock: ``O_CREAT | O_EXCL`` lets exactly one
process create it, and releasing means closing and deleting it. The PID written
into the file is for humans only and is never read back.

Usage::

    with FileLock(Path("/tmp/myapp.lock")):
        # critical section
        ...
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import BinaryIO, Callable, Optional, TypeVar, Union

from atomic_lockfile.config import LockingParameters, default_locking_parameters
from atomic_lockfile.exceptions import CaughtIOException, UnableToAcquireLockFile

logger = logging.getLogger(__name__)

T = TypeVar("T")
PathLike = Union[str, os.PathLike]

_OPEN_FLAGS = (
    os.O_RDWR
    | os.O_CREAT
    | os.O_EXCL
    | getattr(os, "O_NONBLOCK", 0)
    | getattr(os, "O_NOCTTY", 0)
    | getattr(os, "O_BINARY", 0)
)
_OPEN_MODE = 0o644


def _sleep(microseconds: int) -> None:
    time.sleep(microseconds / 1_000_000)


def _discard(close: Callable[[], None], path: Path) -> None:
    """Close and delete a lock file we created but could not finish setting up."""
    try:
        close()
    except OSError as exc:
        logger.error("Failed to close lock file %s before returning it: %s", path, exc)
    try:
        os.remove(path)
    except OSError as exc:
        logger.error("Failed to remove lock file %s before returning it: %s", path, exc)


def _open_lock_file(path: Path) -> Optional[BinaryIO]:
    """Create *path* exclusively and write our PID into it.

    Returns ``None`` if the file already exists.
    """
    try:
        fd = os.open(path, _OPEN_FLAGS, _OPEN_MODE)
    except FileExistsError:
        return None
    except OSError as exc:
        raise CaughtIOException(exc, path=path) from exc

    try:
        handle = os.fdopen(fd, "r+b")
    except OSError as exc:
        _discard(lambda: os.close(fd), path)
        raise CaughtIOException(exc, path=path) from exc

    try:
        handle.write(f"PID={os.getpid()}\n".encode("ascii"))
        handle.flush()
    except OSError as exc:
        _discard(handle.close, path)
        raise CaughtIOException(exc, path=path) from exc
    except BaseException:
        _discard(handle.close, path)
        raise
    return handle


def acquire(parameters: LockingParameters, path: PathLike) -> BinaryIO:
    """Create the lock file at *path* and return its open handle.

    On contention the retry strategy of *parameters* decides whether to sleep
    and try again. I/O errors other than "file exists" are never retried.

    Raises:
        UnableToAcquireLockFile: The retry budget was used up.
        CaughtIOException: Any other I/O failure.
    """
    lock_path = Path(path)
    strategy = parameters.retry_strategy.normalized()
    attempt = 0
    while True:
        attempt += 1
        logger.debug("Attempt %d to create lock file %s (%s)", attempt, lock_path, strategy)
        handle = _open_lock_file(lock_path)
        if handle is not None:
            logger.info("Acquired lock file %s", lock_path)
            return handle
        if strategy.gives_up:
            logger.warning("Giving up on lock file %s after %d attempt(s)", lock_path, attempt)
            raise UnableToAcquireLockFile(lock_path)
        logger.debug(
            "Lock file %s exists, retrying in %.3fs", lock_path, parameters.sleep_seconds,
        )
        _sleep(parameters.sleep_between_retries)
        strategy = strategy.decremented()


def release(handle: BinaryIO, path: PathLike) -> None:
    """Close *handle*, then delete the lock file at *path*.

    A failed delete is reported, not retried.
    """
    lock_path = Path(path)
    try:
        handle.close()
        os.remove(lock_path)
    except OSError as exc:
        raise CaughtIOException(exc, path=lock_path) from exc
    logger.info("Released lock file %s", lock_path)


def _release_after_error(handle: BinaryIO, path: PathLike) -> None:
    """Release while an exception is already propagating.

    That exception takes precedence, so a release failure is only logged.
    """
    try:
        release(handle, path)
    except CaughtIOException as exc:
        logger.error("Failed to release lock file %s: %s", path, exc)


def with_lock(parameters: LockingParameters, path: PathLike, action: Callable[[], T]) -> T:
    """Run *action* while holding the lock file at *path*.

    The lock is released exactly once whether *action* returns or raises. If
    *action* returned but the release failed, the raised
    ``CaughtIOException`` carries the return value in ``result``.
    """
    handle = acquire(parameters, path)
    try:
        result = action()
    except BaseException:
        _release_after_error(handle, path)
        raise
    try:
        release(handle, path)
    except CaughtIOException as exc:
        exc.result = result
        raise
    return result


class FileLock:
    """Scoped lock file.

    Entering acquires, leaving releases, with the same failure precedence as
    :func:`with_lock`. Not reentrant.
    """

    def __init__(self, lock_path: PathLike, parameters: Optional[LockingParameters] = None) -> None:
        self._lock_path = Path(lock_path)
        self._parameters = parameters if parameters is not None else default_locking_parameters()
        self._handle: Optional[BinaryIO] = None

    @property
    def path(self) -> Path:
        return self._lock_path

    @property
    def parameters(self) -> LockingParameters:
        return self._parameters

    @property
    def handle(self) -> Optional[BinaryIO]:
        return self._handle

    @property
    def locked(self) -> bool:
        return self._handle is not None

    def acquire(self) -> None:
        self._handle = acquire(self._parameters, self._lock_path)

    def release(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        release(handle, self._lock_path)

    def __enter__(self) -> FileLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.release()
            return None
        if self._handle is not None:
            handle, self._handle = self._handle, None
            _release_after_error(handle, self._lock_path)
        return None
