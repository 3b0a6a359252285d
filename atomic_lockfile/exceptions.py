"""Exception hierarchy for atomic-lockfile."""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Optional


class LockfileError(Exception):
    """Base exception for all atomic-lockfile errors."""


class ConfigError(LockfileError):
    """Configuration loading or validation error."""


class LockingErrorKind(str, enum.Enum):
    UNABLE_TO_ACQUIRE = "unable_to_acquire"
    CAUGHT_IO = "caught_io"


class LockingException(LockfileError):
    """Failure of a locking operation.

    The taxonomy is closed: every instance is one of the two subclasses below,
    and ``kind`` tells them apart without an ``isinstance`` check.
    """

    kind: LockingErrorKind


class UnableToAcquireLockFile(LockingException):
    """Lock file still existed after the retry budget was spent.

    Attributes:
        path: The contended lock file.
    """

    kind = LockingErrorKind.UNABLE_TO_ACQUIRE

    def __init__(self, path: Path) -> None:
        super().__init__(f"Unable to acquire lock file: {path}")
        self.path = path


class CaughtIOException(LockingException):
    """I/O failure while creating, writing, closing or removing a lock file.

    Attributes:
        error: The underlying ``OSError``.
        path: Lock file the operation was working on, if known.
        result: Value returned by the protected action when the failure
            happened while releasing after it completed.
    """

    kind = LockingErrorKind.CAUGHT_IO

    def __init__(self, error: OSError, *, path: Optional[Path] = None) -> None:
        super().__init__(f"Caught IO exception: {error}")
        self.error = error
        self.path = path
        self.result: Any = None
