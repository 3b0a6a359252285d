"""Cross-process mutual exclusion with atomically created lock files."""

from atomic_lockfile.config import (
    DEFAULT_SLEEP_BETWEEN_RETRIES,
    MAX_SLEEP_BETWEEN_RETRIES,
    LockingParameters,
    RetryKind,
    RetryStrategy,
    default_locking_parameters,
    load_config,
)
from atomic_lockfile.exceptions import (
    CaughtIOException,
    ConfigError,
    LockfileError,
    LockingErrorKind,
    LockingException,
    UnableToAcquireLockFile,
)
from atomic_lockfile.services.lock import FileLock, acquire, release, with_lock

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_SLEEP_BETWEEN_RETRIES",
    "MAX_SLEEP_BETWEEN_RETRIES",
    "CaughtIOException",
    "ConfigError",
    "FileLock",
    "LockfileError",
    "LockingErrorKind",
    "LockingException",
    "LockingParameters",
    "RetryKind",
    "RetryStrategy",
    "UnableToAcquireLockFile",
    "acquire",
    "default_locking_parameters",
    "load_config",
    "release",
    "with_lock",
]
