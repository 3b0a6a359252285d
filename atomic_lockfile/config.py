"""Pydantic locking parameter models and YAML loader."""

from __future__ import annotations

import enum
import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from atomic_lockfile.exceptions import ConfigError

# Same interval as procmail's lockfile(1).
DEFAULT_SLEEP_BETWEEN_RETRIES = 8_000_000
# Longest wait time.sleep() accepts on this platform.
MAX_SLEEP_BETWEEN_RETRIES = int(threading.TIMEOUT_MAX) * 1_000_000

_NO_ALIASES = {"no", "none"}
_INDEFINITELY_ALIASES = {"indefinitely", "forever"}


class RetryKind(str, enum.Enum):
    NO = "no"
    INDEFINITELY = "indefinitely"
    NUMBER_OF_TIMES = "number_of_times"


class RetryStrategy(BaseModel):
    """How often a contended lock file is retried.

    ``number_of_times(n)`` retries ``n`` more times after the first attempt.
    ``number_of_times(0)`` behaves exactly like ``no()``.
    """

    model_config = ConfigDict(frozen=True)

    kind: RetryKind = RetryKind.INDEFINITELY
    count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _validate_count(self) -> RetryStrategy:
        if self.kind is not RetryKind.NUMBER_OF_TIMES and self.count != 0:
            raise ValueError(f"count is only allowed with number_of_times, not {self.kind.value}")
        return self

    @classmethod
    def no(cls) -> RetryStrategy:
        return cls(kind=RetryKind.NO)

    @classmethod
    def indefinitely(cls) -> RetryStrategy:
        return cls(kind=RetryKind.INDEFINITELY)

    @classmethod
    def number_of_times(cls, count: int) -> RetryStrategy:
        return cls(kind=RetryKind.NUMBER_OF_TIMES, count=count)

    @classmethod
    def parse(cls, value: Any) -> RetryStrategy:
        """Build a strategy from its config file or command line form.

        Accepts ``"no"``/``"none"``, ``"indefinitely"``/``"forever"``, a
        non-negative retry count (int or decimal string), ``-1`` for
        indefinitely, a ``{kind, count}`` mapping, or a strategy instance.
        """
        if isinstance(value, RetryStrategy):
            return value
        if isinstance(value, dict):
            return cls.model_validate(value)
        if isinstance(value, bool):
            # YAML 1.1 loads a bare ``no`` as False.
            if value is False:
                return cls.no()
            raise ValueError(f"Invalid retry strategy: {value!r}")
        if isinstance(value, str):
            text = value.strip().lower()
            if text in _NO_ALIASES:
                return cls.no()
            if text in _INDEFINITELY_ALIASES:
                return cls.indefinitely()
            try:
                value = int(text)
            except ValueError:
                raise ValueError(f"Invalid retry strategy: {value!r}") from None
        if isinstance(value, int):
            if value == -1:
                return cls.indefinitely()
            if value < 0:
                raise ValueError(f"Retry count must be -1 or non-negative: {value}")
            return cls.number_of_times(value)
        raise ValueError(f"Invalid retry strategy: {value!r}")

    @property
    def gives_up(self) -> bool:
        """True when a contended attempt must fail instead of waiting."""
        if self.kind is RetryKind.NO:
            return True
        return self.kind is RetryKind.NUMBER_OF_TIMES and self.count == 0

    def normalized(self) -> RetryStrategy:
        if self.kind is RetryKind.NUMBER_OF_TIMES and self.count == 0:
            return RetryStrategy.no()
        return self

    def decremented(self) -> RetryStrategy:
        if self.kind is RetryKind.NUMBER_OF_TIMES and self.count > 0:
            return RetryStrategy.number_of_times(self.count - 1)
        return self

    def __str__(self) -> str:
        if self.kind is RetryKind.NUMBER_OF_TIMES:
            return f"{self.kind.value}({self.count})"
        return self.kind.value


class LockingParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    retry_strategy: RetryStrategy = Field(default_factory=RetryStrategy.indefinitely)
    sleep_between_retries: int = Field(
        default=DEFAULT_SLEEP_BETWEEN_RETRIES, ge=0, le=MAX_SLEEP_BETWEEN_RETRIES,
    )
    """Microseconds to wait between two creation attempts."""

    @field_validator("retry_strategy", mode="before")
    @classmethod
    def _parse_retry_strategy(cls, v: Any) -> RetryStrategy:
        return RetryStrategy.parse(v)

    @property
    def sleep_seconds(self) -> float:
        return self.sleep_between_retries / 1_000_000


def default_locking_parameters() -> LockingParameters:
    """Retry indefinitely, sleeping 8 seconds between attempts."""
    return LockingParameters(
        retry_strategy=RetryStrategy.indefinitely(),
        sleep_between_retries=DEFAULT_SLEEP_BETWEEN_RETRIES,
    )


def load_config(path: str | Path) -> LockingParameters:
    """Load locking parameters from a YAML file."""
    config_path = Path(path).expanduser()
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
    try:
        return LockingParameters.model_validate(data)
    except Exception as exc:
        raise ConfigError(f"Configuration validation failed: {exc}") from exc
