"""Configuration models and helpers for paced queues."""
from __future__ import annotations

import math
import numbers
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:  # pragma: no cover
    from .scheduler import Scheduler

DEFAULT_INTERVAL = 2.0


def validate_interval(value: Any) -> float:
    """Return ``value`` as seconds, rejecting anything that is not a usable delay."""

    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise TypeError(f"interval must be a number of seconds, got {value!r}")
    seconds = float(value)
    if math.isnan(seconds) or math.isinf(seconds):
        raise ValueError(f"interval must be finite, got {value!r}")
    if seconds < 0:
        raise ValueError(f"interval must be >= 0, got {value!r}")
    return seconds


class SchedulerOptions(BaseModel):
    """Behaviour switches fixed for the lifetime of a scheduler."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    await_last_queue: bool = Field(
        True,
        description="Hold the next dispatch until the previous async result settles",
    )
    start_timer: Literal["before", "after"] = Field(
        "before",
        description="Start the interval at dispatch time or once an async result settles",
    )
    loop: bool = Field(
        False,
        description="Re-add every dispatched call to the tail so it repeats forever",
    )
    timer_for_first: bool = Field(
        False,
        description="Wait one interval before the first dispatch after idling or pausing",
    )


class QueueConfig(BaseModel):
    """Top-level configuration for one paced queue."""

    interval_seconds: float = Field(
        DEFAULT_INTERVAL,
        description="Delay between two dispatches, in seconds",
    )
    options: SchedulerOptions = Field(default_factory=SchedulerOptions)

    @field_validator("interval_seconds", mode="before")
    @classmethod
    def _validate_interval(cls, value: Any) -> float:
        try:
            return validate_interval(value)
        except TypeError as exc:
            raise ValueError(str(exc)) from exc

    def create_scheduler(self, **kwargs: Any) -> "Scheduler":
        """Build a scheduler using this interval and these options."""

        from .scheduler import Scheduler

        return Scheduler(self.interval_seconds, self.options, **kwargs)


def load_queue_config(path: Path) -> QueueConfig:
    """Load a queue configuration from a YAML file."""

    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")
    with path.open("r", encoding="utf-8") as stream:
        payload = yaml.safe_load(stream)
    return QueueConfig.model_validate(payload or {})


__all__ = [
    "DEFAULT_INTERVAL",
    "QueueConfig",
    "SchedulerOptions",
    "load_queue_config",
    "validate_interval",
]
