"""Run queued calls one at a time, a fixed interval apart."""
from .completion import CompletionHandle
from .config import DEFAULT_INTERVAL, QueueConfig, SchedulerOptions, load_queue_config
from .queue import CallQueue, QueuedCall
from .scheduler import Scheduler

__all__ = [
    "CallQueue",
    "CompletionHandle",
    "DEFAULT_INTERVAL",
    "QueueConfig",
    "QueuedCall",
    "Scheduler",
    "SchedulerOptions",
    "load_queue_config",
]
