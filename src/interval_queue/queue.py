"""FIFO of pending calls and their completion handles."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Iterator, Optional, Tuple

from .completion import CompletionHandle


@dataclass
class QueuedCall:
    """A deferred operation together with the arguments it will be called with."""

    operation: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)

    def invoke(self) -> Any:
        return self.operation(*self.args, **self.kwargs)


class CallQueue:
    """Keep pending calls and their handles in two parallel FIFOs.

    Index ``i`` of both sequences always belongs to the same submission, so
    they are only ever pushed and popped together.
    """

    def __init__(self) -> None:
        self._calls: Deque[QueuedCall] = deque()
        self._handles: Deque[CompletionHandle[Any]] = deque()

    def __len__(self) -> int:
        return len(self._calls)

    def __iter__(self) -> Iterator[QueuedCall]:
        return iter(list(self._calls))

    def push(self, call: QueuedCall, handle: CompletionHandle[Any]) -> None:
        """Append a call and the handle that will carry its outcome."""

        self._calls.append(call)
        self._handles.append(handle)

    def pop(self) -> Optional[Tuple[QueuedCall, CompletionHandle[Any]]]:
        """Remove and return the oldest call with its handle."""

        if not self._calls:
            return None
        return self._calls.popleft(), self._handles.popleft()


__all__ = ["CallQueue", "QueuedCall"]
