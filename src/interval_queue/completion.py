"""One-shot completion handles returned by ``Scheduler.add``."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Generator, Generic, List, Optional, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_PENDING = "pending"
_FULFILLED = "fulfilled"
_FAILED = "failed"


class CompletionHandle(Generic[T]):
    """Result slot settled exactly once with a value or an error.

    The handle is not tied to a particular event loop: ``fulfill`` and
    ``fail`` can be called from plain code, and ``await handle`` creates a
    waiter on whichever loop is running at that moment.
    """

    def __init__(
        self,
        on_unobserved: Optional[Callable[["CompletionHandle[Any]", BaseException], None]] = None,
    ) -> None:
        self._state = _PENDING
        self._value: Optional[T] = None
        self._error: Optional[BaseException] = None
        self._callbacks: List[Callable[["CompletionHandle[T]"], None]] = []
        self._observed = False
        self._on_unobserved = on_unobserved

    def __repr__(self) -> str:
        return f"<CompletionHandle {self._state}>"

    def done(self) -> bool:
        return self._state != _PENDING

    def fulfill(self, value: T) -> None:
        self._settle(_FULFILLED, value, None)

    def fail(self, error: BaseException) -> None:
        self._settle(_FAILED, None, error)

    def _settle(self, state: str, value: Optional[T], error: Optional[BaseException]) -> None:
        if self._state != _PENDING:
            raise asyncio.InvalidStateError(f"handle already {self._state}")
        self._state = state
        self._value = value
        self._error = error
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._run_callback(callback)

    def _run_callback(self, callback: Callable[["CompletionHandle[T]"], None]) -> None:
        try:
            callback(self)
        except Exception:
            LOGGER.exception("Completion callback %r failed", callback)

    def add_done_callback(self, callback: Callable[["CompletionHandle[T]"], None]) -> None:
        """Call ``callback(handle)`` once settled, or right away if it already is."""

        self._observed = True
        if self.done():
            self._run_callback(callback)
        else:
            self._callbacks.append(callback)

    def result(self) -> T:
        """Return the value, or raise the error the handle failed with."""

        self._observed = True
        if self._state == _PENDING:
            raise asyncio.InvalidStateError("result is not ready")
        if self._state == _FAILED:
            raise self._error  # type: ignore[misc]
        return self._value  # type: ignore[return-value]

    def exception(self) -> Optional[BaseException]:
        self._observed = True
        if self._state == _PENDING:
            raise asyncio.InvalidStateError("exception is not set")
        return self._error

    async def wait(self) -> T:
        if not self.done():
            waiter = asyncio.get_running_loop().create_future()

            def _wake(_: "CompletionHandle[T]") -> None:
                if not waiter.done():
                    waiter.set_result(None)

            self.add_done_callback(_wake)
            await waiter
        return self.result()

    def __await__(self) -> Generator[Any, None, T]:
        return self.wait().__await__()

    def __del__(self) -> None:
        if self._state != _FAILED or self._observed or self._on_unobserved is None:
            return
        self._on_unobserved(self, self._error)  # type: ignore[arg-type]


__all__ = ["CompletionHandle"]
