"""Sequential scheduler that paces queued calls by a fixed interval."""
from __future__ import annotations

import asyncio
import inspect
import logging
from functools import partial
from typing import Any, Callable, Mapping, Optional, Union

from .completion import CompletionHandle
from .config import DEFAULT_INTERVAL, SchedulerOptions, validate_interval
from .queue import CallQueue, QueuedCall

LOGGER = logging.getLogger(__name__)

UnobservedErrorHandler = Callable[[CompletionHandle[Any], BaseException], None]


def _log_unobserved(handle: CompletionHandle[Any], error: BaseException) -> None:
    LOGGER.error(
        "Queued call failed and %r was never observed",
        handle,
        exc_info=(type(error), error, error.__traceback__),
    )


def _settle_from_future(handle: CompletionHandle[Any], future: "asyncio.Future[Any]") -> None:
    if future.cancelled():
        handle.fail(asyncio.CancelledError())
    elif future.exception() is not None:
        handle.fail(future.exception())  # type: ignore[arg-type]
    else:
        handle.fulfill(future.result())


def _is_pending(result: Any) -> bool:
    return isinstance(result, asyncio.Future) and not result.done()


class Scheduler:
    """Run added calls one after another, ``interval`` seconds apart.

    Calls are dispatched strictly in the order they were added. The first
    call added to an idle queue runs inside ``add()`` itself (unless
    ``timer_for_first`` is set); later ones run each time the interval timer
    fires. Every ``add()`` returns a :class:`CompletionHandle` that settles
    with the call's return value, the result of its awaitable, or its error.

    The scheduler is not thread-safe: use it from the thread running its
    event loop.
    """

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        options: Union[SchedulerOptions, Mapping[str, Any], None] = None,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        unobserved_error_handler: Optional[UnobservedErrorHandler] = None,
    ) -> None:
        self._interval = validate_interval(interval)
        if options is None:
            options = SchedulerOptions()
        elif not isinstance(options, SchedulerOptions):
            options = SchedulerOptions.model_validate(options)
        self._options = options
        self._loop = loop
        self._unobserved_error_handler = unobserved_error_handler or _log_unobserved
        self._queue = CallQueue()
        self._triggering = False
        self._paused = False
        self._is_first = True
        self._last_result: Any = None
        # Either a TimerHandle or a task waiting on an async result; both cancel().
        self._wait: Optional[Union[asyncio.TimerHandle, "asyncio.Task[None]"]] = None
        self._round = 0

    def __len__(self) -> int:
        return len(self._queue)

    def __repr__(self) -> str:
        return (
            f"<Scheduler interval={self._interval} pending={len(self._queue)} "
            f"paused={self._paused} triggering={self._triggering}>"
        )

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def options(self) -> SchedulerOptions:
        return self._options

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def triggering(self) -> bool:
        return self._triggering

    @property
    def is_first(self) -> bool:
        return self._is_first

    @property
    def last_result(self) -> Any:
        return self._last_result

    def add(self, operation: Callable[..., Any], *args: Any, **kwargs: Any) -> CompletionHandle[Any]:
        """Queue ``operation(*args, **kwargs)`` and return its completion handle."""

        # Timers need a loop; fail before anything is queued or run.
        self._get_loop()
        handle: CompletionHandle[Any] = CompletionHandle(self._unobserved_error_handler)
        self._queue.push(QueuedCall(operation, args, kwargs), handle)
        self._trigger()
        return handle

    def set_interval_time(self, seconds: float) -> None:
        """Change the interval and re-evaluate the next dispatch right away.

        Time already spent waiting under the old interval is discarded.
        """

        self._interval = validate_interval(seconds)
        LOGGER.debug("Interval set to %.3fs", self._interval)
        self.run_next()

    def clear_loop(self) -> None:
        """Cancel the pending wait so nothing dispatches until the next trigger."""

        if self._wait is not None:
            self._wait.cancel()
            self._wait = None
        self._triggering = False
        self._round += 1

    def run_next(self) -> None:
        """Skip the remaining wait and dispatch the next call now."""

        self.clear_loop()
        self._trigger()

    def pause(self) -> None:
        self._paused = True
        self._is_first = True
        self.clear_loop()
        LOGGER.debug("Paused with %d pending call(s)", len(self._queue))

    def unpause(self) -> None:
        self._paused = False
        LOGGER.debug("Unpaused with %d pending call(s)", len(self._queue))
        self._trigger()

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _trigger(self) -> None:
        if self._paused or self._triggering:
            return
        if not self._queue:
            self._is_first = True
            return

        self._get_loop()
        self._triggering = True
        if self._options.timer_for_first and self._is_first:
            self._start_timer()
            return

        if self._options.await_last_queue and _is_pending(self._last_result):
            LOGGER.debug("Holding dispatch until the previous result settles")
            self._wait = self._get_loop().create_task(self._dispatch_when_settled(self._last_result))
            return
        self._dispatch()

    async def _dispatch_when_settled(self, previous: "asyncio.Future[Any]") -> None:
        await asyncio.wait((previous,))
        self._wait = None
        self._dispatch()

    def _dispatch(self) -> None:
        entry = self._queue.pop()
        if entry is None:
            self._triggering = False
            raise RuntimeError("dispatch attempted with an empty queue")
        call, handle = entry
        if self._options.loop:
            self.add(call.operation, *call.args, **call.kwargs)

        round_id = self._round
        LOGGER.debug("Dispatching %r (%d pending)", call.operation, len(self._queue))
        try:
            result = call.invoke()
            if inspect.isawaitable(result):
                # Raises ValueError for a future bound to another loop.
                result = asyncio.ensure_future(result, loop=self._get_loop())
        except (Exception, asyncio.CancelledError) as exc:
            LOGGER.debug("Queued call %r raised %r", call.operation, exc)
            self._last_result = None
            handle.fail(exc)
        else:
            if isinstance(result, asyncio.Future):
                result.add_done_callback(partial(_settle_from_future, handle))
            else:
                handle.fulfill(result)
            self._last_result = result

        if round_id != self._round:
            # The call itself cleared or restarted the loop while running.
            return
        if self._options.start_timer == "after" and _is_pending(self._last_result):
            self._wait = self._get_loop().create_task(self._start_timer_when_settled(self._last_result))
        else:
            self._start_timer()

    async def _start_timer_when_settled(self, future: "asyncio.Future[Any]") -> None:
        await asyncio.wait((future,))
        self._wait = None
        self._start_timer()

    def _start_timer(self) -> None:
        self._is_first = False
        self._wait = self._get_loop().call_later(self._interval, self._on_timer)

    def _on_timer(self) -> None:
        self._wait = None
        self._triggering = False
        self._trigger()


__all__ = ["Scheduler"]
