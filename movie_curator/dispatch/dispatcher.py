"""
Single-flight admission queue for outbound catalog requests.

Every wrapped operation goes through one processing loop per dispatcher:
- at most `max_requests` operations are admitted per rolling window
- operations run one at a time, in submission order
- HTTP 429 failures are retried with backoff, ahead of newer work
- HTTP 401 failures are surfaced as `AuthorizationError`
- any other failure resolves to `None`

Callers get an `asyncio.Future` back from `submit()`; nothing is raised
synchronously for an operation failure.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from movie_curator.utils.env import env_float, env_int

logger = logging.getLogger(__name__)

Operation = Callable[[], Awaitable[Any]]

HTTP_UNAUTHORIZED = 401
HTTP_TOO_MANY_REQUESTS = 429


class AuthorizationError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = HTTP_UNAUTHORIZED) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidTransitionError(RuntimeError):
    pass


class DispatcherState(str, Enum):
    IDLE = "idle"
    ADMITTING = "admitting"
    EXECUTING = "executing"
    BACKING_OFF = "backing_off"
    DRAINING = "draining"


class DispatchEvent(str, Enum):
    ENQUEUE = "enqueue"
    WINDOW_EXPIRED = "window_expired"
    QUOTA_EXCEEDED = "quota_exceeded"
    ADMITTED = "admitted"
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    OTHER_FAILURE = "other_failure"
    REQUEUED = "requeued"
    PENDING = "pending"
    EMPTY = "empty"
    ABORTED = "aborted"


_TRANSITIONS: dict[tuple[DispatcherState, DispatchEvent], DispatcherState] = {
    (DispatcherState.IDLE, DispatchEvent.ENQUEUE): DispatcherState.ADMITTING,
    (DispatcherState.ADMITTING, DispatchEvent.WINDOW_EXPIRED): DispatcherState.ADMITTING,
    (DispatcherState.ADMITTING, DispatchEvent.QUOTA_EXCEEDED): DispatcherState.ADMITTING,
    (DispatcherState.ADMITTING, DispatchEvent.ADMITTED): DispatcherState.EXECUTING,
    (DispatcherState.EXECUTING, DispatchEvent.SUCCESS): DispatcherState.DRAINING,
    (DispatcherState.EXECUTING, DispatchEvent.UNAUTHORIZED): DispatcherState.DRAINING,
    (DispatcherState.EXECUTING, DispatchEvent.OTHER_FAILURE): DispatcherState.DRAINING,
    (DispatcherState.EXECUTING, DispatchEvent.RATE_LIMITED): DispatcherState.BACKING_OFF,
    (DispatcherState.BACKING_OFF, DispatchEvent.REQUEUED): DispatcherState.DRAINING,
    (DispatcherState.DRAINING, DispatchEvent.PENDING): DispatcherState.ADMITTING,
    (DispatcherState.DRAINING, DispatchEvent.EMPTY): DispatcherState.IDLE,
    (DispatcherState.ADMITTING, DispatchEvent.ABORTED): DispatcherState.IDLE,
    (DispatcherState.EXECUTING, DispatchEvent.ABORTED): DispatcherState.IDLE,
    (DispatcherState.BACKING_OFF, DispatchEvent.ABORTED): DispatcherState.IDLE,
    (DispatcherState.DRAINING, DispatchEvent.ABORTED): DispatcherState.IDLE,
}


def next_state(state: DispatcherState, event: DispatchEvent) -> DispatcherState:
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransitionError(f"No transition from {state.value!r} on {event.value!r}.") from None


def _status_code_of(exc: BaseException) -> int | None:
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    return None


def classify_failure(exc: BaseException) -> DispatchEvent:
    """
    Map an operation failure to the dispatcher event it triggers.

    The status code is taken from `exc.status_code` (client errors) or
    `exc.response.status_code` (`requests.HTTPError`).
    """

    status_code = _status_code_of(exc)
    if status_code == HTTP_TOO_MANY_REQUESTS:
        return DispatchEvent.RATE_LIMITED
    if status_code == HTTP_UNAUTHORIZED:
        return DispatchEvent.UNAUTHORIZED
    return DispatchEvent.OTHER_FAILURE


@dataclass(frozen=True)
class DispatcherConfig:
    max_requests: int = 150
    window_seconds: float = 10.0
    retry_delay_seconds: float = 2.0
    min_wait_seconds: float = 0.1
    inter_request_delay_seconds: float = 0.02
    default_max_retries: int = 3

    @classmethod
    def from_env(cls) -> DispatcherConfig:
        return cls(
            max_requests=env_int("TMDB_MAX_REQUESTS_PER_WINDOW", cls.max_requests),
            window_seconds=env_float("TMDB_WINDOW_SECONDS", cls.window_seconds),
            retry_delay_seconds=env_float("TMDB_RETRY_DELAY_SECONDS", cls.retry_delay_seconds),
        )

    def backoff_seconds(self, remaining: int) -> float:
        return max(0.0, self.retry_delay_seconds * (4 - remaining))


@dataclass
class WindowState:
    """
    Admissions in the current rolling window.

    `count` goes back to 0 only when the window is re-anchored, and the new end
    is always `now + window`, never earlier than the previous end.
    """

    count: int
    window_end: float

    def roll(self, now: float, window_seconds: float) -> bool:
        if now < self.window_end:
            return False
        self.reset(now, window_seconds)
        return True

    def reset(self, now: float, window_seconds: float) -> None:
        self.count = 0
        self.window_end = now + window_seconds


@dataclass
class QueueEntry:
    operation: Operation
    future: asyncio.Future
    remaining: int


@dataclass(frozen=True)
class DispatcherStatus:
    queue_length: int
    request_count: int
    processing: bool
    state: DispatcherState


class RequestDispatcher:
    def __init__(
        self,
        config: DispatcherConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._config = config or DispatcherConfig()
        if self._config.max_requests < 1:
            raise ValueError("max_requests must be at least 1.")
        self._clock = clock
        self._sleep = sleep
        self._queue: deque[QueueEntry] = deque()
        self._window = WindowState(count=0, window_end=clock() + self._config.window_seconds)
        self._state = DispatcherState.IDLE
        self._task: asyncio.Task | None = None
        self._current: QueueEntry | None = None

    @property
    def config(self) -> DispatcherConfig:
        return self._config

    @property
    def state(self) -> DispatcherState:
        return self._state

    @property
    def window(self) -> WindowState:
        return self._window

    def status(self) -> DispatcherStatus:
        return DispatcherStatus(
            queue_length=len(self._queue),
            request_count=self._window.count,
            processing=self._state is not DispatcherState.IDLE,
            state=self._state,
        )

    def submit(self, operation: Operation, max_retries: int | None = None) -> asyncio.Future:
        """
        Queue `operation` and return a future for its outcome.

        Must be called with a running event loop. The future resolves with the
        operation's result, or `None` when it failed for any reason other than
        authorization; it fails with `AuthorizationError` on HTTP 401.
        If the processing loop itself is cancelled, for example because its
        event loop shut down, the future is cancelled and the next `submit()`
        starts a fresh loop.
        """

        loop = asyncio.get_running_loop()
        retries = self._config.default_max_retries if max_retries is None else max(0, int(max_retries))
        future: asyncio.Future = loop.create_future()
        restart = self._task is None or self._task.done()
        if restart and self._state is not DispatcherState.IDLE:
            # The previous loop was cancelled before it ever ran.
            self._abandon()
        self._queue.append(QueueEntry(operation=operation, future=future, remaining=retries))
        if restart:
            self._transition(DispatchEvent.ENQUEUE)
            self._task = loop.create_task(self._process_queue())
        return future

    async def execute(self, operation: Operation, max_retries: int | None = None) -> Any:
        return await self.submit(operation, max_retries)

    async def join(self) -> None:
        """Wait until the processing loop has drained the queue."""
        while self._task is not None and not self._task.done():
            await self._task

    def _transition(self, event: DispatchEvent) -> None:
        self._state = next_state(self._state, event)

    async def _process_queue(self) -> None:
        config = self._config
        try:
            while self._queue:
                now = self._clock()
                if self._window.roll(now, config.window_seconds):
                    self._transition(DispatchEvent.WINDOW_EXPIRED)

                if self._window.count >= config.max_requests:
                    wait = max(self._window.window_end - now, config.min_wait_seconds)
                    logger.info(
                        f"Rate limit reached ({self._window.count}/{config.max_requests}), waiting {wait:.3f}s..."
                    )
                    self._transition(DispatchEvent.QUOTA_EXCEEDED)
                    await self._sleep(wait)
                    continue

                entry = self._queue.popleft()
                self._current = entry
                self._window.count += 1
                self._transition(DispatchEvent.ADMITTED)

                try:
                    result = await entry.operation()
                except asyncio.CancelledError as exc:
                    task = asyncio.current_task()
                    if task is not None and task.cancelling():
                        raise
                    # Raised by the operation itself, not a cancel of this loop.
                    await self._handle_failure(entry, exc)
                except Exception as exc:
                    await self._handle_failure(entry, exc)
                else:
                    self._transition(DispatchEvent.SUCCESS)
                    _resolve(entry.future, result)
                self._current = None

                if self._queue:
                    self._transition(DispatchEvent.PENDING)
                    await self._sleep(config.inter_request_delay_seconds)

            self._transition(DispatchEvent.EMPTY)
        finally:
            if self._state is not DispatcherState.IDLE:
                self._abandon()

    def _abandon(self) -> None:
        """Cancel every unsettled future and put the dispatcher back to idle."""

        entries = [self._current] if self._current is not None else []
        entries.extend(self._queue)
        self._queue.clear()
        self._current = None
        cancelled = 0
        for entry in entries:
            future = entry.future
            if future.done() or future.get_loop().is_closed():
                continue
            future.cancel()
            cancelled += 1
        logger.warning(f"Dispatcher loop stopped early; cancelled {cancelled} pending request(s).")
        self._transition(DispatchEvent.ABORTED)

    async def _handle_failure(self, entry: QueueEntry, exc: BaseException) -> None:
        event = classify_failure(exc)

        if event is DispatchEvent.RATE_LIMITED and entry.remaining > 0:
            self._transition(DispatchEvent.RATE_LIMITED)
            delay = self._config.backoff_seconds(entry.remaining)
            logger.warning(f"Catalog rate limit hit (429), retrying in {delay:.3f}s...")
            await self._sleep(delay)
            self._queue.appendleft(
                QueueEntry(operation=entry.operation, future=entry.future, remaining=entry.remaining - 1)
            )
            self._window.reset(self._clock(), self._config.window_seconds)
            self._transition(DispatchEvent.REQUEUED)
            return

        if event is DispatchEvent.UNAUTHORIZED:
            self._transition(DispatchEvent.UNAUTHORIZED)
            logger.error(f"Catalog API key rejected: {exc}")
            error = AuthorizationError(f"Catalog request unauthorized: {exc}", status_code=_status_code_of(exc))
            error.__cause__ = exc
            if not entry.future.done():
                entry.future.set_exception(error)
            return

        # Rate-limited with no retries left lands here too.
        self._transition(DispatchEvent.OTHER_FAILURE)
        logger.warning(f"Request failed: {exc}")
        _resolve(entry.future, None)


def _resolve(future: asyncio.Future, value: Any) -> None:
    if not future.done():
        future.set_result(value)
