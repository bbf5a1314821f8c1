from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections import deque
from typing import Any, Callable

from app.application.ports.key_value_storage import KeyValueStoragePort
from app.application.utils.fault_classifier import FaultOrigin, FaultReport, build_fault_report


FaultHandler = Callable[[FaultReport], None]
Scheduler = Callable[[float, Callable[[], None]], Any]


class UnhandledAsyncError(RuntimeError):
    """Stands in for an async failure reported without an exception object."""
    pass


def start_timer(delay: float, action: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, action)
    timer.daemon = True
    timer.start()
    return timer


class FaultBoundary:
    """
    Supervises render/update cycles. A fault raised inside run() is captured as a
    FaultReport instead of propagating; while faulted, run() renders nothing.
    """

    def __init__(self, name: str, clock: Callable[[], float] = time.time) -> None:
        self._name = name
        self._clock = clock
        self._fault: FaultReport | None = None
        self._handlers: list[FaultHandler] = []
        self._logger = logging.getLogger(__name__)

    @property
    def name(self) -> str:
        return self._name

    @property
    def fault(self) -> FaultReport | None:
        return self._fault

    @property
    def has_error(self) -> bool:
        return self._fault is not None

    def on_fault(self, handler: FaultHandler) -> Callable[[], None]:
        """Register a handler; returns a callable that unregisters it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def run(self, render: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        if self._fault is not None:
            return None
        try:
            return render(*args, **kwargs)
        except Exception as exc:
            self.capture(exc, FaultOrigin.RENDER)
            return None

    def capture(self, exc: BaseException, origin: FaultOrigin = FaultOrigin.RENDER) -> FaultReport:
        report = build_fault_report(exc, origin, self._name, self._clock())
        self._fault = report
        self._logger.error(
            "Fault caught by %s boundary",
            self._name,
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={"fault_kind": report.kind.value, "error": str(exc)},
        )
        self._after_capture(report)
        for handler in list(self._handlers):
            try:
                handler(report)
            except Exception:
                self._logger.exception("Fault handler failed in %s boundary", self._name)
        return report

    def reset(self) -> None:
        self._fault = None

    def _after_capture(self, report: FaultReport) -> None:
        pass


class ApplicationFaultBoundary(FaultBoundary):
    """
    Outermost boundary. Reaching `threshold` faults within `window_seconds` is treated as
    an error loop and schedules a single full reload after `reload_delay`.
    """

    def __init__(
        self,
        reload: Callable[[], None],
        scheduler: Scheduler = start_timer,
        threshold: int = 3,
        window_seconds: float = 1.0,
        reload_delay: float = 2.0,
        clock: Callable[[], float] = time.time,
        name: str = "application",
    ) -> None:
        super().__init__(name, clock)
        self._reload = reload
        self._scheduler = scheduler
        self._threshold = threshold
        self._window_seconds = window_seconds
        self._reload_delay = reload_delay
        self._recent: deque[float] = deque()
        self._reload_scheduled = False

    @property
    def reload_scheduled(self) -> bool:
        return self._reload_scheduled

    @property
    def recent_fault_count(self) -> int:
        return len(self._recent)

    def restart(self) -> None:
        """Clear the fault and the loop counter without reloading."""
        self.reset()
        self._recent.clear()

    def fallback_view(self, include_details: bool = False) -> dict[str, Any] | None:
        if self._fault is None:
            return None
        view = self._fault.to_view(include_details)
        view.update(
            title="Recovery Office System Error",
            message="The booking system encountered a critical error and has been stopped to prevent data corruption.",
            reloadPending=self._reload_scheduled,
        )
        return view

    def _after_capture(self, report: FaultReport) -> None:
        now = report.occurred_at
        self._recent.append(now)
        while self._recent and now - self._recent[0] >= self._window_seconds:
            self._recent.popleft()

        if len(self._recent) >= self._threshold and not self._reload_scheduled:
            self._reload_scheduled = True
            self._logger.error(
                "Error loop detected in %s boundary; reloading in %ss", self.name, self._reload_delay
            )
            self._scheduler(self._reload_delay, self._reload)


class BookingFaultBoundary(FaultBoundary):
    """
    Boundary around the booking flow. While mounted it also receives unhandled asyncio
    failures, reported with the same FaultReport shape as render faults.
    """

    def __init__(
        self,
        storage: KeyValueStoragePort,
        storage_key: str,
        clock: Callable[[], float] = time.time,
        name: str = "booking",
    ) -> None:
        super().__init__(name, clock)
        self._storage = storage
        self._storage_key = storage_key
        self._loop: asyncio.AbstractEventLoop | None = None
        self._previous_handler: Any = None

    @property
    def mounted(self) -> bool:
        return self._loop is not None

    def mount(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        if self._loop is not None:
            return
        loop = loop or asyncio.get_running_loop()
        self._previous_handler = loop.get_exception_handler()
        loop.set_exception_handler(self._handle_loop_exception)
        self._loop = loop

    def unmount(self) -> None:
        if self._loop is None:
            return
        self._loop.set_exception_handler(self._previous_handler)
        self._loop = None
        self._previous_handler = None

    def watch(self, task: asyncio.Future) -> asyncio.Future:
        """Capture the task's exception, if any, once it finishes."""
        task.add_done_callback(self._task_done)
        return task

    def reset(self) -> None:
        """Clear the fault and the stored draft, which may be what broke the flow."""
        super().reset()
        try:
            self._storage.remove(self._storage_key)
        except OSError as e:
            self._logger.warning("Could not clear stored booking draft", extra={"error": str(e)})

    def fallback_view(self, include_details: bool = False) -> dict[str, Any] | None:
        if self._fault is None:
            return None
        return self._fault.to_view(include_details)

    def _task_done(self, task: asyncio.Future) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.capture(exc, FaultOrigin.ASYNC)

    def _handle_loop_exception(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        if exc is None:
            exc = UnhandledAsyncError(context.get("message") or "Unhandled async error")
        self.capture(exc, FaultOrigin.ASYNC)
