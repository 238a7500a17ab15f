"""One shared background poll per order store.

Every screen that shows orders used to run its own 30 second timer.
``OrderPoller`` collapses them: screens ``acquire()`` on mount and
``release()`` on teardown, and a single daemon thread polls while at
least one holder remains.
"""

from __future__ import annotations

import threading
from types import TracebackType
from typing import Optional, Type

import structlog

from modules.delivery.constants import DEFAULT_POLL_INTERVAL
from modules.delivery.store import OrderStore

logger = structlog.get_logger(__name__)


class OrderPoller:
    """Ref-counted poller for an ``OrderStore``.

    - ``acquire()``: the first holder starts the thread, which fetches
      immediately and then every ``interval`` seconds.
    - ``release()``: the last holder stops the thread.
    - ``refresh()``: manual fetch in the caller's thread.
    - ``stop()``: tear down regardless of holders.
    """

    def __init__(self, store: OrderStore, interval: Optional[float] = None) -> None:
        self._store = store
        self._interval = DEFAULT_POLL_INTERVAL if interval is None else interval
        if self._interval <= 0:
            raise ValueError("Poll interval must be positive.")
        self._lock = threading.Lock()
        self._holders = 0
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @classmethod
    def from_settings(cls, store: OrderStore) -> OrderPoller:
        from django.conf import settings

        return cls(store, interval=settings.DELIVERY_POLL_INTERVAL)

    @property
    def holders(self) -> int:
        return self._holders

    @property
    def interval(self) -> float:
        return self._interval

    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def acquire(self) -> None:
        with self._lock:
            self._holders += 1
            if self._holders == 1:
                self._start_locked()

    def release(self) -> None:
        with self._lock:
            if self._holders == 0:
                return
            self._holders -= 1
            if self._holders == 0:
                self._stop_locked()

    def stop(self) -> None:
        with self._lock:
            self._holders = 0
            self._stop_locked()

    def refresh(self) -> bool:
        return self._store.fetch_orders()

    # ------------------------------------------------------------------
    # Context manager: acquire on enter, release on exit
    # ------------------------------------------------------------------

    def __enter__(self) -> OrderPoller:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.release()

    # ------------------------------------------------------------------
    # Thread lifecycle (caller holds ``self._lock``)
    # ------------------------------------------------------------------

    def _start_locked(self) -> None:
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._run,
            args=(stop_event,),
            name="order-poller",
            daemon=True,
        )
        self._stop_event = stop_event
        self._thread = thread
        thread.start()
        logger.info("poller.started", interval=self._interval)

    def _stop_locked(self) -> None:
        stop_event, thread = self._stop_event, self._thread
        self._stop_event = None
        self._thread = None
        if stop_event is None:
            return
        stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._interval + 5)
        logger.info("poller.stopped")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self._store.fetch_orders()
            except Exception:
                # A listener blew up; keep polling.
                logger.exception("poller.tick_failed")
            if stop_event.wait(self._interval):
                break
