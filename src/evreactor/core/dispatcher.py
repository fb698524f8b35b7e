# src/evreactor/core/dispatcher.py
from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from evreactor.core import log
from evreactor.core.contracts import DispatcherClosed, Event, Handler, handler_name
from evreactor.core.metrics import Timer, gauge_add, inc

FailureSink = Callable[[Handler, Event, BaseException], None]


class Dispatcher:
    """Runs (handler, event) tasks on a fixed pool of worker threads.

    ``submit`` never waits for the handler. With ``max_pending`` set, the
    number of queued + running tasks is capped and ``submit`` blocks the
    caller until a slot is free. Without it the queue is unbounded.
    """

    def __init__(self, worker_count: int = 4, *, max_pending: Optional[int] = None,
                 on_error: Optional[FailureSink] = None, name: str = "evreactor.dispatcher"):
        if int(worker_count) < 1:
            raise ValueError("worker_count must be >= 1")
        if max_pending is not None and int(max_pending) < 1:
            raise ValueError("max_pending must be >= 1 (or None for unbounded)")
        self.name = name
        self.worker_count = int(worker_count)
        self.max_pending = None if max_pending is None else int(max_pending)
        self.l = log.get(name)
        self._on_error = on_error or self._log_failure
        self._pool = ThreadPoolExecutor(max_workers=self.worker_count, thread_name_prefix="evr-worker")
        self._slots = threading.BoundedSemaphore(self.max_pending) if self.max_pending else None
        self._lock = threading.Lock()
        self._closed = False
        self._pending = 0
        self._inflight = 0

    @property
    def pending(self) -> int:
        """Submitted tasks that have not finished yet (queued or running)."""
        with self._lock:
            return self._pending

    @property
    def inflight(self) -> int:
        with self._lock:
            return self._inflight

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, handler: Handler, event: Event) -> Future:
        if self._closed:
            raise DispatcherClosed(f"{self.name} is shut down")
        if self._slots is not None:
            self._slots.acquire()
        with self._lock:
            if self._closed:
                if self._slots is not None:
                    self._slots.release()
                raise DispatcherClosed(f"{self.name} is shut down")
            self._pending += 1
            fut = self._pool.submit(self._run, handler, event)
        fut.add_done_callback(self._task_done)
        inc("dispatch_submit_total", 1, dispatcher=self.name)
        return fut

    def _task_done(self, _fut: Future) -> None:
        # also fires for tasks cancelled by shutdown(cancel_pending=True)
        with self._lock:
            self._pending -= 1
        if self._slots is not None:
            self._slots.release()

    def _run(self, handler: Handler, event: Event) -> None:
        with self._lock:
            self._inflight += 1
        gauge_add("dispatch_inflight", 1, dispatcher=self.name)
        try:
            with Timer("dispatch_handler_ms", dispatcher=self.name):
                handler(event)
            inc("dispatch_ok_total", 1, dispatcher=self.name)
        except Exception as e:
            inc("dispatch_error_total", 1, dispatcher=self.name, fn=handler_name(handler))
            try:
                self._on_error(handler, event, e)
            except Exception:
                self.l.exception("failure sink raised while reporting fn=%s", handler_name(handler))
        finally:
            gauge_add("dispatch_inflight", -1, dispatcher=self.name)
            with self._lock:
                self._inflight -= 1

    def _log_failure(self, handler: Handler, event: Event, exc: BaseException) -> None:
        self.l.error("handler error fn=%s event=%r err=%s", handler_name(handler), event, exc,
                     exc_info=(type(exc), exc, exc.__traceback__))

    def shutdown(self, wait: bool = True, cancel_pending: bool = False) -> None:
        """Stop accepting work. ``cancel_pending`` drops queued tasks that have not started."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._pool.shutdown(wait=wait, cancel_futures=cancel_pending)
        self.l.info("dispatcher stop (wait=%s cancel_pending=%s)", wait, cancel_pending)
