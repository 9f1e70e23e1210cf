import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable


class BoundedDispatcher:
    """
    Runs file tasks on a worker pool with at most `limit` in flight.

    The walker is the only producer: `submit` blocks it while the pool is
    saturated, so discovery never runs far ahead of processing. `join`
    waits for everything submitted so far, however many that was.
    """

    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError(f"Concurrency limit must be at least 1, got {limit}")
        self.limit = limit
        self._gate = threading.BoundedSemaphore(limit)
        self._executor = ThreadPoolExecutor(max_workers=limit, thread_name_prefix="import")

        # Wait-group: tasks submitted but not yet finished
        self._pending = 0
        self._submitted = 0
        self._idle = threading.Condition()
        self._cancelled = threading.Event()

    @property
    def in_flight(self) -> int:
        with self._idle:
            return self._pending

    @property
    def submitted(self) -> int:
        with self._idle:
            return self._submitted

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def submit(self, fn: Callable, *args) -> bool:
        """
        Starts `fn(*args)` on a worker once a slot is free.
        Returns False without running anything if the dispatcher was cancelled.
        """
        if self._cancelled.is_set():
            return False

        self._gate.acquire()
        if self._cancelled.is_set():
            self._gate.release()
            return False

        with self._idle:
            self._pending += 1
            self._submitted += 1

        try:
            self._executor.submit(self._run, fn, args)
        except RuntimeError:
            # Executor already shut down
            self._finish()
            raise
        return True

    def _run(self, fn: Callable, args: tuple):
        try:
            fn(*args)
        except Exception:
            # A failing file must not take the walker (or its siblings) down
            logging.exception(f"Task {getattr(fn, '__name__', fn)}{args} failed")
        finally:
            self._finish()

    def _finish(self):
        self._gate.release()
        with self._idle:
            self._pending -= 1
            if self._pending == 0:
                self._idle.notify_all()

    def join(self):
        """Blocks until every submitted task has completed."""
        with self._idle:
            self._idle.wait_for(lambda: self._pending == 0)

    def cancel(self):
        """Drops further submissions. In-flight tasks still run to completion."""
        if not self._cancelled.is_set():
            logging.warning("Cancelling: no new files will be started.")
        self._cancelled.set()

    def shutdown(self):
        self.join()
        self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.cancel()
        self.shutdown()
