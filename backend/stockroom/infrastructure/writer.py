"""
Single-writer execution queue.

Every mutation of a store runs on one dedicated worker thread, one job at a
time, so check-then-act sequences (read the stock, then append a removal)
cannot interleave. Callers get a ``concurrent.futures.Future`` back and
decide themselves whether to wait on it, attach a callback, or drop it.
"""
from concurrent.futures import Future, ThreadPoolExecutor
from django.db import close_old_connections, connections
import logging
import threading

logger = logging.getLogger(__name__)


class WriterQueue:
    """
    One logical writer per store.

    With ``eager=True`` jobs run inline on the submitting thread and an
    already-resolved future is returned, the same way Celery's eager mode is
    used in tests.
    """

    def __init__(self, name: str = "default", eager: bool = False):
        self.name = name
        self.eager = eager
        self._executor = None
        self._closed = False
        self._lock = threading.Lock()

    def __repr__(self):
        mode = "eager" if self.eager else "threaded"
        return f"<WriterQueue {self.name} ({mode})>"

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._closed:
                raise RuntimeError(f"Writer queue '{self.name}' has been shut down")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1,
                    thread_name_prefix=f"writer-{self.name}",
                )
            return self._executor

    def submit(self, func, *args, **kwargs) -> Future:
        """Queue ``func`` behind every job submitted before it."""
        if self.eager:
            if self._closed:
                raise RuntimeError(f"Writer queue '{self.name}' has been shut down")
            future = Future()
            future.set_running_or_notify_cancel()
            try:
                future.set_result(func(*args, **kwargs))
            except Exception as exc:
                future.set_exception(exc)
            return future

        return self._get_executor().submit(self._run, func, args, kwargs)

    @staticmethod
    def _run(func, args, kwargs):
        # Long-lived worker thread: drop connections that went stale between jobs.
        close_old_connections()
        return func(*args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        """
        Drain pending jobs and release the worker thread's database connections.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            executor = self._executor

        if executor is None:
            return

        executor.submit(connections.close_all)
        executor.shutdown(wait=wait)
        logger.info(f"Writer queue '{self.name}' shut down")
