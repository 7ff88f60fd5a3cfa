"""
Background Job Dispatcher
=========================

A single consumer thread drains an unbounded FIFO queue and hands each
job to its own executor slot. A job that raises is logged and never
stops the consumer loop or other jobs.
"""

import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

from incident_bot.core.exceptions import InternalError
from incident_bot.core.logging import get_logger

logger = get_logger(__name__)

_STOP = object()


class JobDispatcher:
    """
    Fire-and-forget job runner.

    Args:
        handler: Called once per job on a worker thread
        max_workers: Size of the executor that runs jobs
    """

    def __init__(self, handler: Callable[[Any], None], max_workers: int = 4):
        self._handler = handler
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="job-worker")
        self._consumer: Optional[threading.Thread] = None
        self._pending = 0
        self._idle = threading.Condition()
        self._accepting = False

    @property
    def running(self) -> bool:
        return self._consumer is not None and self._consumer.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._accepting = True
        self._consumer = threading.Thread(target=self._run, name="job-dispatcher", daemon=True)
        self._consumer.start()
        logger.info("job_dispatcher_started")

    def enqueue(self, job: Any) -> None:
        """
        Queue a job for execution.

        Raises:
            InternalError: If the dispatcher is not accepting jobs
        """
        with self._idle:
            # same lock as stop(): nothing is queued after _STOP
            if not self._accepting:
                raise InternalError("job dispatcher is not running")
            self._pending += 1
            self._queue.put(job)
        logger.debug("job_enqueued", job_type=type(job).__name__)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until every enqueued job has finished. Returns False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout=timeout)

    def stop(self, wait: bool = True) -> None:
        with self._idle:
            if not self._accepting:
                return
            self._accepting = False
            self._queue.put(_STOP)
        if wait and self._consumer is not None:
            self._consumer.join()
        self._executor.shutdown(wait=wait)
        logger.info("job_dispatcher_stopped")

    def _run(self) -> None:
        while True:
            job = self._queue.get()
            if job is _STOP:
                break
            self._executor.submit(self._execute, job)

    def _execute(self, job: Any) -> None:
        try:
            self._handler(job)
        except Exception as e:
            logger.exception("job_failed", job_type=type(job).__name__, error=str(e))
        finally:
            with self._idle:
                self._pending -= 1
                self._idle.notify_all()
