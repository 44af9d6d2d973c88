"""
=============================================================================
THREAD POOL
=============================================================================

A fixed set of worker threads pulling connections from a bounded queue.

The accept loop only accepts. Everything slow (reading the request,
running the handler, writing the response) happens on a worker, so one
stalled client ties up one worker instead of the whole server.

=============================================================================
ARCHITECTURE
=============================================================================

    accept loop                    bounded queue              workers
    ───────────                    ─────────────              ───────

    accept() ──► submit(task) ──► [ t1 | t2 | t3 | ... ] ──► Worker-0
                     │                                   ──► Worker-1
                     │                                   ──► Worker-2
                     ▼
               queue full?
               → return False (caller answers 503)

=============================================================================
SHUTDOWN: THE POISON PILL
=============================================================================

    pool.shutdown()
        └─ wait for queued tasks (optional, with deadline)
        └─ deadline passed: take what is still queued, return it
           to the caller (it owns whatever the tasks hold)
        └─ put one None per worker on the queue
        └─ each worker takes a None and leaves its loop
        └─ join workers

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


@dataclass
class Task:
    """
    A deferred call: ``func(*args)`` on some worker, later.

    Attributes:
        func: The function to execute.
        args: Positional arguments.
        submitted_at: Submission time, for queue-wait logging.
    """

    func: Callable[..., Any]
    args: tuple = ()
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """Worker thread that executes tasks until it receives None."""

    def __init__(self, task_queue: "queue.Queue[Optional[Task]]", worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        """Run one task. A failing task never kills the worker."""
        start_time = time.time()
        waited = start_time - task.submitted_at

        try:
            task.func(*task.args)
            self.tasks_completed += 1
            logger.debug(
                f"Worker {self.worker_id} completed task in "
                f"{time.time() - start_time:.3f}s (queued {waited:.3f}s)"
            )
        except Exception as e:
            self.tasks_failed += 1
            logger.exception(f"Worker {self.worker_id} task failed: {e}")


class ThreadPool:
    """
    Fixed-size pool of worker threads.

    Usage:
        pool = ThreadPool(workers=4, queue_size=100)
        pool.start()
        if not pool.submit(handle, args=(conn,)):
            reject(conn)       # queue full
        ...
        pool.shutdown()
    """

    def __init__(self, workers: int = 4, queue_size: int = 100):
        """
        Args:
            workers: Number of worker threads.
            queue_size: Tasks that may wait for a free worker.
        """
        self.workers = workers
        self.queue_size = queue_size

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False

    @property
    def is_running(self) -> bool:
        return self._started and not self._shutdown

    @property
    def pending(self) -> int:
        """Tasks waiting for a worker."""
        return self._task_queue.qsize()

    def start(self):
        """Start the worker threads. Calling it twice is harmless."""
        with self._lock:
            if self._started:
                return

            logger.info(f"Starting thread pool with {self.workers} workers")
            for worker_id in range(self.workers):
                worker = Worker(self._task_queue, worker_id)
                self._workers.append(worker)
                worker.start()

            self._started = True
            self._shutdown = False

    def submit(self, func: Callable[..., Any], args: tuple = ()) -> bool:
        """
        Queue ``func(*args)`` without blocking the caller.

        Returns:
            True if queued, False if the queue is full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self.is_running:
            raise RuntimeError("Thread pool is not running")

        try:
            self._task_queue.put_nowait(Task(func=func, args=args))
            return True
        except queue.Full:
            return False

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> list[Task]:
        """
        Stop the workers.

        Args:
            wait: Let queued tasks finish first.
            timeout: Upper bound on that wait, in seconds.

        Returns:
            Tasks still queued when the wait timed out. They never run;
            the caller is responsible for releasing what they hold.
        """
        with self._lock:
            if not self._started or self._shutdown:
                return []
            self._shutdown = True

        logger.info("Shutting down thread pool...")

        abandoned: list[Task] = []
        if wait:
            deadline = time.time() + timeout if timeout else None
            while self._task_queue.unfinished_tasks:
                if deadline and time.time() > deadline:
                    abandoned = self._drain_queue()
                    logger.warning(
                        f"Thread pool shutdown timeout, abandoning {len(abandoned)} queued tasks"
                    )
                    break
                time.sleep(0.05)

        # Poison pills. Blocking put: with wait=False the queue may still
        # be full of tasks that workers have to get through first.
        for _ in self._workers:
            try:
                self._task_queue.put(None, timeout=2.0)
            except queue.Full:
                pass

        for worker in self._workers:
            worker.join(timeout=2.0)

        self._workers.clear()
        self._started = False
        logger.info("Thread pool shutdown complete")
        return abandoned

    def _drain_queue(self) -> list[Task]:
        """Remove and return every task nobody has picked up yet."""
        drained: list[Task] = []
        while True:
            try:
                task = self._task_queue.get_nowait()
            except queue.Empty:
                break
            self._task_queue.task_done()
            if task is not None:
                drained.append(task)
        return drained
