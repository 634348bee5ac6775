"""
=============================================================================
WORKER THREAD POOL
=============================================================================

Runs connection handling off the accept thread.

    accept thread                      worker threads
    ─────────────                      ──────────────
    conn = accept()
    pool.submit(process, conn) ──►  ┌─────────────┐
                                    │ task queue  │──► Worker-0
                                    │ (bounded)   │──► Worker-1
                                    └─────────────┘──► ...

- ``min_workers`` threads start with the pool.
- When every worker is busy and tasks are queued, one more worker is
  added, up to ``max_workers``.
- The queue holds at most ``queue_size`` tasks. submit() on a full queue
  returns False; the server answers that connection with 503 instead of
  letting memory grow without bound.
- shutdown() waits (bounded) for the queue to drain, then sends one
  ``None`` sentinel per worker and joins them.

A task that raises is logged and counted; the worker keeps running.

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """
    A deferred call: ``func(*args, **kwargs)``.

    ``timeout`` bounds how long the task may sit in the queue; a task that
    waited longer is dropped unrun (the client has likely given up).
    """

    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    timeout: Optional[float] = None
    submitted_at: float = field(default_factory=time.time)

    @property
    def is_stale(self) -> bool:
        return self.timeout is not None and time.time() - self.submitted_at > self.timeout


class Worker(threading.Thread):
    """Pulls tasks off the shared queue until it receives ``None``."""

    def __init__(self, task_queue: queue.Queue, worker_id: int, idle_timeout: float = 1.0):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout
        self.state = WorkerState.IDLE
        self.tasks_completed = 0
        self.tasks_failed = 0
        self._stop_event = threading.Event()

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")
        while not self._stop_event.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue
            try:
                if task is None:
                    break
                self._execute(task)
            finally:
                self.task_queue.task_done()
        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute(self, task: Task):
        if task.is_stale:
            logger.warning(
                f"Dropping task that waited {time.time() - task.submitted_at:.2f}s "
                f"(timeout {task.timeout}s)"
            )
            self.tasks_failed += 1
            return

        self.state = WorkerState.BUSY
        start = time.time()
        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
        except Exception as e:
            logger.exception(
                f"Worker {self.worker_id} task failed after {time.time() - start:.3f}s: {e}"
            )
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE

    def stop(self):
        self._stop_event.set()


class ThreadPool:
    """
    Bounded, self-scaling pool of worker threads.

    Usage:
        pool = ThreadPool(min_workers=4, max_workers=16)
        pool.start()
        if not pool.submit(handle, args=(conn,)):
            reject(conn)
        ...
        pool.shutdown(wait=True, timeout=30.0)
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: int = 16,
        queue_size: int = 100,
        idle_timeout: float = 1.0,
    ):
        if min_workers < 1 or max_workers < min_workers:
            raise ValueError("need 1 <= min_workers <= max_workers")
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.max_queue_size = queue_size
        self.idle_timeout = idle_timeout

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: list[Worker] = []
        self._lock = threading.Lock()  # guards _workers and _next_worker_id
        self._next_worker_id = 0
        self._started = False
        self._shutting_down = False

    def start(self):
        if self._started:
            return
        logger.info(f"Starting thread pool with {self.min_workers} workers")
        self._shutting_down = False
        with self._lock:
            for _ in range(self.min_workers):
                self._add_worker()
        self._started = True

    def _add_worker(self) -> Worker:
        # Caller holds self._lock
        worker = Worker(self._task_queue, self._next_worker_id, self.idle_timeout)
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> bool:
        """
        Queue ``func(*args, **kwargs)`` without blocking.

        Returns:
            True if queued, False if the queue is full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started or self._shutting_down:
            raise RuntimeError("Thread pool is not running")

        task = Task(func=func, args=args, kwargs=kwargs or {}, timeout=timeout)
        try:
            self._task_queue.put_nowait(task)
        except queue.Full:
            return False
        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        with self._lock:
            if len(self._workers) >= self.max_workers or self._task_queue.empty():
                return
            if all(w.state == WorkerState.BUSY for w in self._workers):
                logger.debug(f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers")
                self._add_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Let queued tasks finish first.
            timeout: Upper bound on that wait, in seconds (None = no bound).
        """
        if not self._started:
            return
        logger.info("Shutting down thread pool...")
        self._shutting_down = True

        if wait:
            deadline = None if timeout is None else time.time() + timeout
            while self._task_queue.unfinished_tasks:
                if deadline is not None and time.time() > deadline:
                    logger.warning("Thread pool shutdown timed out; abandoning queued tasks")
                    break
                time.sleep(0.05)

        with self._lock:
            workers = list(self._workers)
            self._workers.clear()

        for worker in workers:
            worker.stop()
            try:
                self._task_queue.put_nowait(None)
            except queue.Full:
                pass  # the stop event still ends the worker
        for worker in workers:
            worker.join(timeout=2.0)

        self._started = False
        logger.info("Thread pool shutdown complete")

    # ─────────────────────────────────────────────────────────────────────
    # MONITORING
    # ─────────────────────────────────────────────────────────────────────

    @property
    def worker_count(self) -> int:
        return len(self._workers)

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def queued_tasks(self) -> int:
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        return {
            "workers": {"total": self.worker_count, "busy": self.busy_workers},
            "tasks": {
                "queued": self.queued_tasks,
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
