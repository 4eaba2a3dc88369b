"""
=============================================================================
BLOCKING-I/O POOL
=============================================================================

Note store work (open, read, write, unlink, listdir) blocks. Connection
threads hand it to this pool and wait on a Future instead of doing the
filesystem calls themselves, so the number of threads touching the disk
at once is bounded no matter how many clients are connected.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   connection thread            pool                                 │
    │   ─────────────────            ────                                 │
    │   future = pool.submit(fn) ──► queue ──► worker: fn()               │
    │   future.result(timeout) ◄──────────────── set_result / exception   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Workers stop on a None "poison pill". A task that sat in the queue past
its timeout is not run; its future fails with TimeoutError.

=============================================================================
"""

import logging
import queue
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """
    A deferred call plus the Future that receives its outcome.

    Attributes:
        func: The function to execute.
        args: Positional arguments.
        future: Completed by the worker.
        timeout: Maximum time the task may wait in the queue.
        submitted_at: Time the task was queued.
    """
    func: Callable[..., Any]
    args: tuple = ()
    future: Future = field(default_factory=Future)
    timeout: Optional[float] = None
    submitted_at: float = field(default_factory=time.monotonic)


class Worker(threading.Thread):
    """Pulls tasks off the shared queue until it gets a poison pill."""

    def __init__(self, task_queue: queue.Queue, worker_id: int, idle_timeout: float = 60.0):
        super().__init__(name=f"io-worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout

        self.state = WorkerState.IDLE
        self._shutdown = threading.Event()

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while not self._shutdown.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            if task is None:
                self.task_queue.task_done()
                break

            try:
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        """
        Run one task and complete its future.

        The task's exception is handed to the future, not raised here; the
        submitter decides what it means.
        """
        if not task.future.set_running_or_notify_cancel():
            return

        self.state = WorkerState.BUSY
        start_time = time.monotonic()

        try:
            waited = start_time - task.submitted_at
            if task.timeout and waited > task.timeout:
                logger.warning(
                    f"Task timed out before execution "
                    f"(waited {waited:.2f}s, timeout was {task.timeout}s)"
                )
                self.tasks_failed += 1
                task.future.set_exception(
                    TimeoutError(f"task waited {waited:.2f}s in queue")
                )
                return

            try:
                result = task.func(*task.args)
            except BaseException as e:
                self.tasks_failed += 1
                task.future.set_exception(e)
                return

            elapsed = time.monotonic() - start_time
            logger.debug(f"Worker {self.worker_id} completed task in {elapsed:.3f}s")
            self.tasks_completed += 1
            task.future.set_result(result)
        finally:
            self.state = WorkerState.IDLE

    def shutdown(self):
        self._shutdown.set()


class ThreadPool:
    """
    Bounded pool of I/O worker threads.

        pool = ThreadPool(min_workers=4, max_workers=8)
        pool.start()

        future = pool.submit(router.handle, args=(request,), timeout=30)
        response = future.result(timeout=30)

        pool.shutdown()

    Starts with min_workers and adds one more (up to max_workers) whenever
    every worker is busy and work is queued.
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: int = 8,
        queue_size: int = 100,
        idle_timeout: float = 1.0,
    ):
        if min_workers < 1:
            raise ValueError("min_workers must be >= 1")
        if max_workers < min_workers:
            raise ValueError("max_workers must be >= min_workers")

        self.min_workers = min_workers
        self.max_workers = max_workers
        self.idle_timeout = idle_timeout

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: List[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False
        self._next_worker_id = 0

    def start(self):
        if self._started:
            return

        logger.info(f"Starting I/O pool with {self.min_workers} workers")
        self._shutdown = False
        for _ in range(self.min_workers):
            self._add_worker()
        self._started = True

    def _add_worker(self) -> Worker:
        with self._lock:
            worker = Worker(
                task_queue=self._task_queue,
                worker_id=self._next_worker_id,
                idle_timeout=self.idle_timeout,
            )
            self._next_worker_id += 1
            self._workers.append(worker)
            worker.start()
            return worker

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        timeout: Optional[float] = None,
    ) -> Future:
        """
        Queue a call and return the Future for its result.

        Args:
            func: Function to run on a worker.
            args: Positional arguments for func.
            timeout: Also bounds how long we wait for queue space.

        Raises:
            RuntimeError: If the pool is not running or the queue stays full.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, timeout=timeout)
        try:
            self._task_queue.put(task, timeout=timeout)
        except queue.Full:
            raise RuntimeError("I/O queue is full") from None

        self._maybe_scale_up()
        return task.future

    def _maybe_scale_up(self):
        with self._lock:
            workers = len(self._workers)
            busy = sum(1 for w in self._workers if w.state == WorkerState.BUSY)
            backlog = self._task_queue.qsize()

        if busy == workers and workers < self.max_workers and backlog > 0:
            logger.debug(f"Scaling up: {workers} -> {workers + 1} workers")
            self._add_worker()

    def shutdown(self, wait: bool = True):
        """
        Stop all workers.

        Args:
            wait: Let queued tasks finish before the poison pills arrive.
        """
        if not self._started:
            return

        logger.info("Shutting down I/O pool...")
        self._shutdown = True

        if wait:
            self._task_queue.join()

        for _ in self._workers:
            self._task_queue.put(None)

        for worker in self._workers:
            worker.shutdown()
            worker.join(timeout=2.0)

        completed = sum(w.tasks_completed for w in self._workers)
        failed = sum(w.tasks_failed for w in self._workers)
        self._workers.clear()
        self._started = False
        logger.info(f"I/O pool shutdown complete ({completed} tasks done, {failed} failed)")
