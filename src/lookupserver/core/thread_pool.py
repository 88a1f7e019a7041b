"""
Worker threads for client connections.

The accept loop only queues connections; workers read, handle and answer
them. A lookup sleeping through its processing delay parks one worker and
nothing else.

    accept loop ──submit()──► [ task queue ] ──► Worker-0 .. Worker-N

A task that waited in the queue longer than its timeout is not run; its
``on_drop`` callback is called instead so the caller can answer and close
the connection it carries.
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """
    A deferred call: func(*args).

    Attributes:
        timeout: Seconds the task may wait in the queue.
        on_drop: Called with ``args`` instead of func when the task
                 waited too long.
    """
    func: Callable[..., Any]
    args: tuple = ()
    timeout: Optional[float] = None
    on_drop: Optional[Callable[..., Any]] = None
    submitted_at: float = field(default_factory=time.monotonic)


class Worker(threading.Thread):
    """Runs tasks from the shared queue until it receives None."""

    def __init__(self, task_queue: queue.Queue, worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.state = WorkerState.IDLE

    def run(self):
        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        try:
            waited = time.monotonic() - task.submitted_at
            if task.timeout and waited > task.timeout:
                logger.warning(
                    f"Task dropped after waiting {waited:.2f}s in queue "
                    f"(timeout was {task.timeout}s)"
                )
                if task.on_drop is not None:
                    task.on_drop(*task.args)
                return

            task.func(*task.args)
        except Exception as e:
            logger.exception(f"Worker {self.worker_id} task failed: {e}")
        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Pool of Worker threads between min_workers and max_workers.

        pool = ThreadPool(min_workers=8, max_workers=32)
        pool.start()
        pool.submit(process_connection, args=(conn,), on_drop=reject)
        pool.shutdown(timeout=30.0)
    """

    def __init__(
        self,
        min_workers: int = 8,
        max_workers: int = 32,
        queue_size: int = 100,
    ):
        self.min_workers = min_workers
        self.max_workers = max_workers

        self._task_queue: queue.Queue = queue.Queue(maxsize=queue_size)

        self._workers: list[Worker] = []
        self._lock = threading.Lock()  # guards _workers
        self._started = False
        self._shutdown = False

    @property
    def pending(self) -> int:
        """Tasks waiting for a worker."""
        return self._task_queue.qsize()

    def start(self):
        if self._started:
            return

        logger.info(f"Starting thread pool with {self.min_workers} workers")
        self._shutdown = False
        with self._lock:
            for _ in range(self.min_workers):
                self._add_worker()
        self._started = True

    def _add_worker(self):
        """Caller holds self._lock."""
        worker = Worker(self._task_queue, worker_id=len(self._workers))
        self._workers.append(worker)
        worker.start()

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        timeout: Optional[float] = None,
        on_drop: Optional[Callable[..., Any]] = None,
    ) -> bool:
        """
        Queue func(*args) for a worker without blocking.

        Returns:
            True if queued, False if the queue is full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, timeout=timeout, on_drop=on_drop)
        try:
            self._task_queue.put(task, block=False)
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        """Add a worker when all are busy and work is waiting."""
        with self._lock:
            if len(self._workers) >= self.max_workers:
                return
            busy = sum(1 for w in self._workers if w.state == WorkerState.BUSY)
            if busy == len(self._workers) and self._task_queue.qsize() > 0:
                logger.debug(
                    f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers"
                )
                self._add_worker()

    def shutdown(self, timeout: Optional[float] = None):
        """
        Let queued tasks run, then stop every worker.

        Args:
            timeout: Upper bound on the wait for the queue to drain.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        deadline = time.monotonic() + timeout if timeout else None
        while not self._task_queue.empty():
            if deadline and time.monotonic() > deadline:
                logger.warning("Shutdown timeout, forcing stop")
                break
            time.sleep(0.1)

        with self._lock:
            workers = list(self._workers)

        for _ in workers:
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                pass

        for worker in workers:
            worker.join(timeout=timeout or 2.0)

        with self._lock:
            self._workers.clear()
        self._started = False

        logger.info("Thread pool shutdown complete")
