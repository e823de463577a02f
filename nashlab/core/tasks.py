"""Task management for long-running solves."""
from __future__ import annotations

import logging
import time
import uuid
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from enum import Enum
from threading import Event, Lock
from typing import Any, Callable

from nashlab.config import TaskConfig
from nashlab.core.errors import IncompatibleSolverError
from nashlab.core.registry import Registry, registry as default_registry
from nashlab.models import AnyGame

logger = logging.getLogger(__name__)


class TaskStatus(Enum):
    """Status of a background task."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


FINISHED = (TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED)


@dataclass
class Task:
    """A background solve."""

    id: str
    owner: str
    status: TaskStatus
    solver_name: str
    game_id: str
    config: dict = field(default_factory=dict)
    result: Any | None = None
    error: str | None = None
    cancel_event: Event = field(default_factory=Event)
    created_at: float = field(default_factory=time.time)
    started_at: float | None = None
    completed_at: float | None = None

    _future: Future[None] | None = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict:
        """Convert to a plain dictionary; pydantic results are dumped."""
        result = self.result
        if hasattr(result, "model_dump"):
            result = result.model_dump()
        return {
            "id": self.id,
            "owner": self.owner,
            "status": self.status.value,
            "solver_name": self.solver_name,
            "game_id": self.game_id,
            "config": self.config,
            "result": result,
            "error": self.error,
            "created_at": self.created_at,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
        }


class TaskManager:
    """Runs solver calls on a thread pool with cooperative cancellation."""

    def __init__(self, max_workers: int = TaskConfig.DEFAULT_MAX_WORKERS):
        self._tasks: dict[str, Task] = {}
        self._lock = Lock()

        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor = ThreadPoolExecutor(max_workers=max_workers)

    def _new_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=self._max_workers)

    def _ensure_executor(self) -> None:
        # `_shutdown` is private but stable across CPython
        if getattr(self._executor, "_shutdown", False):
            self._executor = self._new_executor()

    def submit(
        self,
        owner: str,
        game_id: str,
        solver_name: str,
        run_fn: Callable[[dict | None], Any],
        config: dict | None = None,
    ) -> str:
        """Queue ``run_fn(config)``; the config gains a ``_cancel_event`` entry."""
        task_id = str(uuid.uuid4())[: TaskConfig.TASK_ID_LENGTH]
        task = Task(
            id=task_id,
            owner=owner,
            status=TaskStatus.PENDING,
            solver_name=solver_name,
            game_id=game_id,
            config=config or {},
        )

        with self._lock:
            self._tasks[task_id] = task
            self._ensure_executor()

            try:
                fut = self._executor.submit(self._run_task, task, run_fn)
            except RuntimeError:
                # Shut down between _ensure_executor and submit
                self._executor = self._new_executor()
                fut = self._executor.submit(self._run_task, task, run_fn)

            task._future = fut

        logger.info("Task %s submitted: %s on %s", task_id, solver_name, game_id)
        return task_id

    def submit_solver(
        self,
        owner: str,
        game: AnyGame,
        solver_name: str,
        config: dict | None = None,
        registry: Registry | None = None,
    ) -> str:
        """Look up a registered solver and run it on ``game`` in the background.

        Raises:
            UnknownSolverError: If no solver is registered under ``solver_name``.
            IncompatibleSolverError: If the solver cannot run on ``game``.
        """
        plugin = (registry or default_registry).require_analysis(solver_name)
        if not plugin.can_run(game):
            raise IncompatibleSolverError(solver_name, game.format_name)
        return self.submit(
            owner=owner,
            game_id=game.id,
            solver_name=solver_name,
            run_fn=lambda cfg: plugin.run(game, cfg),
            config=config,
        )

    def _run_task(self, task: Task, run_fn: Callable[[dict | None], Any]) -> None:
        with self._lock:
            task.status = TaskStatus.RUNNING
            task.started_at = time.time()

        logger.info("Task %s started", task.id)

        try:
            if task.cancel_event.is_set():
                with self._lock:
                    task.completed_at = time.time()
                    task.status = TaskStatus.CANCELLED
                logger.info("Task %s cancelled before start", task.id)
                return

            config_with_cancel = {**(task.config or {}), "_cancel_event": task.cancel_event}

            result = run_fn(config_with_cancel)

            completed_at = time.time()
            cancelled = task.cancel_event.is_set()

            with self._lock:
                task.completed_at = completed_at
                task.result = result
                task.status = TaskStatus.CANCELLED if cancelled else TaskStatus.COMPLETED

            if cancelled:
                logger.info("Task %s cancelled during execution", task.id)
            else:
                logger.info("Task %s completed", task.id)

        except Exception as e:
            with self._lock:
                task.completed_at = time.time()
                task.error = f"{type(e).__name__}: {e}"
                task.status = TaskStatus.FAILED
            logger.exception("Task %s failed", task.id)

    def get(self, task_id: str) -> Task | None:
        with self._lock:
            return self._tasks.get(task_id)

    def wait(self, task_id: str, timeout: float | None = None) -> Task | None:
        """Block until the task finishes or ``timeout`` elapses."""
        with self._lock:
            task = self._tasks.get(task_id)
            future = task._future if task is not None else None
        if future is not None:
            try:
                future.result(timeout=timeout)
            except FutureTimeoutError:
                logger.debug("Timed out waiting for task %s", task_id)
            except CancelledError:
                logger.debug("Task %s was cancelled before it started", task_id)
        return task

    def cancel(self, task_id: str) -> bool:
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return False

            if task.status in FINISHED:
                return False

            task.cancel_event.set()

            # Only cancels a queued future; a running solve polls cancel_event
            if task._future is not None and task._future.cancel():
                task.status = TaskStatus.CANCELLED
                task.completed_at = time.time()

        logger.info("Task %s cancellation requested", task_id)
        return True

    def list_tasks(self, owner: str | None = None) -> list[Task]:
        with self._lock:
            tasks = list(self._tasks.values())
            if owner is not None:
                tasks = [t for t in tasks if t.owner == owner]
            return tasks

    def cleanup(self, max_age_seconds: int = TaskConfig.TASK_CLEANUP_MAX_AGE_SECONDS) -> int:
        now = time.time()
        removed_ids: list[str] = []

        with self._lock:
            for task_id, task in list(self._tasks.items()):
                if task.status in FINISHED:
                    if task.completed_at and (now - task.completed_at) > max_age_seconds:
                        removed_ids.append(task_id)

            for task_id in removed_ids:
                del self._tasks[task_id]

        if removed_ids:
            logger.info("Cleaned up %d old tasks", len(removed_ids))
        return len(removed_ids)

    def shutdown(self, *, wait: bool = True, cancel_futures: bool = True) -> None:
        """Shut down the executor.

        ``wait=True`` keeps background threads from logging after pytest
        closes its capture streams.
        """
        with self._lock:
            ex = self._executor

        ex.shutdown(wait=wait, cancel_futures=cancel_futures)
