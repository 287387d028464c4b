# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Literal, Optional

from ..cluster.models import Machine
from ..observers.dispatcher import EventBus
from ..observers.events import PhaseCompleted, PhaseStarted, TaskFailed, TaskSucceeded

log = logging.getLogger("dcos_provision")

TaskKind = Literal["install", "postflight"]


@dataclass(frozen=True)
class InstallTask:
    machine: Machine
    kind: TaskKind
    role_argument: Optional[str] = None   # master | slave | slave_public

    @property
    def task_id(self) -> str:
        return f"{self.kind}:{self.machine.name}"


@dataclass
class TaskFailure:
    task: InstallTask
    error: BaseException

    @property
    def machine(self) -> str:
        return self.task.machine.name


@dataclass
class RunResult:
    phase: str
    succeeded: List[InstallTask] = field(default_factory=list)
    failures: List[TaskFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        return f"OK={len(self.succeeded)} FAILED={len(self.failures)}"


def effective_workers(max_workers: int, queue_length: int) -> int:
    return max(1, min(max_workers, queue_length))


class TaskExecutor:
    """
    Runs independent tasks on a bounded thread pool.

    Every task is attempted; one task failing never cancels another. run()
    returns only after all tasks have finished, with every failure recorded.
    """

    def __init__(
        self,
        handler: Callable[[InstallTask], Any],
        *,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[Dict[str, Any]] = None,
    ):
        self.handler = handler
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or {"ts": "", "run_id": "", "method": "", "provider": ""}

    def _execute(self, phase: str, task: InstallTask) -> int:
        log.debug("[%s] %s started", task.machine.name, task.task_id)
        t0 = time.monotonic()
        self.handler(task)
        return int((time.monotonic() - t0) * 1000)

    def run(self, queue: Iterable[InstallTask], max_workers: int, *, phase: str = "tasks") -> RunResult:
        tasks = list(queue)
        result = RunResult(phase=phase)
        if not tasks:
            log.debug("[%s] nothing to run", phase)
            return result

        workers = effective_workers(max_workers, len(tasks))
        log.info("[%s] running %d task(s) with %d worker(s)", phase, len(tasks), workers)
        self.bus.emit(PhaseStarted(phase=phase, tasks=[t.task_id for t in tasks], workers=workers, **self.run_ctx))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"dcos-{phase}") as pool:
            futures = {pool.submit(self._execute, phase, task): task for task in tasks}
            for future in as_completed(futures):
                task = futures[future]
                try:
                    duration_ms = future.result()
                except Exception as exc:
                    log.error("[%s] %s failed: %s", task.machine.name, task.task_id, exc)
                    result.failures.append(TaskFailure(task=task, error=exc))
                    self.bus.emit(TaskFailed(phase=phase, task=task.task_id, machine=task.machine.name, error=str(exc), **self.run_ctx))
                else:
                    result.succeeded.append(task)
                    self.bus.emit(TaskSucceeded(phase=phase, task=task.task_id, machine=task.machine.name, duration_ms=duration_ms, **self.run_ctx))

        log.info("[%s] %s", phase, result.summary())
        self.bus.emit(PhaseCompleted(phase=phase, ok=len(result.succeeded), failed=len(result.failures), **self.run_ctx))
        return result
