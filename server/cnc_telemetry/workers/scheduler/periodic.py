from __future__ import annotations
"""server/cnc_telemetry/workers/scheduler/periodic.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Exécuteur in-process du beat schedule : une tâche asyncio par entrée.

Chaque minuterie est indépendante : une exécution lente ou en échec ne
décale ni n'arrête les autres. Une exception dans une tâche est logguée et
la minuterie continue.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Mapping

logger = logging.getLogger(__name__)

TaskFn = Callable[[], Awaitable[object]]


class PeriodicScheduler:
    def __init__(self, schedule: Mapping[str, Mapping], tasks: Mapping[str, TaskFn]) -> None:
        unknown = {entry["task"] for entry in schedule.values()} - set(tasks)
        if unknown:
            raise ValueError(f"Unknown task(s) in schedule: {sorted(unknown)}")
        for name, entry in schedule.items():
            if float(entry["schedule"]) <= 0:
                raise ValueError(f"Schedule {name!r} must have a positive interval")
        self.schedule = dict(schedule)
        self.tasks = dict(tasks)
        self._running: dict[str, asyncio.Task] = {}

    @property
    def running(self) -> bool:
        return bool(self._running)

    def start(self) -> None:
        if self._running:
            return
        for name, entry in self.schedule.items():
            self._running[name] = asyncio.create_task(
                self._loop(name, entry["task"], float(entry["schedule"])),
                name=f"beat:{name}",
            )
        logger.info("scheduler.started", extra={"entries": sorted(self.schedule)})

    async def stop(self) -> None:
        tasks = list(self._running.values())
        self._running.clear()
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("scheduler.stopped")

    async def _loop(self, name: str, task_name: str, interval: float) -> None:
        fn = self.tasks[task_name]
        while True:
            await asyncio.sleep(interval)
            try:
                await fn()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("scheduler.task_failed", extra={"entry": name, "task": task_name})
