import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from docview.config.settings import Settings
from docview.lifecycle.service import utcnow
from docview.logging.logger import Log


class SweepJob(Protocol):
    name: str

    def run(self) -> int: ...


@dataclass(frozen=True)
class DailyAt:
    """Runs once a day at ``HH:MM`` UTC."""

    hour: int
    minute: int

    @classmethod
    def parse(cls, value: str) -> "DailyAt":
        hour, minute = value.split(":")
        return cls(int(hour), int(minute))

    def next_after(self, moment: datetime) -> datetime:
        candidate = moment.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)
        if candidate <= moment:
            candidate += timedelta(days=1)
        return candidate


@dataclass(frozen=True)
class Hourly:
    """Runs at the top of every hour."""

    def next_after(self, moment: datetime) -> datetime:
        return moment.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)


Cadence = DailyAt | Hourly


@dataclass
class ScheduledTask:
    job: SweepJob
    cadence: Cadence
    next_run_at: datetime | None = field(default=None)


class Scheduler:
    """Poll loop: sleep -> find due tasks -> run them.

    A task first runs at its next slot after start-up; missed slots are not
    replayed. A failing task is logged and rescheduled like a successful one.
    """

    def __init__(
        self,
        tasks: list[ScheduledTask],
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._tasks = tasks
        self._settings = settings
        self._clock = clock

    @property
    def tasks(self) -> list[ScheduledTask]:
        return self._tasks

    def run(self, max_ticks: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_ticks is set, stop after that many polls (for testing).
        """
        Log.info(f"Scheduler started with tasks: {[t.job.name for t in self._tasks]}")
        ticks = 0
        try:
            while max_ticks is None or ticks < max_ticks:
                self.tick()
                ticks += 1
                if max_ticks is not None and ticks >= max_ticks:
                    break
                time.sleep(self._settings.scheduler_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Scheduler shutting down gracefully")

    def tick(self) -> list[str]:
        """Run every task whose slot has arrived. Returns the names that ran."""
        now = self._clock()
        ran: list[str] = []
        for task in self._tasks:
            if task.next_run_at is None:
                task.next_run_at = task.cadence.next_after(now)
                Log.debug(f"Task {task.job.name} first due at {task.next_run_at.isoformat()}")
                continue
            if now < task.next_run_at:
                continue
            self._run_task(task)
            ran.append(task.job.name)
            task.next_run_at = task.cadence.next_after(self._clock())
        return ran

    def _run_task(self, task: ScheduledTask) -> None:
        Log.info(f"Running scheduled task {task.job.name}")
        try:
            result = task.job.run()
            Log.info(f"Scheduled task {task.job.name} finished: {result}")
        except Exception as exc:
            Log.exception(f"Scheduled task {task.job.name} failed: {exc}")


def build_schedule(
    settings: Settings,
    archive_job: SweepJob,
    cleanup_job: SweepJob,
    index_job: SweepJob,
) -> list[ScheduledTask]:
    """Daily archive and trash cleanup plus the hourly search index refresh."""
    return [
        ScheduledTask(archive_job, DailyAt.parse(settings.archive_daily_at)),
        ScheduledTask(cleanup_job, DailyAt.parse(settings.trash_cleanup_daily_at)),
        ScheduledTask(index_job, Hourly()),
    ]
