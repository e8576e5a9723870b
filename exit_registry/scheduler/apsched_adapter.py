"""APScheduler wrapper running the ingestion pipeline on a fixed interval."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config import ScheduleConfig
from ..logging_conf import component_logger

INGESTION_JOB_ID = "ingestion"


class APSchedulerAdapter:
    """Manage the recurring ingestion job.

    The job is single-flight: ``max_instances=1`` keeps cycles sequential and
    ``coalesce=True`` folds ticks missed during a slow cycle into one run.
    """

    def __init__(self) -> None:
        self.scheduler = BackgroundScheduler(timezone=timezone.utc)
        self.logger = component_logger("scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started")

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_ingestion(
        self,
        callback: Callable[[], object],
        interval_seconds: float,
        run_immediately: bool = True,
    ) -> None:
        trigger = self._build_trigger(interval_seconds)
        job_kwargs: dict = {
            "trigger": trigger,
            "id": INGESTION_JOB_ID,
            "replace_existing": True,
            "max_instances": 1,
            "coalesce": True,
        }
        if run_immediately:
            job_kwargs["next_run_time"] = datetime.now(timezone.utc)
        self.scheduler.add_job(callback, **job_kwargs)
        self.logger.info(
            "job_scheduled",
            job=INGESTION_JOB_ID,
            interval_seconds=interval_seconds,
            run_immediately=run_immediately,
        )

    def schedule_from_config(self, schedule: ScheduleConfig, callback: Callable[[], object]) -> None:
        self.schedule_ingestion(callback, schedule.interval_seconds, schedule.run_on_start)

    def remove_ingestion(self) -> None:
        try:
            self.scheduler.remove_job(INGESTION_JOB_ID)
        except Exception:  # noqa: BLE001
            self.logger.warning("job_remove_failed", job=INGESTION_JOB_ID)

    def _build_trigger(self, interval_seconds: float) -> IntervalTrigger:
        if not isinstance(interval_seconds, (int, float)) or interval_seconds <= 0:
            raise ValueError("Interval schedule requires a positive number of seconds")
        return IntervalTrigger(seconds=float(interval_seconds), timezone=timezone.utc)

    def list_jobs(self) -> list[dict]:
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append(
                {
                    "id": job.id,
                    "next_run_time": getattr(job, "next_run_time", None),
                    "trigger": str(job.trigger),
                }
            )
        return jobs


__all__ = ["APSchedulerAdapter", "INGESTION_JOB_ID"]
