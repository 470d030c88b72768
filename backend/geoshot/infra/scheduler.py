"""APScheduler wrapper for the ranking and season jobs."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from geoshot.jobs import TriggerEvent, run_job
from geoshot.settings import settings

_LOG = logging.getLogger(__name__)


class JobScheduler:
	"""Fires registered jobs on crontab schedules in the season timezone."""

	def __init__(self, *, timezone: Optional[str] = None) -> None:
		self._timezone = timezone or settings.season_timezone
		self._scheduler = AsyncIOScheduler(timezone=self._timezone)
		self._started = False

	@property
	def running(self) -> bool:
		return self._started

	def start(self) -> None:
		if not self._started:
			self._scheduler.start()
			self._started = True

	def shutdown(self) -> None:
		if self._started:
			self._scheduler.shutdown(wait=False)
			self._started = False

	def schedule_cron(self, job_name: str, expr: str) -> None:
		trigger = CronTrigger.from_crontab(expr, timezone=self._timezone)
		self._scheduler.add_job(
			_fire,
			trigger=trigger,
			args=[job_name],
			id=job_name,
			replace_existing=True,
			coalesce=True,
			max_instances=1,
		)
		_LOG.info("scheduler.job_scheduled", extra={"job_name": job_name, "cron": expr})

	def job_ids(self) -> list[str]:
		return [job.id for job in self._scheduler.get_jobs()]


async def _fire(job_name: str) -> None:
	await run_job(job_name, TriggerEvent(schedule_time=datetime.now().astimezone()))


def build_scheduler() -> JobScheduler:
	scheduler = JobScheduler()
	scheduler.schedule_cron("region-ranking", settings.ranking_refresh_cron)
	scheduler.schedule_cron("global-ranking", settings.ranking_refresh_cron)
	scheduler.schedule_cron("season-rollover", settings.season_rollover_cron)
	return scheduler


__all__ = ["JobScheduler", "build_scheduler"]
