"""Job registry and instrumented execution."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from geoshot.obs import logging as obs_logging
from geoshot.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)

JobFunc = Callable[["TriggerEvent"], Awaitable[Any]]


@dataclass(frozen=True)
class TriggerEvent:
	"""Payload a trigger hands to a job; jobs only read the fire time."""

	schedule_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
	payload: Mapping[str, Any] = field(default_factory=dict)


JOBS: Dict[str, JobFunc] = {}


def register(name: str) -> Callable[[JobFunc], JobFunc]:
	def _decorator(func: JobFunc) -> JobFunc:
		JOBS[name] = func
		return func

	return _decorator


class UnknownJobError(KeyError):
	pass


async def run_job(name: str, event: Optional[TriggerEvent] = None) -> Any:
	"""Run a registered job with bound log context and run metrics."""

	func = JOBS.get(name)
	if func is None:
		raise UnknownJobError(name)
	event = event or TriggerEvent()
	tokens = obs_logging.bind_context(job=name, run_id=uuid.uuid4().hex)
	start = time.perf_counter()
	_LOG.info("job.start", extra={"schedule_time": event.schedule_time.isoformat()})
	try:
		result = await func(event)
	except Exception:
		obs_metrics.record_job_run(name, result="error", duration_seconds=time.perf_counter() - start)
		_LOG.exception("job.failed")
		raise
	else:
		outcome = "skipped" if result is None else "ok"
		obs_metrics.record_job_run(name, result=outcome, duration_seconds=time.perf_counter() - start)
		_LOG.info("job.done", extra={"result": outcome})
		return result
	finally:
		obs_logging.reset_context(tokens)
