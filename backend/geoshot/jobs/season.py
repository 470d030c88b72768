"""Monthly season rollover job."""

from __future__ import annotations

from geoshot.domain.seasons.rollover import RolloverSummary, SeasonRollover
from geoshot.infra.docstore import get_store
from geoshot.jobs.runner import TriggerEvent, register


@register("season-rollover")
async def rollover_season(event: TriggerEvent) -> RolloverSummary:
	return await SeasonRollover(get_store()).run(now=event.schedule_time)
