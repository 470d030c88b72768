"""Ranking refresh jobs: scores and region tops, then the global leaderboard."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from geoshot.domain.ranking.exceptions import NoActiveSeasonError
from geoshot.domain.ranking.global_leaderboard import GlobalLeaderboardBuilder
from geoshot.domain.ranking.models import GlobalBuildSummary, RecalculationSummary, RegionBuildSummary
from geoshot.domain.ranking.region_leaderboard import RegionLeaderboardBuilder
from geoshot.domain.ranking.score_recalculator import ScoreRecalculator
from geoshot.domain.seasons.service import SeasonService
from geoshot.infra.docstore import get_store
from geoshot.jobs.runner import TriggerEvent, register
from geoshot.obs import logging as obs_logging

_LOG = logging.getLogger(__name__)


@dataclass
class RegionRankingResult:
	scores: RecalculationSummary
	regions: RegionBuildSummary


async def _active_season_id(seasons: SeasonService) -> Optional[str]:
	try:
		return await seasons.get_current_season_id()
	except NoActiveSeasonError:
		_LOG.warning("ranking.no_active_season")
		return None


@register("region-ranking")
async def refresh_region_rankings(event: TriggerEvent) -> Optional[RegionRankingResult]:
	store = get_store()
	season_id = await _active_season_id(SeasonService(store))
	if season_id is None:
		return None
	tokens = obs_logging.bind_context(season_id=season_id)
	try:
		scores = await ScoreRecalculator(store).run(season_id)
		regions = await RegionLeaderboardBuilder(store, clock=lambda: event.schedule_time).run(season_id)
	finally:
		obs_logging.reset_context(tokens)
	return RegionRankingResult(scores=scores, regions=regions)


@register("global-ranking")
async def refresh_global_ranking(event: TriggerEvent) -> Optional[GlobalBuildSummary]:
	store = get_store()
	season_id = await _active_season_id(SeasonService(store))
	if season_id is None:
		return None
	tokens = obs_logging.bind_context(season_id=season_id)
	try:
		return await GlobalLeaderboardBuilder(store, clock=lambda: event.schedule_time).run(season_id)
	finally:
		obs_logging.reset_context(tokens)
