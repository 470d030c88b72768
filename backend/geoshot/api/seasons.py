"""FastAPI routes for seasons and region leaderboards."""

from __future__ import annotations

from fastapi import APIRouter

from geoshot.domain.ranking.schemas import RegionTopSchema, RegionTopsResponseSchema, SeasonSchema
from geoshot.domain.ranking.service import RankingService
from geoshot.domain.seasons.service import SeasonService

router = APIRouter(prefix="/seasons", tags=["seasons"])


# /current must be defined BEFORE /{season_id}/... to avoid route conflicts
@router.get("/current", response_model=SeasonSchema)
async def current_season_endpoint() -> SeasonSchema:
	season = await SeasonService().get_current_season()
	return SeasonSchema.from_model(season)


@router.get("/{season_id}/region-tops", response_model=RegionTopsResponseSchema)
async def region_tops_endpoint(season_id: str) -> RegionTopsResponseSchema:
	records = await RankingService().list_region_tops(season_id)
	return RegionTopsResponseSchema(
		season_id=season_id,
		items=[RegionTopSchema.from_model(record) for record in records],
	)
