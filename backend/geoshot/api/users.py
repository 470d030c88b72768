"""FastAPI routes for per-user season ranks and experience."""

from __future__ import annotations

from fastapi import APIRouter

from geoshot.domain.ranking.schemas import SeasonRankSchema
from geoshot.domain.ranking.service import RankingService
from geoshot.domain.xp.schemas import ExperienceSchema
from geoshot.domain.xp.service import ExperienceService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}/season-ranks/{season_id}", response_model=SeasonRankSchema)
async def season_rank_endpoint(user_id: str, season_id: str) -> SeasonRankSchema:
	record = await RankingService().get_season_rank(user_id, season_id)
	return SeasonRankSchema.from_model(record)


@router.get("/{user_id}/experience", response_model=ExperienceSchema)
async def experience_endpoint(user_id: str) -> ExperienceSchema:
	details = await ExperienceService().get_details(user_id)
	return ExperienceSchema.from_details(user_id, details)
