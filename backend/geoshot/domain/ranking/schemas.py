"""Pydantic schemas for season and leaderboard APIs."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from geoshot.domain.ranking.models import RegionTop, SeasonRank
from geoshot.domain.seasons.models import Season


class SeasonSchema(BaseModel):
	season_id: str
	is_current: bool
	start_date: datetime
	end_date: datetime
	created_at: datetime

	@classmethod
	def from_model(cls, season: Season) -> "SeasonSchema":
		return cls(
			season_id=season.season_id,
			is_current=season.is_current,
			start_date=season.start_date,
			end_date=season.end_date,
			created_at=season.created_at,
		)


class RegionTopSchema(BaseModel):
	region_id: str
	post_id: str
	user_id: str
	image_url: str = ""
	likes_count: int = Field(..., ge=0)
	score: int = Field(..., ge=0)
	updated_at: datetime

	@classmethod
	def from_model(cls, record: RegionTop) -> "RegionTopSchema":
		return cls(
			region_id=record.region_id,
			post_id=record.post_id,
			user_id=record.user_id,
			image_url=record.image_url,
			likes_count=record.likes_count,
			score=record.score,
			updated_at=record.updated_at,
		)


class RegionTopsResponseSchema(BaseModel):
	season_id: str
	items: list[RegionTopSchema]


class SeasonRankSchema(BaseModel):
	user_id: str
	season_id: str
	rank: int = Field(..., ge=1)
	all_like_count: int = Field(..., ge=0)
	updated_at: datetime

	@classmethod
	def from_model(cls, record: SeasonRank) -> "SeasonRankSchema":
		return cls(
			user_id=record.user_id,
			season_id=record.season_id,
			rank=record.rank,
			all_like_count=record.all_like_count,
			updated_at=record.updated_at,
		)
