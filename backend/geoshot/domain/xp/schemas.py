"""Pydantic schemas for experience reads."""

from __future__ import annotations

from pydantic import BaseModel, Field

from geoshot.domain.xp.models import ExperienceDetails


class ExperienceSchema(BaseModel):
	user_id: str
	total_experience: int = Field(..., ge=0)
	level: int = Field(..., ge=1)
	current_level_experience: int
	next_level_experience: int
	progress: int = Field(..., ge=0, le=100)
	is_max_level: bool

	@classmethod
	def from_details(cls, user_id: str, details: ExperienceDetails) -> "ExperienceSchema":
		return cls(
			user_id=user_id,
			total_experience=details.total_experience,
			level=details.level,
			current_level_experience=details.current_level_experience,
			next_level_experience=details.next_level_experience,
			progress=details.progress,
			is_max_level=details.is_max_level,
		)
