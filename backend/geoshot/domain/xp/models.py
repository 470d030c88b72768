"""Domain models for user experience and levels."""

from __future__ import annotations

import math
from dataclasses import dataclass

MAX_LEVEL = 100

# Cumulative experience for level L is floor(LEVEL_CURVE_BASE * (L - 1) ** LEVEL_CURVE_EXPONENT)
LEVEL_CURVE_BASE = 50
LEVEL_CURVE_EXPONENT = 1.5


def experience_for_level(level: int) -> int:
	"""Cumulative experience needed to reach ``level``."""
	if level <= 1:
		return 0
	return math.floor(LEVEL_CURVE_BASE * math.pow(level - 1, LEVEL_CURVE_EXPONENT))


def calculate_level(experience: int) -> int:
	"""Level reached with ``experience`` total points, clamped to ``[1, MAX_LEVEL]``."""
	if experience <= 0:
		return 1
	level = math.floor(math.pow(experience / LEVEL_CURVE_BASE, 1 / LEVEL_CURVE_EXPONENT) + 1)
	# The float inverse can land one level off on exact thresholds.
	while level < MAX_LEVEL and experience_for_level(level + 1) <= experience:
		level += 1
	while level > 1 and experience_for_level(level) > experience:
		level -= 1
	return min(max(1, level), MAX_LEVEL)


@dataclass(slots=True)
class ExperienceDetails:
	total_experience: int
	level: int
	current_level_experience: int
	next_level_experience: int
	progress: int

	@property
	def is_max_level(self) -> bool:
		return self.level >= MAX_LEVEL


def experience_details(experience: int) -> ExperienceDetails:
	experience = max(int(experience), 0)
	level = calculate_level(experience)
	current_threshold = experience_for_level(level)
	next_threshold = experience_for_level(level + 1)
	current_level_experience = experience - current_threshold
	span = next_threshold - current_threshold
	if level >= MAX_LEVEL:
		progress = 100
	else:
		progress = min(100, math.floor(current_level_experience / span * 100))
	return ExperienceDetails(
		total_experience=experience,
		level=level,
		current_level_experience=current_level_experience,
		next_level_experience=max(0, next_threshold - experience),
		progress=progress,
	)
