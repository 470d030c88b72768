"""Domain models for monthly ranking seasons."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Mapping

SEASONS_COLLECTION = "seasons"


def season_path(season_id: str) -> str:
	return f"{SEASONS_COLLECTION}/{season_id}"


def generate_season_id(year: int, month: int) -> str:
	"""Canonical ``YYYY-MM`` identifier for a calendar month."""

	if not 1 <= month <= 12:
		raise ValueError(f"month out of range: {month}")
	return f"{year:04d}-{month:02d}"


def next_season_year_month(year: int, month: int) -> tuple[int, int]:
	"""Calendar month following ``(year, month)``; December rolls into January."""

	if not 1 <= month <= 12:
		raise ValueError(f"month out of range: {month}")
	if month == 12:
		return year + 1, 1
	return year, month + 1


def parse_season_id(season_id: str) -> tuple[int, int]:
	try:
		year_raw, month_raw = season_id.split("-")
		year, month = int(year_raw), int(month_raw)
	except ValueError as exc:
		raise ValueError(f"invalid season id: {season_id!r}") from exc
	if len(year_raw) != 4 or len(month_raw) != 2 or not 1 <= month <= 12:
		raise ValueError(f"invalid season id: {season_id!r}")
	return year, month


def season_bounds(year: int, month: int, tz: tzinfo) -> tuple[datetime, datetime]:
	"""Half-open ``[start, end)`` bounds: first instant of the month and of the next month."""

	next_year, next_month = next_season_year_month(year, month)
	start = datetime(year, month, 1, tzinfo=tz)
	end = datetime(next_year, next_month, 1, tzinfo=tz)
	return start, end


@dataclass(slots=True)
class Season:
	season_id: str
	is_current: bool
	start_date: datetime
	end_date: datetime
	created_at: datetime

	def contains(self, moment: datetime) -> bool:
		return self.start_date <= moment < self.end_date

	def to_document(self) -> dict[str, Any]:
		return {
			"seasonId": self.season_id,
			"isCurrent": self.is_current,
			"startDate": self.start_date,
			"endDate": self.end_date,
			"createdAt": self.created_at,
		}

	@classmethod
	def from_document(cls, season_id: str, data: Mapping[str, Any]) -> "Season":
		return cls(
			season_id=str(data.get("seasonId") or season_id),
			is_current=bool(data.get("isCurrent", False)),
			start_date=data["startDate"],
			end_date=data["endDate"],
			created_at=data["createdAt"],
		)
