"""Season lookup and lifecycle writes."""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Optional

from geoshot.domain.ranking.exceptions import NoActiveSeasonError
from geoshot.domain.seasons.models import (
	SEASONS_COLLECTION,
	Season,
	generate_season_id,
	season_bounds,
	season_path,
)
from geoshot.infra.docstore import DocumentStore, get_store

logger = logging.getLogger(__name__)


class SeasonService:
	"""Reads and flips the ``isCurrent`` flag on season documents."""

	def __init__(self, store: Optional[DocumentStore] = None) -> None:
		self._store = store or get_store()

	async def get_current_season(self) -> Season:
		snapshots = await self._store.query(SEASONS_COLLECTION, where=[("isCurrent", True)], limit=1)
		if not snapshots:
			raise NoActiveSeasonError()
		snapshot = snapshots[0]
		return Season.from_document(snapshot.id, snapshot.data or {})

	async def get_current_season_id(self) -> str:
		season = await self.get_current_season()
		return season.season_id

	async def get_season(self, season_id: str) -> Optional[Season]:
		snapshot = await self._store.get(season_path(season_id))
		if not snapshot.exists:
			return None
		return Season.from_document(season_id, snapshot.data or {})

	async def close_season(self, season_id: str) -> None:
		await self._store.update(season_path(season_id), {"isCurrent": False})
		logger.info("season.closed", extra={"closed_season_id": season_id})

	async def open_season(self, year: int, month: int, *, now: datetime, tz: tzinfo) -> Season:
		"""Create the season for ``(year, month)`` as the only current season.

		The new document and the clearing of any other season still flagged
		current commit in one batch.
		"""

		season_id = generate_season_id(year, month)
		start, end = season_bounds(year, month, tz)
		season = Season(
			season_id=season_id,
			is_current=True,
			start_date=start,
			end_date=end,
			created_at=now,
		)
		stale = await self._store.query(SEASONS_COLLECTION, where=[("isCurrent", True)])
		batch = self._store.batch()
		for snapshot in stale:
			if snapshot.id == season_id:
				continue
			logger.warning("season.stale_current_cleared", extra={"stale_season_id": snapshot.id})
			batch.update(snapshot.path, {"isCurrent": False})
		batch.set(season_path(season_id), season.to_document())
		await batch.commit()
		logger.info(
			"season.opened",
			extra={"opened_season_id": season_id, "start_date": start.isoformat(), "end_date": end.isoformat()},
		)
		return season
