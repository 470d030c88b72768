"""Read side for the materialised leaderboards."""

from __future__ import annotations

from typing import List, Optional

from geoshot.domain.ranking.exceptions import NotFoundError
from geoshot.domain.ranking.models import (
	RANKING_FIELD,
	RegionTop,
	SeasonRank,
	region_tops_collection,
	season_rank_path,
)
from geoshot.infra.docstore import DocumentStore, OrderBy, get_store


class RankingService:
	def __init__(self, store: Optional[DocumentStore] = None) -> None:
		self._store = store or get_store()

	async def list_region_tops(self, season_id: str) -> List[RegionTop]:
		"""Region winners for ``season_id``, best score first."""

		snapshots = await self._store.query(
			region_tops_collection(season_id),
			order_by=OrderBy(RANKING_FIELD, descending=True),
		)
		return [RegionTop.from_document(snapshot.data or {}) for snapshot in snapshots]

	async def get_season_rank(self, user_id: str, season_id: str) -> SeasonRank:
		snapshot = await self._store.get(season_rank_path(user_id, season_id))
		if not snapshot.exists:
			raise NotFoundError("season_rank_not_found")
		return SeasonRank.from_document(user_id, snapshot.data or {})
