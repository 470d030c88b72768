"""Per-region "top post" leaderboard for the active season."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from geoshot.domain.ranking.exceptions import PerEntityComputationError
from geoshot.domain.ranking.models import (
	POSTS_COLLECTION,
	RANKING_FIELD,
	PostRecord,
	RegionBuildSummary,
	RegionTop,
	region_top_path,
)
from geoshot.infra.docstore import DocumentSnapshot, DocumentStore, OrderBy, get_store
from geoshot.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)


def distinct_regions(posts: Iterable[DocumentSnapshot]) -> List[str]:
	"""Region ids in first-seen order, skipping posts without one."""

	seen: dict[str, None] = {}
	for snapshot in posts:
		region_id = snapshot.get("regionId")
		if region_id:
			seen.setdefault(str(region_id), None)
	return list(seen)


class RegionLeaderboardBuilder:
	"""Overwrites ``seasons/{season}/regionTop/{region}`` with each region's best post."""

	def __init__(
		self,
		store: Optional[DocumentStore] = None,
		*,
		ranking_field: str = RANKING_FIELD,
		clock: Callable[[], datetime] | None = None,
	) -> None:
		self._store = store or get_store()
		self._ranking_field = ranking_field
		self._clock = clock or (lambda: datetime.now(timezone.utc))

	async def _top_post(self, season_id: str, region_id: str) -> Optional[PostRecord]:
		snapshots = await self._store.query(
			POSTS_COLLECTION,
			where=[("seasonId", season_id), ("regionId", region_id)],
			order_by=OrderBy(self._ranking_field, descending=True),
			limit=1,
		)
		if not snapshots:
			return None
		return PostRecord.from_document(snapshots[0].id, snapshots[0].data or {})

	async def _update_region(self, season_id: str, region_id: str) -> Optional[RegionTop]:
		try:
			top = await self._top_post(season_id, region_id)
			if top is None:
				return None
			record = RegionTop.from_post(top, updated_at=self._clock())
			await self._store.set(region_top_path(season_id, region_id), record.to_document())
		except Exception as exc:
			raise PerEntityComputationError("region", region_id, exc) from exc
		return record

	async def run(self, season_id: str) -> RegionBuildSummary:
		summary = RegionBuildSummary(season_id=season_id)
		posts = await self._store.query(POSTS_COLLECTION, where=[("seasonId", season_id)])
		regions = distinct_regions(posts)
		summary.regions_seen = len(regions)
		_LOG.info("ranking.region_top.start", extra={"regions": len(regions), "posts": len(posts)})

		for region_id in regions:
			try:
				record = await self._update_region(season_id, region_id)
			except PerEntityComputationError as exc:
				summary.failed_regions.append(region_id)
				obs_metrics.inc_entity_failure("region_leaderboard", "region")
				_LOG.error("ranking.region_top.failed", extra={"region_id": region_id}, exc_info=exc.cause)
				continue
			if record is None:
				summary.empty_regions.append(region_id)
				_LOG.warning("ranking.region_top.no_posts", extra={"region_id": region_id})
				continue
			summary.regions_written.append(region_id)
			obs_metrics.inc_region_top_written()
			_LOG.info(
				"ranking.region_top.updated",
				extra={"region_id": region_id, "post_id": record.post_id, "score": record.score, "likes_count": record.likes_count},
			)

		_LOG.info(
			"ranking.region_top.done",
			extra={"written": len(summary.regions_written), "failed": len(summary.failed_regions)},
		)
		return summary
