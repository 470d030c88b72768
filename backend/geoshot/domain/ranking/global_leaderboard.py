"""Global per-user leaderboard by summed likes."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from geoshot.domain.ranking.models import (
	POSTS_COLLECTION,
	GlobalBuildSummary,
	PostRecord,
	SeasonRank,
	season_rank_path,
)
from geoshot.infra.docstore import DocumentStore, OrderBy, PendingWrite, commit_in_chunks, get_store
from geoshot.settings import settings

_LOG = logging.getLogger(__name__)


def total_likes_by_user(posts: Iterable[PostRecord]) -> Dict[str, int]:
	totals: Dict[str, int] = {}
	for post in posts:
		if not post.user_id:
			_LOG.warning("ranking.global.post_without_user", extra={"post_id": post.post_id})
			continue
		totals[post.user_id] = totals.get(post.user_id, 0) + post.likes_count
	return totals


def rank_users(totals: Mapping[str, int]) -> List[Tuple[int, str, int]]:
	"""``(rank, user_id, total)`` rows, best first.

	Ranks are row numbers 1..N: equal totals get consecutive ranks in the
	order the users were first accumulated.
	"""

	ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
	return [(idx, user_id, total) for idx, (user_id, total) in enumerate(ordered, start=1)]


class GlobalLeaderboardBuilder:
	"""Writes ``users/{user}/seasonRanks/{season}`` for every user who posted this season."""

	def __init__(
		self,
		store: Optional[DocumentStore] = None,
		*,
		batch_size: Optional[int] = None,
		clock: Callable[[], datetime] | None = None,
	) -> None:
		self._store = store or get_store()
		self._batch_size = batch_size or settings.batch_write_limit
		self._clock = clock or (lambda: datetime.now(timezone.utc))

	async def run(self, season_id: str) -> GlobalBuildSummary:
		summary = GlobalBuildSummary(season_id=season_id)
		snapshots = await self._store.query(
			POSTS_COLLECTION,
			where=[("seasonId", season_id)],
			order_by=OrderBy("likesCount", descending=True),
		)
		posts = [PostRecord.from_document(snapshot.id, snapshot.data or {}) for snapshot in snapshots]
		summary.posts_seen = len(posts)

		ranked = rank_users(total_likes_by_user(posts))
		summary.users_ranked = len(ranked)
		_LOG.info("ranking.global.start", extra={"posts": len(posts), "users": len(ranked)})

		now = self._clock()
		writes = [
			PendingWrite(
				path=season_rank_path(user_id, season_id),
				data=SeasonRank(
					user_id=user_id,
					season_id=season_id,
					rank=rank,
					all_like_count=total,
					updated_at=now,
				).to_document(),
			)
			for rank, user_id, total in ranked
		]
		result = await commit_in_chunks(self._store, writes, chunk_size=self._batch_size, label="global_leaderboard")
		summary.batch_sizes = list(result.batch_sizes)
		_LOG.info("ranking.global.done", extra={"users": summary.users_ranked, "batches": result.batches})
		return summary
