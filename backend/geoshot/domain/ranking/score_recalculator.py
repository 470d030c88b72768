"""Recompute like counts and scores for every post in a season."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from geoshot.domain.ranking.exceptions import PerEntityComputationError
from geoshot.domain.ranking.models import (
	POSTS_COLLECTION,
	RecalculationSummary,
	likes_collection,
	post_path,
)
from geoshot.domain.ranking.scoring import calculate_score
from geoshot.infra.docstore import DocumentStore, PendingWrite, commit_in_chunks, get_store
from geoshot.obs import metrics as obs_metrics
from geoshot.settings import settings

_LOG = logging.getLogger(__name__)


class ScoreRecalculator:
	"""Counts each post's likes and rewrites ``likesCount`` and ``score``.

	The like subcollection is the source of truth; the denormalised counter on
	the post is overwritten with its cardinality at read time.
	"""

	def __init__(
		self,
		store: Optional[DocumentStore] = None,
		*,
		batch_size: Optional[int] = None,
		scorer: Callable[[int], int] = calculate_score,
	) -> None:
		self._store = store or get_store()
		self._batch_size = batch_size or settings.batch_write_limit
		self._scorer = scorer

	async def _recount(self, post_id: str) -> PendingWrite:
		try:
			likes_count = await self._store.count(likes_collection(post_id))
			score = self._scorer(likes_count)
		except Exception as exc:
			raise PerEntityComputationError("post", post_id, exc) from exc
		return PendingWrite(path=post_path(post_id), data={"likesCount": likes_count, "score": score}, merge=True, must_exist=True)

	async def run(self, season_id: str) -> RecalculationSummary:
		summary = RecalculationSummary(season_id=season_id)
		posts = await self._store.query(POSTS_COLLECTION, where=[("seasonId", season_id)])
		summary.posts_seen = len(posts)
		_LOG.info("ranking.scores.start", extra={"posts": len(posts)})

		writes: list[PendingWrite] = []
		for snapshot in posts:
			try:
				writes.append(await self._recount(snapshot.id))
			except PerEntityComputationError as exc:
				summary.skipped_post_ids.append(exc.entity_id)
				obs_metrics.inc_entity_failure("score_recalculator", "post")
				_LOG.warning("ranking.scores.post_skipped", extra={"post_id": exc.entity_id}, exc_info=exc.cause)

		result = await commit_in_chunks(self._store, writes, chunk_size=self._batch_size, label="score_recalculator")
		summary.batch_sizes = list(result.batch_sizes)
		summary.posts_updated = result.writes
		_LOG.info(
			"ranking.scores.done",
			extra={"updated": summary.posts_updated, "skipped": len(summary.skipped_post_ids), "batches": result.batches},
		)
		return summary
