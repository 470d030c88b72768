"""Monthly season rollover: close, grant experience, open the next season."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from geoshot.domain.ranking.exceptions import NoActiveSeasonError
from geoshot.domain.ranking.models import POSTS_COLLECTION, PostRecord
from geoshot.domain.seasons.models import Season, generate_season_id
from geoshot.domain.seasons.service import SeasonService
from geoshot.domain.xp.policy import compute_season_grants
from geoshot.domain.xp.service import ExperienceService
from geoshot.infra.docstore import DocumentStore, get_store
from geoshot.obs import metrics as obs_metrics
from geoshot.settings import settings

_LOG = logging.getLogger(__name__)


@dataclass
class RolloverSummary:
	opened_season_id: str
	closed_season_id: Optional[str] = None
	grants: Dict[str, int] = field(default_factory=dict)
	failed_user_ids: List[str] = field(default_factory=list)
	reaffirmed: bool = False


class SeasonRollover:
	"""Runs at the start of each month in the season timezone.

	Steps are not rolled back: a crash after closing leaves no current season
	until the next run opens one.
	"""

	def __init__(
		self,
		store: Optional[DocumentStore] = None,
		*,
		seasons: Optional[SeasonService] = None,
		experience: Optional[ExperienceService] = None,
		tz: Optional[tzinfo] = None,
		clock: Callable[[], datetime] | None = None,
	) -> None:
		self._store = store or get_store()
		self._seasons = seasons or SeasonService(self._store)
		self._experience = experience or ExperienceService(self._store)
		self._tz = tz or ZoneInfo(settings.season_timezone)
		self._clock = clock or (lambda: datetime.now(timezone.utc))

	async def _locate_current(self) -> Optional[Season]:
		try:
			return await self._seasons.get_current_season()
		except NoActiveSeasonError:
			_LOG.warning("season.rollover.no_current_season")
			return None

	async def _season_posts(self, season_id: str) -> List[PostRecord]:
		snapshots = await self._store.query(POSTS_COLLECTION, where=[("seasonId", season_id)])
		return [PostRecord.from_document(snapshot.id, snapshot.data or {}) for snapshot in snapshots]

	async def _apply_grants(self, season_id: str, summary: RolloverSummary) -> None:
		grants = compute_season_grants(await self._season_posts(season_id))
		for user_id, amount in grants.items():
			if amount <= 0:
				continue
			try:
				await self._experience.grant(user_id, amount)
			except Exception:
				summary.failed_user_ids.append(user_id)
				obs_metrics.inc_entity_failure("season_rollover", "user")
				_LOG.exception("season.rollover.grant_failed", extra={"target_user_id": user_id, "amount": amount})
				continue
			summary.grants[user_id] = amount
			obs_metrics.inc_experience_granted(amount)
		_LOG.info(
			"season.rollover.grants_applied",
			extra={"users": len(summary.grants), "failed": len(summary.failed_user_ids)},
		)

	async def run(self, now: Optional[datetime] = None) -> RolloverSummary:
		moment = (now or self._clock()).astimezone(self._tz)
		target_id = generate_season_id(moment.year, moment.month)
		summary = RolloverSummary(opened_season_id=target_id)
		try:
			current = await self._locate_current()
			if current is not None and current.season_id == target_id:
				_LOG.warning("season.rollover.already_open", extra={"opened_season_id": target_id})
				await self._seasons.open_season(moment.year, moment.month, now=current.created_at, tz=self._tz)
				summary.reaffirmed = True
				return summary

			if current is not None:
				await self._seasons.close_season(current.season_id)
				summary.closed_season_id = current.season_id
				await self._apply_grants(current.season_id, summary)

			await self._seasons.open_season(moment.year, moment.month, now=moment, tz=self._tz)
		except Exception:
			_LOG.exception("season.rollover.failed", extra={"opened_season_id": target_id})
			raise
		_LOG.info(
			"season.rollover.done",
			extra={"closed_season_id": summary.closed_season_id, "opened_season_id": target_id},
		)
		return summary
