"""Service for user experience and levels."""

from __future__ import annotations

import logging
from typing import Optional

from geoshot.domain.ranking.models import user_path
from geoshot.domain.xp.models import ExperienceDetails, calculate_level, experience_details
from geoshot.infra.docstore import DocumentStore, get_store
from geoshot.settings import settings

logger = logging.getLogger(__name__)


class ExperienceService:
	"""Applies signed experience grants to user profiles."""

	def __init__(self, store: Optional[DocumentStore] = None, *, max_attempts: Optional[int] = None) -> None:
		self._store = store or get_store()
		self._max_attempts = max_attempts or settings.transaction_max_attempts

	async def get_details(self, user_id: str) -> ExperienceDetails:
		snapshot = await self._store.get(user_path(user_id))
		return experience_details(int(snapshot.get("experience", 0) or 0))

	async def grant(self, user_id: str, amount: int) -> ExperienceDetails:
		"""Add ``amount`` to the user's experience in one read-modify-write transaction."""
		path = user_path(user_id)

		async def _apply(txn) -> ExperienceDetails:
			snapshot = await txn.get(path)
			current = int(snapshot.get("experience", 0) or 0)
			total = max(current + amount, 0)
			txn.set(path, {"experience": total, "level": calculate_level(total)}, merge=True)
			return experience_details(total)

		details = await self._store.run_transaction(_apply, max_attempts=self._max_attempts)
		logger.info(
			"xp.granted",
			extra={"target_user_id": user_id, "amount": amount, "total_experience": details.total_experience, "level": details.level},
		)
		return details
