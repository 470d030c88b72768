"""Custom exceptions for the ranking pipeline."""

from __future__ import annotations

from fastapi import status


class RankingError(Exception):
	"""Base class for ranking related errors."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "ranking_error"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class NoActiveSeasonError(RankingError):
	"""Raised when no season is flagged current."""

	status_code = status.HTTP_404_NOT_FOUND
	detail = "no_active_season"


class NotFoundError(RankingError):
	"""Thrown when a ranking record is missing."""

	status_code = status.HTTP_404_NOT_FOUND
	detail = "not_found"


class PerEntityComputationError(RankingError):
	"""Failure computing one post, region or user; the enclosing loop skips it."""

	status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
	detail = "entity_computation_failed"

	def __init__(self, kind: str, entity_id: str, cause: BaseException | None = None) -> None:
		super().__init__(f"{kind} {entity_id}: {cause!r}" if cause else f"{kind} {entity_id}")
		self.kind = kind
		self.entity_id = entity_id
		self.cause = cause
