"""Domain models for region and global leaderboards."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from geoshot.domain.seasons.models import season_path

POSTS_COLLECTION = "posts"
LIKES_SUBCOLLECTION = "likes"
USERS_COLLECTION = "users"
REGION_TOP_SUBCOLLECTION = "regionTop"
SEASON_RANKS_SUBCOLLECTION = "seasonRanks"

# Field the region leaderboard orders by.
RANKING_FIELD = "score"


def post_path(post_id: str) -> str:
	return f"{POSTS_COLLECTION}/{post_id}"


def likes_collection(post_id: str) -> str:
	return f"{post_path(post_id)}/{LIKES_SUBCOLLECTION}"


def user_path(user_id: str) -> str:
	return f"{USERS_COLLECTION}/{user_id}"


def region_tops_collection(season_id: str) -> str:
	return f"{season_path(season_id)}/{REGION_TOP_SUBCOLLECTION}"


def region_top_path(season_id: str, region_id: str) -> str:
	return f"{region_tops_collection(season_id)}/{region_id}"


def season_rank_path(user_id: str, season_id: str) -> str:
	return f"{user_path(user_id)}/{SEASON_RANKS_SUBCOLLECTION}/{season_id}"


def _as_count(value: Any) -> int:
	if value is None:
		return 0
	try:
		return max(int(value), 0)
	except (TypeError, ValueError):
		return 0


@dataclass(slots=True)
class PostRecord:
	"""The fields of a post the ranking jobs read."""

	post_id: str
	user_id: str
	region_id: str
	season_id: str
	image_url: str = ""
	likes_count: int = 0
	score: int = 0
	caption: str = ""
	created_at: Optional[datetime] = None
	location: dict[str, float] = field(default_factory=dict)

	@classmethod
	def from_document(cls, post_id: str, data: Mapping[str, Any]) -> "PostRecord":
		return cls(
			post_id=post_id,
			user_id=str(data.get("userId") or ""),
			region_id=str(data.get("regionId") or ""),
			season_id=str(data.get("seasonId") or ""),
			image_url=str(data.get("imageUrl") or ""),
			likes_count=_as_count(data.get("likesCount")),
			score=_as_count(data.get("score")),
			caption=str(data.get("caption") or ""),
			created_at=data.get("createdAt"),
			location=dict(data.get("location") or {}),
		)

	def to_document(self) -> dict[str, Any]:
		return {
			"userId": self.user_id,
			"regionId": self.region_id,
			"seasonId": self.season_id,
			"imageUrl": self.image_url,
			"caption": self.caption,
			"likesCount": self.likes_count,
			"score": self.score,
			"createdAt": self.created_at,
			"location": dict(self.location),
		}


@dataclass(slots=True)
class RegionTop:
	"""Leading post of one region for one season."""

	post_id: str
	user_id: str
	region_id: str
	image_url: str
	likes_count: int
	score: int
	updated_at: datetime

	@classmethod
	def from_post(cls, post: PostRecord, *, updated_at: datetime) -> "RegionTop":
		return cls(
			post_id=post.post_id,
			user_id=post.user_id,
			region_id=post.region_id,
			image_url=post.image_url,
			likes_count=post.likes_count,
			score=post.score,
			updated_at=updated_at,
		)

	@classmethod
	def from_document(cls, data: Mapping[str, Any]) -> "RegionTop":
		return cls(
			post_id=str(data["postId"]),
			user_id=str(data.get("userId") or ""),
			region_id=str(data.get("regionId") or ""),
			image_url=str(data.get("imageUrl") or ""),
			likes_count=_as_count(data.get("likesCount")),
			score=_as_count(data.get("score")),
			updated_at=data["updatedAt"],
		)

	def to_document(self) -> dict[str, Any]:
		return {
			"postId": self.post_id,
			"userId": self.user_id,
			"regionId": self.region_id,
			"imageUrl": self.image_url,
			"likesCount": self.likes_count,
			"score": self.score,
			"updatedAt": self.updated_at,
		}


@dataclass(slots=True)
class SeasonRank:
	"""A user's global standing for one season."""

	user_id: str
	season_id: str
	rank: int
	all_like_count: int
	updated_at: datetime

	@classmethod
	def from_document(cls, user_id: str, data: Mapping[str, Any]) -> "SeasonRank":
		return cls(
			user_id=user_id,
			season_id=str(data["seasonId"]),
			rank=int(data["rank"]),
			all_like_count=_as_count(data.get("allLikeCount")),
			updated_at=data["updatedAt"],
		)

	def to_document(self) -> dict[str, Any]:
		return {
			"seasonId": self.season_id,
			"rank": self.rank,
			"allLikeCount": self.all_like_count,
			"updatedAt": self.updated_at,
		}


@dataclass(slots=True)
class RecalculationSummary:
	season_id: str
	posts_seen: int = 0
	posts_updated: int = 0
	skipped_post_ids: list[str] = field(default_factory=list)
	batch_sizes: list[int] = field(default_factory=list)


@dataclass(slots=True)
class RegionBuildSummary:
	season_id: str
	regions_seen: int = 0
	regions_written: list[str] = field(default_factory=list)
	empty_regions: list[str] = field(default_factory=list)
	failed_regions: list[str] = field(default_factory=list)


@dataclass(slots=True)
class GlobalBuildSummary:
	season_id: str
	posts_seen: int = 0
	users_ranked: int = 0
	batch_sizes: list[int] = field(default_factory=list)
