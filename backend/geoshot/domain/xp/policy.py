"""Season-close experience awards."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List

from geoshot.domain.ranking.models import PostRecord

# Award by position inside a region, best post first; positions past the table earn nothing.
REGION_RANK_AWARDS = (100, 80, 60, 40, 20)

# Each like on a post is worth this much experience at season close.
LIKE_AWARD = 1


def rank_award(position: int) -> int:
	"""Award for the 1-based ``position`` of a post inside its region."""

	if position < 1:
		raise ValueError("position is 1-based")
	if position > len(REGION_RANK_AWARDS):
		return 0
	return REGION_RANK_AWARDS[position - 1]


def group_by_region(posts: Iterable[PostRecord]) -> Dict[str, List[PostRecord]]:
	groups: Dict[str, List[PostRecord]] = defaultdict(list)
	for post in posts:
		groups[post.region_id].append(post)
	return groups


def compute_season_grants(posts: Iterable[PostRecord]) -> Dict[str, int]:
	"""Experience earned per user from a closed season's posts.

	Posts are ranked by ``likesCount`` inside each region (stable, so ties keep
	document order). Each post earns its position award plus its raw likes.
	Posts without a region earn only the like award.
	"""

	grants: Dict[str, int] = defaultdict(int)
	for region_id, region_posts in group_by_region(posts).items():
		ordered = sorted(region_posts, key=lambda post: post.likes_count, reverse=True)
		for position, post in enumerate(ordered, start=1):
			if not post.user_id:
				continue
			award = post.likes_count * LIKE_AWARD
			if region_id:
				award += rank_award(position)
			grants[post.user_id] += award
	return dict(grants)
