"""Post scoring.

``calculate_score`` is the single place a post's ranking score is derived.
Today the score is the like count itself; weighting comments, shares or
recency later only changes this function.
"""

from __future__ import annotations


def calculate_score(likes_count: int) -> int:
	if likes_count < 0:
		raise ValueError(f"likes_count must be non-negative, got {likes_count}")
	return int(likes_count)
