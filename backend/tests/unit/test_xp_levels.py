import asyncio

import pytest

from geoshot.domain.ranking.models import PostRecord
from geoshot.domain.xp.models import MAX_LEVEL, calculate_level, experience_details, experience_for_level
from geoshot.domain.xp.policy import REGION_RANK_AWARDS, compute_season_grants, rank_award
from geoshot.domain.xp.service import ExperienceService


def test_level_curve_thresholds():
	assert experience_for_level(1) == 0
	assert experience_for_level(2) == 50
	assert experience_for_level(3) == 141
	assert experience_for_level(5) == 400


@pytest.mark.parametrize(
	"experience, level",
	[(0, 1), (-5, 1), (49, 1), (50, 2), (140, 2), (141, 3), (399, 4), (400, 5)],
)
def test_calculate_level_matches_thresholds(experience, level):
	assert calculate_level(experience) == level


def test_calculate_level_is_consistent_with_curve():
	for level in range(1, MAX_LEVEL + 1):
		threshold = experience_for_level(level)
		assert calculate_level(threshold) == level
		if threshold > 0:
			assert calculate_level(threshold - 1) == level - 1


def test_level_is_clamped_at_max():
	assert calculate_level(experience_for_level(MAX_LEVEL) * 10) == MAX_LEVEL
	details = experience_details(experience_for_level(MAX_LEVEL) + 1)
	assert details.is_max_level
	assert details.progress == 100


def test_experience_details_progress():
	details = experience_details(95)
	assert details.level == 2
	assert details.current_level_experience == 45
	assert details.next_level_experience == 141 - 95
	assert details.progress == 49
	assert not details.is_max_level


def test_rank_award_table():
	assert [rank_award(pos) for pos in range(1, 8)] == [100, 80, 60, 40, 20, 0, 0]
	assert REGION_RANK_AWARDS[0] == 100
	with pytest.raises(ValueError):
		rank_award(0)


def _post(post_id, user_id, region_id, likes):
	return PostRecord(post_id=post_id, user_id=user_id, region_id=region_id, season_id="2025-02", likes_count=likes)


def test_compute_season_grants_per_region():
	posts = [
		_post("c", "C", "tokyo", 10),
		_post("a", "A", "tokyo", 50),
		_post("b", "B", "tokyo", 30),
		_post("d", "A", "osaka", 2),
	]
	assert compute_season_grants(posts) == {"C": 70, "A": 150 + 102, "B": 110}


def test_compute_season_grants_past_the_table_earns_likes_only():
	posts = [_post(f"p{idx}", f"u{idx}", "tokyo", 10 - idx) for idx in range(7)]
	grants = compute_season_grants(posts)
	assert grants["u0"] == 110
	assert grants["u4"] == 20 + 6
	assert grants["u5"] == 5
	assert grants["u6"] == 4


@pytest.mark.asyncio
async def test_grant_accumulates_and_recomputes_level(store):
	service = ExperienceService(store)
	await store.set("users/u1", {"displayName": "Aki", "experience": 30, "level": 1})

	details = await service.grant("u1", 25)

	assert details.total_experience == 55
	assert details.level == 2
	assert (await store.get("users/u1")).data == {"displayName": "Aki", "experience": 55, "level": 2}


@pytest.mark.asyncio
async def test_concurrent_grants_are_not_lost(store):
	service = ExperienceService(store)
	await asyncio.gather(service.grant("u1", 100), service.grant("u1", 60))
	assert (await store.get("users/u1")).get("experience") == 160


@pytest.mark.asyncio
async def test_negative_grant_floors_at_zero(store):
	service = ExperienceService(store)
	await store.set("users/u1", {"experience": 20, "level": 1})
	details = await service.grant("u1", -50)
	assert details.total_experience == 0
	assert details.level == 1


@pytest.mark.asyncio
async def test_details_for_unknown_user(store):
	details = await ExperienceService(store).get_details("ghost")
	assert details.total_experience == 0
	assert details.level == 1
