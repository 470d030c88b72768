from datetime import datetime, timezone

import pytest

from geoshot.domain.ranking.models import RegionTop, SeasonRank
from geoshot.settings import settings

ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}
NOW = datetime(2025, 3, 10, 2, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_health_live(api_client):
	resp = await api_client.get("/health/live")
	assert resp.status_code == 200
	assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_metrics_requires_admin_unless_public(api_client):
	resp = await api_client.get("/metrics")
	assert resp.status_code == 403

	resp = await api_client.get("/metrics", headers=ADMIN_HEADERS)
	assert resp.status_code == 200
	assert "geoshot_jobs_runs_total" in resp.text

	settings.obs_metrics_public = True
	resp = await api_client.get("/metrics")
	assert resp.status_code == 200


@pytest.mark.asyncio
async def test_trigger_job_requires_token(api_client):
	resp = await api_client.post("/ops/jobs/region-ranking")
	assert resp.status_code == 403
	resp = await api_client.post("/ops/jobs/region-ranking", headers={"Authorization": "Bearer wrong"})
	assert resp.status_code == 403


@pytest.mark.asyncio
async def test_trigger_unknown_job(api_client):
	resp = await api_client.post("/ops/jobs/does-not-exist", headers=ADMIN_HEADERS)
	assert resp.status_code == 404
	assert resp.json()["detail"] == "unknown_job"


@pytest.mark.asyncio
async def test_trigger_job_without_season_is_skipped(api_client):
	resp = await api_client.post("/ops/jobs/global-ranking", headers=ADMIN_HEADERS)
	assert resp.status_code == 200
	assert resp.json() == {"status": "skipped", "job": "global-ranking", "summary": None}


@pytest.mark.asyncio
async def test_trigger_job_returns_summary(api_client, make_season, make_post):
	await make_season(2025, 3)
	await make_post("p1", user_id="u1", season_id="2025-03", likes=3)

	resp = await api_client.post("/ops/jobs/global-ranking", headers=ADMIN_HEADERS)

	assert resp.status_code == 200
	body = resp.json()
	assert body["status"] == "ok"
	assert body["summary"]["season_id"] == "2025-03"
	assert body["summary"]["users_ranked"] == 1


@pytest.mark.asyncio
async def test_trigger_job_failure_maps_to_500(api_client, make_season, monkeypatch):
	from geoshot.domain.ranking.global_leaderboard import GlobalLeaderboardBuilder

	await make_season(2025, 3)

	async def _boom(self, season_id):
		raise RuntimeError("store offline")

	monkeypatch.setattr(GlobalLeaderboardBuilder, "run", _boom)
	resp = await api_client.post("/ops/jobs/global-ranking", headers=ADMIN_HEADERS)
	assert resp.status_code == 500
	assert resp.json()["detail"] == "job_failed"


@pytest.mark.asyncio
async def test_current_season(api_client, make_season):
	resp = await api_client.get("/seasons/current")
	assert resp.status_code == 404
	assert resp.json() == {"detail": "no_active_season"}

	await make_season(2025, 2, is_current=False)
	await make_season(2025, 3)
	resp = await api_client.get("/seasons/current")
	assert resp.status_code == 200
	body = resp.json()
	assert body["season_id"] == "2025-03"
	assert body["is_current"] is True
	assert body["start_date"].startswith("2025-03-01T00:00:00")


@pytest.mark.asyncio
async def test_region_tops_listing(api_client, store):
	for region_id, post_id, score in (("osaka", "p1", 4), ("tokyo", "p2", 9)):
		record = RegionTop(
			post_id=post_id,
			user_id="u1",
			region_id=region_id,
			image_url="",
			likes_count=score,
			score=score,
			updated_at=NOW,
		)
		await store.set(f"seasons/2025-03/regionTop/{region_id}", record.to_document())

	resp = await api_client.get("/seasons/2025-03/region-tops")

	assert resp.status_code == 200
	body = resp.json()
	assert body["season_id"] == "2025-03"
	assert [item["region_id"] for item in body["items"]] == ["tokyo", "osaka"]

	resp = await api_client.get("/seasons/2024-01/region-tops")
	assert resp.json()["items"] == []


@pytest.mark.asyncio
async def test_season_rank_lookup(api_client, store):
	rank = SeasonRank(user_id="u1", season_id="2025-03", rank=2, all_like_count=17, updated_at=NOW)
	await store.set("users/u1/seasonRanks/2025-03", rank.to_document())

	resp = await api_client.get("/users/u1/season-ranks/2025-03")
	assert resp.status_code == 200
	assert resp.json()["rank"] == 2
	assert resp.json()["all_like_count"] == 17

	resp = await api_client.get("/users/u1/season-ranks/2025-02")
	assert resp.status_code == 404
	assert resp.json() == {"detail": "season_rank_not_found"}


@pytest.mark.asyncio
async def test_user_experience(api_client, store):
	await store.set("users/u1", {"experience": 95, "level": 2})

	resp = await api_client.get("/users/u1/experience")

	assert resp.status_code == 200
	assert resp.json() == {
		"user_id": "u1",
		"total_experience": 95,
		"level": 2,
		"current_level_experience": 45,
		"next_level_experience": 46,
		"progress": 49,
		"is_max_level": False,
	}

	resp = await api_client.get("/users/nobody/experience")
	assert resp.json()["level"] == 1
