from datetime import datetime, timezone

import pytest
from prometheus_client import REGISTRY

from geoshot.domain.ranking.score_recalculator import ScoreRecalculator
from geoshot.infra.scheduler import build_scheduler
from geoshot.jobs import JOBS, TriggerEvent, UnknownJobError, run_job
from geoshot.jobs.ranking import RegionRankingResult
from geoshot.obs import logging as obs_logging

MARCH_FIRST = datetime(2025, 2, 28, 15, 0, tzinfo=timezone.utc)
FIRED_AT = datetime(2025, 3, 10, 2, 0, tzinfo=timezone.utc)


def _runs(name, result):
	return REGISTRY.get_sample_value("geoshot_jobs_runs_total", {"name": name, "result": result}) or 0.0


def test_registry_exposes_all_jobs():
	assert set(JOBS) == {"region-ranking", "global-ranking", "season-rollover"}


@pytest.mark.asyncio
async def test_unknown_job():
	with pytest.raises(UnknownJobError):
		await run_job("nightly-cleanup")


@pytest.mark.asyncio
async def test_ranking_jobs_skip_without_active_season():
	before = _runs("region-ranking", "skipped")
	assert await run_job("region-ranking") is None
	assert await run_job("global-ranking") is None
	assert _runs("region-ranking", "skipped") == before + 1


@pytest.mark.asyncio
async def test_region_ranking_recalculates_then_builds_tops(store, make_season, make_post):
	await make_season(2025, 3)
	await make_post("p1", user_id="u1", season_id="2025-03", region_id="tokyo", likes=2, stored_likes=40)
	await make_post("p2", user_id="u2", season_id="2025-03", region_id="tokyo", likes=6, stored_likes=1)

	result = await run_job("region-ranking", TriggerEvent(schedule_time=FIRED_AT))

	assert isinstance(result, RegionRankingResult)
	assert result.scores.posts_updated == 2
	assert result.regions.regions_written == ["tokyo"]
	# the recount runs first, so the stale counter on p1 does not win
	top = await store.get("seasons/2025-03/regionTop/tokyo")
	assert top.get("postId") == "p2"
	assert top.get("updatedAt") == FIRED_AT


@pytest.mark.asyncio
async def test_global_ranking_job(store, make_season, make_post):
	await make_season(2025, 3)
	await make_post("p1", user_id="u1", season_id="2025-03", likes=2)
	await make_post("p2", user_id="u2", season_id="2025-03", likes=6)

	summary = await run_job("global-ranking", TriggerEvent(schedule_time=FIRED_AT))

	assert summary.users_ranked == 2
	assert (await store.get("users/u2/seasonRanks/2025-03")).get("rank") == 1
	assert (await store.get("users/u1/seasonRanks/2025-03")).get("rank") == 2


@pytest.mark.asyncio
async def test_season_rollover_job_uses_fire_time(store, make_season):
	await make_season(2025, 2)

	summary = await run_job("season-rollover", TriggerEvent(schedule_time=MARCH_FIRST))

	assert summary.closed_season_id == "2025-02"
	assert summary.opened_season_id == "2025-03"


@pytest.mark.asyncio
async def test_job_errors_are_recorded_and_reraised(make_season, monkeypatch):
	await make_season(2025, 3)

	async def _boom(self, season_id):
		raise RuntimeError("store offline")

	monkeypatch.setattr(ScoreRecalculator, "run", _boom)
	before = _runs("region-ranking", "error")

	with pytest.raises(RuntimeError):
		await run_job("region-ranking")

	assert _runs("region-ranking", "error") == before + 1
	assert obs_logging._JOB.get() is None
	assert obs_logging._SEASON_ID.get() is None


def test_scheduler_registers_cron_jobs_in_season_timezone():
	scheduler = build_scheduler()
	assert sorted(scheduler.job_ids()) == ["global-ranking", "region-ranking", "season-rollover"]
	job = scheduler._scheduler.get_job("season-rollover")
	assert str(job.trigger.timezone) == "Asia/Tokyo"
	assert not scheduler.running
