import sys
from datetime import datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from geoshot.domain.ranking.models import likes_collection, post_path
from geoshot.domain.seasons.models import Season, season_bounds, season_path
from geoshot.infra import docstore, postgres
from geoshot.infra.docstore import MemoryDocumentStore
from geoshot.main import app
from geoshot.settings import settings

ADMIN_TOKEN = "test-admin-token"
TOKYO = ZoneInfo("Asia/Tokyo")
FIXED_NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop(*args, **kwargs):
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Pin settings the tests rely on and restore them afterwards."""
	original = {
		"obs_admin_token": settings.obs_admin_token,
		"obs_metrics_public": settings.obs_metrics_public,
		"docstore_backend": settings.docstore_backend,
		"season_timezone": settings.season_timezone,
		"batch_write_limit": settings.batch_write_limit,
		"scheduler_enabled": settings.scheduler_enabled,
	}
	settings.obs_admin_token = ADMIN_TOKEN
	settings.obs_metrics_public = False
	settings.docstore_backend = "memory"
	settings.season_timezone = "Asia/Tokyo"
	settings.batch_write_limit = 500
	settings.scheduler_enabled = False
	try:
		yield
	finally:
		for key, value in original.items():
			setattr(settings, key, value)


@pytest.fixture(autouse=True)
def store():
	memory = MemoryDocumentStore()
	docstore.set_store(memory)
	try:
		yield memory
	finally:
		docstore.set_store(None)


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client


async def seed_season(store, year: int, month: int, *, is_current: bool = True) -> Season:
	start, end = season_bounds(year, month, TOKYO)
	season = Season(
		season_id=f"{year:04d}-{month:02d}",
		is_current=is_current,
		start_date=start,
		end_date=end,
		created_at=start,
	)
	await store.set(season_path(season.season_id), season.to_document())
	return season


async def seed_post(
	store,
	post_id: str,
	*,
	user_id: str,
	season_id: str,
	region_id: str | None = "tokyo",
	likes: int = 0,
	stored_likes: int | None = None,
	score: int | None = None,
) -> None:
	"""Create a post and ``likes`` like documents under it.

	``stored_likes``/``score`` seed stale denormalised counters; they default to
	the real like count.
	"""
	data = {
		"userId": user_id,
		"seasonId": season_id,
		"imageUrl": f"https://img.example/{post_id}.jpg",
		"caption": "",
		"likesCount": likes if stored_likes is None else stored_likes,
		"score": (likes if stored_likes is None else stored_likes) if score is None else score,
		"createdAt": FIXED_NOW,
	}
	if region_id is not None:
		data["regionId"] = region_id
	await store.set(post_path(post_id), data)
	for idx in range(likes):
		await store.set(f"{likes_collection(post_id)}/liker-{idx}", {"userId": f"liker-{idx}", "createdAt": FIXED_NOW})


@pytest.fixture
def make_season(store):
	async def _make(year: int, month: int, *, is_current: bool = True) -> Season:
		return await seed_season(store, year, month, is_current=is_current)

	return _make


@pytest.fixture
def make_post(store):
	async def _make(post_id: str, **kwargs) -> None:
		await seed_post(store, post_id, **kwargs)

	return _make
