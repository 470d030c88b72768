import pytest

from geoshot.domain.ranking.score_recalculator import ScoreRecalculator
from geoshot.infra.docstore import BatchCommitError, MemoryDocumentStore


@pytest.mark.asyncio
async def test_recount_overwrites_stale_counters(store, make_post):
	await make_post("p1", user_id="u1", season_id="2025-03", likes=3, stored_likes=10)
	await make_post("p2", user_id="u2", season_id="2025-03", likes=0, stored_likes=4)
	await make_post("old", user_id="u1", season_id="2025-02", likes=1, stored_likes=9)

	summary = await ScoreRecalculator(store).run("2025-03")

	assert summary.posts_seen == 2
	assert summary.posts_updated == 2
	assert summary.batch_sizes == [2]
	p1 = await store.get("posts/p1")
	assert p1.get("likesCount") == 3 and p1.get("score") == 3
	assert p1.get("userId") == "u1"
	p2 = await store.get("posts/p2")
	assert p2.get("likesCount") == 0 and p2.get("score") == 0
	# other seasons are left alone
	assert (await store.get("posts/old")).get("likesCount") == 9


@pytest.mark.asyncio
async def test_recount_is_idempotent(store, make_post):
	await make_post("p1", user_id="u1", season_id="2025-03", likes=5, stored_likes=0)
	await make_post("p2", user_id="u2", season_id="2025-03", likes=2, stored_likes=7)
	recalculator = ScoreRecalculator(store)

	await recalculator.run("2025-03")
	first = {snap.id: (snap.get("likesCount"), snap.get("score")) for snap in await store.query("posts")}
	await recalculator.run("2025-03")
	second = {snap.id: (snap.get("likesCount"), snap.get("score")) for snap in await store.query("posts")}

	assert first == second == {"p1": (5, 5), "p2": (2, 2)}


@pytest.mark.asyncio
async def test_large_season_commits_in_three_batches(store, make_post):
	for idx in range(1001):
		await make_post(f"p{idx:04d}", user_id=f"u{idx % 7}", season_id="2025-03", likes=0, stored_likes=1)

	summary = await ScoreRecalculator(store, batch_size=500).run("2025-03")

	assert summary.batch_sizes == [500, 500, 1]
	assert summary.posts_updated == 1001
	assert (await store.get("posts/p1000")).get("likesCount") == 0


class _FlakyCountStore(MemoryDocumentStore):
	def __init__(self, failing_collection: str) -> None:
		super().__init__()
		self.failing_collection = failing_collection

	async def count(self, collection: str) -> int:
		if collection == self.failing_collection:
			raise RuntimeError("count unavailable")
		return await super().count(collection)


@pytest.mark.asyncio
async def test_failed_post_is_skipped_and_others_updated():
	flaky = _FlakyCountStore("posts/bad/likes")
	for post_id in ("good-1", "bad", "good-2"):
		await flaky.set(f"posts/{post_id}", {"userId": "u1", "seasonId": "2025-03", "likesCount": 9, "score": 9})
	await flaky.set("posts/good-1/likes/u2", {"userId": "u2"})

	summary = await ScoreRecalculator(flaky).run("2025-03")

	assert summary.skipped_post_ids == ["bad"]
	assert summary.posts_updated == 2
	assert (await flaky.get("posts/good-1")).get("likesCount") == 1
	assert (await flaky.get("posts/good-2")).get("likesCount") == 0
	assert (await flaky.get("posts/bad")).get("likesCount") == 9


class _FailingBatchStore(MemoryDocumentStore):
	async def _commit_batch(self, writes):
		raise RuntimeError("backend unavailable")


@pytest.mark.asyncio
async def test_batch_commit_failure_aborts_the_run():
	failing = _FailingBatchStore()
	await failing.set("posts/p1", {"userId": "u1", "seasonId": "2025-03", "likesCount": 4, "score": 4})

	with pytest.raises(BatchCommitError):
		await ScoreRecalculator(failing).run("2025-03")
	assert (await failing.get("posts/p1")).get("likesCount") == 4
