"""Central registry for Prometheus metrics used by the ranking pipeline."""

from __future__ import annotations

from prometheus_client import Counter, Histogram


BACKGROUND_RUNS = Counter(
	"geoshot_jobs_runs_total",
	"Background job executions",
	["name", "result"],
)

BACKGROUND_DURATION = Histogram(
	"geoshot_jobs_duration_seconds",
	"Background job duration",
	["name"],
	buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0),
)

BATCH_COMMITS = Counter(
	"geoshot_docstore_batch_commits_total",
	"Atomic write batches committed against the document store",
	["name"],
)

BATCH_WRITES = Counter(
	"geoshot_docstore_batch_writes_total",
	"Document mutations committed through write batches",
	["name"],
)

ENTITY_FAILURES = Counter(
	"geoshot_ranking_entity_failures_total",
	"Per-entity failures skipped by ranking jobs",
	["name", "kind"],
)

EXPERIENCE_GRANTED = Counter(
	"geoshot_experience_granted_total",
	"Experience points granted at season close",
)

REGION_TOPS_WRITTEN = Counter(
	"geoshot_region_tops_written_total",
	"RegionTop records overwritten by the region leaderboard builder",
)


def record_job_run(name: str, *, result: str, duration_seconds: float | None = None) -> None:
	BACKGROUND_RUNS.labels(name=name, result=result).inc()
	if duration_seconds is not None:
		BACKGROUND_DURATION.labels(name=name).observe(duration_seconds)


def record_batch_commit(name: str, size: int) -> None:
	BATCH_COMMITS.labels(name=name).inc()
	BATCH_WRITES.labels(name=name).inc(size)


def inc_entity_failure(name: str, kind: str) -> None:
	ENTITY_FAILURES.labels(name=name, kind=kind).inc()


def inc_experience_granted(amount: int) -> None:
	if amount > 0:
		EXPERIENCE_GRANTED.inc(amount)


def inc_region_top_written() -> None:
	REGION_TOPS_WRITTEN.inc()
