"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from geoshot.api import ops, seasons, users
from geoshot.api.errors import install_error_handlers
from geoshot.infra import postgres
from geoshot.infra.docstore import get_store
from geoshot.infra.docstore.postgres import ensure_schema
from geoshot.infra.scheduler import JobScheduler, build_scheduler
from geoshot.obs import init as obs_init
from geoshot.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
	uses_postgres = settings.docstore_backend == "postgres"
	if uses_postgres:
		pool = await postgres.init_pool()
		await ensure_schema(pool)
	get_store()
	scheduler: JobScheduler | None = None
	if settings.scheduler_enabled:
		scheduler = build_scheduler()
		scheduler.start()
	app.state.job_scheduler = scheduler
	try:
		yield
	finally:
		if scheduler is not None:
			scheduler.shutdown()
		if uses_postgres:
			await postgres.close_pool()


app = FastAPI(title="Geoshot Ranking", lifespan=lifespan)
install_error_handlers(app)
obs_init()

app.include_router(ops.router)
app.include_router(seasons.router)
app.include_router(users.router)
