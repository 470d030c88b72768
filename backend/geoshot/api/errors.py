"""Global error handlers mapping domain errors to JSON responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from geoshot.domain.ranking.exceptions import RankingError


def install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(RankingError)
	async def ranking_exc_handler(request: Request, exc: RankingError):  # type: ignore[override]
		return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

	@app.exception_handler(RequestValidationError)
	async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
		payload = {"detail": "validation_error", "errors": exc.errors()}
		return JSONResponse(status_code=422, content=payload)
