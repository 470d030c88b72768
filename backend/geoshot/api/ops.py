"""Operations endpoints providing health checks, metrics, and job triggers."""

from __future__ import annotations

import dataclasses
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from fastapi.encoders import jsonable_encoder
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from geoshot.jobs import JOBS, TriggerEvent, run_job
from geoshot.settings import settings

router = APIRouter(prefix="", tags=["ops"])


def _resolve_token(x_admin_token: Optional[str], authorization: Optional[str]) -> Optional[str]:
	if x_admin_token:
		return x_admin_token
	if authorization and authorization.lower().startswith("bearer "):
		return authorization.split(" ", 1)[1]
	return None


async def require_admin(
	X_Admin_Token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> None:
	token = settings.obs_admin_token
	if not token:
		# Fail closed: if no token is configured, no admin access is allowed.
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="admin_token_not_configured")
	provided = _resolve_token(X_Admin_Token, authorization)
	if provided != token:
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="forbidden")


async def require_metrics_access(
	X_Admin_Token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> None:
	if settings.obs_metrics_public:
		return
	await require_admin(X_Admin_Token=X_Admin_Token, authorization=authorization)


@router.get("/health/live")
async def health_live() -> dict[str, str]:
	return {"status": "ok"}


@router.get("/metrics")
async def prometheus_metrics(_: None = Depends(require_metrics_access)) -> Response:
	payload = generate_latest()
	return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


def _summary_payload(result: Any) -> Any:
	if result is None:
		return None
	if dataclasses.is_dataclass(result):
		result = dataclasses.asdict(result)
	return jsonable_encoder(result)


@router.post("/ops/jobs/{job_name}")
async def trigger_job(job_name: str, _: None = Depends(require_admin)) -> dict[str, Any]:
	if job_name not in JOBS:
		raise HTTPException(status.HTTP_404_NOT_FOUND, detail="unknown_job")
	try:
		result = await run_job(job_name, TriggerEvent())
	except Exception as exc:
		raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail="job_failed") from exc
	return {
		"status": "skipped" if result is None else "ok",
		"job": job_name,
		"summary": _summary_payload(result),
	}
