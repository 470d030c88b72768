"""Scheduled ranking and season jobs."""

from geoshot.jobs.runner import JOBS, TriggerEvent, UnknownJobError, run_job
from geoshot.jobs import ranking, season  # noqa: F401  registers jobs

__all__ = ["JOBS", "TriggerEvent", "UnknownJobError", "run_job"]
