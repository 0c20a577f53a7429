"""Dashboard prefetching: warm the response cache right after login.

Usage:
    python -m placify.app.prefetch --role recruiter --token "$TOKEN"
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from apscheduler.job import Job
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger

from placify.app.config import get_settings
from placify.app.schemas import DashboardData
from placify.app.session import JobBoardSession

logger = structlog.get_logger()


@dataclass(frozen=True)
class DashboardSource:
    """One dashboard request and where its payload lands in DashboardData."""
    field: str
    path: str
    params: dict[str, Any] | None = None
    extract: str | None = None
    many: bool = False


PREFETCH_PLANS: dict[str, tuple[DashboardSource, ...]] = {
    "recruiter": (
        DashboardSource("overview", "/dashboard/recruiter/overview"),
        DashboardSource("jobs", "/jobs/recruiter/stats"),
        DashboardSource("recent_jobs", "/jobs/recruiter/my-jobs", {"limit": 5}, extract="jobs", many=True),
        DashboardSource("applications", "/applications/recruiter/stats"),
    ),
    "student": (
        DashboardSource("overview", "/dashboard/student/overview"),
        DashboardSource("jobs", "/jobs/student/stats"),
        DashboardSource("applications", "/applications/student/stats"),
    ),
    "admin": (
        DashboardSource("overview", "/dashboard/admin/overview"),
        DashboardSource("stats", "/admin/stats"),
    ),
}


def _unwrap(payload: Any, source: DashboardSource) -> Any:
    """Pull the useful part out of a ``{"data": ...}`` API response."""
    value = payload.get("data") if isinstance(payload, dict) else None
    if source.extract is not None:
        value = value.get(source.extract) if isinstance(value, dict) else None
    if value is None and source.many:
        return []
    return value


async def prefetch_dashboard_data(session: JobBoardSession, role: str) -> DashboardData | None:
    """Fetch every dashboard endpoint for ``role`` through the cache.

    Requests run concurrently and settle independently: one failing endpoint
    leaves its field empty instead of failing the whole dashboard.
    """
    plan = PREFETCH_PLANS.get(role)
    if plan is None:
        logger.warning("No prefetch strategy for role", role=role)
        return None

    logger.info("Starting dashboard prefetch", role=role)
    try:
        results = await asyncio.gather(
            *(session.cached_get(s.path, s.params) for s in plan),
            return_exceptions=True,
        )
        fields: dict[str, Any] = {}
        for source, result in zip(plan, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Prefetch request failed",
                    role=role,
                    path=source.path,
                    error=str(result),
                )
                fields[source.field] = [] if source.many else None
            else:
                fields[source.field] = _unwrap(result, source)
        dashboard = DashboardData(role=role, **fields)
    except Exception as e:
        logger.error("Error prefetching dashboard data", role=role, error=str(e))
        return None

    logger.info("Dashboard prefetch complete", role=role)
    return dashboard


def initialize_prefetching(
    session: JobBoardSession,
    role: str | None,
    scheduler: BaseScheduler,
    delay: float | None = None,
) -> Job | None:
    """Schedule a one-off dashboard prefetch shortly after startup."""
    if not role:
        return None
    if delay is None:
        delay = get_settings().prefetch_delay_seconds

    job = scheduler.add_job(
        prefetch_dashboard_data,
        trigger=DateTrigger(run_date=datetime.now(timezone.utc) + timedelta(seconds=delay)),
        args=[session, role],
        id=f"prefetch_{role}",
        name=f"Dashboard prefetch ({role})",
        replace_existing=True,
    )
    logger.info("Dashboard prefetch scheduled", role=role, delay_seconds=delay)
    return job


def _configure_logging(log_level: str) -> None:
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


async def run(role: str, base_url: str | None = None, token: str | None = None) -> DashboardData | None:
    settings = get_settings()
    if base_url:
        settings = settings.model_copy(update={"api_base_url": base_url.rstrip("/")})
    async with JobBoardSession(settings=settings, token_provider=lambda: token) as session:
        return await prefetch_dashboard_data(session, role)


def main():
    parser = argparse.ArgumentParser(
        description="Prefetch dashboard data for a job-board role"
    )
    parser.add_argument(
        "--role",
        required=True,
        choices=sorted(PREFETCH_PLANS),
        help="Dashboard role to prefetch",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="API base URL (default: API_BASE_URL setting)",
    )
    parser.add_argument(
        "--token",
        default=None,
        help="Bearer token for authenticated endpoints",
    )
    args = parser.parse_args()
    _configure_logging(get_settings().log_level)

    dashboard = asyncio.run(run(args.role, base_url=args.base_url, token=args.token))
    if dashboard is None:
        sys.exit(1)
    print(dashboard.model_dump_json(indent=2))


if __name__ == "__main__":
    main()
