"""Pytest configuration and shared fixtures."""

from collections import Counter
from dataclasses import dataclass, field

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, Header, HTTPException, Response

from placify.app.cache.storage import SessionStorage
from placify.app.cache.store import Store
from placify.app.config import Settings, get_settings
from placify.app.session import JobBoardSession

TEST_BASE_URL = "http://testserver/api"
TEST_TOKEN = "secret-token"


@dataclass
class StubApi:
    """A tiny job-board backend that counts the requests it serves."""
    app: FastAPI
    hits: Counter = field(default_factory=Counter)
    jobs: list[int] = field(default_factory=lambda: [1, 2])


def build_stub_api() -> StubApi:
    app = FastAPI(title="Placify stub API")
    stub = StubApi(app=app)

    @app.get("/api/jobs")
    async def list_jobs(page: int = 1):
        stub.hits["GET /jobs"] += 1
        return {"data": {"jobs": list(stub.jobs), "currentPage": page}}

    @app.post("/api/jobs", status_code=201)
    async def create_job():
        stub.hits["POST /jobs"] += 1
        stub.jobs.append(len(stub.jobs) + 1)
        return {"data": {"id": stub.jobs[-1]}}

    @app.get("/api/jobs/recruiter/my-jobs")
    async def my_jobs(limit: int = 10, status: str | None = None):
        stub.hits["GET /jobs/recruiter/my-jobs"] += 1
        return {"data": {"jobs": [{"id": j} for j in stub.jobs[:limit]], "totalJobs": len(stub.jobs)}}

    @app.get("/api/jobs/recruiter/stats")
    async def recruiter_job_stats():
        stub.hits["GET /jobs/recruiter/stats"] += 1
        return {"data": {"active": len(stub.jobs)}}

    @app.get("/api/dashboard/recruiter/overview")
    async def recruiter_overview():
        stub.hits["GET /dashboard/recruiter/overview"] += 1
        return {"data": {"views": 42}}

    @app.get("/api/applications/recruiter/stats")
    async def recruiter_application_stats():
        stub.hits["GET /applications/recruiter/stats"] += 1
        raise HTTPException(status_code=500, detail="stats unavailable")

    @app.get("/api/applications")
    async def list_applications():
        stub.hits["GET /applications"] += 1
        return {"data": {"applications": []}}

    @app.delete("/api/applications/{application_id}")
    async def withdraw_application(application_id: str):
        stub.hits["DELETE /applications"] += 1
        raise HTTPException(status_code=404, detail="application not found")

    @app.get("/api/profile")
    async def get_profile(authorization: str | None = Header(default=None)):
        stub.hits["GET /profile"] += 1
        if authorization != f"Bearer {TEST_TOKEN}":
            raise HTTPException(status_code=401, detail="missing token")
        return {"data": {"role": "recruiter", "name": "Ada"}}

    @app.put("/api/profile")
    async def update_profile():
        stub.hits["PUT /profile"] += 1
        return Response(status_code=204)

    @app.get("/api/ping")
    async def ping():
        stub.hits["GET /ping"] += 1
        return Response(status_code=204)

    @app.get("/api/companies")
    async def list_companies():
        stub.hits["GET /companies"] += 1
        return {"data": {"companies": []}}

    @app.post("/api/companies")
    async def create_company():
        stub.hits["POST /companies"] += 1
        return {"data": {"id": "c1"}}

    return stub


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Reset cached settings so env changes in one test don't leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def api_token():
    return TEST_TOKEN


@pytest.fixture
def settings():
    return Settings(api_base_url=TEST_BASE_URL, _env_file=None)


@pytest.fixture
def storage():
    return SessionStorage()


@pytest.fixture
def store(storage):
    return Store(storage, namespace="placify_cache_")


@pytest.fixture
def stub_api():
    return build_stub_api()


@pytest_asyncio.fixture
async def session(settings, stub_api):
    """Session talking to the stub backend in-process."""
    s = JobBoardSession(
        settings=settings,
        token_provider=lambda: TEST_TOKEN,
        transport=httpx.ASGITransport(app=stub_api.app),
    )
    try:
        yield s
    finally:
        await s.close()
