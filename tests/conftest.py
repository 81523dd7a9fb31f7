"""Shared fixtures: a throwaway SQLite database per test, injected into the services."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from portal.database import Base
from portal.engine.aggregator import EvaluationAggregator
from portal.engine.workflow import WorkflowService
from portal.models import StatusHistory  # noqa: F401  registers tables on Base.metadata
from portal.schemas.application import SubmitApplicationRequest


@pytest_asyncio.fixture
async def sessions(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest.fixture
def workflow(sessions):
    return WorkflowService(sessions)


@pytest.fixture
def aggregator(sessions):
    return EvaluationAggregator(sessions)


def make_submission(email: str = "ada@example.com", **overrides) -> SubmitApplicationRequest:
    fields = {
        "founder_name": "Ada Founder",
        "email": email,
        "startup_name": "Gridlight",
        "idea": "Grid-aware scheduling for home batteries",
        "sector": "Energy",
        "country": "India",
        "tech_stack": "Python,FastAPI",
    }
    fields.update(overrides)
    return SubmitApplicationRequest(**fields)


@pytest_asyncio.fixture
async def application_id(workflow):
    return await workflow.submit(make_submission())
