"""Service dependencies for the routers."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portal.database import async_session_maker
from portal.engine.aggregator import EvaluationAggregator
from portal.engine.locks import KeyedLock
from portal.engine.workflow import WorkflowService

# Process-wide, shared by every request's services.
application_locks = KeyedLock()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Persistence handle injected into the services. Overridden in tests."""
    return async_session_maker


SessionFactoryDep = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


def get_workflow(sessions: SessionFactoryDep) -> WorkflowService:
    return WorkflowService(sessions, locks=application_locks)


def get_aggregator(sessions: SessionFactoryDep) -> EvaluationAggregator:
    return EvaluationAggregator(sessions, locks=application_locks)


# Type aliases for dependency injection
WorkflowDep = Annotated[WorkflowService, Depends(get_workflow)]
AggregatorDep = Annotated[EvaluationAggregator, Depends(get_aggregator)]
