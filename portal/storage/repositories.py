"""Repository functions for founders, applications, status history, evaluations."""

from collections.abc import Sequence
from datetime import datetime
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.models import Application, ApplicationStatus, Evaluation, FounderProfile, StatusHistory


async def get_founder_by_email(db: AsyncSession, email: str) -> FounderProfile | None:
    result = await db.execute(select(FounderProfile).where(FounderProfile.email == email))
    return result.scalar_one_or_none()


async def create_founder(
    db: AsyncSession, name: str, email: str, created_at: datetime
) -> FounderProfile:
    founder = FounderProfile(
        founder_id=str(uuid4()),
        name=name,
        email=email,
        created_at=created_at,
    )
    db.add(founder)
    await db.flush()
    return founder


async def get_application(
    db: AsyncSession, application_id: str, for_update: bool = False
) -> Application | None:
    """
    Load an application by ID. ``for_update`` takes a row lock on backends
    that support SELECT ... FOR UPDATE (ignored by SQLite).
    """
    stmt = select(Application).where(Application.application_id == application_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_application_by_founder(db: AsyncSession, founder_id: str) -> Application | None:
    result = await db.execute(select(Application).where(Application.founder_id == founder_id))
    return result.scalar_one_or_none()


async def application_exists(db: AsyncSession, application_id: str) -> bool:
    result = await db.execute(
        select(Application.application_id).where(Application.application_id == application_id)
    )
    return result.scalar_one_or_none() is not None


async def create_application(
    db: AsyncSession,
    founder_id: str,
    startup_name: str,
    idea: str,
    sector: str,
    country: str,
    tech_stack: str,
    is_draft: bool,
    created_at: datetime,
) -> Application:
    """Create an application in APPLIED state. Caller appends the seed ledger entry."""
    app = Application(
        application_id=str(uuid4()),
        founder_id=founder_id,
        startup_name=startup_name,
        idea=idea,
        sector=sector,
        country=country,
        tech_stack=tech_stack,
        is_draft=is_draft,
        status=ApplicationStatus.APPLIED.value,
        status_updated_at=created_at,
        created_at=created_at,
    )
    db.add(app)
    await db.flush()
    return app


async def append_history(
    db: AsyncSession,
    application_id: str,
    sequence: int,
    from_status: str | None,
    to_status: str,
    created_at: datetime,
) -> StatusHistory:
    """Append one ledger entry. Entries are never updated afterwards."""
    entry = StatusHistory(
        entry_id=str(uuid4()),
        application_id=application_id,
        sequence=sequence,
        from_status=from_status,
        to_status=to_status,
        created_at=created_at,
    )
    db.add(entry)
    await db.flush()
    return entry


async def list_history(
    db: AsyncSession, application_id: str, newest_first: bool = True
) -> Sequence[StatusHistory]:
    order = StatusHistory.sequence.desc() if newest_first else StatusHistory.sequence.asc()
    result = await db.execute(
        select(StatusHistory).where(StatusHistory.application_id == application_id).order_by(order)
    )
    return result.scalars().all()


async def list_history_for(
    db: AsyncSession, application_ids: Sequence[str]
) -> dict[str, list[StatusHistory]]:
    """Ledgers for several applications at once, each newest first."""
    grouped: dict[str, list[StatusHistory]] = {app_id: [] for app_id in application_ids}
    if not application_ids:
        return grouped
    result = await db.execute(
        select(StatusHistory)
        .where(StatusHistory.application_id.in_(application_ids))
        .order_by(StatusHistory.application_id, StatusHistory.sequence.desc())
    )
    for entry in result.scalars():
        grouped[entry.application_id].append(entry)
    return grouped


async def list_applications(
    db: AsyncSession, founder_id: str | None = None
) -> Sequence[tuple[Application, FounderProfile]]:
    """Applications joined with their founder, newest first."""
    stmt = (
        select(Application, FounderProfile)
        .join(FounderProfile, FounderProfile.founder_id == Application.founder_id)
        .order_by(Application.created_at.desc())
    )
    if founder_id is not None:
        stmt = stmt.where(Application.founder_id == founder_id)
    result = await db.execute(stmt)
    return [(row[0], row[1]) for row in result.all()]


async def next_evaluation_sequence(db: AsyncSession, application_id: str) -> int:
    """Next insertion position for an application's evaluations."""
    result = await db.execute(
        select(func.coalesce(func.max(Evaluation.sequence), 0)).where(
            Evaluation.application_id == application_id
        )
    )
    return result.scalar_one() + 1


async def create_evaluation(
    db: AsyncSession,
    application_id: str,
    sequence: int,
    reviewer_id: str,
    score: int,
    feedback: str,
    created_at: datetime,
) -> Evaluation:
    ev = Evaluation(
        evaluation_id=str(uuid4()),
        application_id=application_id,
        sequence=sequence,
        reviewer_id=reviewer_id,
        score=score,
        feedback=feedback,
        created_at=created_at,
    )
    db.add(ev)
    await db.flush()
    return ev


async def list_evaluations(db: AsyncSession, application_id: str) -> Sequence[Evaluation]:
    """Evaluations in insertion order."""
    result = await db.execute(
        select(Evaluation)
        .where(Evaluation.application_id == application_id)
        .order_by(Evaluation.sequence.asc())
    )
    return result.scalars().all()


async def list_evaluations_for(
    db: AsyncSession, application_ids: Sequence[str]
) -> dict[str, list[Evaluation]]:
    """Evaluations for several applications at once, each in insertion order."""
    grouped: dict[str, list[Evaluation]] = {app_id: [] for app_id in application_ids}
    if not application_ids:
        return grouped
    result = await db.execute(
        select(Evaluation)
        .where(Evaluation.application_id.in_(application_ids))
        .order_by(Evaluation.application_id, Evaluation.sequence.asc())
    )
    for ev in result.scalars():
        grouped[ev.application_id].append(ev)
    return grouped
