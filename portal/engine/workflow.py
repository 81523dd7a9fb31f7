"""
Application status workflow.

The workflow service is the only writer of ``Application.status``. Every
change happens in one transaction together with the matching ledger entry,
so the current-state projection and the status history never diverge.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from portal.engine.locks import KeyedLock
from portal.errors import ConflictError, InvalidStatusError, NotFoundError, PersistenceFailure
from portal.models import Application, ApplicationStatus, Evaluation, FounderProfile, StatusHistory
from portal.schemas.application import (
    ApplicationStatusView,
    ApplicationView,
    StatusHistoryEntry,
    SubmitApplicationRequest,
    TransitionResult,
)
from portal.schemas.evaluation import EvaluationView
from portal.storage import repositories
from portal.utils.timestamps import ensure_utc, not_before, utcnow

logger = logging.getLogger(__name__)


def parse_status(value: object) -> ApplicationStatus:
    """Map a requested status onto the enum. Matching is exact (case-sensitive)."""
    if isinstance(value, str):
        try:
            return ApplicationStatus(value)
        except ValueError:
            pass
    raise InvalidStatusError(value, ApplicationStatus.values())


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _entry_view(entry: StatusHistory) -> StatusHistoryEntry:
    return StatusHistoryEntry(
        id=entry.entry_id,
        from_status=entry.from_status,
        to_status=entry.to_status,
        created_at=ensure_utc(entry.created_at),
    )


def _evaluation_view(ev: Evaluation) -> EvaluationView:
    return EvaluationView(
        id=ev.evaluation_id,
        reviewer_id=ev.reviewer_id,
        score=ev.score,
        feedback=ev.feedback,
        created_at=ensure_utc(ev.created_at),
    )


def _application_view(
    app: Application,
    founder: FounderProfile,
    history: list[StatusHistory],
    evaluations: list[Evaluation],
) -> ApplicationView:
    return ApplicationView(
        id=app.application_id,
        founder_name=founder.name,
        email=founder.email,
        startup_name=app.startup_name,
        idea=app.idea,
        sector=app.sector,
        country=app.country,
        tech_stack=app.tech_stack,
        is_draft=app.is_draft,
        status=app.status,
        status_updated_at=ensure_utc(app.status_updated_at),
        created_at=ensure_utc(app.created_at),
        status_history=[_entry_view(e) for e in history],
        evaluations=[_evaluation_view(ev) for ev in evaluations],
    )


class WorkflowService:
    """Submission, status transitions and status reads for applications."""

    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        locks: KeyedLock | None = None,
    ):
        self._sessions = sessions
        self._locks = locks if locks is not None else KeyedLock()

    async def submit(self, request: SubmitApplicationRequest) -> str:
        """
        Create the founder's application in APPLIED state with its seed
        ledger entry. A founder (by email) may hold only one application.
        """
        email = normalize_email(request.email)
        async with self._locks.hold(f"founder:{email}"):
            try:
                async with self._sessions() as db, db.begin():
                    now = utcnow()
                    founder = await repositories.get_founder_by_email(db, email)
                    if founder is None:
                        founder = await repositories.create_founder(
                            db, request.founder_name, email, now
                        )
                    elif await repositories.get_application_by_founder(db, founder.founder_id):
                        raise ConflictError("Application already exists for this founder")

                    app = await repositories.create_application(
                        db,
                        founder_id=founder.founder_id,
                        startup_name=request.startup_name,
                        idea=request.idea,
                        sector=request.sector,
                        country=request.country,
                        tech_stack=request.tech_stack,
                        is_draft=request.is_draft,
                        created_at=now,
                    )
                    await repositories.append_history(
                        db,
                        app.application_id,
                        sequence=1,
                        from_status=None,
                        to_status=ApplicationStatus.APPLIED.value,
                        created_at=now,
                    )
                    application_id = app.application_id
            except ConflictError:
                logger.warning("Duplicate application rejected for %s", email)
                raise
            except IntegrityError as exc:
                # Lost the race against another process on the unique founder keys.
                logger.warning("Duplicate application rejected for %s: %s", email, exc.orig)
                raise ConflictError("Application already exists for this founder") from exc
            except SQLAlchemyError as exc:
                logger.exception("Submitting application for %s failed", email)
                raise PersistenceFailure() from exc

        logger.info(
            "Application %s submitted for %s (draft=%s)", application_id, email, request.is_draft
        )
        return application_id

    async def transition(self, application_id: str, requested_status: object) -> TransitionResult:
        """
        Move an application to ``requested_status`` and record the change.

        Any status may move to any status, including itself; a self
        transition still appends a ledger entry. Transitions for one
        application are serialized by the in-process lock and, across
        processes, by the version compare-and-set on the row.
        """
        target = parse_status(requested_status)

        async with self._locks.hold(application_id):
            try:
                async with self._sessions() as db, db.begin():
                    app = await repositories.get_application(db, application_id, for_update=True)
                    if app is None:
                        raise NotFoundError("Application not found")

                    from_status = app.status
                    sequence = app.version + 1
                    now = not_before(app.status_updated_at)
                    app.status = target.value
                    app.status_updated_at = now
                    await db.flush()  # UPDATE ... WHERE version = :loaded

                    await repositories.append_history(
                        db,
                        application_id,
                        sequence=sequence,
                        from_status=from_status,
                        to_status=target.value,
                        created_at=now,
                    )
            except (StaleDataError, IntegrityError) as exc:
                logger.warning("Concurrent update on application %s: %s", application_id, exc)
                raise ConflictError("Application was modified concurrently, retry") from exc
            except SQLAlchemyError as exc:
                logger.exception("Transition of application %s failed", application_id)
                raise PersistenceFailure() from exc

        logger.info("Application %s: %s -> %s", application_id, from_status, target.value)
        return TransitionResult(
            application_id=application_id,
            status=target.value,
            status_updated_at=now,
        )

    async def current_status(self, application_id: str) -> ApplicationStatusView:
        """Current status with the full ledger, newest entry first."""
        try:
            async with self._sessions() as db:
                app = await repositories.get_application(db, application_id)
                if app is None:
                    raise NotFoundError("Application not found")
                history = await repositories.list_history(db, application_id, newest_first=True)
        except SQLAlchemyError as exc:
            logger.exception("Loading status of application %s failed", application_id)
            raise PersistenceFailure() from exc

        return ApplicationStatusView(
            application_id=app.application_id,
            startup_name=app.startup_name,
            current_status=app.status,
            status_updated_at=ensure_utc(app.status_updated_at),
            created_at=ensure_utc(app.created_at),
            status_history=[_entry_view(e) for e in history],
        )

    async def list_applications(self) -> list[ApplicationView]:
        return await self._load_views(founder_email=None)

    async def applications_for_founder(self, email: str) -> list[ApplicationView]:
        return await self._load_views(founder_email=normalize_email(email))

    async def _load_views(self, founder_email: str | None) -> list[ApplicationView]:
        """Applications with founder, ledger and evaluations; all of them, or one founder's."""
        try:
            async with self._sessions() as db:
                founder_id = None
                if founder_email is not None:
                    founder = await repositories.get_founder_by_email(db, founder_email)
                    if founder is None:
                        raise NotFoundError("Founder not found")
                    founder_id = founder.founder_id
                rows = await repositories.list_applications(db, founder_id=founder_id)
                app_ids = [app.application_id for app, _ in rows]
                ledgers = await repositories.list_history_for(db, app_ids)
                evaluations = await repositories.list_evaluations_for(db, app_ids)
        except SQLAlchemyError as exc:
            logger.exception("Loading applications failed")
            raise PersistenceFailure() from exc

        return [
            _application_view(
                app, founder, ledgers[app.application_id], evaluations[app.application_id]
            )
            for app, founder in rows
        ]
