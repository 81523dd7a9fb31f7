"""Evaluation recording and score aggregation."""

import logging
from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portal.engine.locks import KeyedLock
from portal.errors import (
    ConflictError,
    InvalidScoreError,
    MissingFieldError,
    NotFoundError,
    PersistenceFailure,
)
from portal.models import Evaluation
from portal.models.evaluation import MAX_SCORE, MIN_SCORE
from portal.schemas.evaluation import EvaluationSummary, FeedbackItem
from portal.storage import repositories
from portal.utils.timestamps import ensure_utc, utcnow

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")


def average_score(scores: Iterable[int]) -> float:
    """
    Arithmetic mean rounded to 2 decimals, half-up.
    Empty input averages to 0.
    """
    scores = list(scores)
    if not scores:
        return 0
    mean = Decimal(sum(scores)) / Decimal(len(scores))
    return float(mean.quantize(_CENTS, rounding=ROUND_HALF_UP))


def summarize_scores(evaluations: Sequence[Evaluation]) -> EvaluationSummary:
    """Build the summary for already-loaded evaluations, keeping their order."""
    if not evaluations:
        return EvaluationSummary(average_score=0, total_reviews=0, combined_feedback=[])
    return EvaluationSummary(
        average_score=average_score(ev.score for ev in evaluations),
        total_reviews=len(evaluations),
        combined_feedback=[
            FeedbackItem(
                reviewer_id=ev.reviewer_id,
                score=ev.score,
                feedback=ev.feedback,
                created_at=ensure_utc(ev.created_at),
            )
            for ev in evaluations
        ],
    )


def validate_score(score: object) -> int:
    # bool is an int subclass; True must not count as a score of 1
    if isinstance(score, bool) or not isinstance(score, int):
        raise InvalidScoreError(score, MIN_SCORE, MAX_SCORE)
    if score < MIN_SCORE or score > MAX_SCORE:
        raise InvalidScoreError(score, MIN_SCORE, MAX_SCORE)
    return score


def _require(field: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise MissingFieldError(field)
    return value.strip()


class EvaluationAggregator:
    """Records reviewer evaluations and summarizes them per application."""

    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        locks: KeyedLock | None = None,
    ):
        self._sessions = sessions
        self._locks = locks if locks is not None else KeyedLock()

    async def record_evaluation(
        self, application_id: str, reviewer_id: str, score: object, feedback: str
    ) -> str:
        """Append one evaluation. The application's status is left untouched."""
        score = validate_score(score)
        application_id = _require("applicationId", application_id)
        reviewer_id = _require("reviewerId", reviewer_id)
        feedback = _require("feedback", feedback)

        # Serialized per application so sequence numbers are handed out in order.
        async with self._locks.hold(f"evaluations:{application_id}"):
            try:
                async with self._sessions() as db, db.begin():
                    if not await repositories.application_exists(db, application_id):
                        raise NotFoundError("Application not found")
                    ev = await repositories.create_evaluation(
                        db,
                        application_id=application_id,
                        sequence=await repositories.next_evaluation_sequence(db, application_id),
                        reviewer_id=reviewer_id,
                        score=score,
                        feedback=feedback,
                        created_at=utcnow(),
                    )
                    evaluation_id = ev.evaluation_id
            except IntegrityError as exc:
                logger.warning("Concurrent evaluation on application %s: %s", application_id, exc)
                raise ConflictError("Evaluation was recorded concurrently, retry") from exc
            except SQLAlchemyError as exc:
                logger.exception("Recording evaluation for %s failed", application_id)
                raise PersistenceFailure() from exc

        logger.info(
            "Evaluation %s recorded for %s by %s (score=%d)",
            evaluation_id,
            application_id,
            reviewer_id,
            score,
        )
        return evaluation_id

    async def summarize(self, application_id: str) -> EvaluationSummary:
        """Unknown applications summarize like applications with no reviews."""
        try:
            async with self._sessions() as db:
                evaluations = await repositories.list_evaluations(db, application_id)
        except SQLAlchemyError as exc:
            logger.exception("Loading evaluations for %s failed", application_id)
            raise PersistenceFailure() from exc
        return summarize_scores(evaluations)
