"""Evaluation request/response schemas."""

from datetime import datetime

from pydantic import Field, StrictInt

from portal.schemas.base import CamelModel, RequestModel


class ManualScoreRequest(RequestModel):
    """POST /application/evaluation/manual-score request."""

    application_id: str
    reviewer_id: str
    # Strict: true, "8" and 7.0 are rejected rather than coerced to a score
    score: StrictInt
    feedback: str


class ManualScoreResponse(CamelModel):
    evaluation_id: str
    message: str


class FeedbackItem(CamelModel):
    """One reviewer's contribution to the summary."""

    reviewer_id: str
    score: int
    feedback: str
    created_at: datetime


class EvaluationView(FeedbackItem):
    """An evaluation as shown alongside its application."""

    id: str


class EvaluationSummary(CamelModel):
    """Aggregate over all evaluations of an application."""

    average_score: float = 0
    total_reviews: int = 0
    combined_feedback: list[FeedbackItem] = Field(default_factory=list)
