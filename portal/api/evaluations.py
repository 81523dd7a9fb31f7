"""Evaluation endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from portal.api.deps import AggregatorDep
from portal.schemas.evaluation import EvaluationSummary, ManualScoreRequest, ManualScoreResponse

router = APIRouter()


@router.post(
    "/evaluation/manual-score",
    response_model=ManualScoreResponse,
    status_code=status.HTTP_201_CREATED,
)
async def manual_score(body: ManualScoreRequest, aggregator: AggregatorDep):
    """Record one reviewer's score and feedback. Does not change the status."""
    evaluation_id = await aggregator.record_evaluation(
        body.application_id, body.reviewer_id, body.score, body.feedback
    )
    return ManualScoreResponse(
        evaluation_id=evaluation_id, message="Evaluation submitted successfully"
    )


@router.get("/evaluation-summary", response_model=EvaluationSummary)
async def evaluation_summary(
    aggregator: AggregatorDep,
    application_id: Annotated[str, Query(alias="applicationId", min_length=1)],
):
    """Average score, review count and every reviewer's feedback."""
    return await aggregator.summarize(application_id)
