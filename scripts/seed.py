#!/usr/bin/env python3
"""
Seed script: creates a demo founder application, shortlists it and records
two reviewer evaluations.
Run after migrations: python scripts/seed.py
"""

import asyncio
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from portal.database import async_session_maker, engine
from portal.engine.aggregator import EvaluationAggregator
from portal.engine.workflow import WorkflowService
from portal.errors import ConflictError
from portal.schemas.application import SubmitApplicationRequest

DEMO_EMAIL = "ada@example.com"


async def seed():
    workflow = WorkflowService(async_session_maker)
    aggregator = EvaluationAggregator(async_session_maker)

    try:
        application_id = await workflow.submit(
            SubmitApplicationRequest(
                founder_name="Ada Founder",
                email=DEMO_EMAIL,
                startup_name="Gridlight",
                idea="Grid-aware scheduling for home batteries",
                sector="Energy",
                country="India",
                tech_stack="Python,FastAPI,PostgreSQL",
            )
        )
    except ConflictError:
        print("Demo application already exists, using existing.")
        existing = await workflow.applications_for_founder(DEMO_EMAIL)
        application_id = existing[0].id
    else:
        await workflow.transition(application_id, "SHORTLISTED")
        await aggregator.record_evaluation(
            application_id, "reviewer-1", 8, "Clear market, strong technical founder."
        )
        await aggregator.record_evaluation(
            application_id, "reviewer-2", 7, "Needs a sharper go-to-market plan."
        )

    view = await workflow.current_status(application_id)
    summary = await aggregator.summarize(application_id)
    await engine.dispose()

    print("Seed complete!")
    print(f"Application: {application_id} ({view.current_status})")
    print(f"Average score: {summary.average_score} over {summary.total_reviews} reviews")
    print("Example: curl -X PATCH http://localhost:8000/application/update-status \\")
    print('  -H "Content-Type: application/json" \\')
    print(f'  -d \'{{"applicationId":"{application_id}","status":"SELECTED"}}\'')


if __name__ == "__main__":
    asyncio.run(seed())
