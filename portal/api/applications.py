"""Application submission and status endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from portal.api.deps import WorkflowDep
from portal.schemas.application import (
    ApplicationList,
    ApplicationStatusView,
    SubmitApplicationRequest,
    SubmitApplicationResponse,
    TransitionResult,
    UpdateStatusRequest,
)

router = APIRouter()


@router.post(
    "/submit",
    response_model=SubmitApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_application(body: SubmitApplicationRequest, workflow: WorkflowDep):
    """Submit (or save as draft) the founder's single application."""
    application_id = await workflow.submit(body)
    message = (
        "Application saved as draft" if body.is_draft else "Application submitted successfully"
    )
    return SubmitApplicationResponse(application_id=application_id, message=message)


@router.patch("/update-status", response_model=TransitionResult)
async def update_status(body: UpdateStatusRequest, workflow: WorkflowDep):
    """Move an application to a new status and record it in the history."""
    return await workflow.transition(body.application_id, body.status)


@router.get("/status/{application_id}", response_model=ApplicationStatusView)
async def get_status(application_id: str, workflow: WorkflowDep):
    """Current status plus status history, newest first."""
    return await workflow.current_status(application_id)


@router.get("", response_model=ApplicationList)
async def list_applications(workflow: WorkflowDep):
    """All applications with founder details and status history (admin view)."""
    return ApplicationList(applications=await workflow.list_applications())


@router.get("/fetch", response_model=ApplicationList)
async def fetch_founder_applications(
    email: Annotated[str, Query(min_length=1)],
    workflow: WorkflowDep,
):
    """Applications belonging to one founder."""
    return ApplicationList(applications=await workflow.applications_for_founder(email))
