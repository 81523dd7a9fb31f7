"""Application request/response schemas."""

from datetime import datetime

from pydantic import Field

from portal.schemas.base import CamelModel, RequestModel
from portal.schemas.evaluation import EvaluationView


class SubmitApplicationRequest(RequestModel):
    """POST /application/submit request."""

    founder_name: str = Field(min_length=1)
    email: str = Field(min_length=3, max_length=320)
    startup_name: str = Field(min_length=1)
    idea: str = Field(min_length=1)
    sector: str = Field(min_length=1)
    country: str = Field(min_length=1)
    tech_stack: str = Field(min_length=1)
    is_draft: bool = False


class SubmitApplicationResponse(CamelModel):
    application_id: str
    message: str


class UpdateStatusRequest(RequestModel):
    """PATCH /application/update-status request.

    ``status`` stays a plain string so unknown values reach the workflow
    service and fail as an invalid status rather than a schema error.
    """

    application_id: str = Field(min_length=1)
    status: str = Field(min_length=1)


class TransitionResult(CamelModel):
    """Outcome of a status transition."""

    application_id: str
    status: str
    status_updated_at: datetime


class StatusHistoryEntry(CamelModel):
    id: str
    from_status: str | None
    to_status: str
    created_at: datetime


class ApplicationStatusView(CamelModel):
    """GET /application/status/{application_id} response."""

    application_id: str
    startup_name: str
    current_status: str
    status_updated_at: datetime
    created_at: datetime
    status_history: list[StatusHistoryEntry] = Field(default_factory=list)  # newest first


class ApplicationView(CamelModel):
    """Application with founder and ledger, as listed for admins and founders."""

    id: str
    founder_name: str
    email: str
    startup_name: str
    idea: str
    sector: str
    country: str
    tech_stack: str
    is_draft: bool
    status: str
    status_updated_at: datetime
    created_at: datetime
    status_history: list[StatusHistoryEntry] = Field(default_factory=list)
    evaluations: list[EvaluationView] = Field(default_factory=list)


class ApplicationList(CamelModel):
    applications: list[ApplicationView] = Field(default_factory=list)
