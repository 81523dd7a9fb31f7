"""Application and status history models."""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from portal.database import Base


class ApplicationStatus(str, enum.Enum):
    APPLIED = "APPLIED"
    SHORTLISTED = "SHORTLISTED"
    SELECTED = "SELECTED"
    REJECTED = "REJECTED"

    @classmethod
    def values(cls) -> list[str]:
        return [s.value for s in cls]


_STATUS_CHECK = "status IN ('APPLIED', 'SHORTLISTED', 'SELECTED', 'REJECTED')"


class Application(Base):
    """Current-state projection of a founder's submission."""

    __tablename__ = "applications"

    application_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    founder_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("founders.founder_id"), unique=True, nullable=False
    )
    startup_name: Mapped[str] = mapped_column(Text, nullable=False)
    idea: Mapped[str] = mapped_column(Text, nullable=False)
    sector: Mapped[str] = mapped_column(Text, nullable=False)
    country: Mapped[str] = mapped_column(Text, nullable=False)
    tech_stack: Mapped[str] = mapped_column(Text, nullable=False)  # comma separated
    is_draft: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    status_updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # Compare-and-set guard: UPDATE ... WHERE version = :loaded
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (CheckConstraint(_STATUS_CHECK, name="ck_applications_status"),)
    __mapper_args__ = {"version_id_col": version}


class StatusHistory(Base):
    """Status ledger - append-only."""

    __tablename__ = "status_history"

    entry_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    application_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("applications.application_id"), nullable=False, index=True
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    from_status: Mapped[str | None] = mapped_column(String(20), nullable=True)  # null for seed
    to_status: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("application_id", "sequence", name="uq_status_history_sequence"),
        CheckConstraint(
            "to_status IN ('APPLIED', 'SHORTLISTED', 'SELECTED', 'REJECTED')",
            name="ck_status_history_to_status",
        ),
    )
