"""Reviewer evaluation model."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from portal.database import Base

MIN_SCORE = 1
MAX_SCORE = 10


class Evaluation(Base):
    """Reviewer scores - append-only, several per application."""

    __tablename__ = "evaluations"

    evaluation_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    application_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("applications.application_id"), nullable=False, index=True
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)  # 1-based insertion order
    reviewer_id: Mapped[str] = mapped_column(Text, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    feedback: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("application_id", "sequence", name="uq_evaluations_sequence"),
        CheckConstraint(
            f"score >= {MIN_SCORE} AND score <= {MAX_SCORE}", name="ck_evaluations_score"
        ),
    )
