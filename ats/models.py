"""Database models for jobs, applications and their activity log."""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ats.database import Base
from screening.types import (
    DEFAULT_WORKFLOW_STAGES,
    ApplicationStatus,
    Decision,
    EvaluationState,
    JobStatus,
)


def _default_stages() -> list[dict]:
    return [stage.model_dump() for stage in DEFAULT_WORKFLOW_STAGES]


class Job(Base):
    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(200))
    department: Mapped[str] = mapped_column(String(120))
    type: Mapped[str] = mapped_column(String(30))
    status: Mapped[str] = mapped_column(String(30), default=JobStatus.PUBLISHED.value)
    description: Mapped[str] = mapped_column(Text)
    location: Mapped[str | None] = mapped_column(String(200))
    requirements: Mapped[dict] = mapped_column(JSON, default=dict)
    workflow_stages: Mapped[list[dict]] = mapped_column(JSON, default=_default_stages)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    applications: Mapped[list[Application]] = relationship(
        "Application", back_populates="job", cascade="all, delete-orphan"
    )


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (Index("ix_applications_job_status", "job_id", "status"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    job_id: Mapped[str] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    applicant_name: Mapped[str] = mapped_column(String(200))
    applicant_email: Mapped[str] = mapped_column(String(320))
    status: Mapped[str] = mapped_column(String(30), default=ApplicationStatus.APPLIED.value)

    current_stage_name: Mapped[str] = mapped_column(String(60), default=ApplicationStatus.APPLIED.value)
    current_stage_order: Mapped[int] = mapped_column(Integer, default=1)
    stage_entered_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    resume_path: Mapped[str | None] = mapped_column(String(255))
    resume_text: Mapped[str] = mapped_column(Text, default="")
    cover_letter: Mapped[str | None] = mapped_column(Text)
    parsed_data: Mapped[dict | None] = mapped_column(JSON)

    evaluation_state: Mapped[str] = mapped_column(String(20), default=EvaluationState.PENDING.value)
    is_processed: Mapped[bool] = mapped_column(Boolean, default=False)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime)
    score: Mapped[int] = mapped_column(Integer, default=0)
    breakdown: Mapped[dict | None] = mapped_column(JSON)
    decision: Mapped[str] = mapped_column(String(20), default=Decision.PENDING.value)
    reasoning: Mapped[str | None] = mapped_column(Text)
    confidence: Mapped[float | None] = mapped_column(Float)
    evaluation_details: Mapped[dict | None] = mapped_column(JSON)
    evaluation_attempts: Mapped[int] = mapped_column(Integer, default=0)
    last_error: Mapped[str | None] = mapped_column(Text)
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    job: Mapped[Job] = relationship("Job", back_populates="applications")
    activity: Mapped[list[ActivityLog]] = relationship(
        "ActivityLog", back_populates="application", cascade="all, delete-orphan"
    )


class ActivityLog(Base):
    __tablename__ = "activity_logs"
    __table_args__ = (Index("ix_activity_logs_application_time", "application_id", "timestamp"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[str] = mapped_column(
        ForeignKey("applications.id", ondelete="CASCADE"), nullable=False
    )
    actor_kind: Mapped[str] = mapped_column(String(20))
    actor_name: Mapped[str | None] = mapped_column(String(200))
    action: Mapped[str] = mapped_column(String(60))
    details: Mapped[dict] = mapped_column(JSON, default=dict)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    application: Mapped[Application] = relationship("Application", back_populates="activity")
