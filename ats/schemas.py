"""Pydantic schemas for the HTTP API."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ats.models import Application
from screening.types import (
    ActorKind,
    ApplicationStatus,
    AuditEntry,
    CandidateProfile,
    JobRequirements,
    JobStatus,
    JobType,
    ScoringResult,
    WorkflowStage,
)


class JobCreate(BaseModel):
    title: str
    department: str
    type: JobType
    status: JobStatus = JobStatus.PUBLISHED
    description: str
    location: str | None = None
    requirements: JobRequirements = Field(default_factory=JobRequirements)
    workflow_stages: list[WorkflowStage] | None = Field(
        default=None, description="Defaults to Applied → Screening → Reviewed → Interview → Offer / Rejected"
    )


class JobUpdate(BaseModel):
    """Partial job update; only the fields sent are changed."""

    title: str | None = None
    department: str | None = None
    type: JobType | None = None
    status: JobStatus | None = None
    description: str | None = None
    location: str | None = None
    requirements: JobRequirements | None = None
    workflow_stages: list[WorkflowStage] | None = None


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    department: str
    type: JobType
    status: JobStatus
    description: str
    location: str | None = None
    requirements: JobRequirements
    workflow_stages: list[WorkflowStage]
    created_at: datetime


class ApplicationSubmission(BaseModel):
    applicant_name: str
    applicant_email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")
    resume_text: str = Field(..., min_length=1, description="Plain text extracted from the résumé")
    cover_letter: str | None = None


class StatusUpdate(BaseModel):
    status: ApplicationStatus
    comment: str | None = None
    admin_name: str = "Admin"


class StageOut(BaseModel):
    name: str
    order: int
    entered_at: datetime


class EvaluationOut(BaseModel):
    state: str
    is_processed: bool
    processed_at: datetime | None = None
    score: int
    breakdown: dict[str, float] | None = None
    decision: str
    reasoning: str | None = None
    confidence: float | None = None
    attempts: int
    last_error: str | None = None


class ApplicationOut(BaseModel):
    id: str
    job_id: str
    applicant_name: str
    applicant_email: str
    status: str
    current_stage: StageOut
    evaluation: EvaluationOut
    parsed_data: dict[str, Any] | None = None
    rejection_reason: str | None = None
    created_at: datetime

    @classmethod
    def from_model(cls, application: Application) -> ApplicationOut:
        return cls(
            id=application.id,
            job_id=application.job_id,
            applicant_name=application.applicant_name,
            applicant_email=application.applicant_email,
            status=application.status,
            current_stage=StageOut(
                name=application.current_stage_name,
                order=application.current_stage_order,
                entered_at=application.stage_entered_at,
            ),
            evaluation=EvaluationOut(
                state=application.evaluation_state,
                is_processed=application.is_processed,
                processed_at=application.processed_at,
                score=application.score,
                breakdown=application.breakdown,
                decision=application.decision,
                reasoning=application.reasoning,
                confidence=application.confidence,
                attempts=application.evaluation_attempts,
                last_error=application.last_error,
            ),
            parsed_data=application.parsed_data,
            rejection_reason=application.rejection_reason,
            created_at=application.created_at,
        )


class TimelineEntry(BaseModel):
    actor_kind: ActorKind
    actor_name: str | None = None
    action: str
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime

    @classmethod
    def from_entry(cls, entry: AuditEntry) -> TimelineEntry:
        return cls(
            actor_kind=entry.actor_kind,
            actor_name=entry.actor_name,
            action=entry.action,
            details=entry.details,
            timestamp=entry.timestamp,
        )


class ApplicationDetail(BaseModel):
    application: ApplicationOut
    timeline: list[TimelineEntry]


class DashboardStats(BaseModel):
    total_jobs: int
    total_applications: int
    applications_by_status: dict[str, int]
    evaluations_by_state: dict[str, int]
    worker: dict[str, Any]


class AnalyticsOverview(BaseModel):
    total_applications: int
    accepted_applications: int
    rejected_applications: int
    acceptance_rate: float
    avg_processing_minutes: float


class StatusCount(BaseModel):
    status: str
    count: int


class JobBreakdown(BaseModel):
    job_id: str
    title: str
    total: int = 0
    accepted: int = 0
    rejected: int = 0
    pending: int = 0


class FunnelCounts(BaseModel):
    applied: int = 0
    screening: int = 0
    reviewed: int = 0
    interview: int = 0
    offer: int = 0
    rejected: int = 0


class BotPerformance(BaseModel):
    decision: str
    count: int
    avg_score: float


class AnalyticsReport(BaseModel):
    overview: AnalyticsOverview
    status_distribution: list[StatusCount]
    applications_by_job: list[JobBreakdown]
    funnel: FunnelCounts
    bot_performance: list[BotPerformance]


class HealthStatus(BaseModel):
    status: str = "OK"
    timestamp: datetime
    uptime_seconds: float
    worker: dict[str, Any]


class ScreeningPreviewRequest(BaseModel):
    resume_text: str
    requirements: JobRequirements = Field(default_factory=JobRequirements)


class ScreeningPreview(BaseModel):
    profile: CandidateProfile
    evaluation: ScoringResult
