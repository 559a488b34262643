"""Domain types shared by the parser, the scoring engine and the worker."""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel


class JobType(str, Enum):
    TECHNICAL = "technical"
    NON_TECHNICAL = "non-technical"


class JobStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CLOSED = "closed"


class ApplicationStatus(str, Enum):
    APPLIED = "Applied"
    SCREENING = "Screening"
    REVIEWED = "Reviewed"
    INTERVIEW = "Interview"
    OFFER = "Offer"
    REJECTED = "Rejected"


class Decision(str, Enum):
    PASSED = "passed"
    REJECTED = "rejected"
    PENDING = "pending"


class EvaluationState(str, Enum):
    """Outcome of automated screening for one application.

    ``failed`` items stay eligible for retry until their attempt budget is
    spent; only ``decided`` items are marked processed.
    """

    PENDING = "pending"
    DECIDED = "decided"
    FAILED = "failed"


class ActorKind(str, Enum):
    APPLICANT = "applicant"
    ADMIN = "admin"
    BOT = "bot"


class _CamelModel(BaseModel):
    """Accept both snake_case and the camelCase keys used by stored job documents."""

    model_config = ConfigDict(alias_generator=AliasGenerator(validation_alias=to_camel), populate_by_name=True)


class WorkflowStage(_CamelModel):
    name: str
    order: int
    automatable: bool = False


DEFAULT_WORKFLOW_STAGES: tuple[WorkflowStage, ...] = (
    WorkflowStage(name=ApplicationStatus.APPLIED.value, order=1),
    WorkflowStage(name=ApplicationStatus.SCREENING.value, order=2, automatable=True),
    WorkflowStage(name=ApplicationStatus.REVIEWED.value, order=3),
    WorkflowStage(name=ApplicationStatus.INTERVIEW.value, order=4),
    WorkflowStage(name=ApplicationStatus.OFFER.value, order=5),
    WorkflowStage(name=ApplicationStatus.REJECTED.value, order=99),
)


def find_stage(stages: list[WorkflowStage] | tuple[WorkflowStage, ...], name: str) -> WorkflowStage | None:
    """Return the stage called ``name`` from a job's workflow, if configured."""

    return next((stage for stage in stages if stage.name == name), None)


class ExperienceEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    company: str
    duration_months: int
    start_date: date
    end_date: date


class CandidateProfile(BaseModel):
    skills: set[str] = Field(default_factory=set)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    total_experience_years: int = Field(default=0, ge=0)

    @field_serializer("skills")
    def _sorted_skills(self, skills: set[str]) -> list[str]:
        return sorted(skills)


class ExperienceRange(_CamelModel):
    min: int = Field(default=0, ge=0)
    max: int = Field(default=20, ge=0)

    @property
    def is_unconstrained(self) -> bool:
        return self.min == 0 and self.max == 20


class ScoringWeights(_CamelModel):
    skills_match: float = 40
    experience_match: float = 30
    education_match: float = 20
    certifications_match: float = 10


class JobRequirements(_CamelModel):
    skills: list[str] = Field(default_factory=list)
    experience: ExperienceRange = Field(default_factory=ExperienceRange)
    education: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    passing_score: int = Field(default=70, ge=0, le=100)


class ScoreBreakdown(_CamelModel):
    skills_score: float
    experience_score: float
    education_score: float
    certifications_score: float

    def as_list(self) -> list[float]:
        return [self.skills_score, self.experience_score, self.education_score, self.certifications_score]


class ScoringResult(BaseModel):
    """Scored and explained decision for one candidate against one job."""

    overall_score: int = Field(ge=0, le=100)
    breakdown: ScoreBreakdown
    decision: Decision
    reasoning: str
    confidence: float = Field(ge=0.6, le=1.0)
    details: dict[str, Any] = Field(default_factory=dict)


class AuditEntry(BaseModel):
    application_id: str
    actor_kind: ActorKind
    actor_name: str | None = None
    action: str
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.utcnow)
