"""Interface between the screening worker and whatever persists applications."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from screening.types import (
    AuditEntry,
    CandidateProfile,
    JobRequirements,
    ScoringResult,
    WorkflowStage,
    find_stage,
)


@dataclass
class ApplicationItem:
    """One application awaiting automated screening."""

    id: str
    resume_text: str
    job_type: str
    requirements: JobRequirements
    workflow_stages: list[WorkflowStage] = field(default_factory=list)
    status: str = "Applied"
    attempts: int = 0

    def stage_for(self, status: str) -> WorkflowStage | None:
        return find_stage(self.workflow_stages, status)


class ApplicationStore(Protocol):
    async def find_pending(self) -> list[ApplicationItem]:
        """Return unprocessed ``Applied`` items that still have attempts left."""

    async def save(
        self,
        item: ApplicationItem,
        evaluation: ScoringResult,
        new_status: str,
        new_stage: WorkflowStage | None,
        *,
        profile: CandidateProfile,
    ) -> bool:
        """Record a decision atomically; ``False`` when the item was no longer pending."""

    async def mark_failed(self, item: ApplicationItem, error: str) -> None:
        ...

    async def annotate_error(self, item: ApplicationItem, message: str) -> None:
        ...

    async def append_audit_entry(self, entry: AuditEntry) -> None:
        ...

    async def timeline(self, application_id: str) -> list[AuditEntry]:
        ...
