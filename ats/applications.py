"""Application intake and manual status changes."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from pathlib import Path

import aiofiles
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ats.config import Settings
from ats.models import ActivityLog, Application, Job
from screening.types import (
    ActorKind,
    ApplicationStatus,
    JobStatus,
    WorkflowStage,
    find_stage,
)

logger = logging.getLogger(__name__)


class JobUnavailableError(Exception):
    """The job is not published, so it does not accept applications."""


class DuplicateApplicationError(Exception):
    """The applicant has already applied to this job."""


class ApplicationService:
    """Persist applications, their résumé text and the matching activity log entries."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def submit(
        self,
        session: AsyncSession,
        *,
        job: Job,
        applicant_name: str,
        applicant_email: str,
        resume_text: str,
        cover_letter: str | None = None,
    ) -> Application:
        if job.status != JobStatus.PUBLISHED.value:
            raise JobUnavailableError(job.id)

        existing = await session.execute(
            select(Application.id).where(
                Application.job_id == job.id, Application.applicant_email == applicant_email.lower()
            )
        )
        if existing.scalar_one_or_none():
            raise DuplicateApplicationError(applicant_email)

        storage_path = self._build_storage_path(job.id)
        async with aiofiles.open(storage_path, "w", encoding="utf-8") as handle:
            await handle.write(resume_text)

        stage = find_stage(_stages(job), ApplicationStatus.APPLIED.value)
        application = Application(
            job_id=job.id,
            applicant_name=applicant_name,
            applicant_email=applicant_email.lower(),
            status=ApplicationStatus.APPLIED.value,
            current_stage_name=ApplicationStatus.APPLIED.value,
            current_stage_order=stage.order if stage else 1,
            stage_entered_at=datetime.utcnow(),
            resume_path=str(storage_path),
            resume_text=resume_text,
            cover_letter=cover_letter,
        )
        session.add(application)
        await session.flush()

        session.add(
            ActivityLog(
                application_id=application.id,
                actor_kind=ActorKind.APPLICANT.value,
                actor_name=applicant_name,
                action="application_submitted",
                details={"to_status": ApplicationStatus.APPLIED.value},
            )
        )
        await session.commit()
        await session.refresh(application)
        logger.info("Application %s received for job %s", application.id, job.id)
        return application

    async def change_status(
        self,
        session: AsyncSession,
        *,
        application: Application,
        job: Job,
        status: ApplicationStatus,
        admin_name: str,
        comment: str | None = None,
    ) -> Application:
        old_status = application.status
        now = datetime.utcnow()
        application.status = status.value
        application.updated_at = now

        stage = find_stage(_stages(job), status.value)
        if stage is not None:
            application.current_stage_name = stage.name
            application.current_stage_order = stage.order
            application.stage_entered_at = now

        if status is ApplicationStatus.REJECTED:
            application.rejection_reason = comment or "Rejected by admin"

        session.add(
            ActivityLog(
                application_id=application.id,
                actor_kind=ActorKind.ADMIN.value,
                actor_name=admin_name,
                action="status_changed",
                details={"from_status": old_status, "to_status": status.value, "comment": comment},
            )
        )
        await session.commit()
        await session.refresh(application)
        logger.info("Application %s moved %s -> %s by %s", application.id, old_status, status.value, admin_name)
        return application

    def _build_storage_path(self, job_id: str) -> Path:
        resume_dir = self.settings.resume_storage_directory
        resume_dir.mkdir(parents=True, exist_ok=True)
        return resume_dir / f"{job_id}_{uuid.uuid4()}.txt"


def _stages(job: Job) -> list[WorkflowStage]:
    return [WorkflowStage.model_validate(stage) for stage in job.workflow_stages or []]
