"""SQLAlchemy-backed application store used by the screening worker."""
from __future__ import annotations

import logging
from datetime import datetime

from pydantic import ValidationError
from sqlalchemy import Update, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from ats.models import ActivityLog, Application
from screening.errors import PersistenceError
from screening.store import ApplicationItem
from screening.types import (
    ActorKind,
    ApplicationStatus,
    AuditEntry,
    CandidateProfile,
    Decision,
    EvaluationState,
    JobRequirements,
    JobType,
    ScoringResult,
    WorkflowStage,
)

logger = logging.getLogger(__name__)


class SqlAlchemyApplicationStore:
    """Persist screening outcomes in the ``applications`` and ``activity_logs`` tables.

    Every write runs in its own short transaction. ``save`` only touches rows
    that are still unprocessed and in the status the worker read, so a
    decision never overwrites a concurrent manual status change.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        max_attempts: int = 3,
        automatable_job_type: str = JobType.TECHNICAL.value,
    ) -> None:
        self.session_factory = session_factory
        self.max_attempts = max_attempts
        self.automatable_job_type = automatable_job_type

    async def find_pending(self) -> list[ApplicationItem]:
        stmt = (
            select(Application)
            .options(selectinload(Application.job))
            .where(
                Application.is_processed.is_(False),
                Application.status == ApplicationStatus.APPLIED.value,
                Application.evaluation_state.in_([EvaluationState.PENDING.value, EvaluationState.FAILED.value]),
                Application.evaluation_attempts < self.max_attempts,
            )
            .order_by(Application.created_at)
        )

        items: list[ApplicationItem] = []
        async with self.session_factory() as session:
            try:
                result = await session.execute(stmt)
                applications = result.scalars().all()
                for application in applications:
                    try:
                        items.append(self._to_item(application))
                    except ValidationError as exc:
                        logger.warning("Job %s has invalid requirements: %s", application.job_id, exc)
                        # Manual-only roles are never screened, so their rows stay as they are.
                        if application.job.type != self.automatable_job_type:
                            continue
                        application.evaluation_state = EvaluationState.FAILED.value
                        application.evaluation_attempts += 1
                        application.last_error = f"invalid job requirements: {exc.error_count()} error(s)"
                await session.commit()
            except SQLAlchemyError as exc:
                raise PersistenceError("Could not load pending applications") from exc
        return items

    @staticmethod
    def _to_item(application: Application) -> ApplicationItem:
        job = application.job
        return ApplicationItem(
            id=application.id,
            resume_text=application.resume_text or "",
            job_type=job.type,
            requirements=JobRequirements.model_validate(job.requirements or {}),
            workflow_stages=[WorkflowStage.model_validate(stage) for stage in job.workflow_stages or []],
            status=application.status,
            attempts=application.evaluation_attempts,
        )

    async def save(
        self,
        item: ApplicationItem,
        evaluation: ScoringResult,
        new_status: str,
        new_stage: WorkflowStage | None,
        *,
        profile: CandidateProfile,
    ) -> bool:
        now = datetime.utcnow()
        values = {
            "evaluation_state": EvaluationState.DECIDED.value,
            "is_processed": True,
            "processed_at": now,
            "score": evaluation.overall_score,
            "breakdown": evaluation.breakdown.model_dump(),
            "decision": evaluation.decision.value,
            "reasoning": evaluation.reasoning,
            "confidence": evaluation.confidence,
            "evaluation_details": evaluation.details,
            "parsed_data": profile.model_dump(mode="json"),
            "status": new_status,
            "last_error": None,
            "updated_at": now,
        }
        if evaluation.decision is Decision.REJECTED:
            values["rejection_reason"] = evaluation.reasoning
        if new_stage is not None:
            values.update(
                current_stage_name=new_stage.name,
                current_stage_order=new_stage.order,
                stage_entered_at=now,
            )

        stmt = (
            update(Application)
            .where(
                Application.id == item.id,
                Application.is_processed.is_(False),
                Application.status == item.status,
            )
            .values(**values)
        )
        async with self.session_factory() as session:
            try:
                result = await session.execute(stmt)
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise PersistenceError(f"Could not save evaluation for application {item.id}") from exc
        return result.rowcount == 1

    async def mark_failed(self, item: ApplicationItem, error: str) -> None:
        stmt = (
            update(Application)
            .where(Application.id == item.id, Application.is_processed.is_(False))
            .values(
                evaluation_state=EvaluationState.FAILED.value,
                evaluation_attempts=Application.evaluation_attempts + 1,
                last_error=error,
                updated_at=datetime.utcnow(),
            )
        )
        await self._execute(stmt, f"Could not mark application {item.id} as failed")

    async def annotate_error(self, item: ApplicationItem, message: str) -> None:
        stmt = update(Application).where(Application.id == item.id).values(last_error=message)
        await self._execute(stmt, f"Could not annotate application {item.id}")

    async def _execute(self, stmt: Update, failure: str) -> None:
        async with self.session_factory() as session:
            try:
                await session.execute(stmt)
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise PersistenceError(failure) from exc

    async def append_audit_entry(self, entry: AuditEntry) -> None:
        record = ActivityLog(
            application_id=entry.application_id,
            actor_kind=entry.actor_kind.value,
            actor_name=entry.actor_name,
            action=entry.action,
            details=entry.details,
            timestamp=entry.timestamp,
        )
        async with self.session_factory() as session:
            try:
                session.add(record)
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise PersistenceError(f"Could not append audit entry for {entry.application_id}") from exc

    async def timeline(self, application_id: str) -> list[AuditEntry]:
        stmt = (
            select(ActivityLog)
            .where(ActivityLog.application_id == application_id)
            .order_by(ActivityLog.timestamp, ActivityLog.id)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            records = result.scalars().all()
        return [
            AuditEntry(
                application_id=record.application_id,
                actor_kind=ActorKind(record.actor_kind),
                actor_name=record.actor_name,
                action=record.action,
                details=record.details or {},
                timestamp=record.timestamp,
            )
            for record in records
        ]
