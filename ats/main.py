"""FastAPI entrypoint wiring the ATS shell and the screening worker together."""
from __future__ import annotations

import logging
import time
from collections import Counter
from datetime import datetime
from enum import Enum

from fastapi import Depends, FastAPI, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from ats.analytics import ApplicationRow, build_report
from ats.applications import ApplicationService, DuplicateApplicationError, JobUnavailableError
from ats.config import Settings, configure_logging, get_settings
from ats.database import engine as default_engine
from ats.database import init_models
from ats.dependencies import db_session, settings_provider, store_provider, worker_provider
from ats.models import Application, Job
from ats.schemas import (
    AnalyticsReport,
    ApplicationDetail,
    ApplicationOut,
    ApplicationSubmission,
    DashboardStats,
    HealthStatus,
    JobCreate,
    JobOut,
    JobUpdate,
    ScreeningPreview,
    ScreeningPreviewRequest,
    StatusUpdate,
    TimelineEntry,
)
from ats.store import SqlAlchemyApplicationStore
from screening import EvaluationWorker, ResumeParser, ScoringEngine
from screening.types import DEFAULT_WORKFLOW_STAGES, JobStatus

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, engine: AsyncEngine | None = None) -> FastAPI:
    settings = settings or get_settings()
    engine = engine or default_engine
    configure_logging(settings)
    started_at = time.monotonic()

    app = FastAPI(title="Hybrid ATS", version="0.1.0")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = async_sessionmaker(engine, expire_on_commit=False)
    app.state.store = SqlAlchemyApplicationStore(
        app.state.session_factory,
        max_attempts=settings.max_evaluation_attempts,
        automatable_job_type=settings.automatable_job_type,
    )
    app.state.worker = EvaluationWorker(
        app.state.store,
        interval_seconds=settings.worker_interval_seconds,
        automatable_job_type=settings.automatable_job_type,
    )

    @app.on_event("startup")
    async def _startup() -> None:  # pragma: no cover - framework hook
        await init_models(app.state.engine)
        if settings.worker_enabled:
            app.state.worker.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:  # pragma: no cover - framework hook
        await app.state.worker.stop()
        await app.state.engine.dispose()

    async def load_job(job_id: str, session: AsyncSession) -> Job:
        job = await session.get(Job, job_id)
        if job is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
        return job

    async def load_application(application_id: str, session: AsyncSession) -> Application:
        stmt = select(Application).options(selectinload(Application.job)).where(Application.id == application_id)
        result = await session.execute(stmt)
        application = result.scalar_one_or_none()
        if application is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
        return application

    @app.post("/jobs", response_model=JobOut, status_code=status.HTTP_201_CREATED)
    async def create_job(payload: JobCreate, session: AsyncSession = Depends(db_session)) -> JobOut:
        stages = payload.workflow_stages or list(DEFAULT_WORKFLOW_STAGES)
        job = Job(
            title=payload.title,
            department=payload.department,
            type=payload.type.value,
            status=payload.status.value,
            description=payload.description,
            location=payload.location,
            requirements=payload.requirements.model_dump(),
            workflow_stages=[stage.model_dump() for stage in stages],
        )
        session.add(job)
        await session.commit()
        await session.refresh(job)
        return JobOut.model_validate(job)

    @app.get("/jobs", response_model=list[JobOut])
    async def list_jobs(
        job_status: str | None = None,
        job_type: str | None = None,
        session: AsyncSession = Depends(db_session),
    ) -> list[JobOut]:
        stmt = select(Job).order_by(Job.created_at.desc())
        if job_status:
            stmt = stmt.where(Job.status == job_status)
        if job_type:
            stmt = stmt.where(Job.type == job_type)
        result = await session.execute(stmt)
        return [JobOut.model_validate(job) for job in result.scalars().all()]

    @app.get("/jobs/{job_id}", response_model=JobOut)
    async def get_job(job_id: str, session: AsyncSession = Depends(db_session)) -> JobOut:
        return JobOut.model_validate(await load_job(job_id, session))

    @app.put("/jobs/{job_id}", response_model=JobOut)
    async def update_job(job_id: str, payload: JobUpdate, session: AsyncSession = Depends(db_session)) -> JobOut:
        job = await load_job(job_id, session)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            if isinstance(value, Enum):
                value = value.value
            setattr(job, field, value)
        await session.commit()
        await session.refresh(job)
        logger.info("Job %s updated: %s", job.id, ", ".join(sorted(changes)) or "no changes")
        return JobOut.model_validate(job)

    @app.delete("/jobs/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_job(job_id: str, session: AsyncSession = Depends(db_session)) -> None:
        stmt = (
            select(Job)
            .options(selectinload(Job.applications).selectinload(Application.activity))
            .where(Job.id == job_id)
        )
        job = (await session.execute(stmt)).scalar_one_or_none()
        if job is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
        await session.delete(job)
        await session.commit()
        logger.info("Job %s deleted with %d application(s)", job_id, len(job.applications))

    @app.post(
        "/jobs/{job_id}/applications",
        response_model=ApplicationOut,
        status_code=status.HTTP_201_CREATED,
    )
    async def submit_application(
        job_id: str,
        payload: ApplicationSubmission,
        session: AsyncSession = Depends(db_session),
        settings: Settings = Depends(settings_provider),
    ) -> ApplicationOut:
        job = await load_job(job_id, session)
        service = ApplicationService(settings)
        try:
            application = await service.submit(
                session,
                job=job,
                applicant_name=payload.applicant_name,
                applicant_email=payload.applicant_email,
                resume_text=payload.resume_text,
                cover_letter=payload.cover_letter,
            )
        except JobUnavailableError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Job not available") from exc
        except DuplicateApplicationError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already applied to this job") from exc
        return ApplicationOut.from_model(application)

    @app.get("/applications", response_model=list[ApplicationOut])
    async def list_applications(
        job_id: str | None = None,
        application_status: str | None = None,
        job_type: str | None = None,
        session: AsyncSession = Depends(db_session),
    ) -> list[ApplicationOut]:
        stmt = select(Application).order_by(Application.created_at.desc())
        if job_id:
            stmt = stmt.where(Application.job_id == job_id)
        if application_status:
            stmt = stmt.where(Application.status == application_status)
        if job_type:
            stmt = stmt.join(Job).where(Job.type == job_type)
        result = await session.execute(stmt)
        return [ApplicationOut.from_model(application) for application in result.scalars().all()]

    @app.get("/applications/{application_id}", response_model=ApplicationDetail)
    async def get_application(
        application_id: str,
        session: AsyncSession = Depends(db_session),
        store: SqlAlchemyApplicationStore = Depends(store_provider),
    ) -> ApplicationDetail:
        application = await load_application(application_id, session)
        timeline = await store.timeline(application.id)
        return ApplicationDetail(
            application=ApplicationOut.from_model(application),
            timeline=[TimelineEntry.from_entry(entry) for entry in timeline],
        )

    @app.patch("/applications/{application_id}/status", response_model=ApplicationOut)
    async def update_application_status(
        application_id: str,
        payload: StatusUpdate,
        session: AsyncSession = Depends(db_session),
        settings: Settings = Depends(settings_provider),
    ) -> ApplicationOut:
        application = await load_application(application_id, session)
        service = ApplicationService(settings)
        application = await service.change_status(
            session,
            application=application,
            job=application.job,
            status=payload.status,
            admin_name=payload.admin_name,
            comment=payload.comment,
        )
        return ApplicationOut.from_model(application)

    @app.get("/dashboard/stats", response_model=DashboardStats)
    async def dashboard_stats(
        session: AsyncSession = Depends(db_session),
        worker: EvaluationWorker = Depends(worker_provider),
    ) -> DashboardStats:
        total_jobs = await session.scalar(select(func.count(Job.id)).where(Job.status == JobStatus.PUBLISHED.value))
        rows = (await session.execute(select(Application.status, Application.evaluation_state))).all()
        return DashboardStats(
            total_jobs=total_jobs or 0,
            total_applications=len(rows),
            applications_by_status=dict(Counter(row.status for row in rows)),
            evaluations_by_state=dict(Counter(row.evaluation_state for row in rows)),
            worker=worker.stats(),
        )

    @app.get("/analytics", response_model=AnalyticsReport)
    async def analytics(
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        job_type: str | None = None,
        job_id: str | None = None,
        session: AsyncSession = Depends(db_session),
    ) -> AnalyticsReport:
        stmt = select(
            Application.job_id,
            Job.title,
            Application.status,
            Application.is_processed,
            Application.decision,
            Application.score,
            Application.created_at,
            Application.processed_at,
        ).join(Job)
        if job_id:
            stmt = stmt.where(Application.job_id == job_id)
        if job_type:
            stmt = stmt.where(Job.type == job_type)
        if start_date:
            stmt = stmt.where(Application.created_at >= start_date)
        if end_date:
            stmt = stmt.where(Application.created_at <= end_date)

        result = await session.execute(stmt)
        rows = [ApplicationRow(*row) for row in result.all()]
        return build_report(rows, include_jobs=not job_id)

    @app.get("/health", response_model=HealthStatus)
    async def health(worker: EvaluationWorker = Depends(worker_provider)) -> HealthStatus:
        return HealthStatus(
            timestamp=datetime.utcnow(),
            uptime_seconds=round(time.monotonic() - started_at, 1),
            worker=worker.stats(),
        )

    @app.post("/screening/preview", response_model=ScreeningPreview)
    async def preview_screening(payload: ScreeningPreviewRequest) -> ScreeningPreview:
        profile = ResumeParser().parse(payload.resume_text)
        evaluation = ScoringEngine().evaluate(profile, payload.requirements)
        return ScreeningPreview(profile=profile, evaluation=evaluation)

    return app


app = create_app()
