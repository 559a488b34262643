"""Shared fixtures for the screening and API test suites."""
from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator
from datetime import datetime, timedelta
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ats.database import init_models
from ats.models import Application, Job
from ats.store import SqlAlchemyApplicationStore
from screening.store import ApplicationItem
from screening.types import DEFAULT_WORKFLOW_STAGES, JobRequirements

SAMPLE_RESUME = """\
Jane Doe
PROFESSIONAL SUMMARY
6+ years of experience in software development with expertise in React and Node.js.

TECHNICAL SKILLS
React, Node.js, Python, Docker, Kubernets, Git, Agile

PROFESSIONAL EXPERIENCE
Senior Software Engineer at TechCorp Inc. (2020-2024)
Software Developer at StartupXYZ (2018-2020)

EDUCATION
Bachelor of Engineering in Computer Science
MIT, 2014

CERTIFICATIONS
AWS Certified Solutions Architect
"""

TECHNICAL_REQUIREMENTS: dict[str, Any] = {
    "skills": ["react", "node", "aws"],
    "experience": {"min": 3, "max": 8},
    "education": ["Bachelor Computer Science"],
    "certifications": ["AWS Certified"],
    "weights": {"skillsMatch": 40, "experienceMatch": 30, "educationMatch": 20, "certificationsMatch": 10},
    "passingScore": 70,
}


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def sample_resume() -> str:
    return SAMPLE_RESUME


@pytest.fixture
def sqlite_store():
    """Factory for an isolated in-memory store; use as ``async with sqlite_store() as store``."""

    @contextlib.asynccontextmanager
    async def _open(max_attempts: int = 3) -> AsyncIterator[SqlAlchemyApplicationStore]:
        engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
        try:
            await init_models(engine)
            yield SqlAlchemyApplicationStore(
                async_sessionmaker(engine, expire_on_commit=False), max_attempts=max_attempts
            )
        finally:
            await engine.dispose()

    return _open


async def seed_application(
    store: SqlAlchemyApplicationStore,
    *,
    job_type: str = "technical",
    resume_text: str = SAMPLE_RESUME,
    requirements: dict[str, Any] | None = None,
    status: str = "Applied",
    created_offset: int = 0,
) -> str:
    """Insert a job and one application for it; return the application id."""

    async with store.session_factory() as session:
        job = Job(
            title="Backend Engineer",
            department="Engineering",
            type=job_type,
            description="Build services",
            requirements=TECHNICAL_REQUIREMENTS if requirements is None else requirements,
            workflow_stages=[stage.model_dump() for stage in DEFAULT_WORKFLOW_STAGES],
        )
        session.add(job)
        await session.flush()
        application = Application(
            job_id=job.id,
            applicant_name="Jane Doe",
            applicant_email=f"jane+{job.id}@example.com",
            status=status,
            resume_text=resume_text,
            created_at=datetime(2026, 1, 1) + timedelta(seconds=created_offset),
        )
        session.add(application)
        await session.commit()
        return application.id


def make_item(item_id: str = "app-1", *, job_type: str = "technical", **requirements: Any) -> ApplicationItem:
    return ApplicationItem(
        id=item_id,
        resume_text=SAMPLE_RESUME,
        job_type=job_type,
        requirements=JobRequirements.model_validate(requirements or TECHNICAL_REQUIREMENTS),
        workflow_stages=list(DEFAULT_WORKFLOW_STAGES),
    )


class FakeStore:
    """In-memory stand-in for the application store with switchable failures."""

    def __init__(self, items: list[ApplicationItem] | None = None) -> None:
        self.items = list(items or [])
        self.saved: dict[str, tuple] = {}
        self.failed: dict[str, str] = {}
        self.annotations: dict[str, str] = {}
        self.audit: list = []
        self.find_calls = 0
        self.gate: asyncio.Event | None = None
        self.find_error: Exception | None = None
        self.save_error: Exception | None = None
        self.mark_failed_error: Exception | None = None
        self.audit_error: Exception | None = None

    async def find_pending(self) -> list[ApplicationItem]:
        self.find_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.find_error is not None:
            raise self.find_error
        return [item for item in self.items if item.id not in self.saved]

    async def save(self, item, evaluation, new_status, new_stage, *, profile) -> bool:
        if self.save_error is not None:
            raise self.save_error
        self.saved[item.id] = (evaluation, new_status, new_stage, profile)
        return True

    async def mark_failed(self, item, error: str) -> None:
        if self.mark_failed_error is not None:
            raise self.mark_failed_error
        self.failed[item.id] = error

    async def annotate_error(self, item, message: str) -> None:
        self.annotations[item.id] = message

    async def append_audit_entry(self, entry) -> None:
        if self.audit_error is not None:
            raise self.audit_error
        self.audit.append(entry)

    async def timeline(self, application_id: str) -> list:
        return [entry for entry in self.audit if entry.application_id == application_id]
