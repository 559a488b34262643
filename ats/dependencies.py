"""FastAPI dependency helpers."""
from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from ats.config import Settings
from ats.store import SqlAlchemyApplicationStore
from screening import EvaluationWorker


async def db_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.session_factory() as session:
        yield session


def settings_provider(request: Request) -> Settings:
    return request.app.state.settings


def store_provider(request: Request) -> SqlAlchemyApplicationStore:
    return request.app.state.store


def worker_provider(request: Request) -> EvaluationWorker:
    return request.app.state.worker
