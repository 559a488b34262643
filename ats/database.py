"""Declarative base, default engine and schema creation."""
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from ats.config import settings


class Base(DeclarativeBase):
    """Base class for ATS tables."""


engine = create_async_engine(settings.database_url, echo=False, future=True)


async def init_models(bind: AsyncEngine | None = None) -> None:
    """Create any missing tables on ``bind`` (the configured engine by default)."""

    # Model classes must be registered on Base.metadata before create_all.
    import ats.models  # noqa: F401  pylint: disable=import-outside-toplevel,unused-import

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
