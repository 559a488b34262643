"""Hiring-funnel and screening-bot analytics over application rows."""
from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from ats.schemas import (
    AnalyticsOverview,
    AnalyticsReport,
    BotPerformance,
    FunnelCounts,
    JobBreakdown,
    StatusCount,
)
from screening.types import ApplicationStatus

ACCEPTED_STATUSES = frozenset(
    {ApplicationStatus.REVIEWED.value, ApplicationStatus.INTERVIEW.value, ApplicationStatus.OFFER.value}
)
OPEN_STATUSES = frozenset({ApplicationStatus.APPLIED.value, ApplicationStatus.SCREENING.value})
TOP_JOBS = 10


@dataclass
class ApplicationRow:
    job_id: str
    job_title: str
    status: str
    is_processed: bool
    decision: str
    score: int
    created_at: datetime
    processed_at: datetime | None


def build_report(rows: Sequence[ApplicationRow], *, include_jobs: bool = True) -> AnalyticsReport:
    """Aggregate ``rows`` into the analytics payload.

    The per-job breakdown is left empty when the caller already narrowed the
    rows to a single job.
    """

    statuses = Counter(row.status for row in rows)
    accepted = sum(count for status, count in statuses.items() if status in ACCEPTED_STATUSES)
    rejected = statuses[ApplicationStatus.REJECTED.value]
    processing_minutes = [
        (row.processed_at - row.created_at).total_seconds() / 60
        for row in rows
        if row.is_processed and row.processed_at is not None
    ]

    overview = AnalyticsOverview(
        total_applications=len(rows),
        accepted_applications=accepted,
        rejected_applications=rejected,
        acceptance_rate=round(accepted / len(rows) * 100, 2) if rows else 0.0,
        avg_processing_minutes=(
            round(sum(processing_minutes) / len(processing_minutes), 1) if processing_minutes else 0.0
        ),
    )

    return AnalyticsReport(
        overview=overview,
        status_distribution=[
            StatusCount(status=status, count=count) for status, count in statuses.most_common()
        ],
        applications_by_job=_by_job(rows) if include_jobs else [],
        funnel=FunnelCounts(
            applied=statuses[ApplicationStatus.APPLIED.value],
            screening=statuses[ApplicationStatus.SCREENING.value],
            reviewed=statuses[ApplicationStatus.REVIEWED.value],
            interview=statuses[ApplicationStatus.INTERVIEW.value],
            offer=statuses[ApplicationStatus.OFFER.value],
            rejected=rejected,
        ),
        bot_performance=_bot_performance(rows),
    )


def _by_job(rows: Sequence[ApplicationRow]) -> list[JobBreakdown]:
    jobs: dict[str, JobBreakdown] = {}
    for row in rows:
        entry = jobs.setdefault(row.job_id, JobBreakdown(job_id=row.job_id, title=row.job_title))
        entry.total += 1
        if row.status in ACCEPTED_STATUSES:
            entry.accepted += 1
        elif row.status == ApplicationStatus.REJECTED.value:
            entry.rejected += 1
        elif row.status in OPEN_STATUSES:
            entry.pending += 1
    return sorted(jobs.values(), key=lambda entry: entry.total, reverse=True)[:TOP_JOBS]


def _bot_performance(rows: Sequence[ApplicationRow]) -> list[BotPerformance]:
    scores: dict[str, list[int]] = defaultdict(list)
    for row in rows:
        if row.is_processed:
            scores[row.decision].append(row.score)
    return [
        BotPerformance(decision=decision, count=len(values), avg_score=round(sum(values) / len(values), 1))
        for decision, values in sorted(scores.items())
    ]
