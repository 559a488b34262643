"""Periodic worker that screens pending applications for automatable roles."""
from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from screening.parser import ResumeParser
from screening.scoring import ScoringEngine
from screening.store import ApplicationItem, ApplicationStore
from screening.types import (
    ActorKind,
    ApplicationStatus,
    AuditEntry,
    CandidateProfile,
    Decision,
    EvaluationState,
    JobType,
    ScoringResult,
)

logger = logging.getLogger(__name__)

BOT_NAME = "Screening bot (automated)"


@dataclass
class ScanReport:
    found: int = 0
    decided: int = 0
    failed: int = 0
    deferred: int = 0
    skipped: int = 0
    aborted: bool = False


class EvaluationWorker:
    """Discover unprocessed applications and score them, one scan at a time.

    Each instance owns its guard: a scan requested while another is running on
    the same worker is dropped rather than queued.
    """

    def __init__(
        self,
        store: ApplicationStore,
        *,
        interval_seconds: float = 30.0,
        automatable_job_type: str = JobType.TECHNICAL.value,
        parser: ResumeParser | None = None,
        engine: ScoringEngine | None = None,
    ) -> None:
        self.store = store
        self.interval_seconds = interval_seconds
        self.automatable_job_type = automatable_job_type
        self.parser = parser or ResumeParser()
        self.engine = engine or ScoringEngine()

        self._guard = asyncio.Lock()
        self._timer: asyncio.Task | None = None
        self._scans: set[asyncio.Task] = set()

        self.processed_count = 0
        self.failed_count = 0
        self.scan_count = 0
        self.last_scan_at: datetime | None = None

    @property
    def is_processing(self) -> bool:
        return self._guard.locked()

    def start(self) -> None:
        """Scan now, then on every interval tick until ``stop`` is awaited."""

        if self._timer is not None and not self._timer.done():
            return
        logger.info("Screening worker started; scanning every %.0fs", self.interval_seconds)
        self._timer = asyncio.create_task(self._tick_forever(), name="screening-worker-timer")

    async def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._timer
            self._timer = None
        if self._scans:
            await asyncio.gather(*self._scans, return_exceptions=True)
        logger.info("Screening worker stopped")

    async def _tick_forever(self) -> None:
        while True:
            self._launch_scan()
            await asyncio.sleep(self.interval_seconds)

    def _launch_scan(self) -> None:
        if self.is_processing:
            logger.debug("Previous scan still running; tick dropped")
            return
        task = asyncio.create_task(self.run_once())
        self._scans.add(task)
        task.add_done_callback(self._scans.discard)

    async def run_once(self) -> ScanReport | None:
        """Run one scan. Returns ``None`` when a scan is already in flight."""

        if self._guard.locked():
            logger.debug("Scan already in progress; request dropped")
            return None
        async with self._guard:
            return await self._scan()

    async def _scan(self) -> ScanReport:
        report = ScanReport()
        self.scan_count += 1
        self.last_scan_at = datetime.utcnow()

        try:
            items = await self.store.find_pending()
        except Exception:  # pylint: disable=broad-except
            logger.exception("Discovery of pending applications failed; retrying next tick")
            report.aborted = True
            return report

        report.found = len(items)
        if items:
            logger.info("Found %d application(s) awaiting screening", len(items))

        for item in items:
            if item.job_type != self.automatable_job_type:
                logger.info("Skipping application %s - %s role", item.id, item.job_type)
                report.skipped += 1
                continue

            outcome = await self.process(item)
            if outcome is EvaluationState.DECIDED:
                report.decided += 1
            elif outcome is EvaluationState.FAILED:
                report.failed += 1
            else:
                report.deferred += 1

        return report

    async def process(self, item: ApplicationItem) -> EvaluationState:
        """Parse, score, persist and audit a single application."""

        started = time.perf_counter()
        try:
            # Parsing and scoring are CPU-bound; keep them off the loop serving requests.
            loop = asyncio.get_running_loop()
            profile, result = await loop.run_in_executor(None, self._screen, item)
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Screening application %s failed", item.id)
            return await self._record_failure(item, exc)

        passed = result.decision is Decision.PASSED
        new_status = ApplicationStatus.REVIEWED.value if passed else ApplicationStatus.REJECTED.value
        new_stage = item.stage_for(new_status)

        try:
            saved = await self.store.save(item, result, new_status, new_stage, profile=profile)
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Persisting evaluation for application %s failed", item.id)
            return await self._record_failure(item, exc)

        if not saved:
            logger.info("Application %s was no longer pending; leaving it untouched", item.id)
            return EvaluationState.PENDING

        entry = AuditEntry(
            application_id=item.id,
            actor_kind=ActorKind.BOT,
            actor_name=BOT_NAME,
            action="application_evaluated",
            details={
                "from_status": item.status,
                "to_status": new_status,
                "score": result.overall_score,
                "confidence": result.confidence,
                "reasoning": result.reasoning,
            },
        )
        try:
            await self.store.append_audit_entry(entry)
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Audit entry for application %s could not be written", item.id)
            try:
                await self.store.annotate_error(item, f"audit append failed: {exc}")
            except Exception:  # pylint: disable=broad-except
                logger.exception("Could not annotate application %s with the audit failure", item.id)

        self.processed_count += 1
        logger.info(
            "Application %s screened in %.2fs: score %d/100, %s (%s -> %s)",
            item.id,
            time.perf_counter() - started,
            result.overall_score,
            result.decision.value,
            item.status,
            new_status,
        )
        return EvaluationState.DECIDED

    def _screen(self, item: ApplicationItem) -> tuple[CandidateProfile, ScoringResult]:
        profile = self.parser.parse(item.resume_text)
        return profile, self.engine.evaluate(profile, item.requirements)

    async def _record_failure(self, item: ApplicationItem, exc: Exception) -> EvaluationState:
        message = f"{type(exc).__name__}: {exc}"
        try:
            await self.store.mark_failed(item, message)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Could not record failure for application %s; it stays pending", item.id)
            return EvaluationState.PENDING

        self.failed_count += 1
        try:
            await self.store.append_audit_entry(
                AuditEntry(
                    application_id=item.id,
                    actor_kind=ActorKind.BOT,
                    actor_name=BOT_NAME,
                    action="evaluation_failed",
                    details={"error": message, "attempt": item.attempts + 1},
                )
            )
        except Exception:  # pylint: disable=broad-except
            logger.exception("Audit entry for failed application %s could not be written", item.id)
        return EvaluationState.FAILED

    def stats(self) -> dict[str, Any]:
        return {
            "total_processed": self.processed_count,
            "total_failed": self.failed_count,
            "is_processing": self.is_processing,
            "scans": self.scan_count,
            "last_scan_at": self.last_scan_at,
        }
