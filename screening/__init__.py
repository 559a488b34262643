"""Automated résumé screening: parsing, scoring and the evaluation worker."""

from .parser import ResumeParser, parse_resume
from .scoring import ScoringEngine, evaluate_candidate
from .store import ApplicationItem, ApplicationStore
from .worker import EvaluationWorker, ScanReport

__all__ = [
    "ApplicationItem",
    "ApplicationStore",
    "EvaluationWorker",
    "ResumeParser",
    "ScanReport",
    "ScoringEngine",
    "evaluate_candidate",
    "parse_resume",
]
