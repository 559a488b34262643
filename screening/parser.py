"""Turn raw résumé text into a structured candidate profile."""
from __future__ import annotations

import logging
import re
from datetime import date

from screening.similarity import best_match
from screening.taxonomy import (
    CANONICAL_SKILLS,
    CERTIFICATION_PATTERNS,
    EDUCATION_KEYWORDS,
    SKILL_PATTERNS,
)
from screening.types import CandidateProfile, ExperienceEntry

logger = logging.getLogger(__name__)

FUZZY_SKILL_THRESHOLD = 0.85
UNSPECIFIED_COMPANY = "Not specified"

_DASHES = re.compile(r"[‒–—―]")
_NOISE = re.compile(r"[^\w\s.,\-()]")
_WHITESPACE = re.compile(r"\s+")
_TOKEN = re.compile(r"[a-z0-9]+")

# "senior engineer at acme corp (2019-2022)"
_TITLE_AT_COMPANY = re.compile(r"([a-z ]+)\s+at\s+([a-z &.]+?)\s*\(?\s*(\d{4})\s*-\s*(\d{4}|present)\s*\)?")
# "2019-2022: senior engineer"
_RANGE_THEN_TITLE = re.compile(r"(\d{4})\s*-\s*(\d{4}|present)\s*:?\s*([a-z ]+)")
_YEAR_RANGE = re.compile(r"(\d{4})\s*-\s*(\d{4}|present)")
_STATED_YEARS = re.compile(r"(\d+)\+?\s*years?\s+(?:of\s+)?experience")


def preprocess(text: str) -> str:
    """Lower-case, drop noise characters and collapse whitespace."""

    text = _DASHES.sub("-", text).lower()
    text = _NOISE.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def _end_year(token: str, as_of: date) -> int:
    return as_of.year if token == "present" else int(token)


def _plausible_range(start: str, end: str) -> bool:
    # date() rejects year 0; anything outside this window is a phone number or an ID.
    return 1900 <= int(start) <= 2100 and (end == "present" or 1900 <= int(end) <= 2100)


def _month_span(start: date, end: date) -> int:
    return max(0, (end.year - start.year) * 12 + (end.month - start.month))


class ResumeParser:
    """Extract skills, experience, education and certifications from plain text.

    Parsing never raises for string input: text without recognisable
    structure yields an empty profile.
    """

    def parse(self, resume_text: str, *, as_of: date | None = None) -> CandidateProfile:
        as_of = as_of or date.today()
        raw = resume_text or ""
        clean = preprocess(raw)
        lines = [preprocess(line) for line in raw.splitlines()]

        profile = CandidateProfile(
            skills=self.extract_skills(clean),
            experience=self.extract_experience(lines, as_of=as_of),
            education=self.extract_education(raw),
            certifications=self.extract_certifications(clean),
            total_experience_years=self.total_experience_years(clean, as_of=as_of),
        )
        logger.debug(
            "Parsed résumé: %d skills, %d roles, %d years",
            len(profile.skills),
            len(profile.experience),
            profile.total_experience_years,
        )
        return profile

    @staticmethod
    def extract_skills(clean_text: str) -> set[str]:
        detected = {
            skill
            for skill, patterns in SKILL_PATTERNS.items()
            if any(pattern.search(clean_text) for pattern in patterns)
        }

        # Fuzzy pass catches typos such as "pythn" or "kubernets".
        for token in set(_TOKEN.findall(clean_text)):
            match = best_match(token, CANONICAL_SKILLS, tokens=False)
            if match and match[1] > FUZZY_SKILL_THRESHOLD:
                detected.add(match[0])
        return detected

    @staticmethod
    def extract_experience(lines: list[str], *, as_of: date) -> list[ExperienceEntry]:
        entries: list[ExperienceEntry] = []
        for line in lines:
            for title, company, start, end in _TITLE_AT_COMPANY.findall(line):
                if _plausible_range(start, end):
                    entries.append(_entry(title, company, start, end, as_of))
            for start, end, title in _RANGE_THEN_TITLE.findall(line):
                if title.strip() and _plausible_range(start, end):
                    entries.append(_entry(title, UNSPECIFIED_COMPANY, start, end, as_of))
        return entries

    @staticmethod
    def extract_education(raw_text: str) -> list[str]:
        found = []
        for line in raw_text.splitlines():
            lowered = line.lower()
            if any(keyword in lowered for keyword in EDUCATION_KEYWORDS):
                found.append(line.strip())
        return found

    @staticmethod
    def extract_certifications(clean_text: str) -> list[str]:
        found = []
        for pattern in CERTIFICATION_PATTERNS:
            match = pattern.search(clean_text)
            if match:
                found.append(match.group(0))
        return found

    @staticmethod
    def total_experience_years(clean_text: str, *, as_of: date) -> int:
        stated = _STATED_YEARS.search(clean_text)
        if stated:
            return int(stated.group(1))

        total_months = sum(
            (_end_year(end, as_of) - int(start)) * 12
            for start, end in _YEAR_RANGE.findall(clean_text)
            if _plausible_range(start, end)
        )
        return max(0, total_months // 12)


def _entry(title: str, company: str, start: str, end: str, as_of: date) -> ExperienceEntry:
    start_date = date(int(start), 1, 1)
    end_date = as_of if end == "present" else date(int(end), 1, 1)
    return ExperienceEntry(
        title=title.strip(),
        company=company.strip(),
        duration_months=_month_span(start_date, end_date),
        start_date=start_date,
        end_date=end_date,
    )


_default_parser = ResumeParser()


def parse_resume(resume_text: str) -> CandidateProfile:
    """Parse ``resume_text`` with the shared default parser."""

    return _default_parser.parse(resume_text)
