"""Weighted, explainable scoring of a candidate profile against job requirements."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from statistics import pvariance

from screening.similarity import best_match
from screening.taxonomy import GENERIC_CERTIFICATION_WORDS, PREMIUM_CERTIFICATION_KEYWORDS
from screening.types import (
    CandidateProfile,
    Decision,
    ExperienceRange,
    JobRequirements,
    ScoreBreakdown,
    ScoringResult,
)

SKILL_MATCH_THRESHOLD = 0.8
CERTIFICATION_MATCH_THRESHOLD = 0.7
EDUCATION_KEYWORD_RATIO = 0.6
PREMIUM_CERTIFICATION_BONUS = 15
MIN_CONFIDENCE = 0.6


@dataclass
class DimensionScore:
    score: float
    details: str
    matched: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _certification_core(name: str) -> str:
    """Drop words like "certified" so only the vendor and track are compared."""

    words = name.lower().split()
    core = [word for word in words if word not in GENERIC_CERTIFICATION_WORDS]
    return " ".join(core or words)


class ScoringEngine:
    """Score candidates on skills, experience, education and certifications.

    ``evaluate`` is pure and total: any profile and requirement set yields a
    result, and missing requirement lists count as "no requirement".
    """

    def evaluate(self, profile: CandidateProfile, requirements: JobRequirements) -> ScoringResult:
        skills = self.score_skills(profile.skills, requirements.skills)
        experience = self.score_experience(profile.total_experience_years, requirements.experience)
        education = self.score_education(profile.education, requirements.education)
        certifications = self.score_certifications(profile.certifications, requirements.certifications)

        breakdown = ScoreBreakdown(
            skills_score=skills.score,
            experience_score=experience.score,
            education_score=education.score,
            certifications_score=certifications.score,
        )
        weights = requirements.weights
        weighted = (
            skills.score * weights.skills_match
            + experience.score * weights.experience_match
            + education.score * weights.education_match
            + certifications.score * weights.certifications_match
        ) / 100
        overall = int(_clamp(round_half_up(weighted)))

        decision = Decision.PASSED if overall >= requirements.passing_score else Decision.REJECTED

        return ScoringResult(
            overall_score=overall,
            breakdown=breakdown,
            decision=decision,
            reasoning=self.explain(
                overall, requirements.passing_score, decision, skills, experience, education, certifications
            ),
            confidence=self.confidence(breakdown),
            details={
                "skills": skills.details,
                "matched_skills": skills.matched,
                "missing_skills": skills.missing,
                "experience": experience.details,
                "education": education.details,
                "certifications": certifications.details,
            },
        )

    @staticmethod
    def score_skills(candidate_skills: set[str] | list[str], required_skills: list[str]) -> DimensionScore:
        if not required_skills:
            return DimensionScore(100.0, "No specific skills required")

        required = [skill.lower() for skill in required_skills]
        if not candidate_skills:
            return DimensionScore(0.0, "No skills detected in résumé", missing=required)

        candidate = sorted({skill.lower() for skill in candidate_skills})
        matched: list[str] = []
        missing: list[str] = []
        for skill in required:
            if skill in candidate:
                matched.append(skill)
                continue
            closest = best_match(skill, candidate, tokens=False)
            if closest and closest[1] > SKILL_MATCH_THRESHOLD:
                matched.append(skill)
            else:
                missing.append(skill)

        score = len(matched) / len(required) * 100
        extra = len(candidate) - len(matched)
        if extra > 0:
            score += min(extra * 2, 10)

        details = f"Matched {len(matched)}/{len(required)} required skills."
        if extra > 0:
            details += f" +{extra} additional skills."
        return DimensionScore(float(min(round_half_up(score), 100)), details, matched, missing)

    @staticmethod
    def score_experience(candidate_years: int, required: ExperienceRange | None) -> DimensionScore:
        if required is None or required.is_unconstrained:
            return DimensionScore(100.0, "No specific experience requirement")

        span = f"{candidate_years} years experience (required: {required.min}-{required.max} years)"
        if required.min <= candidate_years <= required.max:
            return DimensionScore(100.0, f"{span} - perfect fit")
        if candidate_years > required.max:
            excess = candidate_years - required.max
            return DimensionScore(float(max(85, 100 - excess * 2)), f"{span} - overqualified")
        deficit = required.min - candidate_years
        return DimensionScore(float(max(0, 100 - deficit * 25)), f"{span} - {deficit} years short")

    @staticmethod
    def score_education(candidate_education: list[str], required_education: list[str]) -> DimensionScore:
        if not required_education:
            return DimensionScore(100.0, "No specific education requirement")
        if not candidate_education:
            return DimensionScore(0.0, "No education information found", missing=list(required_education))

        candidate_text = " ".join(candidate_education).lower()
        matched: list[str] = []
        missing: list[str] = []
        for requirement in required_education:
            keywords = requirement.lower().split()
            hits = sum(1 for keyword in keywords if keyword in candidate_text)
            if keywords and hits >= len(keywords) * EDUCATION_KEYWORD_RATIO:
                matched.append(requirement)
            else:
                missing.append(requirement)

        score = round_half_up(len(matched) / len(required_education) * 100)
        details = f"Matched {len(matched)}/{len(required_education)} education requirements"
        return DimensionScore(float(score), details, matched, missing)

    @staticmethod
    def score_certifications(candidate_certs: list[str], required_certs: list[str]) -> DimensionScore:
        if not required_certs:
            if candidate_certs:
                return DimensionScore(100.0, f"{len(candidate_certs)} certifications found (none required)")
            return DimensionScore(100.0, "No certifications required")
        if not candidate_certs:
            return DimensionScore(0.0, "No certifications found", missing=list(required_certs))

        held = [_certification_core(cert) for cert in candidate_certs]
        matched: list[str] = []
        missing: list[str] = []
        for requirement in required_certs:
            closest = best_match(_certification_core(requirement), held)
            if closest and closest[1] > CERTIFICATION_MATCH_THRESHOLD:
                matched.append(requirement)
            else:
                missing.append(requirement)

        score = len(matched) / len(required_certs) * 100
        premium = any(
            keyword in cert.lower() for cert in candidate_certs for keyword in PREMIUM_CERTIFICATION_KEYWORDS
        )
        if premium:
            score += PREMIUM_CERTIFICATION_BONUS

        details = f"Matched {len(matched)}/{len(required_certs)} certifications."
        if premium:
            details += f" Premium certifications detected (+{PREMIUM_CERTIFICATION_BONUS})."
        return DimensionScore(float(min(round_half_up(score), 100)), details, matched, missing)

    @staticmethod
    def confidence(breakdown: ScoreBreakdown) -> float:
        """Uniform sub-scores (all strong or all weak) make a clearer call."""

        variance = pvariance(breakdown.as_list())
        return round(max(MIN_CONFIDENCE, 1 - variance / 1000), 2)

    @staticmethod
    def explain(
        overall: int,
        passing_score: int,
        decision: Decision,
        skills: DimensionScore,
        experience: DimensionScore,
        education: DimensionScore,
        certifications: DimensionScore,
    ) -> str:
        reasoning = f"Overall score: {overall}/100 (threshold: {passing_score}). "

        if decision is Decision.PASSED:
            reasoning += "Candidate passed. "
            strengths = []
            if skills.score >= 80:
                required = len(skills.matched) + len(skills.missing)
                strengths.append(f"Strong skills match ({len(skills.matched)}/{required})")
            if experience.score >= 90:
                strengths.append("Excellent experience level")
            if education.score >= 80:
                strengths.append("Education requirements met")
            if certifications.score >= 80:
                strengths.append("Relevant certifications")
            if strengths:
                reasoning += f"Strengths: {', '.join(strengths)}. "
            return reasoning + "Recommended for next stage."

        reasoning += "Candidate rejected. "
        weaknesses = []
        if skills.score < 60:
            weaknesses.append(f"Skills gap: missing {', '.join(skills.missing)}")
        if experience.score < 50:
            weaknesses.append("Insufficient experience")
        if education.score < 50:
            weaknesses.append("Education requirements not met")
        if weaknesses:
            reasoning += f"Reasons: {'; '.join(weaknesses)}. "
        return reasoning + "Does not meet minimum qualifications."


_default_engine = ScoringEngine()


def evaluate_candidate(profile: CandidateProfile, requirements: JobRequirements) -> ScoringResult:
    return _default_engine.evaluate(profile, requirements)
