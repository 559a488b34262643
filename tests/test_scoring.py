"""Tests for the weighted scoring engine."""
from __future__ import annotations

import random

import pytest

from screening.parser import ResumeParser
from screening.scoring import ScoringEngine, evaluate_candidate, round_half_up
from screening.similarity import best_match, similarity
from screening.types import (
    CandidateProfile,
    Decision,
    ExperienceRange,
    JobRequirements,
    ScoreBreakdown,
)


@pytest.fixture
def engine() -> ScoringEngine:
    return ScoringEngine()


class TestSimilarity:
    def test_bounds_and_identity(self):
        assert similarity("python", "python") == 1.0
        assert similarity("", "python") == 0.0
        assert 0.0 <= similarity("aws", "react") < 0.5

    def test_is_case_insensitive(self):
        assert similarity("AWS Certified", "aws certified solutions architect") == 1.0

    def test_best_match(self):
        assert best_match("pythn", ["java", "python"]) == ("python", pytest.approx(0.909, abs=0.001))
        assert best_match("python", []) is None


class TestSkills:
    def test_scenario_a_partial_match_without_bonus(self, engine):
        result = engine.score_skills({"react", "node"}, ["react", "node", "aws"])

        assert result.score == 67
        assert result.matched == ["react", "node"]
        assert result.missing == ["aws"]

    def test_no_requirement_scores_full(self, engine):
        assert engine.score_skills(set(), []).score == 100
        assert engine.score_skills({"react"}, []).score == 100

    def test_candidate_without_skills_scores_zero(self, engine):
        assert engine.score_skills(set(), ["react"]).score == 0

    def test_extra_skills_bonus_is_capped(self, engine):
        candidate = {"react", "python", "docker", "git", "aws", "redis", "jira", "css"}

        result = engine.score_skills(candidate, ["react", "node"])

        # 1/2 matched -> 50, seven extra skills -> +10 at most
        assert result.score == 60

    def test_fuzzy_match_and_case_insensitivity(self, engine):
        result = engine.score_skills({"reactjs", "Python"}, ["React", "PYTHON"])

        assert result.matched == ["react", "python"]
        assert result.score == 100

    @pytest.mark.parametrize("held, required", [("react", "react native"), ("spring", "spring boot")])
    def test_a_narrower_skill_does_not_cover_a_broader_one(self, engine, held, required):
        result = engine.score_skills({held}, [required])

        assert result.matched == []
        assert result.missing == [required]
        # one unmatched extra skill earns the small bonus only
        assert result.score == 2

    def test_typos_still_match(self, engine):
        assert engine.score_skills({"pythn"}, ["python"]).matched == ["python"]


class TestExperience:
    def test_scenario_b_deficit(self, engine):
        assert engine.score_experience(3, ExperienceRange(min=5, max=8)).score == 50

    def test_scenario_c_excess(self, engine):
        assert engine.score_experience(10, ExperienceRange(min=5, max=8)).score == 96

    def test_excess_penalty_floors_at_85(self, engine):
        assert engine.score_experience(30, ExperienceRange(min=5, max=8)).score == 85

    def test_deficit_floors_at_zero(self, engine):
        assert engine.score_experience(0, ExperienceRange(min=6, max=8)).score == 0

    def test_within_range_and_sentinel(self, engine):
        assert engine.score_experience(6, ExperienceRange(min=5, max=8)).score == 100
        assert engine.score_experience(0, ExperienceRange()).score == 100
        assert engine.score_experience(0, None).score == 100


class TestEducation:
    def test_sixty_percent_of_keywords(self, engine):
        candidate = ["Bachelor of Engineering in Computer Science"]

        result = engine.score_education(candidate, ["Bachelor Computer Science", "Master Data Science"])

        assert result.matched == ["Bachelor Computer Science"]
        assert result.score == 50

    def test_missing_sides(self, engine):
        assert engine.score_education([], []).score == 100
        assert engine.score_education([], ["Bachelor"]).score == 0


class TestCertifications:
    def test_scenario_e_premium_bonus_is_clamped(self, engine):
        result = engine.score_certifications(["AWS Certified Solutions Architect"], ["AWS Certified"])

        assert result.matched == ["AWS Certified"]
        assert result.score == 100

    def test_premium_bonus_without_match(self, engine):
        result = engine.score_certifications(["gcp professional"], ["cisco ccna"])

        assert result.matched == []
        assert result.score == 15

    def test_no_requirement_is_full_score_either_way(self, engine):
        assert engine.score_certifications(["comptia"], []).score == 100
        assert engine.score_certifications([], []).score == 100

    def test_required_but_none_held(self, engine):
        assert engine.score_certifications([], ["AWS Certified"]).score == 0

    @pytest.mark.parametrize("required", ["Oracle Certified", "Azure Certified", "Microsoft Certified Professional"])
    def test_shared_generic_words_do_not_match_other_vendors(self, engine, required):
        result = engine.score_certifications(["aws certified"], [required])

        assert result.matched == []
        assert result.missing == [required]
        # only the premium bonus for holding an AWS certification
        assert result.score == 15

    def test_vendor_words_still_match_across_phrasing(self, engine):
        result = engine.score_certifications(
            ["Certified Kubernetes Administrator", "aws certified"],
            ["Kubernetes Certification", "AWS Certified"],
        )

        assert result.matched == ["Kubernetes Certification", "AWS Certified"]
        assert result.score == 100


class TestEvaluate:
    def test_scenario_d_pass_at_threshold(self, engine):
        requirements = JobRequirements(
            certifications=["Oracle Certified"],
            weights={"skills_match": 78, "experience_match": 0, "education_match": 0, "certifications_match": 22},
            passing_score=75,
        )

        result = engine.evaluate(CandidateProfile(skills={"python"}), requirements)

        assert result.overall_score == 78
        assert result.decision is Decision.PASSED
        assert result.reasoning.startswith("Overall score: 78/100 (threshold: 75). Candidate passed.")

    def test_score_equal_to_threshold_passes(self, engine):
        requirements = JobRequirements(passing_score=100)

        assert engine.evaluate(CandidateProfile(), requirements).decision is Decision.PASSED

    def test_scenario_f_empty_profile_is_well_defined(self, engine):
        profile = ResumeParser().parse("Hello there, I enjoy long walks.")
        requirements = JobRequirements(
            skills=["python"],
            experience={"min": 3, "max": 5},
            education=["Bachelor Computer Science"],
            certifications=["AWS Certified"],
        )

        result = engine.evaluate(profile, requirements)

        assert result.breakdown == ScoreBreakdown(
            skills_score=0, experience_score=25, education_score=0, certifications_score=0
        )
        assert result.overall_score == 8
        assert result.decision is Decision.REJECTED
        assert result.confidence == 0.88
        assert "Skills gap: missing python" in result.reasoning
        assert "Insufficient experience" in result.reasoning
        assert result.reasoning.endswith("Does not meet minimum qualifications.")

    def test_full_pipeline_on_sample_resume(self, engine, sample_resume):
        profile = ResumeParser().parse(sample_resume)
        requirements = JobRequirements.model_validate(
            {
                "skills": ["react", "node", "aws"],
                "experience": {"min": 3, "max": 8},
                "education": ["Bachelor Computer Science"],
                "certifications": ["AWS Certified"],
                "passingScore": 70,
            }
        )

        result = engine.evaluate(profile, requirements)

        assert result.breakdown.skills_score == 100
        assert result.overall_score == 100
        assert result.confidence == 1.0
        assert result.decision is Decision.PASSED
        assert "Strong skills match (3/3)" in result.reasoning

    def test_confidence_floor(self, engine):
        breakdown = ScoreBreakdown(skills_score=0, experience_score=100, education_score=0, certifications_score=100)

        assert engine.confidence(breakdown) == 0.6

    def test_camel_case_requirement_documents(self):
        requirements = JobRequirements.model_validate(
            {"weights": {"skillsMatch": 50, "experienceMatch": 50}, "passingScore": 60}
        )

        assert requirements.weights.skills_match == 50
        assert requirements.weights.education_match == 20
        assert requirements.passing_score == 60


def _random_case(rng: random.Random) -> tuple[CandidateProfile, JobRequirements]:
    skills = ["react", "node", "python", "aws", "docker", "java", "go", "rust"]
    certs = ["AWS Certified Developer", "Certified Kubernetes Administrator", "CompTIA Security+", "PMP"]
    degrees = ["Bachelor of Science in Computer Science", "Master of Engineering", "Diploma in IT"]
    profile = CandidateProfile(
        skills=set(rng.sample(skills, rng.randint(0, 5))),
        education=rng.sample(degrees, rng.randint(0, 2)),
        certifications=rng.sample(certs, rng.randint(0, 2)),
        total_experience_years=rng.randint(0, 30),
    )
    low = rng.randint(0, 10)
    requirements = JobRequirements(
        skills=rng.sample(skills, rng.randint(0, 4)),
        experience={"min": low, "max": low + rng.randint(0, 10)},
        education=rng.sample(["Bachelor Computer Science", "Master Engineering", "PhD"], rng.randint(0, 2)),
        certifications=rng.sample(["AWS Certified", "Kubernetes", "CompTIA"], rng.randint(0, 2)),
        weights={
            "skills_match": rng.randint(0, 60),
            "experience_match": rng.randint(0, 40),
            "education_match": rng.randint(0, 20),
            "certifications_match": rng.randint(0, 20),
        },
        passing_score=rng.randint(0, 100),
    )
    return profile, requirements


def test_scores_are_bounded_and_deterministic(engine):
    rng = random.Random(20261018)
    for _ in range(200):
        profile, requirements = _random_case(rng)

        first = engine.evaluate(profile, requirements)
        second = ScoringEngine().evaluate(profile, requirements)

        assert first == second
        assert 0 <= first.overall_score <= 100
        assert 0.6 <= first.confidence <= 1.0
        assert all(0 <= score <= 100 for score in first.breakdown.as_list())
        if not requirements.skills:
            assert first.breakdown.skills_score == 100


@pytest.mark.parametrize("value, expected", [(66.5, 67), (66.49, 66), (0.5, 1), (2.5, 3)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_module_level_helper_matches_engine(sample_resume):
    profile = ResumeParser().parse(sample_resume)

    assert evaluate_candidate(profile, JobRequirements()) == ScoringEngine().evaluate(profile, JobRequirements())
