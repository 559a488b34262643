"""Static skill, education and certification taxonomies.

Loaded once at import and exposed read-only.
"""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import NamedTuple


class SkillDefinition(NamedTuple):
    synonyms: tuple[str, ...]
    category: str
    weight: float


_SKILLS: dict[str, SkillDefinition] = {
    # Frontend
    "react": SkillDefinition(("reactjs", "react.js", "react js"), "frontend", 1.0),
    "vue": SkillDefinition(("vuejs", "vue.js", "vue js"), "frontend", 1.0),
    "angular": SkillDefinition(("angularjs", "angular.js"), "frontend", 1.0),
    "javascript": SkillDefinition(("js", "ecmascript", "es6"), "frontend", 1.0),
    "typescript": SkillDefinition(("ts",), "frontend", 1.0),
    "html": SkillDefinition(("html5",), "frontend", 0.8),
    "css": SkillDefinition(("css3", "scss", "sass"), "frontend", 0.8),
    # Backend
    "node": SkillDefinition(("nodejs", "node.js", "node js"), "backend", 1.0),
    "express": SkillDefinition(("expressjs", "express.js"), "backend", 1.0),
    "python": SkillDefinition(("py",), "backend", 1.0),
    "django": SkillDefinition((), "backend", 1.0),
    "flask": SkillDefinition((), "backend", 1.0),
    "java": SkillDefinition((), "backend", 1.0),
    "spring": SkillDefinition(("spring boot", "springboot"), "backend", 1.0),
    # Databases
    "mongodb": SkillDefinition(("mongo",), "database", 1.0),
    "postgresql": SkillDefinition(("postgres", "psql"), "database", 1.0),
    "mysql": SkillDefinition(("sql",), "database", 1.0),
    "redis": SkillDefinition((), "database", 1.0),
    # DevOps and cloud
    "docker": SkillDefinition((), "devops", 1.0),
    "kubernetes": SkillDefinition(("k8s",), "devops", 1.0),
    "aws": SkillDefinition(("amazon web services",), "cloud", 1.0),
    "azure": SkillDefinition(("microsoft azure",), "cloud", 1.0),
    "gcp": SkillDefinition(("google cloud",), "cloud", 1.0),
    # Tools
    "git": SkillDefinition(("github", "gitlab", "bitbucket"), "tools", 0.9),
    "jenkins": SkillDefinition((), "tools", 0.9),
    "jira": SkillDefinition((), "tools", 0.7),
}

SKILL_TAXONOMY = MappingProxyType(_SKILLS)
CANONICAL_SKILLS: tuple[str, ...] = tuple(_SKILLS)

EDUCATION_KEYWORDS: tuple[str, ...] = (
    "bachelor",
    "master",
    "phd",
    "doctorate",
    "diploma",
    "b.tech",
    "b.e",
    "m.tech",
    "m.s",
    "mba",
    "bba",
    "computer science",
    "engineering",
    "information technology",
)

CERTIFICATION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"aws\s+certified",
        r"azure\s+certified",
        r"google\s+cloud\s+certified",
        r"cisco\s+certified",
        r"pmp\s+certified",
        r"certified\s+kubernetes",
        r"oracle\s+certified",
        r"microsoft\s+certified",
        r"certified\s+scrum\s+master",
        r"comptia",
    )
)

PREMIUM_CERTIFICATION_KEYWORDS: tuple[str, ...] = ("aws", "azure", "gcp", "kubernetes", "architect")

# Shared by most certification names; ignored when comparing them.
GENERIC_CERTIFICATION_WORDS: frozenset[str] = frozenset({"certified", "certification", "professional", "associate"})


def skill_pattern(term: str) -> re.Pattern[str]:
    """Whole-word pattern for a skill term; terms may contain dots or spaces."""

    return re.compile(rf"(?<![\w.]){re.escape(term)}(?![\w]|\.\w)", re.IGNORECASE)


SKILL_PATTERNS = MappingProxyType(
    {
        skill: tuple(skill_pattern(term) for term in (skill, *definition.synonyms))
        for skill, definition in _SKILLS.items()
    }
)
