"""Canonical text for jobs and candidate profiles.

These strings are the embedding subjects. Missing fields become empty
strings; nothing here validates.
"""

import hashlib
from typing import Any


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def skill_names(skills: Any) -> list[str]:
    """Flatten a skills field into non-empty names.

    Accepts a list of strings, skill objects (mappings with a ``name`` key),
    or a single comma-separated string.
    """
    if not skills:
        return []
    if isinstance(skills, str):
        skills = skills.split(",")
    names = []
    for skill in skills:
        name = skill.get("name") if isinstance(skill, dict) else skill
        name = _text(name)
        if name:
            names.append(name)
    return names


def full_name(candidate: Any) -> str:
    first = _text(getattr(candidate, "first_name", None))
    last = _text(getattr(candidate, "last_name", None))
    return " ".join(p for p in (first, last) if p)


def build_job_text(job: Any) -> str:
    """Title, description, required skills and location of a job."""
    title = _text(getattr(job, "title", None))
    description = _text(getattr(job, "description", None))
    skills = ", ".join(skill_names(getattr(job, "required_skills", None)))
    location = _text(getattr(job, "location", None))
    return f"{title} {description} skills: {skills} location: {location}".strip()


def build_profile_text(candidate: Any) -> str:
    """Name, position, skills, experience and locations of a candidate."""
    name = full_name(candidate)
    position = _text(getattr(candidate, "current_position", None))
    skills = ", ".join(skill_names(getattr(candidate, "skills", None)))
    experience = _text(getattr(candidate, "experience_years", None))
    current_location = _text(getattr(candidate, "current_location", None))
    preferred_location = _text(getattr(candidate, "preferred_location", None))
    return (
        f"{name} {position} {skills} experience: {experience} "
        f"{current_location} {preferred_location}"
    ).strip()


def profile_text_hash(candidate: Any) -> str:
    """Version of the candidate's canonical text; changes whenever the text does."""
    return hashlib.sha256(build_profile_text(candidate).encode()).hexdigest()
