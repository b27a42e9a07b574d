"""
CoNekt — Profile helpers

Profile completeness is the share of the twelve core profile fields a user
has filled in, reported as a rounded percentage.  Blank strings do not
count.
"""

from __future__ import annotations

from typing import Any, Mapping

COMPLETENESS_FIELDS: tuple[str, ...] = (
    "name",
    "age",
    "cultural_upbringing",
    "career",
    "favorite_books",
    "favorite_authors",
    "interests",
    "keystone_values",
    "relationship_goals",
    "life_philosophy",
    "hobbies",
    "what_im_looking_for",
)


def calculate_completeness(profile: Mapping[str, Any]) -> int:
    """Return the 0-100 completeness percentage for a profile mapping."""
    filled = sum(
        1
        for field in COMPLETENESS_FIELDS
        if profile.get(field) is not None and str(profile[field]).strip()
    )
    return round(filled / len(COMPLETENESS_FIELDS) * 100)
