"""
Impact Normalization - map free-text impact descriptors to Impact.

Calendar sources describe impact as words ("High Impact Expected"),
colours ("red", "ora"), or star/bull counts ("3"). Rules are checked
in order on the lowercased descriptor; the first hit wins and
anything unmatched is LOW.
"""

import re
from typing import Optional

from .models import Impact


IMPACT_RULES: list[tuple[Impact, tuple[str, ...]]] = [
    (Impact.HIGH, ("high", "red", "3")),
    (Impact.MEDIUM, ("medium", "moderate", "orange", "ora", "2")),
]

# Headline keyword rules for news records that carry no impact field.
HEADLINE_IMPACT_RULES: list[tuple[Impact, tuple[str, ...]]] = [
    (Impact.HIGH, (
        "federal reserve", "fed", "fomc", "ecb", "boj", "boe", "bank of england",
        "bank of japan", "bank of canada", "rba", "rbnz", "snb", "central bank",
        "rate decision", "interest rate", "rate hike", "rate cut",
        "non-farm", "nonfarm", "payrolls", "nfp", "cpi", "gdp",
    )),
    (Impact.MEDIUM, (
        "employment", "unemployment", "jobs", "inflation", "retail sales",
        "manufacturing", "pmi", "trade balance", "consumer confidence",
    )),
]


def normalize_impact(descriptor: Optional[str]) -> Impact:
    """Map a descriptor to HIGH, MEDIUM or LOW by ordered substring rules."""
    if descriptor is None:
        return Impact.LOW
    text = str(descriptor).strip().lower()
    if not text:
        return Impact.LOW

    for impact, needles in IMPACT_RULES:
        if any(needle in text for needle in needles):
            return impact
    return Impact.LOW


def impact_from_headline(text: Optional[str]) -> Impact:
    """Estimate impact of a news headline from word-bounded keywords."""
    if not text:
        return Impact.LOW
    lowered = text.lower()
    for impact, keywords in HEADLINE_IMPACT_RULES:
        for keyword in keywords:
            if re.search(r"\b" + re.escape(keyword) + r"\b", lowered):
                return impact
    return Impact.LOW
