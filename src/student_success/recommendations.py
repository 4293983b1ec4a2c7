"""
recommendations.py – Remediation recommendations from weak areas
=================================================================
Builds 2–5 read-only Recommendation payloads for one student.  Every random
draw goes through the ``random.Random`` passed in by the caller, so the same
generator state always yields the same list.
"""

from __future__ import annotations

import random

from student_success.models import Recommendation, RecommendationType


GENERAL_IMPROVEMENT = "general improvement"

CONTENT_TYPES: list[RecommendationType] = list(RecommendationType)

TOPICS: list[str] = [
    "Data Structures",
    "Algorithms",
    "Database Design",
    "Web Development",
    "Software Engineering",
    "Machine Learning",
    "Networks",
    "Operating Systems",
]

MIN_RECOMMENDATIONS = 2
MAX_RECOMMENDATIONS = 5
GAIN_RANGE          = (2.1, 15.0)   # marks, one decimal
MINUTES_RANGE       = (20, 120)


def generate_recommendations(
    student_id: str,
    weak_areas: list[str],
    rng: random.Random,
) -> list[Recommendation]:
    """
    Pair a content type and topic with one of *weak_areas* per item.

    An empty *weak_areas* list targets "general improvement".
    """
    areas = list(weak_areas) or [GENERAL_IMPROVEMENT]
    count = rng.randint(MIN_RECOMMENDATIONS, MAX_RECOMMENDATIONS)

    recs: list[Recommendation] = []
    for i in range(count):
        rec_type  = rng.choice(CONTENT_TYPES)
        topic     = rng.choice(TOPICS)
        weak_area = rng.choice(areas)
        recs.append(Recommendation(
            id                = f"rec-{student_id}-{i}",
            title             = f"{rec_type.value}: {topic}",
            type              = rec_type,
            expected_gain     = round(rng.uniform(*GAIN_RANGE), 1),
            estimated_minutes = rng.randint(*MINUTES_RANGE),
            explanation       = (
                f"This {rec_type.value.lower()} targets {weak_area} and will help "
                f"strengthen your understanding of {topic.lower()}."
            ),
        ))
    return recs
