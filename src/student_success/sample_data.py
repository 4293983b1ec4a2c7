"""
sample_data.py
==============
Seeded synthetic cohort used by the demo and the tests.

Each student is drawn from two latent factors (engagement, performance) so
that behaviour, sentiment and grades are correlated the way real cohorts
are.  Only raw StudentFeatures are produced; scoring is left to the engine.

Run:
    python -m student_success.sample_data        # prints 5 records as JSON
"""

from __future__ import annotations

import json
import random
from datetime import datetime, timedelta, timezone
from typing import Optional

from student_success.guardrails import label_sentiment
from student_success.models import TREND_WEEKS, SentimentLabel, StudentFeatures


PROGRAMS = [
    "Computer Science",
    "Data Science",
    "Software Engineering",
    "Information Technology",
    "Cybersecurity",
]

KEYWORDS: dict[SentimentLabel, list[str]] = {
    SentimentLabel.POSITIVE: ["helpful", "engaging", "clear", "interesting", "challenging"],
    SentimentLabel.NEUTRAL:  ["average", "okay", "standard", "basic", "routine"],
    SentimentLabel.NEGATIVE: ["confusing", "difficult", "boring", "unclear", "overwhelming"],
}

FEEDBACK: dict[SentimentLabel, list[str]] = {
    SentimentLabel.POSITIVE: [
        "I really enjoyed this course and learned a lot.",
        "Great instructor and well-structured content.",
    ],
    SentimentLabel.NEUTRAL: [
        "The course was okay, nothing special.",
        "Content was standard, met my expectations.",
    ],
    SentimentLabel.NEGATIVE: [
        "The material was confusing and hard to follow.",
        "Assignments were too difficult without proper guidance.",
    ],
}


def _between(rng: random.Random, lo: float, hi: float) -> float:
    return lo + rng.random() * (hi - lo)


def make_student(index: int, seed: int = 12345, now: Optional[datetime] = None) -> StudentFeatures:
    rng = random.Random(f"{seed}:{index}")
    now = now or datetime.now(timezone.utc)

    engaged = rng.random()
    perf    = _between(rng, 0.3, 1.0)

    inactivity_days = rng.randint(0, int((1 - engaged) * 20 + 5))

    trend: list[float] = []
    level = engaged * 100
    for _ in range(TREND_WEEKS):
        level = min(100.0, max(0.0, level + _between(rng, -10, 10)))
        trend.append(round(level, 1))

    sentiment = round(_between(rng, -0.8, 0.9), 2)
    label = label_sentiment(sentiment)

    def academic() -> float:
        return round(_between(rng, perf * 40 + 30, perf * 30 + 70), 1)

    quiz, assignment, exam, eti = academic(), academic(), academic(), academic()

    return StudentFeatures(
        student_id             = f"STU{index + 1:05d}",
        login_frequency        = round(_between(rng, engaged * 3 + 1, engaged * 12 + 5), 1),
        session_duration       = round(_between(rng, engaged * 30 + 10, engaged * 90 + 30), 1),
        forum_participation    = round(_between(rng, 0, engaged * 8 + 2), 1),
        assignment_access_rate = round(_between(rng, engaged * 0.4 + 0.2, engaged * 0.3 + 0.7), 2),
        time_gap_avg           = round(_between(rng, (1 - engaged) * 5 + 1, (1 - engaged) * 10 + 3), 1),
        inactivity_days        = inactivity_days,
        quiz_avg               = quiz,
        assignment_avg         = assignment,
        exam_avg               = exam,
        ETI_score              = eti,
        time_spent_hours       = round(_between(rng, engaged * 50 + 20, engaged * 80 + 100), 1),
        progress_pct           = round(_between(rng, engaged * 40 + 30, engaged * 20 + 80), 1),
        historical_gpa         = round(_between(rng, perf * 1.5 + 1.5, perf + 3), 2),
        sentiment_score        = sentiment,
        engagement_trend       = trend,
        feedback_texts         = list(FEEDBACK[label]),
        sentiment_label        = label,
        top_keywords           = [rng.choice(KEYWORDS[label]) for _ in range(3)],
        actual_score           = (
            round(min(100.0, max(0.0, (quiz + assignment + exam) / 3 + _between(rng, -5, 5))), 1)
            if rng.random() > 0.3 else None
        ),
        program                = rng.choice(PROGRAMS),
        last_activity          = now - timedelta(days=inactivity_days),
    )


def generate_cohort(size: int = 200, seed: int = 12345, now: Optional[datetime] = None) -> list[StudentFeatures]:
    """*size* students, identical for identical (size, seed, now)."""
    now = now or datetime.now(timezone.utc)
    return [make_student(i, seed=seed, now=now) for i in range(size)]


if __name__ == "__main__":
    for f in generate_cohort(5):
        print(json.dumps(f.to_dict(), indent=2))
