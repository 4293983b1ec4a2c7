"""
scoring_engine.py – Engagement, grade and dropout-risk scoring
==============================================================
Maps one StudentFeatures record to a ScoredStudent:

  engagement_score   weighted behaviour composite, clamped to [0, 100]
  engagement_persona [70, 100] Highly Engaged · [40, 70) Moderately · [0, 40) At-risk
  predicted_score    weighted academic composite + engagement bonus (no clamp)
  predicted_grade    ≥90 A · ≥80 B · ≥70 C · ≥60 D · else F
  dropout_risk_score inactivity / disengagement / negative sentiment, clamped
  risk_level         [60, 100] High · [30, 60) Medium · [0, 30) Low
  recommendations    2–5 items targeting detected weak areas

Scoring is pure: the only source of variation is the recommendation
generator, which is derived from (seed, student_id) unless the caller opts
into exploratory mode or passes its own ``random.Random``.

Explanation helpers (engagement_reasons, risk_drivers, behavior_profile,
project_improvement) read a ScoredStudent and never modify it.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional, TypeVar

from student_success.config import ScoringConfig
from student_success.guardrails import FeatureGuardrails, GuardrailResult, label_sentiment
from student_success.models import (
    EngagementPersona,
    PredictedGrade,
    RiskLevel,
    ScoredStudent,
    SentimentLabel,
    StudentFeatures,
)
from student_success.recommendations import generate_recommendations

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ─── Threshold bands ──────────────────────────────────────────────────────────
# Descending lower bounds; the last band catches everything below.

PERSONA_BANDS: list[tuple[float, EngagementPersona]] = [
    (70.0, EngagementPersona.HIGHLY_ENGAGED),
    (40.0, EngagementPersona.MODERATELY_ENGAGED),
    (float("-inf"), EngagementPersona.AT_RISK),
]

GRADE_BANDS: list[tuple[float, PredictedGrade]] = [
    (90.0, PredictedGrade.A),
    (80.0, PredictedGrade.B),
    (70.0, PredictedGrade.C),
    (60.0, PredictedGrade.D),
    (float("-inf"), PredictedGrade.F),
]

RISK_BANDS: list[tuple[float, RiskLevel]] = [
    (60.0, RiskLevel.HIGH),
    (30.0, RiskLevel.MEDIUM),
    (float("-inf"), RiskLevel.LOW),
]

# Weak-area flags feeding recommendation generation
WEAK_QUIZ_BELOW        = 60.0
WEAK_ASSIGNMENT_BELOW  = 60.0
WEAK_FORUM_BELOW       = 2.0
WEAK_INACTIVITY_ABOVE  = 7


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _band(value: float, bands: list[tuple[float, T]]) -> T:
    for lower, label in bands:
        if value >= lower:
            return label
    return bands[-1][1]


# ─── Formulas ────────────────────────────────────────────────────────────────

def compute_engagement_score(f: StudentFeatures) -> float:
    # Individual terms may exceed their nominal 0–100 share; the clamp is the only bound.
    raw = (
        f.login_frequency * 0.20
        + (f.session_duration / 120) * 100 * 0.15
        + f.forum_participation * 2 * 0.15
        + f.assignment_access_rate * 100 * 0.20
        + ((10 - f.time_gap_avg) / 10) * 100 * 0.15
        + ((30 - f.inactivity_days) / 30) * 100 * 0.15
    )
    return clamp(raw, 0.0, 100.0)


def classify_persona(engagement_score: float) -> EngagementPersona:
    return _band(engagement_score, PERSONA_BANDS)


def compute_predicted_score(f: StudentFeatures, engagement_score: float) -> float:
    return (
        f.quiz_avg * 0.25
        + f.assignment_avg * 0.25
        + f.exam_avg * 0.30
        + f.ETI_score * 0.10
        + (engagement_score / 100) * 10
    )


def classify_grade(predicted_score: float) -> PredictedGrade:
    return _band(predicted_score, GRADE_BANDS)


def compute_dropout_risk(f: StudentFeatures, engagement_score: float) -> float:
    raw = (
        (f.inactivity_days / 30) * 100 * 0.40
        + ((100 - engagement_score) / 100) * 100 * 0.40
        + ((1 - f.sentiment_score) / 2) * 100 * 0.20
    )
    return clamp(raw, 0.0, 100.0)


def classify_risk(dropout_risk_score: float) -> RiskLevel:
    return _band(dropout_risk_score, RISK_BANDS)


def detect_weak_areas(f: StudentFeatures) -> list[str]:
    """Human-readable deficiency labels, in a fixed order."""
    areas: list[str] = []
    if f.quiz_avg < WEAK_QUIZ_BELOW:
        areas.append("quiz performance")
    if f.assignment_avg < WEAK_ASSIGNMENT_BELOW:
        areas.append("assignment completion")
    if f.forum_participation < WEAK_FORUM_BELOW:
        areas.append("forum engagement")
    if f.inactivity_days > WEAK_INACTIVITY_ABOVE:
        areas.append("consistent activity")
    return areas


# ─── Scoring Engine ───────────────────────────────────────────────────────────

class ScoringEngine:
    """
    Stateless scorer.  One instance can be shared by any number of stores;
    the config only controls how recommendation generators are seeded.
    """

    def __init__(
        self,
        config: Optional[ScoringConfig] = None,
        guardrails: Optional[FeatureGuardrails] = None,
    ):
        self.config = config or ScoringConfig()
        self.guardrails = guardrails or FeatureGuardrails()

    def rng_for(self, student_id: str) -> random.Random:
        """Recommendation generator for *student_id* under the current config."""
        seed = self.config.recommendation_seed
        if seed is None:
            return random.Random()
        # str seeds hash through SHA-512, stable across processes
        return random.Random(f"{seed}:{student_id}")

    def validate(self, f: StudentFeatures) -> GuardrailResult:
        """Raises InvalidFeatureRange on BLOCK violations; returns warnings otherwise."""
        return self.guardrails.enforce(f)

    def score(
        self,
        f: StudentFeatures,
        rng: Optional[random.Random] = None,
    ) -> ScoredStudent:
        self.validate(f)
        return self.score_validated(f, rng)

    def score_validated(
        self,
        f: StudentFeatures,
        rng: Optional[random.Random] = None,
    ) -> ScoredStudent:
        """Score a record that already passed validate()."""
        engagement = compute_engagement_score(f)
        predicted  = compute_predicted_score(f, engagement)
        risk       = compute_dropout_risk(f, engagement)
        weak_areas = detect_weak_areas(f)

        recs = generate_recommendations(
            f.student_id,
            weak_areas,
            rng if rng is not None else self.rng_for(f.student_id),
        )

        scored = ScoredStudent(
            features           = f,
            engagement_score   = engagement,
            engagement_persona = classify_persona(engagement),
            predicted_score    = predicted,
            predicted_grade    = classify_grade(predicted),
            dropout_risk_score = risk,
            risk_level         = classify_risk(risk),
            sentiment_label    = label_sentiment(f.sentiment_score),
            weak_areas         = tuple(weak_areas),
            recommendations    = tuple(recs),
        )
        logger.debug(
            "Scored %s: engagement=%.1f (%s) predicted=%.1f (%s) risk=%.1f (%s)",
            f.student_id,
            engagement, scored.engagement_persona.value,
            predicted, scored.predicted_grade.value,
            risk, scored.risk_level.value,
        )
        return scored


# ─── Explanations ─────────────────────────────────────────────────────────────

def engagement_reasons(s: ScoredStudent) -> list[str]:
    """Top reasons behind the student's engagement persona."""
    f = s.features
    reasons: list[str] = []
    if f.inactivity_days > 7:
        reasons.append(f"{f.inactivity_days} days inactive (above average)")
    if f.forum_participation < 2:
        reasons.append("Low forum participation")
    if s.sentiment_label == SentimentLabel.NEGATIVE:
        reasons.append("Negative feedback sentiment")
    if f.login_frequency < 3:
        reasons.append("Low login frequency")
    if f.time_gap_avg > 5:
        reasons.append(f"High time gap between activities ({f.time_gap_avg:.1f} days avg)")
    if not reasons:
        reasons = ["Consistent engagement patterns", "Good participation in activities"]
    return reasons


def risk_drivers(s: ScoredStudent) -> list[str]:
    f = s.features
    drivers: list[str] = []
    if f.inactivity_days > 10:
        drivers.append(f"High inactivity: {f.inactivity_days} days")
    if s.sentiment_label == SentimentLabel.NEGATIVE:
        drivers.append("Negative sentiment detected")
    if s.engagement_score < 40:
        drivers.append("Low overall engagement")
    if f.time_gap_avg > 7:
        drivers.append("Inconsistent activity pattern")
    if not drivers:
        drivers.append("No major risk factors detected")
    return drivers


def behavior_profile(s: ScoredStudent) -> dict[str, float]:
    """Five behaviour indicators normalised to 0–100 (radar chart input)."""
    f = s.features
    return {
        "Login Freq":       clamp(f.login_frequency / 12 * 100, 0.0, 100.0),
        "Session Duration": clamp(f.session_duration / 120 * 100, 0.0, 100.0),
        "Forum":            clamp(f.forum_participation / 8 * 100, 0.0, 100.0),
        "Assignments":      f.assignment_access_rate * 100,
        "Activity":         clamp((30 - f.inactivity_days) / 30 * 100, 0.0, 100.0),
    }


@dataclass(frozen=True)
class ImprovementProjection:
    current_score:   float
    total_gain:      float
    projected_score: float
    projected_grade: PredictedGrade


def project_improvement(s: ScoredStudent) -> ImprovementProjection:
    """Predicted score if every recommendation were completed."""
    total_gain = sum(r.expected_gain for r in s.recommendations)
    projected  = s.predicted_score + total_gain
    return ImprovementProjection(
        current_score   = s.predicted_score,
        total_gain      = round(total_gain, 1),
        projected_score = projected,
        projected_grade = classify_grade(projected),
    )
