"""
guardrails.py – Feature-range guardrails
========================================
Validates a StudentFeatures record before it reaches the scoring formulas.

Guardrail levels
----------------
BLOCK   – Hard-stop: the record is rejected (InvalidFeatureRange).
WARN    – Soft-stop: the record is scored; the warning is reported.
INFO    – Advisory only.

Guards implemented
------------------
  F-01  student_id is a non-empty string
  F-02  Unbounded behaviour metrics are finite and ≥ 0
  F-03  inactivity_days is a non-negative integer
  F-04  assignment_access_rate in [0, 1]
  F-05  Percentages in [0, 100] (actual_score only when provided)
  F-06  historical_gpa in [0, 4]
  F-07  sentiment_score in [-1, 1]
  F-08  engagement_trend is a list with values in [0, 100]
  F-09  engagement_trend length differs from 12 weeks        [WARN]
  F-10  More than 3 top keywords [WARN]; not a list [BLOCK]
  F-11  sentiment_label disagrees with the score [WARN]; unknown label [BLOCK]
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

from student_success.models import TREND_WEEKS, SentimentLabel, StudentFeatures, coerce_enum


# ─── Enums & data models ─────────────────────────────────────────────────────

class GuardrailLevel(str, Enum):
    BLOCK = "BLOCK"
    WARN  = "WARN"
    INFO  = "INFO"


@dataclass
class GuardrailViolation:
    code:    str
    level:   GuardrailLevel
    message: str
    field:   str = ""   # which field triggered the violation


@dataclass
class GuardrailResult:
    passed:     bool
    violations: list[GuardrailViolation] = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        return any(v.level == GuardrailLevel.BLOCK for v in self.violations)

    @property
    def blocking(self) -> list[GuardrailViolation]:
        return [v for v in self.violations if v.level == GuardrailLevel.BLOCK]

    @property
    def warnings(self) -> list[GuardrailViolation]:
        return [v for v in self.violations if v.level == GuardrailLevel.WARN]

    def summary(self) -> str:
        if not self.violations:
            return "All feature guardrails passed."
        return "\n".join(f"[{v.code}] {v.level.value}: {v.message}" for v in self.violations)


class InvalidFeatureRange(ValueError):
    """A feature lies outside its documented domain; the record is rejected."""

    def __init__(self, student_id: str, violations: list[GuardrailViolation]):
        self.student_id = student_id
        self.violations = violations
        detail = "; ".join(f"[{v.code}] {v.message}" for v in violations)
        super().__init__(f"Student {student_id!r} rejected: {detail}")


# ─── Constant sets ────────────────────────────────────────────────────────────

NON_NEGATIVE_FIELDS = (
    "login_frequency",
    "session_duration",
    "forum_participation",
    "time_gap_avg",
    "time_spent_hours",
)

PERCENT_FIELDS = (
    "quiz_avg",
    "assignment_avg",
    "exam_avg",
    "ETI_score",
    "progress_pct",
)

MAX_KEYWORDS = 3


def _in_range(value, lo: float, hi: float) -> bool:
    # NaN fails both comparisons
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and lo <= value <= hi
    )


def _is_sequence(value) -> bool:
    return isinstance(value, (list, tuple))


def _resolve_label(value):
    """SentimentLabel for *value*, or None when it names no label."""
    try:
        return coerce_enum(SentimentLabel, value)
    except ValueError:
        return None


def label_sentiment(score: float) -> SentimentLabel:
    if score > 0.3:
        return SentimentLabel.POSITIVE
    if score < -0.3:
        return SentimentLabel.NEGATIVE
    return SentimentLabel.NEUTRAL


# ─── Guardrails ──────────────────────────────────────────────────────────────

class FeatureGuardrails:
    """F-01 – F-11: validates one StudentFeatures record."""

    def check(self, f: StudentFeatures) -> GuardrailResult:
        violations: list[GuardrailViolation] = []

        # F-01 Identity
        if not isinstance(f.student_id, str) or not f.student_id.strip():
            violations.append(GuardrailViolation(
                code="F-01", level=GuardrailLevel.BLOCK, field="student_id",
                message="student_id must be a non-empty string.",
            ))

        # F-02 Non-negative behaviour metrics
        for name in NON_NEGATIVE_FIELDS:
            value = getattr(f, name)
            if not _in_range(value, 0.0, math.inf) or math.isinf(value):
                violations.append(GuardrailViolation(
                    code="F-02", level=GuardrailLevel.BLOCK, field=name,
                    message=f"{name} = {value!r} must be a finite number ≥ 0.",
                ))

        # F-03 Inactivity days
        if (isinstance(f.inactivity_days, bool)
                or not isinstance(f.inactivity_days, int)
                or f.inactivity_days < 0):
            violations.append(GuardrailViolation(
                code="F-03", level=GuardrailLevel.BLOCK, field="inactivity_days",
                message=f"inactivity_days = {f.inactivity_days!r} must be a non-negative integer.",
            ))

        # F-04 Rates
        if not _in_range(f.assignment_access_rate, 0.0, 1.0):
            violations.append(GuardrailViolation(
                code="F-04", level=GuardrailLevel.BLOCK, field="assignment_access_rate",
                message=f"assignment_access_rate {f.assignment_access_rate!r} out of [0, 1] range.",
            ))

        # F-05 Percentages
        percent_fields = list(PERCENT_FIELDS)
        if f.actual_score is not None:
            percent_fields.append("actual_score")
        for name in percent_fields:
            value = getattr(f, name)
            if not _in_range(value, 0.0, 100.0):
                violations.append(GuardrailViolation(
                    code="F-05", level=GuardrailLevel.BLOCK, field=name,
                    message=f"{name} {value!r} out of [0, 100] range.",
                ))

        # F-06 GPA
        if not _in_range(f.historical_gpa, 0.0, 4.0):
            violations.append(GuardrailViolation(
                code="F-06", level=GuardrailLevel.BLOCK, field="historical_gpa",
                message=f"historical_gpa {f.historical_gpa!r} out of [0, 4] range.",
            ))

        # F-07 Sentiment
        if not _in_range(f.sentiment_score, -1.0, 1.0):
            violations.append(GuardrailViolation(
                code="F-07", level=GuardrailLevel.BLOCK, field="sentiment_score",
                message=f"sentiment_score {f.sentiment_score!r} out of [-1, 1] range.",
            ))

        # F-08 Trend values
        if not _is_sequence(f.engagement_trend):
            violations.append(GuardrailViolation(
                code="F-08", level=GuardrailLevel.BLOCK, field="engagement_trend",
                message=f"engagement_trend must be a list of weekly scores, got {type(f.engagement_trend).__name__}.",
            ))
        else:
            bad_weeks = [i for i, v in enumerate(f.engagement_trend) if not _in_range(v, 0.0, 100.0)]
            if bad_weeks:
                violations.append(GuardrailViolation(
                    code="F-08", level=GuardrailLevel.BLOCK, field="engagement_trend",
                    message=f"engagement_trend values out of [0, 100] at weeks {bad_weeks}.",
                ))

            # F-09 Trend arity
            if len(f.engagement_trend) != TREND_WEEKS:
                violations.append(GuardrailViolation(
                    code="F-09", level=GuardrailLevel.WARN, field="engagement_trend",
                    message=(
                        f"engagement_trend has {len(f.engagement_trend)} weeks "
                        f"(expected {TREND_WEEKS}); drop detection uses what is available."
                    ),
                ))

        # F-10 Keywords
        if not _is_sequence(f.top_keywords):
            violations.append(GuardrailViolation(
                code="F-10", level=GuardrailLevel.BLOCK, field="top_keywords",
                message=f"top_keywords must be a list, got {type(f.top_keywords).__name__}.",
            ))
        elif len(f.top_keywords) > MAX_KEYWORDS:
            violations.append(GuardrailViolation(
                code="F-10", level=GuardrailLevel.WARN, field="top_keywords",
                message=f"{len(f.top_keywords)} top keywords supplied; only {MAX_KEYWORDS} are expected.",
            ))

        # F-11 Sentiment label
        if f.sentiment_label is not None:
            label = _resolve_label(f.sentiment_label)
            if label is None:
                violations.append(GuardrailViolation(
                    code="F-11", level=GuardrailLevel.BLOCK, field="sentiment_label",
                    message=f"sentiment_label {f.sentiment_label!r} is not a known label.",
                ))
            elif (_in_range(f.sentiment_score, -1.0, 1.0)
                    and label != label_sentiment(f.sentiment_score)):
                violations.append(GuardrailViolation(
                    code="F-11", level=GuardrailLevel.WARN, field="sentiment_label",
                    message=(
                        f"sentiment_label '{label.value}' disagrees with "
                        f"sentiment_score {f.sentiment_score:+.2f}."
                    ),
                ))

        return GuardrailResult(
            passed=not any(v.level == GuardrailLevel.BLOCK for v in violations),
            violations=violations,
        )

    def enforce(self, f: StudentFeatures) -> GuardrailResult:
        """Like check(), but raises InvalidFeatureRange on any BLOCK violation."""
        result = self.check(f)
        if result.blocked:
            raise InvalidFeatureRange(str(f.student_id), result.blocking)
        return result
