"""
models.py – Data models for the Student Success scoring engine
==============================================================
Raw inputs are plain frozen dataclasses (``StudentFeatures``); everything the
engine derives is attached to a ``ScoredStudent`` snapshot that is replaced
wholesale on every (re)scoring.  ``Recommendation`` is a pydantic model so its
numeric bounds are enforced at construction time.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from student_success.population_store import StudentFilter


# ─── Enumerations ────────────────────────────────────────────────────────────

class EngagementPersona(str, Enum):
    """Engagement tier derived from engagement_score."""
    HIGHLY_ENGAGED     = "Highly Engaged"      # [70, 100]
    MODERATELY_ENGAGED = "Moderately Engaged"  # [40, 70)
    AT_RISK            = "At-risk"             # [0, 40)


class RiskLevel(str, Enum):
    """Dropout-risk tier derived from dropout_risk_score."""
    LOW    = "Low"     # [0, 30)
    MEDIUM = "Medium"  # [30, 60)
    HIGH   = "High"    # [60, 100]


class PredictedGrade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


class SentimentLabel(str, Enum):
    POSITIVE = "positive"
    NEUTRAL  = "neutral"
    NEGATIVE = "negative"


class RecommendationType(str, Enum):
    QUIZ              = "Quiz"
    ASSIGNMENT        = "Assignment"
    COURSE_MODULE     = "Course Module"
    VIDEO_LECTURE     = "Video Lecture"
    PRACTICE_EXERCISE = "Practice Exercise"


class AlertType(str, Enum):
    HIGH_RISK       = "high-risk"
    INACTIVE        = "inactive"
    ENGAGEMENT_DROP = "engagement-drop"


TREND_WEEKS = 12   # nominal engagement_trend arity


def coerce_enum(enum_cls: type[Enum], value: Any) -> Enum:
    """
    Resolve *value* to a member of *enum_cls*.

    Accepts a member, a member value ("At-risk") or a member name in any case
    ("at_risk", "AtRisk").  Raises ValueError for anything else.
    """
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text == member.value:
            return member
    folded = text.replace("-", "").replace("_", "").replace(" ", "").lower()
    for member in enum_cls:
        if folded in (
            member.name.replace("_", "").lower(),
            member.value.replace("-", "").replace(" ", "").lower(),
        ):
            return member
    raise ValueError(f"{value!r} is not a valid {enum_cls.__name__}")


# ─── Input model ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StudentFeatures:
    """
    Raw behavioural, sentiment and academic signals for one student.
    Immutable once ingested; scoring never writes back to it.
    """
    student_id:             str

    # behaviour
    login_frequency:        float        # logins / week, ≥ 0
    session_duration:       float        # minutes / session, ≥ 0
    forum_participation:    float        # posts / week, ≥ 0
    assignment_access_rate: float        # 0–1
    time_gap_avg:           float        # days between activities, ≥ 0
    inactivity_days:        int          # days since last activity, ≥ 0

    # academic
    quiz_avg:               float        # 0–100
    assignment_avg:         float        # 0–100
    exam_avg:               float        # 0–100
    ETI_score:              float        # 0–100
    time_spent_hours:       float        # ≥ 0
    progress_pct:           float        # 0–100
    historical_gpa:         float        # 0–4

    # sentiment
    sentiment_score:        float                     # -1–1
    engagement_trend:       list[float] = field(default_factory=list)  # oldest-first
    feedback_texts:         list[str]   = field(default_factory=list)
    sentiment_label:        Optional[SentimentLabel] = None
    top_keywords:           list[str]   = field(default_factory=list)

    # metadata
    actual_score:           Optional[float]    = None
    program:                str                = ""
    last_activity:          Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StudentFeatures":
        """Build from a loosely-shaped mapping; unknown keys are dropped."""
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        label = kwargs.get("sentiment_label")
        if label is not None and not isinstance(label, SentimentLabel):
            kwargs["sentiment_label"] = coerce_enum(SentimentLabel, label)
        activity = kwargs.get("last_activity")
        if isinstance(activity, str):
            kwargs["last_activity"] = datetime.fromisoformat(activity.replace("Z", "+00:00"))
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        out = dataclasses.asdict(self)
        out["engagement_trend"] = list(self.engagement_trend or [])
        out["feedback_texts"] = list(self.feedback_texts or [])
        out["top_keywords"] = list(self.top_keywords or [])
        out["sentiment_label"] = getattr(self.sentiment_label, "value", self.sentiment_label)
        out["last_activity"] = self.last_activity.isoformat() if self.last_activity else None
        return out


# ─── Derived models ──────────────────────────────────────────────────────────

class Recommendation(BaseModel):
    """One remediation item attached to a scored student (read-only)."""
    model_config = ConfigDict(frozen=True)

    id:                str
    title:             str
    type:              RecommendationType
    expected_gain:     float = Field(gt=2.0, le=15.0, description="Marks improvement")
    estimated_minutes: int   = Field(ge=20, le=120)
    explanation:       str


@dataclass(frozen=True)
class ScoredStudent:
    """
    Latest scoring snapshot for one student.
    All derived fields are produced together by ScoringEngine.score().
    """
    features:           StudentFeatures
    engagement_score:   float
    engagement_persona: EngagementPersona
    predicted_score:    float
    predicted_grade:    PredictedGrade
    dropout_risk_score: float
    risk_level:         RiskLevel
    sentiment_label:    SentimentLabel
    weak_areas:         tuple[str, ...]
    recommendations:    tuple[Recommendation, ...]

    @property
    def student_id(self) -> str:
        return self.features.student_id

    @property
    def inactivity_days(self) -> int:
        return self.features.inactivity_days

    def to_dict(self) -> dict[str, Any]:
        """Flat JSON-ready mapping: feature fields plus derived fields."""
        out = self.features.to_dict()
        out.update({
            "engagement_score":   self.engagement_score,
            "engagement_persona": self.engagement_persona.value,
            "predicted_score":    self.predicted_score,
            "predicted_grade":    self.predicted_grade.value,
            "dropout_risk_score": self.dropout_risk_score,
            "risk_level":         self.risk_level.value,
            "sentiment_label":    self.sentiment_label.value,
            "weak_areas":         list(self.weak_areas),
            "recommendations":    [r.model_dump(mode="json") for r in self.recommendations],
        })
        return out


# ─── Cohort-level models ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class Alert:
    """A cohort anomaly detected during one aggregator scan."""
    id:        str
    message:   str
    type:      AlertType
    count:     int
    timestamp: datetime      # scan time

    def drilldown(self, inactivity_alert_days: int = 7) -> Optional[StudentFilter]:
        """
        StudentFilter listing the students behind this alert, or None when
        the alert cannot be expressed as a filter (engagement drop).
        """
        from student_success.population_store import StudentFilter

        if self.type == AlertType.HIGH_RISK:
            return StudentFilter(risk_level=RiskLevel.HIGH)
        if self.type == AlertType.INACTIVE:
            return StudentFilter(min_inactivity_days=inactivity_alert_days + 1)
        return None


@dataclass(frozen=True)
class RiskDistribution:
    low:    int = 0
    medium: int = 0
    high:   int = 0

    @property
    def total(self) -> int:
        return self.low + self.medium + self.high


@dataclass(frozen=True)
class KpiMetrics:
    avg_engagement:      float
    at_risk_count:       int
    predicted_pass_rate: float
    risk_distribution:   RiskDistribution
    total_students:      int
