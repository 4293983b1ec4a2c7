"""
Tests for data models (models.py).
"""
import dataclasses
import json
import typing
from datetime import datetime, timezone

import pytest
from factories import make_features

from student_success.models import (
    Alert,
    AlertType,
    EngagementPersona,
    PredictedGrade,
    RiskDistribution,
    RiskLevel,
    SentimentLabel,
    StudentFeatures,
    coerce_enum,
)


class TestCoerceEnum:
    @pytest.mark.parametrize("enum_cls,value,expected", [
        (RiskLevel,         RiskLevel.HIGH,       RiskLevel.HIGH),
        (RiskLevel,         "High",               RiskLevel.HIGH),
        (RiskLevel,         "high",               RiskLevel.HIGH),
        (EngagementPersona, "At-risk",            EngagementPersona.AT_RISK),
        (EngagementPersona, "AtRisk",             EngagementPersona.AT_RISK),
        (EngagementPersona, "at_risk",            EngagementPersona.AT_RISK),
        (EngagementPersona, "Highly Engaged",     EngagementPersona.HIGHLY_ENGAGED),
        (EngagementPersona, "moderately_engaged", EngagementPersona.MODERATELY_ENGAGED),
        (PredictedGrade,    "b",                  PredictedGrade.B),
        (AlertType,         "engagement-drop",    AlertType.ENGAGEMENT_DROP),
    ])
    def test_resolves(self, enum_cls, value, expected):
        assert coerce_enum(enum_cls, value) is expected

    @pytest.mark.parametrize("value", ["Extreme", "", "G", 3])
    def test_unknown_raises(self, value):
        with pytest.raises(ValueError):
            coerce_enum(PredictedGrade, value)


class TestStudentFeatures:
    def test_is_frozen(self):
        f = make_features()
        with pytest.raises(dataclasses.FrozenInstanceError):
            f.quiz_avg = 10

    def test_dict_round_trip_with_activity_date(self):
        f = make_features(
            sentiment_label=SentimentLabel.POSITIVE,
            last_activity=datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc),
            actual_score=74.5,
        )
        data = f.to_dict()
        assert data["sentiment_label"] == "positive"
        assert data["last_activity"] == "2026-02-01T12:00:00+00:00"
        assert StudentFeatures.from_dict(data) == f

    def test_from_dict_drops_unknown_keys(self):
        data = make_features().to_dict()
        data["favourite_colour"] = "green"
        assert StudentFeatures.from_dict(data) == make_features()

    def test_from_dict_parses_zulu_timestamp_and_label(self):
        data = make_features().to_dict()
        data["last_activity"] = "2026-02-01T12:00:00Z"
        data["sentiment_label"] = "Positive"
        f = StudentFeatures.from_dict(data)
        assert f.last_activity == datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)
        assert f.sentiment_label is SentimentLabel.POSITIVE

    def test_to_dict_accepts_plain_string_label(self):
        assert make_features(sentiment_label="negative").to_dict()["sentiment_label"] == "negative"

    def test_from_dict_missing_required_field(self):
        data = make_features().to_dict()
        del data["quiz_avg"]
        with pytest.raises(TypeError):
            StudentFeatures.from_dict(data)


class TestScoredStudent:
    def test_to_dict_is_json_ready(self, engine, features):
        out = engine.score(features).to_dict()
        decoded = json.loads(json.dumps(out))
        assert decoded["student_id"] == "STU00001"
        assert decoded["engagement_persona"] == "Moderately Engaged"
        assert decoded["predicted_grade"] == "C"
        assert decoded["risk_level"] == "Low"
        assert decoded["sentiment_label"] == "positive"
        assert decoded["weak_areas"] == []
        assert {r["type"] for r in decoded["recommendations"]} <= {
            "Quiz", "Assignment", "Course Module", "Video Lecture", "Practice Exercise",
        }

    def test_is_frozen(self, engine, features):
        s = engine.score(features)
        with pytest.raises(dataclasses.FrozenInstanceError):
            s.risk_level = RiskLevel.HIGH


class TestCohortModels:
    def test_risk_distribution_total(self):
        assert RiskDistribution(low=2, medium=3, high=4).total == 9
        assert RiskDistribution().total == 0

    def test_inactive_drilldown_follows_threshold(self):
        alert = Alert("alert-inactive", "", AlertType.INACTIVE, 1, datetime.now(timezone.utc))
        assert alert.drilldown(inactivity_alert_days=14).min_inactivity_days == 15

    def test_high_risk_drilldown(self):
        alert = Alert("alert-high-risk", "", AlertType.HIGH_RISK, 1, datetime.now(timezone.utc))
        criteria = alert.drilldown()
        assert criteria.risk_level is RiskLevel.HIGH
        assert criteria.min_inactivity_days is None

    def test_drilldown_return_annotation(self):
        from student_success.population_store import StudentFilter

        hints = typing.get_type_hints(Alert.drilldown, localns={"StudentFilter": StudentFilter})
        assert hints["return"] == typing.Optional[StudentFilter]
