"""
Tests for feature guardrails (guardrails.py).
BLOCK violations reject the record; WARN violations are reported only.
"""
import math

import pytest
from factories import make_features

from student_success.guardrails import (
    FeatureGuardrails,
    GuardrailLevel,
    InvalidFeatureRange,
    label_sentiment,
)
from student_success.models import SentimentLabel


@pytest.fixture
def guard():
    return FeatureGuardrails()


def _codes(result, level=None):
    return [v.code for v in result.violations if level is None or v.level == level]


class TestCleanRecord:
    def test_reference_student_passes(self, guard):
        result = guard.check(make_features())
        assert result.passed
        assert result.violations == []
        assert "passed" in result.summary()


class TestBlockingGuards:
    @pytest.mark.parametrize("overrides,code", [
        ({"student_id": ""},                 "F-01"),
        ({"student_id": "   "},              "F-01"),
        ({"login_frequency": -1},            "F-02"),
        ({"session_duration": math.inf},     "F-02"),
        ({"forum_participation": math.nan},  "F-02"),
        ({"time_spent_hours": -0.5},         "F-02"),
        ({"inactivity_days": -3},            "F-03"),
        ({"inactivity_days": 2.5},           "F-03"),
        ({"assignment_access_rate": 1.2},    "F-04"),
        ({"assignment_access_rate": -0.1},   "F-04"),
        ({"quiz_avg": 101},                  "F-05"),
        ({"ETI_score": -1},                  "F-05"),
        ({"progress_pct": 150},              "F-05"),
        ({"actual_score": 120},              "F-05"),
        ({"historical_gpa": 4.5},            "F-06"),
        ({"sentiment_score": -1.5},          "F-07"),
        ({"engagement_trend": [50.0] * 11 + [120.0]}, "F-08"),
        ({"student_id": None},               "F-01"),
        ({"student_id": 42},                 "F-01"),
        ({"login_frequency": False},         "F-02"),
        ({"assignment_access_rate": True},   "F-04"),
        ({"quiz_avg": True},                 "F-05"),
        ({"engagement_trend": None},         "F-08"),
        ({"engagement_trend": "60,60,60"},   "F-08"),
        ({"engagement_trend": [50.0, "x"]},  "F-08"),
        ({"top_keywords": None},             "F-10"),
        ({"sentiment_label": "ecstatic"},    "F-11"),
    ])
    def test_out_of_range_blocks(self, guard, overrides, code):
        result = guard.check(make_features(**overrides))
        assert not result.passed
        assert result.blocked
        assert code in _codes(result, GuardrailLevel.BLOCK)

    def test_enforce_raises_with_student_id(self, guard):
        with pytest.raises(InvalidFeatureRange) as exc_info:
            guard.enforce(make_features("STU00042", historical_gpa=5.0))
        assert exc_info.value.student_id == "STU00042"
        assert [v.code for v in exc_info.value.violations] == ["F-06"]
        assert "STU00042" in str(exc_info.value)

    def test_invalid_feature_range_is_value_error(self):
        assert issubclass(InvalidFeatureRange, ValueError)

    def test_boundaries_are_inclusive(self, guard):
        f = make_features(
            assignment_access_rate=1.0, quiz_avg=100, exam_avg=0,
            historical_gpa=4.0, sentiment_score=-1.0, inactivity_days=0,
            engagement_trend=[0.0] * 6 + [100.0] * 6, actual_score=0.0,
        )
        assert guard.check(f).passed

    def test_missing_actual_score_is_allowed(self, guard):
        assert guard.check(make_features(actual_score=None)).passed

    def test_multiple_violations_collected(self, guard):
        result = guard.check(make_features(quiz_avg=-1, historical_gpa=9))
        assert set(_codes(result, GuardrailLevel.BLOCK)) == {"F-05", "F-06"}


class TestWarningGuards:
    def test_short_trend_warns(self, guard):
        result = guard.check(make_features(engagement_trend=[40.0, 50.0]))
        assert result.passed
        assert _codes(result, GuardrailLevel.WARN) == ["F-09"]

    def test_extra_keywords_warn(self, guard):
        result = guard.check(make_features(top_keywords=["a", "b", "c", "d"]))
        assert result.passed
        assert "F-10" in _codes(result, GuardrailLevel.WARN)

    def test_label_mismatch_warns(self, guard):
        result = guard.check(make_features(sentiment_score=0.9, sentiment_label=SentimentLabel.NEGATIVE))
        assert result.passed
        assert "F-11" in _codes(result, GuardrailLevel.WARN)

    def test_plain_string_label_is_resolved(self, guard):
        result = guard.check(make_features(sentiment_score=0.4, sentiment_label="negative"))
        assert result.passed
        assert _codes(result, GuardrailLevel.WARN) == ["F-11"]
        assert "'negative'" in result.warnings[0].message

    def test_plain_string_matching_label_is_silent(self, guard):
        assert guard.check(make_features(sentiment_score=0.4, sentiment_label="Positive")).violations == []

    def test_matching_label_is_silent(self, guard):
        result = guard.check(make_features(sentiment_score=0.9, sentiment_label=SentimentLabel.POSITIVE))
        assert result.violations == []


class TestSentimentLabel:
    @pytest.mark.parametrize("score,expected", [
        (1.0,   SentimentLabel.POSITIVE),
        (0.31,  SentimentLabel.POSITIVE),
        (0.3,   SentimentLabel.NEUTRAL),
        (0.0,   SentimentLabel.NEUTRAL),
        (-0.3,  SentimentLabel.NEUTRAL),
        (-0.31, SentimentLabel.NEGATIVE),
        (-1.0,  SentimentLabel.NEGATIVE),
    ])
    def test_label_thresholds(self, score, expected):
        assert label_sentiment(score) == expected
