"""
student_success — Student engagement, grade and dropout-risk scoring
====================================================================
In-memory engine that scores raw student signals, keeps the latest scored
snapshot per student, and surfaces cohort KPIs and alerts.

Module map
----------
  models.py             Enums, StudentFeatures, Recommendation, ScoredStudent,
                        Alert, KpiMetrics.
  config.py             Settings loaded from .env (seed, alert thresholds).
  guardrails.py         F-01..F-11 feature-range checks; InvalidFeatureRange.
  scoring_engine.py     Formulas, threshold bands, ScoringEngine, explanations.
  recommendations.py    Seeded recommendation generation from weak areas.
  population_store.py   PopulationStore (snapshot swap), StudentFilter.
  cohort_alerts.py      CohortAggregator: KPIs, alerts, drill-down.
  batch_trace.py        BatchTrace audit record for ingest / rescore_all.
  sample_data.py        Seeded synthetic cohort.
  reporting.py          pandas views of the population.

Data flow
---------
  StudentFeatures → ScoringEngine → ScoredStudent → PopulationStore
                                                    ├── filter / get
                                                    └── CohortAggregator
"""
__version__ = "0.1.0"

from student_success.cohort_alerts import CohortAggregator
from student_success.config import AlertConfig, ScoringConfig, get_settings
from student_success.guardrails import InvalidFeatureRange
from student_success.models import (
    Alert,
    AlertType,
    EngagementPersona,
    KpiMetrics,
    PredictedGrade,
    Recommendation,
    RecommendationType,
    RiskLevel,
    ScoredStudent,
    SentimentLabel,
    StudentFeatures,
)
from student_success.population_store import PopulationStore, StudentFilter, StudentNotFound
from student_success.scoring_engine import ScoringEngine

__all__ = [
    "Alert",
    "AlertConfig",
    "AlertType",
    "CohortAggregator",
    "EngagementPersona",
    "InvalidFeatureRange",
    "KpiMetrics",
    "PopulationStore",
    "PredictedGrade",
    "Recommendation",
    "RecommendationType",
    "RiskLevel",
    "ScoredStudent",
    "ScoringConfig",
    "ScoringEngine",
    "SentimentLabel",
    "StudentFeatures",
    "StudentFilter",
    "StudentNotFound",
    "get_settings",
]
