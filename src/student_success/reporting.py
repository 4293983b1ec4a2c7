"""
reporting.py – Tabular views of the scored population
=====================================================
pandas projections for analysts and the demo dashboard.  Nothing here
feeds back into scoring.
"""

from __future__ import annotations

import pandas as pd

from student_success.models import PredictedGrade, RiskLevel
from student_success.population_store import PopulationStore


FRAME_COLUMNS = [
    "student_id",
    "program",
    "engagement_score",
    "engagement_persona",
    "predicted_score",
    "predicted_grade",
    "dropout_risk_score",
    "risk_level",
    "inactivity_days",
]


def population_frame(store: PopulationStore) -> pd.DataFrame:
    """One row per student, store order, derived labels as plain strings."""
    rows = [
        {
            "student_id":         s.student_id,
            "program":            s.features.program,
            "engagement_score":   s.engagement_score,
            "engagement_persona": s.engagement_persona.value,
            "predicted_score":    s.predicted_score,
            "predicted_grade":    s.predicted_grade.value,
            "dropout_risk_score": s.dropout_risk_score,
            "risk_level":         s.risk_level.value,
            "inactivity_days":    s.inactivity_days,
        }
        for s in store.snapshot()
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def program_breakdown(store: PopulationStore) -> pd.DataFrame:
    """Per-program students, mean engagement, high-risk count and pass rate."""
    df = population_frame(store)
    if df.empty:
        return pd.DataFrame(
            columns=["students", "avg_engagement", "high_risk", "pass_rate"]
        ).rename_axis("program")

    df["is_high_risk"] = df["risk_level"] == RiskLevel.HIGH.value
    df["is_passing"]   = df["predicted_grade"] != PredictedGrade.F.value
    out = df.groupby("program").agg(
        students       = ("student_id", "count"),
        avg_engagement = ("engagement_score", "mean"),
        high_risk      = ("is_high_risk", "sum"),
        pass_rate      = ("is_passing", "mean"),
    )
    out["avg_engagement"] = out["avg_engagement"].round(1)
    out["pass_rate"]      = (out["pass_rate"] * 100).round(1)
    out["high_risk"]      = out["high_risk"].astype(int)
    return out.sort_values("high_risk", ascending=False, kind="stable")
