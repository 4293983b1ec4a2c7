"""
cohort_alerts.py – Cohort KPIs and anomaly alerts
=================================================
Read-only scan over a PopulationStore snapshot.

  CohortAggregator.kpi_metrics()  → KpiMetrics
  CohortAggregator.alerts()       → list[Alert]  (at most one per AlertType)

The per-student scan is memoised against ``store.version``; any publish by
ingest / rescore_all invalidates it.  Alert timestamps are always the time of
the call, not of the cached scan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from student_success.config import AlertConfig
from student_success.models import (
    Alert,
    AlertType,
    KpiMetrics,
    PredictedGrade,
    RiskDistribution,
    RiskLevel,
    ScoredStudent,
)
from student_success.population_store import PopulationStore

logger = logging.getLogger(__name__)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def engagement_dropped(
    trend: Sequence[float],
    window: int = 3,
    margin: float = 10.0,
) -> bool:
    """
    True when the mean of the last *window* weeks sits more than *margin*
    points below the mean of the first *window* weeks.

    Trends shorter than *window* use every week available; fewer than two
    weeks never flag.
    """
    if len(trend) < 2:
        return False
    width = min(window, len(trend))
    earlier = _mean(trend[:width])
    recent  = _mean(trend[-width:])
    return recent < earlier - margin


@dataclass(frozen=True)
class CohortScan:
    """Counts gathered in one pass over the population."""
    version:            int
    total:              int
    engagement_sum:     float
    passing:            int
    distribution:       RiskDistribution
    inactive_ids:       tuple[str, ...]
    engagement_drop_ids: tuple[str, ...]


class CohortAggregator:
    """Derives KPIs and alerts from the store it is bound to."""

    def __init__(self, store: PopulationStore, config: Optional[AlertConfig] = None):
        self.store = store
        self.config = config or AlertConfig()
        self._cache: Optional[CohortScan] = None

    # ── Scan ──────────────────────────────────────────────────────────────────

    def scan(self) -> CohortScan:
        version = self.store.version
        if self._cache is not None and self._cache.version == version:
            return self._cache

        population = self.store.snapshot()
        counts = {level: 0 for level in RiskLevel}
        inactive: list[str] = []
        dropped: list[str] = []
        for s in population:
            counts[s.risk_level] += 1
            if s.inactivity_days > self.config.inactivity_alert_days:
                inactive.append(s.student_id)
            if engagement_dropped(
                s.features.engagement_trend,
                window=self.config.engagement_drop_window,
                margin=self.config.engagement_drop_margin,
            ):
                dropped.append(s.student_id)

        self._cache = CohortScan(
            version             = version,
            total               = len(population),
            engagement_sum      = sum(s.engagement_score for s in population),
            passing             = sum(1 for s in population if s.predicted_grade != PredictedGrade.F),
            distribution        = RiskDistribution(
                low    = counts[RiskLevel.LOW],
                medium = counts[RiskLevel.MEDIUM],
                high   = counts[RiskLevel.HIGH],
            ),
            inactive_ids        = tuple(inactive),
            engagement_drop_ids = tuple(dropped),
        )
        logger.debug("Cohort scan v%d over %d students", version, len(population))
        return self._cache

    # ── KPIs ──────────────────────────────────────────────────────────────────

    def kpi_metrics(self) -> KpiMetrics:
        """Dashboard KPIs; an empty population yields zeros."""
        scan = self.scan()
        if scan.total == 0:
            return KpiMetrics(
                avg_engagement      = 0.0,
                at_risk_count       = 0,
                predicted_pass_rate = 0.0,
                risk_distribution   = RiskDistribution(),
                total_students      = 0,
            )
        return KpiMetrics(
            avg_engagement      = round(scan.engagement_sum / scan.total, 1),
            at_risk_count       = scan.distribution.high,
            predicted_pass_rate = round(scan.passing / scan.total * 100, 1),
            risk_distribution   = scan.distribution,
            total_students      = scan.total,
        )

    # ── Alerts ────────────────────────────────────────────────────────────────

    def alerts(self, now: Optional[datetime] = None) -> list[Alert]:
        scan = self.scan()
        ts = now or datetime.now(timezone.utc)
        out: list[Alert] = []

        high = scan.distribution.high
        if high > 0:
            out.append(Alert(
                id        = "alert-high-risk",
                message   = f"{high} students at high dropout risk",
                type      = AlertType.HIGH_RISK,
                count     = high,
                timestamp = ts,
            ))

        inactive = len(scan.inactive_ids)
        if inactive > 0:
            out.append(Alert(
                id        = "alert-inactive",
                message   = f"{inactive} students inactive > {self.config.inactivity_alert_days} days",
                type      = AlertType.INACTIVE,
                count     = inactive,
                timestamp = ts,
            ))

        dropped = len(scan.engagement_drop_ids)
        if dropped > 0:
            out.append(Alert(
                id        = "alert-engagement-drop",
                message   = f"Engagement dropped week-over-week for {dropped} students",
                type      = AlertType.ENGAGEMENT_DROP,
                count     = dropped,
                timestamp = ts,
            ))

        if out:
            logger.info("Cohort alerts: %s", ", ".join(f"{a.type.value}={a.count}" for a in out))
        return out

    def students_for_alert(self, alert_type: AlertType) -> list[ScoredStudent]:
        """The records counted by an alert of *alert_type*, in store order."""
        scan = self.scan()
        if alert_type == AlertType.HIGH_RISK:
            return self.store.filter(risk_level=RiskLevel.HIGH)
        ids = set(scan.inactive_ids if alert_type == AlertType.INACTIVE else scan.engagement_drop_ids)
        return [s for s in self.store.snapshot() if s.student_id in ids]
