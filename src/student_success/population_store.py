"""
population_store.py – Current batch of scored students
======================================================
Holds the latest ScoredStudent per student_id, in insertion order.

Writers (``ingest`` / ``rescore_all``) are serialised by a lock and build a
complete new mapping before publishing it with a single reference swap, so
readers (``get`` / ``filter`` / iteration / the aggregator) never observe a
half-applied batch and never need the lock.

Bad records never abort a batch: each one is reported in the returned
BatchTrace with its student_id, and the rest of the batch is published.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional

from student_success.batch_trace import BatchStep, BatchTrace, RejectedRecord, StepTimer
from student_success.guardrails import InvalidFeatureRange
from student_success.models import (
    EngagementPersona,
    PredictedGrade,
    RiskLevel,
    ScoredStudent,
    StudentFeatures,
    coerce_enum,
)
from student_success.scoring_engine import ScoringEngine

logger = logging.getLogger(__name__)


class StudentNotFound(KeyError):
    """Raised by PopulationStore.require() for an unknown student_id."""


def _is_all(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip().lower() in ("", "all"))


# ─── Filter predicates ───────────────────────────────────────────────────────

@dataclass
class StudentFilter:
    """
    Conjunction of optional predicates.  ``None`` / ``"all"`` disables a
    predicate; labels may be given as enum members, values or names.
    """
    search:              Optional[str] = None     # case-insensitive substring of student_id
    persona:             Any           = "all"
    risk_level:          Any           = "all"
    grade:               Any           = "all"
    min_inactivity_days: Any           = None    # inclusive lower bound

    def __post_init__(self) -> None:
        self.persona    = None if _is_all(self.persona) else coerce_enum(EngagementPersona, self.persona)
        self.risk_level = None if _is_all(self.risk_level) else coerce_enum(RiskLevel, self.risk_level)
        self.grade      = None if _is_all(self.grade) else coerce_enum(PredictedGrade, self.grade)
        self.search     = self.search.strip().lower() if self.search and self.search.strip() else None
        if _is_all(self.min_inactivity_days):
            self.min_inactivity_days = None
        elif isinstance(self.min_inactivity_days, str):
            self.min_inactivity_days = int(self.min_inactivity_days.strip())

    def matches(self, s: ScoredStudent) -> bool:
        if self.search is not None and self.search not in s.student_id.lower():
            return False
        if self.persona is not None and s.engagement_persona != self.persona:
            return False
        if self.risk_level is not None and s.risk_level != self.risk_level:
            return False
        if self.grade is not None and s.predicted_grade != self.grade:
            return False
        if self.min_inactivity_days is not None and s.inactivity_days < self.min_inactivity_days:
            return False
        return True


# ─── Population Store ─────────────────────────────────────────────────────────

class PopulationStore:
    """Owned, explicitly-passed handle on the scored population."""

    def __init__(self, engine: Optional[ScoringEngine] = None):
        self.engine = engine or ScoringEngine()
        self._records: Mapping[str, ScoredStudent] = MappingProxyType({})
        self._version = 0
        self._write_lock = threading.Lock()

    # ── Read side ─────────────────────────────────────────────────────────────

    @property
    def version(self) -> int:
        """Incremented on every published snapshot."""
        return self._version

    def snapshot(self) -> list[ScoredStudent]:
        """Current population in insertion order."""
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ScoredStudent]:
        return iter(self.snapshot())

    def __contains__(self, student_id: object) -> bool:
        return student_id in self._records

    def get(self, student_id: str) -> Optional[ScoredStudent]:
        """Latest snapshot for *student_id*, or None when unknown."""
        return self._records.get(student_id)

    def require(self, student_id: str) -> ScoredStudent:
        scored = self._records.get(student_id)
        if scored is None:
            raise StudentNotFound(student_id)
        return scored

    def filter(self, criteria: Optional[StudentFilter] = None, **predicates: Any) -> list[ScoredStudent]:
        """
        Records matching every predicate, in store order.

        Pass a StudentFilter or its fields as keyword arguments; with neither,
        the whole population is returned.
        """
        if criteria is None:
            criteria = StudentFilter(**predicates)
        elif predicates:
            raise TypeError("Pass either a StudentFilter or keyword predicates, not both.")
        return [s for s in self._records.values() if criteria.matches(s)]

    # ── Write side ────────────────────────────────────────────────────────────

    def ingest(self, features: Iterable[StudentFeatures], replace: bool = False) -> BatchTrace:
        """
        Score *features* and publish them.

        Existing entries with the same student_id are replaced in place.
        With ``replace=True`` the published population is exactly the valid
        records of this batch; students missing from it are removed.
        """
        trace = BatchTrace.start("ingest")
        batch = list(features)

        with self._write_lock:
            # ── 1. Validate ──────────────────────────────────────────────────
            valid: list[StudentFeatures] = []
            warnings: list[str] = []
            with StepTimer() as t:
                for f in batch:
                    try:
                        result = self.engine.validate(f)
                    except InvalidFeatureRange as exc:
                        trace.rejected.append(RejectedRecord(
                            student_id = exc.student_id,
                            messages   = [v.message for v in exc.violations],
                        ))
                        logger.warning("Rejected %s: %s", exc.student_id, exc)
                        continue
                    warnings.extend(f"{f.student_id}: [{v.code}] {v.message}" for v in result.warnings)
                    valid.append(f)
                seen = Counter(f.student_id for f in valid)
                warnings.extend(
                    f"{sid}: appears {n} times in batch; last record kept"
                    for sid, n in seen.items() if n > 1
                )
            trace.append(BatchStep(
                name        = "validate",
                duration_ms = t.elapsed_ms,
                status      = "partial" if trace.rejected else "success",
                decisions   = [f"{len(valid)}/{len(batch)} records passed guardrails"],
                warnings    = warnings,
            ))

            # ── 2. Score ─────────────────────────────────────────────────────
            with StepTimer() as t:
                scored = [self.engine.score_validated(f) for f in valid]
            trace.append(BatchStep(
                name        = "score",
                duration_ms = t.elapsed_ms,
                status      = "success" if scored else "skipped",
                detail      = {"scored": len(scored)},
            ))

            # ── 3. Publish ───────────────────────────────────────────────────
            if not scored and not replace:
                trace.append(BatchStep(name="publish", duration_ms=0.0, status="skipped"))
            else:
                with StepTimer() as t:
                    records = {} if replace else dict(self._records)
                    for s in scored:
                        records[s.student_id] = s
                    removed = len(set(self._records) - set(records))
                    self._publish(records)
                trace.append(BatchStep(
                    name        = "publish",
                    duration_ms = t.elapsed_ms,
                    status      = "success",
                    decisions   = [f"population now {len(records)} students"]
                                  + ([f"{removed} students removed"] if removed else []),
                ))
                trace.published = True

            trace.accepted = list(dict.fromkeys(s.student_id for s in scored))
            trace.version = self._version

        logger.info(
            "Ingest %s: %d accepted, %d rejected, population %d (v%d)",
            trace.run_id, len(trace.accepted), len(trace.rejected), len(self), trace.version,
        )
        return trace

    def rescore_all(self, engine: Optional[ScoringEngine] = None) -> BatchTrace:
        """
        Re-apply scoring to every stored feature vector.

        A new *engine* (e.g. a changed config) is adopted only if the whole
        population rescoring succeeds; otherwise the previous snapshot and
        engine stay in place and the failing records are reported.
        """
        trace = BatchTrace.start("rescore_all")
        target = engine or self.engine

        with self._write_lock:
            current = self.snapshot()
            records: dict[str, ScoredStudent] = {}
            with StepTimer() as t:
                for s in current:
                    try:
                        records[s.student_id] = target.score(s.features)
                    except InvalidFeatureRange as exc:
                        trace.rejected.append(RejectedRecord(
                            student_id = exc.student_id,
                            messages   = [v.message for v in exc.violations],
                        ))
            trace.append(BatchStep(
                name        = "score",
                duration_ms = t.elapsed_ms,
                status      = "failed" if trace.rejected else "success",
                detail      = {"scored": len(records), "population": len(current)},
            ))

            if trace.rejected:
                logger.warning(
                    "Rescore %s aborted: %d of %d records failed validation",
                    trace.run_id, len(trace.rejected), len(current),
                )
                trace.append(BatchStep(name="publish", duration_ms=0.0, status="skipped",
                                       warnings=["previous snapshot kept"]))
            else:
                with StepTimer() as t:
                    self._publish(records)
                    self.engine = target
                trace.append(BatchStep(name="publish", duration_ms=t.elapsed_ms, status="success"))
                trace.published = True
                trace.accepted = list(records)

            trace.version = self._version

        logger.info("Rescore %s: %d students (v%d)", trace.run_id, len(trace.accepted), trace.version)
        return trace

    def _publish(self, records: dict[str, ScoredStudent]) -> None:
        self._records = MappingProxyType(records)
        self._version += 1
