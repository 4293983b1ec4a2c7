"""
batch_trace.py — Audit record for population batch operations
==============================================================
Every ``PopulationStore.ingest()`` / ``rescore_all()`` call returns a
BatchTrace describing what happened: which records were published, which
were rejected (with their guardrail messages) and how long each phase took.

Data model
----------
  BatchStep       One phase of the batch: timing, decisions, warnings.
  RejectedRecord  A record that failed validation, keyed by student_id.
  BatchTrace      Full trace for one batch; ordered list of BatchSteps.

Key fields
----------
  BatchStep.name           "validate" | "score" | "publish"
  BatchStep.duration_ms    Wall-clock milliseconds for that phase
  BatchTrace.operation     "ingest" | "rescore_all"
  BatchTrace.published     True when a new snapshot was swapped in
"""

from __future__ import annotations

import datetime
import time
import uuid
from dataclasses import dataclass, field
from typing import Any


@dataclass
class BatchStep:
    """One phase inside a batch operation."""
    name:        str
    duration_ms: float
    status:      str                # "success" | "partial" | "skipped" | "failed"
    decisions:   list[str] = field(default_factory=list)
    warnings:    list[str] = field(default_factory=list)
    detail:      dict[str, Any] = field(default_factory=dict)


@dataclass
class RejectedRecord:
    student_id: str
    messages:   list[str]


@dataclass
class BatchTrace:
    """Full trace for a single batch operation."""
    run_id:     str
    operation:  str
    timestamp:  str
    total_ms:   float = 0.0
    accepted:   list[str] = field(default_factory=list)
    rejected:   list[RejectedRecord] = field(default_factory=list)
    published:  bool = False
    version:    int = 0
    steps:      list[BatchStep] = field(default_factory=list)

    @classmethod
    def start(cls, operation: str) -> "BatchTrace":
        return cls(
            run_id    = str(uuid.uuid4())[:8].upper(),
            operation = operation,
            timestamp = datetime.datetime.now(datetime.timezone.utc).isoformat(),
        )

    def append(self, step: BatchStep) -> None:
        self.steps.append(step)
        self.total_ms += step.duration_ms

    @property
    def ok(self) -> bool:
        return not self.rejected

    @property
    def warnings(self) -> list[str]:
        return [w for step in self.steps for w in step.warnings]


class StepTimer:
    """Measures one phase; ``with StepTimer() as t: ...`` then ``t.elapsed_ms``."""

    def __init__(self):
        self.elapsed_ms = 0.0
        self._start = 0.0

    def __enter__(self) -> "StepTimer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000
