"""
Shared pytest fixtures for the student_success test suite.
Factory helpers live in tests/factories.py so they can be imported
directly by test modules as well as being used here.
"""
import sys
import os

_tests_dir = os.path.dirname(__file__)
_src_dir   = os.path.join(_tests_dir, "..", "src")
for _p in (_tests_dir, _src_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)

# Seeded recommendations, never exploratory during tests
os.environ["SUCCESS_RECOMMENDATION_SEED"] = "42"
os.environ["SUCCESS_EXPLORATORY_RECOMMENDATIONS"] = "false"


import pytest

from factories import make_cohort, make_features

from student_success.cohort_alerts import CohortAggregator
from student_success.config import ScoringConfig
from student_success.population_store import PopulationStore
from student_success.scoring_engine import ScoringEngine


# ─── pytest fixtures ──────────────────────────────────────────────────────────

@pytest.fixture
def engine():
    return ScoringEngine(ScoringConfig(recommendation_seed=42))


@pytest.fixture
def features():
    return make_features()


@pytest.fixture
def store(engine):
    return PopulationStore(engine)


@pytest.fixture
def cohort_store(store):
    """10 students: 7 low-risk, 3 high-risk (STU00008–STU00010)."""
    store.ingest(make_cohort(n_low=7, n_high=3))
    return store


@pytest.fixture
def aggregator(cohort_store):
    return CohortAggregator(cohort_store)
