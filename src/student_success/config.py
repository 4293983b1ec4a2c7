"""
config.py — Central settings for the Student Success engine
===========================================================
All configuration is loaded from environment variables / .env file.

Recommendation generation is seeded by default.  Unseeded ("exploratory")
generation must be requested explicitly: clear SUCCESS_RECOMMENDATION_SEED
*and* set SUCCESS_EXPLORATORY_RECOMMENDATIONS=true.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load .env into os.environ (no-op if already set, safe to call multiple times)
load_dotenv(override=False)


DEFAULT_SEED = 42


# ─── Scoring ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoringConfig:
    recommendation_seed: Optional[int] = DEFAULT_SEED
    exploratory:         bool          = False

    def __post_init__(self) -> None:
        if self.recommendation_seed is None and not self.exploratory:
            raise ValueError(
                "recommendation_seed is required unless exploratory mode is enabled."
            )

    @property
    def deterministic(self) -> bool:
        return self.recommendation_seed is not None


# ─── Alerting ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AlertConfig:
    inactivity_alert_days:   int   = 7
    engagement_drop_margin:  float = 10.0
    engagement_drop_window:  int   = 3

    def __post_init__(self) -> None:
        if self.engagement_drop_window < 1:
            raise ValueError("engagement_drop_window must be at least 1.")
        if self.engagement_drop_margin < 0:
            raise ValueError("engagement_drop_margin must not be negative.")


# ─── App-level settings ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class AppConfig:
    log_level: str


# ─── Master settings object ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    scoring: ScoringConfig
    alerts:  AlertConfig
    app:     AppConfig

    def status_summary(self) -> dict[str, str]:
        """Return a dict of setting → human-readable value for the demo."""
        seed = self.scoring.recommendation_seed
        return {
            "Recommendations":   f"seed {seed}" if seed is not None else "exploratory (unseeded)",
            "Inactive alert":    f"> {self.alerts.inactivity_alert_days} days",
            "Engagement drop":   (
                f"last {self.alerts.engagement_drop_window} vs first "
                f"{self.alerts.engagement_drop_window} weeks, margin "
                f"{self.alerts.engagement_drop_margin:g}"
            ),
            "Log level":         self.app.log_level,
        }


def _optional_int(value: str) -> Optional[int]:
    value = value.strip()
    if not value or value.lower() == "none":
        return None
    return int(value)


def get_settings() -> Settings:
    """Load all configuration from environment variables."""
    _str   = lambda k, d="": os.getenv(k, d).strip()
    _int   = lambda k, d=0: int(os.getenv(k, str(d)) or d)
    _float = lambda k, d=0.0: float(os.getenv(k, str(d)) or d)
    _bool  = lambda k, d=False: os.getenv(k, str(d)).lower() in ("1", "true", "yes")

    return Settings(
        scoring=ScoringConfig(
            recommendation_seed = _optional_int(os.getenv("SUCCESS_RECOMMENDATION_SEED", str(DEFAULT_SEED))),
            exploratory         = _bool("SUCCESS_EXPLORATORY_RECOMMENDATIONS", False),
        ),
        alerts=AlertConfig(
            inactivity_alert_days  = _int("SUCCESS_INACTIVITY_ALERT_DAYS", 7),
            engagement_drop_margin = _float("SUCCESS_ENGAGEMENT_DROP_MARGIN", 10.0),
            engagement_drop_window = _int("SUCCESS_ENGAGEMENT_DROP_WINDOW", 3),
        ),
        app=AppConfig(
            log_level = _str("SUCCESS_LOG_LEVEL", "INFO").upper(),
        ),
    )
