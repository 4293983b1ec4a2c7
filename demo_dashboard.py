"""
demo_dashboard.py – Console walkthrough of the scoring engine

Run:
    python demo_dashboard.py [cohort_size] [student_id]

Generates a seeded synthetic cohort, ingests it, then prints the KPI
cards, cohort alerts, the highest-risk students, a per-program breakdown and
one student's profile with recommendations.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# ── make src/ importable without installing the package ──────────────────────
sys.path.insert(0, str(Path(__file__).parent / "src"))

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from student_success.cohort_alerts import CohortAggregator
from student_success.config import get_settings
from student_success.models import AlertType, RiskLevel, ScoredStudent
from student_success.population_store import PopulationStore
from student_success.reporting import program_breakdown
from student_success.sample_data import generate_cohort
from student_success.scoring_engine import (
    ScoringEngine,
    engagement_reasons,
    project_improvement,
    risk_drivers,
)

console = Console()

RISK_STYLE = {
    RiskLevel.LOW:    "bold green",
    RiskLevel.MEDIUM: "bold yellow",
    RiskLevel.HIGH:   "bold red",
}

ALERT_ICON = {
    AlertType.HIGH_RISK:       "🚨",
    AlertType.INACTIVE:        "⏰",
    AlertType.ENGAGEMENT_DROP: "📉",
}


def _bar(score: float, width: int = 16) -> str:
    filled = round(score / 100 * width)
    return "[" + "█" * filled + "░" * (width - filled) + f"] {score:.1f}"


def show_dashboard(store: PopulationStore, aggregator: CohortAggregator) -> None:
    kpi = aggregator.kpi_metrics()

    cards = Table(box=box.ROUNDED, show_header=False, padding=(0, 1))
    cards.add_column("Key",   style="bold cyan", no_wrap=True)
    cards.add_column("Value", style="white")
    cards.add_row("Students",            str(kpi.total_students))
    cards.add_row("Avg engagement",      _bar(kpi.avg_engagement))
    cards.add_row("High dropout risk",   f"[bold red]{kpi.at_risk_count}[/bold red]")
    cards.add_row("Predicted pass rate", f"{kpi.predicted_pass_rate:.1f}%")
    dist = kpi.risk_distribution
    cards.add_row(
        "Risk distribution",
        f"[green]Low {dist.low}[/green] · [yellow]Medium {dist.medium}[/yellow] · [red]High {dist.high}[/red]",
    )
    console.print(Panel(cards, title="[bold]Cohort KPIs[/bold]", border_style="magenta"))

    alerts = aggregator.alerts()
    if alerts:
        for a in alerts:
            console.print(f"  {ALERT_ICON[a.type]} [bold]{a.message}[/bold] [dim]({a.id})[/dim]")
    else:
        console.print("  [green]No cohort alerts.[/green]")
    console.print()

    at_risk = sorted(
        aggregator.students_for_alert(AlertType.HIGH_RISK),
        key=lambda s: s.dropout_risk_score,
        reverse=True,
    )[:10]
    table = Table(box=box.SIMPLE_HEAD, header_style="bold white on dark_red")
    table.add_column("Student")
    table.add_column("Program")
    table.add_column("Engagement", justify="right")
    table.add_column("Persona")
    table.add_column("Risk", justify="right")
    table.add_column("Grade", justify="center")
    table.add_column("Inactive", justify="right")
    for s in at_risk:
        table.add_row(
            s.student_id,
            s.features.program,
            f"{s.engagement_score:.1f}",
            s.engagement_persona.value,
            f"[{RISK_STYLE[s.risk_level]}]{s.dropout_risk_score:.1f}[/]",
            s.predicted_grade.value,
            f"{s.inactivity_days} d",
        )
    console.print(Panel(table, title="[bold]Highest dropout risk[/bold]", border_style="red"))

    breakdown = program_breakdown(store)
    prog = Table(box=box.SIMPLE_HEAD, header_style="bold white on dark_violet")
    for col in ("Program", "Students", "Avg engagement", "High risk", "Pass rate"):
        prog.add_column(col, justify="left" if col == "Program" else "right")
    for program, row in breakdown.iterrows():
        prog.add_row(
            str(program),
            str(int(row["students"])),
            f"{row['avg_engagement']:.1f}",
            str(int(row["high_risk"])),
            f"{row['pass_rate']:.1f}%",
        )
    console.print(Panel(prog, title="[bold]By program[/bold]", border_style="blue"))


def show_student(s: ScoredStudent) -> None:
    console.rule(f"[bold magenta]{s.student_id} — {s.features.program}[/bold magenta]")

    summary = Table(box=box.ROUNDED, show_header=False, padding=(0, 1))
    summary.add_column("Key",   style="bold cyan", no_wrap=True)
    summary.add_column("Value", style="white")
    summary.add_row("Engagement",      f"{_bar(s.engagement_score)}  {s.engagement_persona.value}")
    summary.add_row("Dropout risk",    f"[{RISK_STYLE[s.risk_level]}]{s.dropout_risk_score:.1f} ({s.risk_level.value})[/]")
    summary.add_row("Predicted score", f"{s.predicted_score:.1f} → grade {s.predicted_grade.value}")
    summary.add_row("Sentiment",       f"{s.features.sentiment_score:+.2f} ({s.sentiment_label.value})")
    summary.add_row("Weak areas",      ", ".join(s.weak_areas) or "[dim]None[/dim]")
    console.print(summary)

    console.print("[bold]Top reasons[/bold]")
    for reason in engagement_reasons(s):
        console.print(f"  • {reason}")
    console.print("[bold]Risk drivers[/bold]")
    for driver in risk_drivers(s):
        console.print(f"  • {driver}")

    recs = Table(box=box.SIMPLE_HEAD, header_style="bold white on dark_green")
    recs.add_column("Recommendation")
    recs.add_column("Gain", justify="right")
    recs.add_column("Minutes", justify="right")
    recs.add_column("Why", style="dim white")
    for r in s.recommendations:
        recs.add_row(r.title, f"+{r.expected_gain:.1f}", str(r.estimated_minutes), r.explanation)
    console.print(recs)

    proj = project_improvement(s)
    console.print(
        f"Completing all recommendations: [bold]{proj.current_score:.1f} → "
        f"{proj.projected_score:.1f}[/bold] (+{proj.total_gain:.1f}, grade {proj.projected_grade.value})"
    )


def main(argv: list[str]) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=settings.app.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    size = int(argv[1]) if len(argv) > 1 else 200
    store = PopulationStore(ScoringEngine(settings.scoring))
    aggregator = CohortAggregator(store, settings.alerts)

    trace = store.ingest(generate_cohort(size))
    console.print(
        f"[dim]Batch {trace.run_id}: {len(trace.accepted)} scored, "
        f"{len(trace.rejected)} rejected in {trace.total_ms:.1f} ms[/dim]"
    )
    show_dashboard(store, aggregator)

    student_id = argv[2] if len(argv) > 2 else None
    if student_id is None:
        flagged = aggregator.students_for_alert(AlertType.HIGH_RISK) or store.snapshot()
        student_id = flagged[0].student_id if flagged else None
    if student_id is not None:
        scored = store.get(student_id)
        if scored is None:
            console.print(f"[bold red]Student {student_id} not found.[/bold red]")
            return 1
        show_student(scored)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
