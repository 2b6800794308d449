"""Terminal rendering of assessments using rich."""

from __future__ import annotations

import rich.box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from opponent_radar.models import RiskAssessment

console = Console()

_LEVEL_STYLES: dict[str, str] = {
    "high": "bold red",
    "medium": "yellow",
    "low": "green",
}


def _pct(value: float) -> str:
    return f"{value:.1f}%"


def render_assessment(assessment: RiskAssessment) -> Panel:
    """Build a panel with the score, the metrics behind it and the reasons."""
    name = f"@{assessment.identity}" if assessment.identity else "unknown player"
    if not assessment.ok:
        return Panel(f"[red]{assessment.error}[/]", title=name, box=rich.box.ROUNDED)

    style = _LEVEL_STYLES.get(assessment.level or "", "dim")
    table = Table(box=rich.box.SIMPLE, show_header=False)
    table.add_column("Metric", style="dim")
    table.add_column("Value")
    table.add_row("Score", f"[{style}]{assessment.score}/100 ({assessment.level})[/]")

    m = assessment.metrics
    if m is not None:
        age = f"{m.account_age_days}d" if m.account_age_days is not None else "unknown"
        table.add_row("Pool", f"{m.primary_pool or 'unknown'} | rating {m.rating}")
        table.add_row("Account age", age)
        table.add_row("Overall winrate", f"{_pct(m.overall_winrate)} ({m.overall_games} games)")
        table.add_row("Recent 30d winrate", f"{_pct(m.recent_winrate)} ({m.recent_games} games)")
        table.add_row(
            f"High accuracy >= {assessment.accuracy_threshold_used or m.accuracy_threshold:g}%",
            f"{_pct(m.high_acc_pct)} ({m.high_acc_games} known)",
        )

    if assessment.reasons:
        for reason in assessment.reasons:
            table.add_row("Reason", reason)
    else:
        table.add_row("Reason", "[green]No strong red flags detected.[/]")

    return Panel(table, title=name, box=rich.box.ROUNDED)


def print_assessment(assessment: RiskAssessment) -> None:
    console.print(render_assessment(assessment))
