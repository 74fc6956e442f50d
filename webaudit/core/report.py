"""Report persistence and the console summary."""

from __future__ import annotations

import json
import re
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from webaudit.models.types import AuditReport


def sanitize_filename(url: str) -> str:
    return re.sub(r"[^A-Za-z0-9]", "_", url).lower()


def report_filename(report: AuditReport) -> str:
    stamp = report.timestamp.replace(":", "-").replace(".", "-")
    return f"{sanitize_filename(report.url)}_{stamp}_audit_report.json"


def save_report(report: AuditReport, output_dir: Path) -> Path:
    """Write the report as JSON and return its path.

    The JSON text is built before the file is opened, so a serialisation
    error never leaves a partial report on disk.
    """
    text = json.dumps(report.to_dict(), indent=2)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / report_filename(report)
    path.write_text(text, encoding="utf-8")
    return path


def _score_style(score: float) -> str:
    return "green" if score >= 80 else "yellow" if score >= 50 else "red"


def print_summary(report: AuditReport, console: Console | None = None):
    console = console or Console()

    header = Text()
    header.append("\n Audit Summary\n", style="bold")
    header.append(f" URL: {report.url}\n", style="dim")
    header.append(f" {report.timestamp}\n", style="dim")
    console.print(Panel(header, border_style="blue"))

    score_text = Text()
    score_text.append("  Overall Score: ", style="bold")
    score_text.append(str(report.overall_score), style=f"bold {_score_style(report.overall_score)}")
    console.print(score_text)
    console.print()

    table = Table(show_header=True, header_style="bold", padding=(0, 1))
    table.add_column("Check", min_width=24)
    table.add_column("Result", justify="right")

    perf = report.performance.performance_score
    table.add_row("Performance Score", Text(f"{perf:g}", style=_score_style(perf)))
    table.add_row("Security Score", Text(str(report.security.score), style=_score_style(report.security.score)))
    table.add_row("Accessibility Headings", str(report.accessibility.headings_total))
    console.print(table)
    console.print()

    if report.failed_probes:
        console.print(f"  [dim]Probes that fell back to empty results: {', '.join(report.failed_probes)}[/dim]\n")
