# bmt_io/reporting/console.py
"""
Console reporting functions for analysis results.
"""
from __future__ import annotations

from collections import defaultdict
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from bmt_io.analysis.base import AnalysisReport, Finding

console = Console()

GROUP_ORDER = ["decode", "header", "structural_integrity"]

INTEGRITY_SORT_ORDER = [
    "data_length",
    "primary_dimension",
    "pointer_length",
    "pointer_start",
    "pointer_end",
    "pointers_non_decreasing",
    "index_bounds",
    "file_coverage",
]


def render_summary(rep: AnalysisReport) -> None:
    """Render a high-level summary table."""
    t = Table(title="BMT Summary", box=box.SIMPLE_HEAVY)
    t.add_column("Field", style="bold")
    t.add_column("Value")
    t.add_row("Path", rep.file_path)
    t.add_row("Size (bytes)", str(rep.file_size))
    t.add_row("Format", rep.format)
    t.add_row("SHA-256", rep.sha256_hex)
    for k, v in rep.metadata.items():
        t.add_row(k, str(v))
    console.print(t)


def _render_generic_table(
    title: str, findings: List[Finding], *, custom_sort_order: Optional[List[str]] = None
) -> None:
    """Generic renderer for finding groups, with optional custom sorting."""
    table = Table(title=title, box=box.ROUNDED, show_lines=False, title_style="bold magenta")
    table.add_column("Status", justify="center", width=8)
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Details", style="white")

    if custom_sort_order:
        sort_map = {name: i for i, name in enumerate(custom_sort_order)}
        findings = sorted(findings, key=lambda f: sort_map.get(f.name.split(":", 1)[-1], 999))

    for f in findings:
        status = "[green]PASS[/green]" if f.ok else "[bold red]FAIL[/bold red]"
        check_name = f.name.split(":", 1)[-1].replace("_", " ").title()
        table.add_row(status, check_name, f.details)

    console.print(table)


def render_findings(rep: AnalysisReport) -> None:
    """Render findings grouped into one table per check group."""
    if not rep.findings:
        return

    groups = defaultdict(list)
    for f in rep.findings:
        if ":" in f.name:
            groups[f.name.split(":", 1)[0]].append(f)

    for group_name in GROUP_ORDER:
        if group_name not in groups:
            continue
        title = group_name.replace("_", " ").title() + " Checks"
        if group_name == "structural_integrity":
            _render_generic_table(title, groups[group_name], custom_sort_order=INTEGRITY_SORT_ORDER)
        else:
            _render_generic_table(title, groups[group_name])


def render_reason_matrix(rep: AnalysisReport) -> None:
    """Render the reason matrix table (why a decode target rejected the file)."""
    if not rep.reason_matrix:
        return
    rt = Table(
        title="Reason Matrix (Decode Failure Explanations)",
        box=box.SIMPLE_HEAVY,
        show_lines=False,
    )
    rt.add_column("Target", style="bold")
    rt.add_column("Reason")
    for entry in rep.reason_matrix:
        rt.add_row(entry.target, entry.reason)
    console.print(rt)


def render_report(rep: AnalysisReport) -> None:
    """Renders the full console report."""
    render_summary(rep)
    render_findings(rep)
    render_reason_matrix(rep)
