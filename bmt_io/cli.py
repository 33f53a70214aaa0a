# bmt_io/cli.py
"""
cli.py

Rich console CLI:
- scan:    decode a .bmt file, run structural checks, print summary, findings
           and reason matrix.
- sniff:   classify a file as sparse or dense from its kind tag only.
- version: show the package version.
"""
from __future__ import annotations

import argparse
import os
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel

from bmt_io import __version__
from bmt_io.analysis.bmt_analyzer import analyzer_for
from bmt_io.formats.bmt.bmt import SPARSE_KINDS
from bmt_io.formats.bmt.header import sniff_kind
from bmt_io.logging import configure_logging
from bmt_io.reporting.console import render_report
from bmt_io.reporting.json_reporter import write_json

console = Console()

AVAILABLE_STAGES: List[str] = ["sha256", "structure"]


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bmt",
        description="BMT binary matrix inspection with zero-copy IO.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    sub = p.add_subparsers(dest="cmd", title="Available Commands", metavar="<command>")

    sp_scan = sub.add_parser("scan", help="Decode and check a local .bmt file")
    sp_scan.add_argument("path", help="Path to matrix file (.bmt)")
    sp_scan.add_argument("--debug", action="store_true", help="Enable debug logging")
    sp_scan.add_argument(
        "--json-out", type=str, default=None, help="Write JSON report to this path"
    )
    sp_scan.add_argument(
        "--stage",
        nargs="+",
        choices=AVAILABLE_STAGES,
        metavar="STAGE",
        help=(
            f"Run only specific analysis stages. Defaults to all stages if not provided.\n"
            f"Available stages: {', '.join(AVAILABLE_STAGES)}.\n"
            f"Can be combined, e.g., --stage sha256 structure"
        ),
    )
    sp_scan.add_argument(
        "--value-dtype",
        choices=["float32", "float64"],
        default="float64",
        help="In-memory type for matrix values (default: float64)",
    )
    sp_scan.add_argument(
        "--index-dtype",
        choices=["int32", "int64"],
        default="int64",
        help="In-memory type for sparse indices and pointers (default: int64)",
    )

    sp_sniff = sub.add_parser("sniff", help="Report whether a .bmt file is sparse or dense")
    sp_sniff.add_argument("path", help="Path to matrix file (.bmt)")

    sub.add_parser("version", help="Show the version of bmt-io")

    return p


def _scan(args: argparse.Namespace) -> int:
    configure_logging(debug=args.debug)
    path = args.path
    if not os.path.isfile(path):
        console.print(f"[red]File not found:[/red] {path}")
        return 2

    analyzer = analyzer_for(path, value_dtype=args.value_dtype, index_dtype=args.index_dtype)
    if analyzer is None:
        console.print(f"[red]Unknown matrix kind tag:[/red] {path}")
        return 2

    stages_to_run = args.stage or AVAILABLE_STAGES
    console.print(f"[dim]Running stages: {', '.join(stages_to_run)}...[/dim]")

    rep = analyzer.run(stages=stages_to_run)

    console.print(
        Panel(
            f"[bold]Result:[/bold] {'[green]OK[/green]' if rep.ok else '[red]FAILED[/red]'}",
            style="bold cyan",
        )
    )
    render_report(rep)

    if args.json_out:
        write_json(rep, args.json_out)
        console.print(f"[dim]Wrote JSON report → {args.json_out}[/dim]")

    return 0 if rep.ok else 1


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return 0

    if args.cmd == "version":
        console.print(f"bmt-io Version {__version__}")
        return 0

    if args.cmd == "sniff":
        if not os.path.isfile(args.path):
            console.print(f"[red]File not found:[/red] {args.path}")
            return 2
        kind = sniff_kind(args.path)
        if kind is None:
            console.print("unknown")
            return 2
        console.print("sparse" if kind in SPARSE_KINDS else "dense")
        return 0

    if args.cmd == "scan":
        return _scan(args)

    parser.print_help()
    return 1
