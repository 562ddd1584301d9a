"""Command line interface for the Token Cluster Tracker.

Usage::

    python -m token_cluster_tracker snapshot.json --format markdown --symbol ARENA
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any, Sequence

from web3 import Web3

from token_cluster_tracker.alerter.formatter import ReportFormatter
from token_cluster_tracker.config import get_settings
from token_cluster_tracker.ingestor.models import ScanInput, ScanInputError
from token_cluster_tracker.pipeline import HoldingsAnalyzer

logger = logging.getLogger(__name__)


def load_snapshot(source: str) -> dict[str, Any]:
    """Read a JSON scan snapshot from a path, or stdin when ``source`` is '-'."""
    if source == "-":
        return json.load(sys.stdin, parse_float=Decimal)
    with Path(source).open(encoding="utf-8") as fh:
        return json.load(fh, parse_float=Decimal)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="token-cluster-tracker",
        description="Attribute wallets to the owner of a target address from token transfers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Snapshot keys:
    target, transfers, contracts, labels, funding_sources, balances

Examples:
    token-cluster-tracker scan.json
    token-cluster-tracker scan.json --format markdown --symbol ARENA
    cat scan.json | token-cluster-tracker - --decimals 6
        """,
    )
    parser.add_argument("snapshot", help="Path to a JSON scan snapshot ('-' for stdin)")
    parser.add_argument(
        "--format",
        "-f",
        default="json",
        choices=["json", "markdown"],
        help="Output format (default: json)",
    )
    parser.add_argument("--symbol", help="Token symbol (default: ANALYZER_TOKEN_SYMBOL)")
    parser.add_argument("--decimals", type=int, help="Token decimals (default: inferred)")
    parser.add_argument(
        "--as-of",
        type=int,
        dest="as_of",
        help="Unix time the recent-dispersal window ends at (default: newest transfer)",
    )
    parser.add_argument(
        "--compact",
        action="store_true",
        help="Compact Markdown (no reasons, recipients or top transfers)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the CLI."""
    args = build_parser().parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=settings.get_logging_level(),
        stream=sys.stderr,
    )
    logger.debug("Effective settings: %s", settings.summary())

    if args.decimals is not None and not 0 <= args.decimals <= 36:
        print("Error: --decimals must be between 0 and 36", file=sys.stderr)
        return 2

    try:
        scan = ScanInput.from_dict(load_snapshot(args.snapshot))
    except (OSError, json.JSONDecodeError, ScanInputError) as e:
        print(f"Error: cannot read snapshot: {e}", file=sys.stderr)
        return 1

    if not Web3.is_address(scan.target):
        print(f"Error: target {scan.target!r} is not a valid address", file=sys.stderr)
        return 1

    report = HoldingsAnalyzer(settings).analyze(
        scan,
        token_symbol=args.symbol,
        decimals=args.decimals,
        as_of=args.as_of,
    )

    if args.format == "markdown":
        formatter = ReportFormatter("compact" if args.compact else "detailed")
        print(formatter.format_markdown(report, scan.transfers))
    else:
        print(json.dumps(report.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
