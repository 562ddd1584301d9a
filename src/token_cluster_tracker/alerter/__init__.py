"""Reporting layer - risk flags, narrative summary and Markdown export."""

from token_cluster_tracker.alerter.formatter import ReportFormatter
from token_cluster_tracker.alerter.narrative import generate_summary
from token_cluster_tracker.alerter.risk_flags import generate_risk_flags

__all__ = [
    "ReportFormatter",
    "generate_risk_flags",
    "generate_summary",
]
