"""Markdown export of holdings reports.

This module turns a HoldingsReport into a shareable Markdown document:
holdings summary, outbound analysis, cluster wallets, risk flags and the
target's largest transfers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Sequence

from token_cluster_tracker.formatting import format_amount, format_date, format_percent
from token_cluster_tracker.ingestor.models import TransferEvent
from token_cluster_tracker.profiler.models import TokenOrigin

if TYPE_CHECKING:
    from token_cluster_tracker.pipeline import HoldingsReport

MAX_TOP_RECIPIENTS = 10
MAX_TOP_TRANSFERS = 20

REPORT_TITLE = "# Token Cluster Analysis Report"
REPORT_FOOTER = "*Generated by token-cluster-tracker*"


def top_transfers(
    transfers: Sequence[TransferEvent],
    target: str,
    decimals: int,
    limit: int = MAX_TOP_TRANSFERS,
) -> list[TransferEvent]:
    """The target's transfers with the largest amounts, largest first."""
    target = target.lower()
    touching = [tx for tx in transfers if tx.sender == target or tx.recipient == target]
    touching.sort(key=lambda tx: (-tx.amount(decimals), tx.sort_key))
    return touching[:limit]


class ReportFormatter:
    """Formats HoldingsReports as Markdown.

    Supports two verbosity levels:
    - compact: Summary, outbound buckets, wallet list and risk flags
    - detailed: Adds top recipients, per-wallet reasons and origins, and the
      target's largest transfers
    """

    def __init__(
        self,
        verbosity: Literal["compact", "detailed"] = "detailed",
    ) -> None:
        """Initialize the formatter.

        Args:
            verbosity: Level of detail in the exported document.
        """
        self.verbosity = verbosity

    def format_markdown(
        self,
        report: HoldingsReport,
        transfers: Sequence[TransferEvent] = (),
    ) -> str:
        """Render a report as Markdown.

        Args:
            report: The report to render.
            transfers: Transfer set the report was built from; enables the
                top-transfers section in detailed mode.

        Returns:
            Markdown document.
        """
        lines: list[str] = []
        lines.extend(self._build_header(report))
        lines.extend(self._build_holdings(report))
        lines.extend(self._build_outbound(report))
        lines.extend(self._build_wallets(report))
        lines.extend(self._build_risk_flags(report))
        if self.verbosity == "detailed" and transfers:
            lines.extend(self._build_top_transfers(report, transfers))
        lines.append("---")
        lines.append(REPORT_FOOTER)
        return "\n".join(lines)

    def _build_header(self, report: HoldingsReport) -> list[str]:
        return [
            REPORT_TITLE,
            f"**As of:** {format_date(report.as_of)}",
            f"**Target:** `{report.target_wallet}`",
            f"**Token:** {report.token_symbol}",
            "",
        ]

    def _build_holdings(self, report: HoldingsReport) -> list[str]:
        sym = report.token_symbol
        return [
            "## Holdings Summary",
            f"- Target balance: **{format_amount(report.target_balance)} {sym}**",
            f"- HIGH confidence wallets: **{report.high.count}** holding "
            f"**{format_amount(report.high.balance)} {sym}**",
            f"- MEDIUM confidence wallets: **{report.medium.count}** holding "
            f"**{format_amount(report.medium.balance)} {sym}**",
            f"- LOW confidence wallets: **{report.low.count}** holding "
            f"**{format_amount(report.low.balance)} {sym}**",
            f"- Total estimated same-owner: **{format_amount(report.total_estimate)} {sym}**",
            "",
            report.cluster_summary,
            "",
        ]

    def _build_outbound(self, report: HoldingsReport) -> list[str]:
        out = report.outbound_summary
        sym = report.token_symbol
        if out.to_dex.amount <= 0 and out.to_wallets.amount <= 0:
            return []
        lines = [
            "## Outbound Analysis",
            f"- Sold on DEX / contracts: **{format_amount(out.to_dex.amount)} {sym}** "
            f"({format_percent(out.to_dex.percentage)})",
            f"- Sent to wallets: **{format_amount(out.to_wallets.amount)} {sym}** "
            f"({format_percent(out.to_wallets.percentage)})",
        ]
        if self.verbosity == "detailed" and out.top_recipients:
            lines.append("")
            lines.append("### Top Recipients")
            for recipient in out.top_recipients[:MAX_TOP_RECIPIENTS]:
                holds = (
                    f"{format_amount(recipient.still_holding)} {sym}"
                    if recipient.still_holding is not None
                    else "unknown"
                )
                lines.append(
                    f"- `{recipient.address}`: received {format_amount(recipient.amount)} {sym}, "
                    f"holds {holds}"
                )
        lines.append("")
        return lines

    def _build_wallets(self, report: HoldingsReport) -> list[str]:
        sym = report.token_symbol
        lines = ["## Cluster Wallets"]
        if not report.wallets:
            lines.append("- None")
        for wallet in report.wallets:
            tier = wallet.confidence.value.upper()
            origin = (
                f" [{wallet.token_origin.value}]"
                if wallet.token_origin is not TokenOrigin.UNKNOWN
                else ""
            )
            balance = format_amount(wallet.held)
            lines.append(f"- **{tier}** `{wallet.address}`: {balance} {sym} (score {wallet.score}){origin}")
            if self.verbosity != "detailed":
                continue
            lines.append(f"  - {', '.join(wallet.reasons)}")
            if wallet.token_origin_details:
                lines.append(f"  - Origin: {wallet.token_origin_details}")
            if wallet.inherited_from:
                lines.append(f"  - Confidence inherited from `{wallet.inherited_from}`")
        lines.append("")
        return lines

    def _build_risk_flags(self, report: HoldingsReport) -> list[str]:
        if not report.risk_flags:
            return []
        lines = ["## Risk Flags"]
        lines.extend(f"- {flag}" for flag in report.risk_flags)
        lines.append("")
        return lines

    def _build_top_transfers(
        self,
        report: HoldingsReport,
        transfers: Sequence[TransferEvent],
    ) -> list[str]:
        target = report.target_wallet.lower()
        ranked = top_transfers(transfers, target, report.decimals)
        if not ranked:
            return []
        sym = report.token_symbol
        lines = ["## Top Transfers (by volume)"]
        for tx in ranked:
            sent = tx.sender == target
            direction, preposition = ("SENT", "to") if sent else ("RECV", "from")
            peer = tx.to_address if sent else tx.from_address
            lines.append(
                f"- {format_date(tx.timestamp)}: {direction} "
                f"{format_amount(tx.amount(report.decimals))} {sym} {preposition} `{peer}`"
            )
        lines.append("")
        return lines
