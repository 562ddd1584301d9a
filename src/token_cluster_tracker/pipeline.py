"""Holdings analysis pipeline for the Token Cluster Tracker.

This module provides the HoldingsAnalyzer class that wires the profiler,
detector and alerter layers together and assembles the HoldingsReport.

Pipeline flow:
    Transfer graph -> Wallet histories -> Pass-through detection ->
    Heuristic scoring -> Confidence inheritance -> Outbound summary ->
    Risk flags and narrative
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from token_cluster_tracker.alerter.narrative import generate_summary
from token_cluster_tracker.alerter.risk_flags import generate_risk_flags, latest_timestamp
from token_cluster_tracker.config import Settings, get_settings
from token_cluster_tracker.detector.models import Confidence, HiddenHoldingWallet, PassThroughLink
from token_cluster_tracker.detector.pass_through import (
    detect_pass_throughs,
    inherit_pass_through_confidence,
)
from token_cluster_tracker.detector.scorer import HoldingsScorer
from token_cluster_tracker.formatting import decimal_str, truncate_address
from token_cluster_tracker.ingestor.models import ScanInput, infer_decimals
from token_cluster_tracker.profiler.entities import EntityRegistry
from token_cluster_tracker.profiler.graph import build_wallet_graph
from token_cluster_tracker.profiler.history import WalletHistoryBuilder
from token_cluster_tracker.profiler.models import (
    ZERO,
    OutboundSummary,
    WalletHistory,
    WalletLink,
    WalletNode,
)
from token_cluster_tracker.profiler.outbound import build_outbound_summary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClusterTotals:
    """Wallet count and combined balance of one confidence tier."""

    count: int = 0
    balance: Decimal = ZERO

    @classmethod
    def of(cls, wallets: list[HiddenHoldingWallet]) -> ClusterTotals:
        return cls(count=len(wallets), balance=sum((w.held for w in wallets), ZERO))

    def to_dict(self) -> dict[str, object]:
        return {"count": self.count, "balance": decimal_str(self.balance)}


@dataclass(frozen=True)
class HoldingsReport:
    """Root output of one holdings analysis.

    Attributes:
        target_wallet: Target address as supplied.
        target_balance: Target's current balance (replayed when not supplied).
        token_symbol: Symbol used in text output.
        decimals: Token decimals used for every amount.
        as_of: End of the recent-dispersal window (unix seconds).
        high: HIGH tier totals.
        medium: MEDIUM tier totals.
        low: LOW tier totals.
        total_held_by_cluster: HIGH + MEDIUM balances.
        total_possible_hidden: LOW balances.
        wallets: Admitted wallets, best first.
        risk_flags: Ordered risk flags.
        cluster_summary: Narrative summary.
        outbound_summary: The target's outbound breakdown.
        target_history: The target's own replayed history.
        wallet_histories: Histories of every non-contract, non-target wallet.
        ghost_wallets: Ghost subset of wallet_histories.
        pass_throughs: Detected ghost -> final holder links.
        nodes: Transfer-graph nodes with history attached where one exists.
        links: Transfer-graph links, one per directed address pair.
    """

    target_wallet: str
    target_balance: Decimal
    token_symbol: str
    decimals: int
    as_of: int | None
    high: ClusterTotals
    medium: ClusterTotals
    low: ClusterTotals
    total_held_by_cluster: Decimal
    total_possible_hidden: Decimal
    wallets: tuple[HiddenHoldingWallet, ...]
    risk_flags: tuple[str, ...]
    cluster_summary: str
    outbound_summary: OutboundSummary
    target_history: WalletHistory | None = None
    wallet_histories: tuple[WalletHistory, ...] = ()
    ghost_wallets: tuple[WalletHistory, ...] = ()
    pass_throughs: tuple[PassThroughLink, ...] = ()
    nodes: tuple[WalletNode, ...] = ()
    links: tuple[WalletLink, ...] = ()

    @property
    def total_estimate(self) -> Decimal:
        """Target balance plus HIGH and MEDIUM balances."""
        return self.target_balance + self.total_held_by_cluster

    def to_dict(self) -> dict[str, object]:
        return {
            "target_wallet": self.target_wallet,
            "target_balance": decimal_str(self.target_balance),
            "token_symbol": self.token_symbol,
            "decimals": self.decimals,
            "as_of": self.as_of,
            "totals": {
                "high": self.high.to_dict(),
                "medium": self.medium.to_dict(),
                "low": self.low.to_dict(),
            },
            "total_held_by_cluster": decimal_str(self.total_held_by_cluster),
            "total_possible_hidden": decimal_str(self.total_possible_hidden),
            "wallets": [w.to_dict() for w in self.wallets],
            "risk_flags": list(self.risk_flags),
            "cluster_summary": self.cluster_summary,
            "outbound_summary": self.outbound_summary.to_dict(),
            "target_history": self.target_history.to_dict() if self.target_history else None,
            "wallet_histories": [h.to_dict() for h in self.wallet_histories],
            "ghost_wallets": [h.to_dict() for h in self.ghost_wallets],
            "pass_throughs": [p.to_dict() for p in self.pass_throughs],
            "graph": {
                "nodes": [n.to_dict() for n in self.nodes],
                "links": [link.to_dict() for link in self.links],
            },
        }


class HoldingsAnalyzer:
    """Attributes wallets to the owner of a target address.

    Every call to ``analyze`` is an independent, deterministic computation
    over the supplied scan; the analyzer keeps no state between calls.

    Example:
        ```python
        from token_cluster_tracker.ingestor.models import ScanInput
        from token_cluster_tracker.pipeline import HoldingsAnalyzer

        scan = ScanInput.from_dict(snapshot)
        report = HoldingsAnalyzer().analyze(scan, token_symbol="ARENA")
        for wallet in report.wallets:
            print(wallet.address, wallet.confidence.value, wallet.score)
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the analyzer.

        Args:
            settings: Application settings. If not provided, uses get_settings().
        """
        self._settings = settings or get_settings()

    def analyze(
        self,
        scan: ScanInput,
        *,
        token_symbol: str | None = None,
        decimals: int | None = None,
        as_of: int | None = None,
    ) -> HoldingsReport:
        """Run the full analysis over one scan.

        Args:
            scan: Transfer set plus auxiliary signals.
            token_symbol: Overrides the configured symbol.
            decimals: Overrides the decimals inferred from the transfers.
            as_of: End of the recent-dispersal window; defaults to the newest
                transfer timestamp.

        Returns:
            HoldingsReport.
        """
        config = self._settings.analyzer
        scan = scan.normalized()
        target = scan.target_key
        symbol = token_symbol or config.token_symbol
        if decimals is None:
            decimals = infer_decimals(scan.transfers, config.default_decimals)
        transfers = scan.transfers

        registry = EntityRegistry.from_settings(config, contracts=scan.contracts, labels=scan.labels)
        graph = build_wallet_graph(transfers, target, registry, decimals)
        wallet_nodes = graph.wallet_nodes()

        builder = WalletHistoryBuilder(
            transfers, registry=registry, decimals=decimals, balances=scan.balances
        )
        histories: dict[str, WalletHistory] = {}
        for node in wallet_nodes:
            history = builder.build(node.id, display=node.address)
            if history is not None:
                histories[node.id] = history
        target_history = builder.build(target, display=scan.target)
        graph.attach_histories(histories)
        if target_history is not None:
            graph.attach_histories({target: target_history})

        pass_throughs = detect_pass_throughs(histories, target, scan.balances)

        scorer = HoldingsScorer(
            transfers,
            target=target,
            registry=registry,
            decimals=decimals,
            balances=scan.balances,
            funding_sources=scan.funding_sources,
            histories=histories,
            pass_throughs=pass_throughs,
        )
        scores = scorer.score_wallets((node.id, node.address) for node in wallet_nodes)
        wallets = inherit_pass_through_confidence(scorer.admit(scores), pass_throughs)

        target_balance = scan.balance_of(target)
        if target_balance is None:
            target_balance = target_history.current_balance if target_history else ZERO

        outbound = build_outbound_summary(
            target, transfers, registry=registry, decimals=decimals, balances=scan.balances
        )

        if as_of is None:
            as_of = latest_timestamp(transfers)
        risk_flags = generate_risk_flags(
            target=target,
            wallets=wallets,
            scores=scores,
            sequential_groups=scorer.sequential_groups,
            funding_clusters=scorer.funding_clusters,
            histories=histories,
            pass_throughs=pass_throughs,
            target_sends=scorer.target_sends,
            decimals=decimals,
            token_symbol=symbol,
            as_of=as_of,
            recent_days=config.recent_dispersal_days,
        )
        summary = generate_summary(
            target_balance=target_balance,
            target_history=target_history,
            wallets=wallets,
            histories=histories,
            pass_throughs=pass_throughs,
            outbound=outbound,
            target=target,
            token_symbol=symbol,
        )

        high = ClusterTotals.of([w for w in wallets if w.confidence is Confidence.HIGH])
        medium = ClusterTotals.of([w for w in wallets if w.confidence is Confidence.MEDIUM])
        low = ClusterTotals.of([w for w in wallets if w.confidence is Confidence.LOW])
        ghosts = tuple(h for h in histories.values() if h.is_ghost)

        logger.info(
            "Analyzed %s: %d transfers, %d wallets scored, %d admitted "
            "(high=%d medium=%d low=%d), %d ghosts, %d pass-throughs",
            truncate_address(scan.target),
            len(transfers),
            len(scores),
            len(wallets),
            high.count,
            medium.count,
            low.count,
            len(ghosts),
            len(pass_throughs),
        )

        return HoldingsReport(
            target_wallet=scan.target,
            target_balance=target_balance,
            token_symbol=symbol,
            decimals=decimals,
            as_of=as_of,
            high=high,
            medium=medium,
            low=low,
            total_held_by_cluster=high.balance + medium.balance,
            total_possible_hidden=low.balance,
            wallets=tuple(wallets),
            risk_flags=tuple(risk_flags),
            cluster_summary=summary,
            outbound_summary=outbound,
            target_history=target_history,
            wallet_histories=tuple(histories.values()),
            ghost_wallets=ghosts,
            pass_throughs=tuple(pass_throughs.values()),
            nodes=tuple(graph.nodes.values()),
            links=tuple(graph.links.values()),
        )


def analyze_holdings(
    scan: ScanInput,
    *,
    token_symbol: str | None = None,
    decimals: int | None = None,
    as_of: int | None = None,
    settings: Settings | None = None,
) -> HoldingsReport:
    """Convenience wrapper around HoldingsAnalyzer.analyze."""
    analyzer = HoldingsAnalyzer(settings)
    return analyzer.analyze(scan, token_symbol=token_symbol, decimals=decimals, as_of=as_of)
