"""Same-owner heuristic scorer.

This module provides the HoldingsScorer class, which sums independent
heuristic contributions for every wallet connected to the target and keeps
one human-readable reason per contribution.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from token_cluster_tracker.detector.models import (
    BIDIRECTIONAL_REASON,
    FundingMatch,
    HiddenHoldingWallet,
    PassThroughLink,
    WalletScore,
)
from token_cluster_tracker.detector.patterns import (
    build_funding_clusters,
    detect_sequential_sends,
    has_other_activity,
    timing_correlation_points,
)
from token_cluster_tracker.formatting import format_amount, truncate_address
from token_cluster_tracker.ingestor.models import TransferEvent
from token_cluster_tracker.profiler.entities import EntityRegistry
from token_cluster_tracker.profiler.models import ZERO, TokenOrigin, WalletHistory
from token_cluster_tracker.profiler.origin import trace_token_origin

logger = logging.getLogger(__name__)

# Admission threshold; independent of the confidence tiers.
MIN_SCORE = 15

# Heuristic weights
BIDIRECTIONAL_POINTS = 30
SHARED_FUNDER_WITH_TARGET_POINTS = 25
SHARED_FUNDER_CLUSTER_POINTS = 20
SEQUENTIAL_SEND_POINTS = 10
RECEIVED_AND_HELD_POINTS = 10
ISOLATED_ACTIVITY_POINTS = 10
ORIGIN_FROM_TARGET_POINTS = 20
ORIGIN_FROM_DEX_POINTS = -30
ORIGIN_INTERMEDIARY_POINTS = 15
PASS_THROUGH_POINTS = 20
SELL_OFF_POINTS = -15

SELL_OFF_SHARE = Decimal("0.9")

HELD_REASON = "Received tokens and still holding"


class HoldingsScorer:
    """Scores wallets connected to a target on a same-owner likelihood scale.

    Heuristics, in order:
    1. Bidirectional transfers with the target (+30)
    2. Same first gas funder as the target (+25), else
    3. Funder shared with at least one other known wallet (+20)
    4. Rapid opposite-direction transfer pairs (+5 / +10 / +15)
    5. Member of a sequential dispersal batch from the target (+10)
    6. Received from the target and still holding (+10)
    7. No token activity with anyone but the target (+10)
    8. Token origin: from target and holding (+20), bought on DEX (-30),
       via an intermediary that also dealt with the target (+15)
    9. Pass-through ghost wallet (+20)
    10. Sold >= 90% of outflow to DEX or contracts (-15), unless the
        wallet shares the target's funder

    Wallets scoring below MIN_SCORE are not admitted into the report.

    Example:
        ```python
        scorer = HoldingsScorer(
            transfers,
            target=target,
            registry=registry,
            decimals=18,
            balances=balances,
            funding_sources=funding,
            histories=histories,
            pass_throughs=links,
        )
        scores = scorer.score_wallets(graph.wallet_nodes())
        wallets = scorer.admit(scores)
        ```
    """

    def __init__(
        self,
        transfers: Sequence[TransferEvent],
        *,
        target: str,
        registry: EntityRegistry,
        decimals: int,
        balances: Mapping[str, Decimal | None],
        funding_sources: Mapping[str, str],
        histories: Mapping[str, WalletHistory] | None = None,
        pass_throughs: Mapping[str, PassThroughLink] | None = None,
        min_score: int = MIN_SCORE,
    ) -> None:
        self._transfers = transfers
        self._target = target.lower()
        self._registry = registry
        self._decimals = decimals
        self._balances = balances
        self._funding_sources = funding_sources
        self._histories = histories or {}
        self._pass_throughs = pass_throughs or {}
        self._min_score = min_score

        self._peer_transfers: dict[str, list[TransferEvent]] = defaultdict(list)
        for tx in transfers:
            if tx.sender == tx.recipient:
                continue
            if tx.sender == self._target and tx.recipient:
                self._peer_transfers[tx.recipient].append(tx)
            elif tx.recipient == self._target and tx.sender:
                self._peer_transfers[tx.sender].append(tx)

        self._target_sends = [
            tx
            for tx in transfers
            if tx.sender == self._target and tx.recipient and tx.recipient != self._target
        ]
        self.sequential_groups = detect_sequential_sends(self._target_sends, self._target)
        self._sequential_wallets = {addr for group in self.sequential_groups for addr in group}

        self.funding_clusters = build_funding_clusters(funding_sources)
        self._target_funder = self._funder_of(self._target)

    @property
    def target_sends(self) -> list[TransferEvent]:
        """Every send from the target to another address, contracts included."""
        return list(self._target_sends)

    def _funder_of(self, address: str) -> str | None:
        funder = self._funding_sources.get(address)
        return funder.lower() if funder else None

    def score_wallet(self, address: str, *, display: str | None = None) -> WalletScore:
        """Run every heuristic against one wallet.

        Args:
            address: Wallet to score.
            display: Original-case spelling for output; defaults to ``address``.

        Returns:
            WalletScore, whether or not it reaches the admission threshold.
        """
        key = address.lower()
        result = WalletScore(address=display or address)

        peer_txs = self._peer_transfers.get(key, [])
        sent_count = 0
        received_count = 0
        sent_to_target = ZERO
        received_from_target = ZERO
        timestamps: list[int] = []
        for tx in peer_txs:
            amount = tx.amount(self._decimals)
            if tx.sender == self._target:
                received_count += 1
                received_from_target += amount
            else:
                sent_count += 1
                sent_to_target += amount
            if tx.timestamp is not None:
                timestamps.append(tx.timestamp)

        result.transfers_with_target = len(peer_txs)
        result.net_flow_from_target = received_from_target - sent_to_target
        result.first_interaction = min(timestamps) if timestamps else None
        result.last_interaction = max(timestamps) if timestamps else None
        result.balance = self._balances.get(key)
        holding = result.balance is not None and result.balance > 0

        # 1. Bidirectional transfers
        if sent_count > 0 and received_count > 0:
            result.is_bidirectional = True
            result.add(BIDIRECTIONAL_POINTS, BIDIRECTIONAL_REASON)

        # 2 / 3. Funding; at most one of the two applies
        funder = self._funder_of(key)
        result.funding_source = funder
        result.funding_match = self._funding_match(funder)
        if result.funding_match is FundingMatch.SHARED_WITH_TARGET:
            result.add(
                SHARED_FUNDER_WITH_TARGET_POINTS,
                f"Shared funding source: {truncate_address(funder or '')}",
            )
        elif result.funding_match is FundingMatch.SHARED_CLUSTER:
            others = len(self.funding_clusters[funder or ""]) - 1
            result.add(
                SHARED_FUNDER_CLUSTER_POINTS,
                f"Shared gas funder with {others} other wallet(s)",
            )

        # 4. Timing correlation
        timing = timing_correlation_points(peer_txs, self._target)
        if timing > 0:
            result.add(timing, "Rapid transfer timing (< 5 min windows)")

        # 5. Sequential dispersal
        if key in self._sequential_wallets:
            result.add(SEQUENTIAL_SEND_POINTS, "Sequential send pattern from target")

        # 6. Received then held
        if received_count > 0 and holding:
            result.is_received_and_held = True
            result.add(RECEIVED_AND_HELD_POINTS, HELD_REASON)

        # 7. Isolated activity
        if peer_txs and not has_other_activity(key, self._target, self._transfers):
            result.add(ISOLATED_ACTIVITY_POINTS, "No token activity with anyone else")

        # 8. Token origin
        origin = trace_token_origin(key, self._target, self._transfers, self._registry, self._decimals)
        result.token_origin = origin.origin
        result.token_origin_details = origin.details
        if origin.origin is TokenOrigin.FROM_TARGET and holding:
            result.add(ORIGIN_FROM_TARGET_POINTS, "Tokens originated from target and are still held")
        elif origin.origin is TokenOrigin.FROM_DEX:
            result.add(ORIGIN_FROM_DEX_POINTS, "Tokens bought on DEX (independent buyer signal)")
        elif origin.is_intermediary_pattern:
            result.add(
                ORIGIN_INTERMEDIARY_POINTS,
                f"Tokens routed via intermediary {truncate_address(origin.intermediary or '')} "
                "that also transacted with target",
            )

        # 9. Pass-through
        history = self._histories.get(key)
        result.is_ghost = history.is_ghost if history is not None else False
        link = self._pass_throughs.get(key)
        if link is not None:
            result.pass_through_to = link.final_holder_display
            result.add(
                PASS_THROUGH_POINTS,
                f"Pass-through: forwarded {format_amount(link.forwarded)} to "
                f"{truncate_address(link.final_holder_display)} which still holds "
                f"{format_amount(link.holder_balance)}",
            )

        # 10. Sell-off
        if history is not None and history.total_sent > 0:
            venue_share = history.disposition.to_venues_amount / history.total_sent
            if venue_share >= SELL_OFF_SHARE:
                pct = f"{float(venue_share * 100):.0f}%"
                if result.funding_match is FundingMatch.SHARED_WITH_TARGET:
                    result.note(f"Sold {pct} of outflow on DEX; shares target's funder (possible wash sale)")
                else:
                    result.add(SELL_OFF_POINTS, f"Sold {pct} of outflow on DEX (likely independent trader)")

        logger.debug(
            "Scored %s: %d (%s)",
            truncate_address(result.address),
            result.score,
            ", ".join(result.reasons) or "no signals",
        )
        return result

    def _funding_match(self, funder: str | None) -> FundingMatch:
        if funder is None:
            return FundingMatch.NONE
        if self._target_funder is not None and funder == self._target_funder:
            return FundingMatch.SHARED_WITH_TARGET
        if len(self.funding_clusters.get(funder, ())) >= 2:
            return FundingMatch.SHARED_CLUSTER
        return FundingMatch.NONE

    def score_wallets(self, wallets: Iterable[tuple[str, str]]) -> list[WalletScore]:
        """Score (key, display) pairs, skipping the target and contracts."""
        scores: list[WalletScore] = []
        for key, display in wallets:
            key = key.lower()
            if key == self._target or self._registry.is_contract(key):
                continue
            scores.append(self.score_wallet(key, display=display))
        return scores

    def admit(self, scores: Iterable[WalletScore]) -> list[HiddenHoldingWallet]:
        """Keep wallets at or above the admission threshold, best first.

        Ties on score are broken by balance (unknown counts as zero), then
        by address.
        """
        admitted = [
            HiddenHoldingWallet.from_score(s) for s in scores if s.score >= self._min_score
        ]
        admitted.sort(key=lambda w: (-w.score, -w.held, w.key))
        return admitted
