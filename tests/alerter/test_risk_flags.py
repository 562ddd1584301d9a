"""Tests for risk flag generation."""

from decimal import Decimal

from factories import BASE_TS, TARGET, address, transfer

from token_cluster_tracker.alerter.risk_flags import (
    SECONDS_PER_DAY,
    generate_risk_flags,
    latest_timestamp,
    recent_dispersal,
)
from token_cluster_tracker.detector.models import (
    Confidence,
    FundingMatch,
    HiddenHoldingWallet,
    PassThroughLink,
    WalletScore,
)
from token_cluster_tracker.profiler.models import (
    DispositionBreakdown,
    TokenOrigin,
    WalletHistory,
)

A = address(0xA1)
B = address(0xB2)
C = address(0xC3)
FUNDER = address(0xF1)


def create_wallet(address_: str, score: int = 40, **kwargs) -> HiddenHoldingWallet:
    """Create a HiddenHoldingWallet for testing."""
    defaults = dict(
        address=address_,
        score=score,
        confidence=Confidence.for_score(score),
        reasons=(),
        funding_source=None,
        funding_match=FundingMatch.NONE,
        first_interaction=None,
        last_interaction=None,
        transfers_with_target=1,
        net_flow_from_target=Decimal(0),
        balance=None,
        token_origin=TokenOrigin.UNKNOWN,
        token_origin_details="",
    )
    defaults.update(kwargs)
    return HiddenHoldingWallet(**defaults)


def create_history(address_: str, *, peak: int, current: int) -> WalletHistory:
    return WalletHistory(
        address=address_,
        current_balance=Decimal(current),
        peak_balance=Decimal(peak),
        peak_date=BASE_TS,
        total_received=Decimal(peak),
        total_sent=Decimal(peak - current),
        net_disposed=Decimal(peak - current),
        disposition=DispositionBreakdown(),
        is_ghost=current <= peak * 0.01,
    )


def flags(**kwargs) -> list[str]:
    params = dict(
        target=TARGET,
        wallets=[],
        scores=[],
        sequential_groups=[],
        funding_clusters={},
        histories={},
        pass_throughs={},
        target_sends=[],
        decimals=18,
        token_symbol="ARENA",
    )
    params.update(kwargs)
    return generate_risk_flags(**params)


class TestRules:
    """Tests for the individual flag rules."""

    def test_no_signals_no_flags(self) -> None:
        assert flags() == []

    def test_wallet_splitting_emitted_once(self) -> None:
        result = flags(sequential_groups=[[A, B, C], [A, B]])

        assert result == [
            "Wallet splitting detected: 3 wallets received tokens in sequential transactions"
        ]

    def test_wash_trading_uses_absolute_net_flow(self) -> None:
        wallets = [
            create_wallet(A, is_bidirectional=True, net_flow_from_target=Decimal(-40)),
            create_wallet(B, is_bidirectional=True, net_flow_from_target=Decimal(60)),
            create_wallet(C, net_flow_from_target=Decimal(1000)),
        ]

        assert flags(wallets=wallets) == [
            "Possible wash trading: bidirectional transfers totaling 100 ARENA"
        ]

    def test_cold_storage_needs_positive_balance(self) -> None:
        wallets = [
            create_wallet(A, is_received_and_held=True, balance=Decimal(5)),
            create_wallet(B, is_received_and_held=True, balance=None),
        ]

        assert flags(wallets=wallets) == [
            "Cold storage pattern: 1 wallet(s) received tokens and never moved them"
        ]

    def test_shared_funding_first_cluster(self) -> None:
        clusters = {address(0xF0): [A], FUNDER: [A, B, C], address(0xF2): [B, C]}

        assert flags(funding_clusters=clusters) == [
            "Shared funding source: 3 wallets funded by 0x0000...00f1"
        ]

    def test_independent_buyers_from_all_scores(self) -> None:
        scores = [
            WalletScore(address=A, score=-30, token_origin=TokenOrigin.FROM_DEX, balance=Decimal(50)),
            WalletScore(address=B, score=-30, token_origin=TokenOrigin.FROM_DEX),
        ]

        assert flags(scores=scores) == [
            "Independent buyers: 2 wallet(s) bought on DEX and hold 50 ARENA (not attributed to target)"
        ]

    def test_ghost_wallets_exclude_target(self) -> None:
        histories = {
            A: create_history(A, peak=1000, current=0),
            B: create_history(B, peak=2500, current=5),
            C: create_history(C, peak=100, current=100),
            TARGET: create_history(TARGET, peak=9000, current=0),
        }

        assert flags(histories=histories) == [
            "Ghost wallets: 2 wallet(s) emptied after holding a combined peak of 3.5K ARENA"
        ]

    def test_pass_through_chains(self) -> None:
        link = PassThroughLink(
            ghost=A,
            final_holder=B,
            ghost_display=A,
            final_holder_display=B,
            forwarded=Decimal(950),
            forwarded_share=Decimal(1),
            holder_balance=Decimal(900),
        )

        assert flags(pass_throughs={A: link}) == [
            "Pass-through chains: 1 ghost wallet(s) forwarded tokens to a wallet that still holds them"
        ]

    def test_rule_order(self) -> None:
        wallets = [create_wallet(A, is_bidirectional=True, net_flow_from_target=Decimal(1))]
        result = flags(
            wallets=wallets,
            sequential_groups=[[A, B]],
            funding_clusters={FUNDER: [A, B]},
        )

        assert [f.split(":")[0] for f in result] == [
            "Wallet splitting detected",
            "Possible wash trading",
            "Shared funding source",
        ]


class TestRecentDispersal:
    """Tests for the trailing-window dispersal rule."""

    def test_window_relative_to_as_of(self) -> None:
        as_of = BASE_TS + 30 * SECONDS_PER_DAY
        sends = [
            transfer(TARGET, A, 100, ts=as_of - 7 * SECONDS_PER_DAY),
            transfer(TARGET, A, 10, ts=as_of - 7 * SECONDS_PER_DAY + 1),
            transfer(TARGET, B, 20, ts=as_of),
            transfer(TARGET, C, 40, ts=as_of + 1),
        ]

        assert recent_dispersal(sends, as_of=as_of, decimals=18) == (Decimal(30), 2)

    def test_defaults_to_newest_send(self) -> None:
        sends = [transfer(TARGET, A, 5, ts=BASE_TS), transfer(TARGET, B, 5, ts=BASE_TS - 10)]

        assert recent_dispersal(sends, as_of=None, decimals=18) == (Decimal(10), 2)

    def test_no_timestamps(self) -> None:
        assert recent_dispersal([transfer(TARGET, A, 5, ts=None)], as_of=None, decimals=18) == (0, 0)
        assert latest_timestamp([]) is None

    def test_flag_needs_two_transfers(self) -> None:
        one = [transfer(TARGET, A, 5, ts=BASE_TS)]
        two = one + [transfer(TARGET, B, 1500, ts=BASE_TS + 60)]

        assert flags(target_sends=one) == []
        assert flags(target_sends=two, recent_days=3) == [
            "Recent dispersal: 1.5K ARENA distributed in 2 transfers in the last 3 days"
        ]
