"""Tests for the narrative summary."""

from decimal import Decimal

from factories import BASE_TS, TARGET, address

from token_cluster_tracker.alerter.narrative import generate_summary, summary_sections
from token_cluster_tracker.detector.models import (
    Confidence,
    FundingMatch,
    HiddenHoldingWallet,
    PassThroughLink,
)
from token_cluster_tracker.profiler.models import (
    DispositionBreakdown,
    DispositionBucket,
    OutboundSummary,
    TokenOrigin,
    WalletHistory,
)

A = address(0xA1)
B = address(0xB2)
C = address(0xC3)


def create_wallet(address_: str, score: int, balance: int | None, **kwargs) -> HiddenHoldingWallet:
    """Create a HiddenHoldingWallet for testing."""
    return HiddenHoldingWallet(
        address=address_,
        score=score,
        confidence=kwargs.pop("confidence", Confidence.for_score(score)),
        reasons=(),
        funding_source=kwargs.pop("funding_source", None),
        funding_match=kwargs.pop("funding_match", FundingMatch.NONE),
        first_interaction=None,
        last_interaction=None,
        transfers_with_target=1,
        net_flow_from_target=Decimal(0),
        balance=Decimal(balance) if balance is not None else None,
        token_origin=TokenOrigin.UNKNOWN,
        token_origin_details="",
        **kwargs,
    )


def history(address_: str, *, peak: int, current: int, ghost: bool = False) -> WalletHistory:
    return WalletHistory(
        address=address_,
        current_balance=Decimal(current),
        peak_balance=Decimal(peak),
        peak_date=BASE_TS,
        total_received=Decimal(peak),
        total_sent=Decimal(peak - current),
        net_disposed=Decimal(peak - current),
        disposition=DispositionBreakdown(),
        is_ghost=ghost,
    )


def sections(**kwargs) -> list[str]:
    params = dict(
        target_balance=Decimal(100),
        target_history=None,
        wallets=[],
        histories={},
        pass_throughs={},
        outbound=OutboundSummary(),
        target=TARGET,
        token_symbol="ARENA",
    )
    params.update(kwargs)
    return summary_sections(**params)


class TestSummarySections:
    """Tests for narrative sections."""

    def test_nothing_found(self) -> None:
        assert sections() == [
            "Target wallet holds 100 ARENA directly.",
            "No strong same-owner signals were detected among connected wallets.",
        ]

    def test_only_low_wallets_is_not_a_strong_signal(self) -> None:
        result = sections(wallets=[create_wallet(A, 20, 7)])

        assert result[1] == "1 wallet(s) (LOW confidence) hold 7 ARENA with weaker signals."
        assert result[-1] == "No strong same-owner signals were detected among connected wallets."

    def test_target_peak_history(self) -> None:
        result = sections(target_history=history(TARGET, peak=5000, current=100))

        assert result[0] == (
            "Target wallet holds 100 ARENA directly. It peaked at 5.0K ARENA on "
            "Nov 14, 2023 and has since moved out 4.9K ARENA."
        )

    def test_outbound_section(self) -> None:
        outbound = OutboundSummary(
            total=Decimal(200),
            to_dex=DispositionBucket(amount=Decimal(50), percentage=25.0, count=1),
            to_wallets=DispositionBucket(amount=Decimal(150), percentage=75.0, count=3),
        )

        assert sections(outbound=outbound)[1] == (
            "Of 200 ARENA sent out by the target, 25.0% went to DEX routers or contracts "
            "and 75.0% to wallets."
        )

    def test_tiers_and_estimate(self) -> None:
        wallets = [
            create_wallet(
                A,
                70,
                300,
                funding_source=address(0xF1),
                funding_match=FundingMatch.SHARED_WITH_TARGET,
                is_bidirectional=True,
            ),
            create_wallet(B, 40, 50),
            create_wallet(C, 40, None),
        ]
        result = sections(wallets=wallets)

        assert result[1] == (
            "Analysis identified 1 additional wallet(s) likely belonging to the same person, "
            "holding a combined 300 ARENA. 1 wallet(s) are HIGH confidence "
            "(shared funding source from 0x0000...00f1, bidirectional transfers)."
        )
        assert result[2] == (
            "2 additional wallet(s) (MEDIUM confidence) hold 50 ARENA and may also belong "
            "to this person."
        )
        assert result[-1] == (
            "Combined same-owner estimate: 450 ARENA across 4 wallets (target + HIGH + MEDIUM)."
        )

    def test_unshared_funder_not_called_shared(self) -> None:
        """Test that a HIGH wallet with its own unique funder adds no funding signal."""
        wallets = [
            create_wallet(A, 65, 300, funding_source=address(0xF2), is_bidirectional=True),
        ]
        result = sections(wallets=wallets)

        assert "shared funding" not in result[1]
        assert result[1].endswith("1 wallet(s) are HIGH confidence (bidirectional transfers).")

    def test_unshared_funder_and_no_other_signal(self) -> None:
        result = sections(wallets=[create_wallet(A, 65, 300, funding_source=address(0xF2))])

        assert result[1] == (
            "Analysis identified 1 additional wallet(s) likely belonging to the same person, "
            "holding a combined 300 ARENA."
        )

    def test_ghosts_and_pass_throughs(self) -> None:
        histories = {
            A: history(A, peak=1000, current=0, ghost=True),
            TARGET: history(TARGET, peak=10, current=0, ghost=True),
        }
        link = PassThroughLink(
            ghost=A,
            final_holder=B,
            ghost_display=A,
            final_holder_display=B,
            forwarded=Decimal(950),
            forwarded_share=Decimal(1),
            holder_balance=Decimal(900),
        )
        result = sections(histories=histories, pass_throughs={A: link})

        assert result[1] == (
            "1 ghost wallet(s) once held a combined 1.0K ARENA and have since emptied, "
            "moving out 1.0K ARENA."
        )
        assert result[2] == (
            "Pass-through chains: 0x0000...00a1 -> 0x0000...00b2 (still holds 900 ARENA)."
        )

    def test_pass_through_names_at_most_three(self) -> None:
        links = {
            address(n): PassThroughLink(
                ghost=address(n),
                final_holder=B,
                ghost_display=address(n),
                final_holder_display=B,
                forwarded=Decimal(1),
                forwarded_share=Decimal(1),
                holder_balance=Decimal(1),
            )
            for n in range(1, 6)
        }
        result = sections(pass_throughs=links)

        assert result[1].endswith("; and 2 more.")
        assert result[1].count("->") == 3


class TestGenerateSummary:
    """Tests for generate_summary."""

    def test_joined_with_spaces(self) -> None:
        summary = generate_summary(
            target_balance=Decimal(0),
            target_history=None,
            wallets=[],
            histories={},
            pass_throughs={},
            outbound=OutboundSummary(),
            target=TARGET,
            token_symbol="ARENA",
        )

        assert summary == (
            "Target wallet holds 0 ARENA directly. "
            "No strong same-owner signals were detected among connected wallets."
        )
