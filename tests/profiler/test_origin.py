"""Tests for token origin tracing."""

from decimal import Decimal

from factories import DECIMALS, TARGET, TRADER_JOE, address, registry, transfer

from token_cluster_tracker.profiler.models import TokenOrigin
from token_cluster_tracker.profiler.origin import DOMINANT_SHARE, trace_token_origin

WALLET = address(0xA1)
THIRD = address(0xB2)
OTHER = address(0xC3)


def trace(transfers, reg=None):
    return trace_token_origin(WALLET, TARGET, transfers, reg or registry(), DECIMALS)


class TestThresholds:
    """Boundary tests for the 70% dominance share."""

    def test_dominant_share_constant(self) -> None:
        assert DOMINANT_SHARE == Decimal("0.70")

    def test_exactly_seventy_percent_from_target(self) -> None:
        """Test that exactly 70.0% is classified from-target."""
        result = trace([transfer(TARGET, WALLET, 700), transfer(THIRD, WALLET, 300)])

        assert result.origin is TokenOrigin.FROM_TARGET
        assert result.from_target == Decimal(700)
        assert result.from_target + result.from_third_party == Decimal(1000)
        assert result.from_dex == 0

    def test_just_below_seventy_percent_is_mixed(self) -> None:
        """Test that 69.9% does not reach the threshold."""
        result = trace([transfer(TARGET, WALLET, 699), transfer(THIRD, WALLET, 301)])

        assert result.origin is TokenOrigin.MIXED

    def test_exactly_seventy_percent_from_dex(self) -> None:
        result = trace([transfer(TRADER_JOE, WALLET, 70), transfer(THIRD, WALLET, 30)])

        assert result.origin is TokenOrigin.FROM_DEX
        assert "TraderJoe Router v2" in result.details

    def test_target_share_takes_precedence(self) -> None:
        result = trace([transfer(TARGET, WALLET, 80), transfer(TRADER_JOE, WALLET, 20)])

        assert result.origin is TokenOrigin.FROM_TARGET


class TestOriginClasses:
    """Tests for each origin class."""

    def test_no_incoming_is_unknown(self) -> None:
        result = trace([transfer(WALLET, TARGET, 10)])

        assert result.origin is TokenOrigin.UNKNOWN

    def test_zero_value_total_is_unknown(self) -> None:
        result = trace([transfer(TARGET, WALLET, 0)])

        assert result.origin is TokenOrigin.UNKNOWN

    def test_detected_contract_counts_as_dex(self) -> None:
        pool = address(0xEE)
        result = trace([transfer(pool, WALLET, 100)], registry(contracts=(pool,)))

        assert result.origin is TokenOrigin.FROM_DEX
        assert result.from_dex == Decimal(100)

    def test_third_party_without_intermediary(self) -> None:
        result = trace([transfer(THIRD, WALLET, 100)])

        assert result.origin is TokenOrigin.FROM_THIRD_PARTY
        assert result.intermediary is None
        assert not result.is_intermediary_pattern

    def test_third_party_intermediary_pattern(self) -> None:
        """Test the intermediary note when the third party also dealt with the target."""
        result = trace([transfer(TARGET, THIRD, 500), transfer(THIRD, WALLET, 100)])

        assert result.origin is TokenOrigin.FROM_THIRD_PARTY
        assert result.intermediary == THIRD
        assert result.is_intermediary_pattern
        assert "intermediary pattern" in result.details

    def test_intermediary_checks_largest_third_party_only(self) -> None:
        """Test that only the largest third-party source is checked."""
        transfers = [
            transfer(TARGET, OTHER, 1),
            transfer(OTHER, WALLET, 10),
            transfer(THIRD, WALLET, 90),
        ]
        result = trace(transfers)

        assert result.origin is TokenOrigin.FROM_THIRD_PARTY
        assert result.intermediary is None

    def test_intermediary_over_triggers_on_busy_counterparty(self) -> None:
        """Known over-trigger: any contact between the source and the target counts."""
        exchange_like = address(0xCE)
        transfers = [
            transfer(exchange_like, TARGET, Decimal("0.01")),
            transfer(exchange_like, WALLET, 1000),
        ]
        result = trace(transfers)

        assert result.intermediary == exchange_like

    def test_mixed_lists_non_zero_buckets(self) -> None:
        transfers = [
            transfer(TARGET, WALLET, 40),
            transfer(TRADER_JOE, WALLET, 30),
            transfer(THIRD, WALLET, 30),
        ]
        result = trace(transfers)

        assert result.origin is TokenOrigin.MIXED
        assert "from target" in result.details
        assert "from DEX" in result.details
        assert "from third parties" in result.details

    def test_largest_incoming_tracked(self) -> None:
        transfers = [
            transfer(TARGET, WALLET, 10, ts=1),
            transfer(TARGET, WALLET, 50, ts=2),
        ]
        result = trace(transfers)

        assert result.largest is not None
        assert result.largest.amount == Decimal(50)
        assert result.largest.timestamp == 2

    def test_pure_function(self) -> None:
        transfers = [transfer(TARGET, WALLET, 10), transfer(THIRD, WALLET, 5)]

        assert trace(transfers) == trace(list(transfers))
