"""Tests for transfer-pattern primitives."""

from factories import BASE_TS, TARGET, address, transfer

from token_cluster_tracker.detector.patterns import (
    build_funding_clusters,
    count_rapid_pairs,
    detect_sequential_sends,
    has_other_activity,
    timing_correlation_points,
)

A = address(0xA1)
B = address(0xB2)
C = address(0xC3)
D = address(0xD4)


class TestSequentialSends:
    """Tests for detect_sequential_sends."""

    def test_rapid_sends_grouped(self) -> None:
        sends = [
            transfer(TARGET, A, 10, ts=BASE_TS),
            transfer(TARGET, B, 10, ts=BASE_TS + 90),
            transfer(TARGET, C, 10, ts=BASE_TS + 180),
        ]

        assert detect_sequential_sends(sends, TARGET) == [[A, B, C]]

    def test_gap_of_120_seconds_splits(self) -> None:
        sends = [
            transfer(TARGET, A, 1, ts=BASE_TS),
            transfer(TARGET, B, 1, ts=BASE_TS + 120),
        ]

        assert detect_sequential_sends(sends, TARGET) == []

    def test_unordered_input_sorted(self) -> None:
        sends = [
            transfer(TARGET, B, 1, ts=BASE_TS + 60),
            transfer(TARGET, A, 1, ts=BASE_TS),
        ]

        assert detect_sequential_sends(sends, TARGET) == [[A, B]]

    def test_repeat_recipient_needs_two_distinct(self) -> None:
        sends = [
            transfer(TARGET, A, 1, ts=BASE_TS),
            transfer(TARGET, A, 1, ts=BASE_TS + 10),
        ]

        assert detect_sequential_sends(sends, TARGET) == []

    def test_separate_batches(self) -> None:
        sends = [
            transfer(TARGET, A, 1, ts=BASE_TS),
            transfer(TARGET, B, 1, ts=BASE_TS + 30),
            transfer(TARGET, C, 1, ts=BASE_TS + 1000),
            transfer(TARGET, D, 1, ts=BASE_TS + 1030),
        ]

        assert detect_sequential_sends(sends, TARGET) == [[A, B], [C, D]]

    def test_self_sends_and_missing_timestamps_skipped(self) -> None:
        sends = [
            transfer(TARGET, A, 1, ts=BASE_TS),
            transfer(TARGET, TARGET, 1, ts=BASE_TS + 10),
            transfer(TARGET, B, 1, ts=None),
        ]

        assert detect_sequential_sends(sends, TARGET) == []


class TestTimingCorrelation:
    """Tests for rapid opposite-direction transfer pairs."""

    def test_points_by_pair_count(self) -> None:
        def peer(n: int):
            return [
                transfer(TARGET, A, 1, ts=BASE_TS + 60 * i)
                if i % 2 == 0
                else transfer(A, TARGET, 1, ts=BASE_TS + 60 * i)
                for i in range(n)
            ]

        assert timing_correlation_points(peer(1), TARGET) == 0
        assert timing_correlation_points(peer(2), TARGET) == 5
        assert timing_correlation_points(peer(3), TARGET) == 10
        assert timing_correlation_points(peer(4), TARGET) == 15
        assert timing_correlation_points(peer(6), TARGET) == 15

    def test_same_direction_not_counted(self) -> None:
        txs = [transfer(TARGET, A, 1, ts=BASE_TS), transfer(TARGET, A, 1, ts=BASE_TS + 10)]

        assert count_rapid_pairs(txs, TARGET) == 0

    def test_window_is_exclusive(self) -> None:
        txs = [transfer(TARGET, A, 1, ts=BASE_TS), transfer(A, TARGET, 1, ts=BASE_TS + 300)]

        assert count_rapid_pairs(txs, TARGET) == 0
        txs = [transfer(TARGET, A, 1, ts=BASE_TS), transfer(A, TARGET, 1, ts=BASE_TS + 299)]
        assert count_rapid_pairs(txs, TARGET) == 1


class TestOtherActivity:
    """Tests for has_other_activity."""

    def test_only_target(self) -> None:
        txs = [transfer(TARGET, A, 1), transfer(A, TARGET, 1), transfer(B, C, 1)]

        assert not has_other_activity(A, TARGET, txs)

    def test_with_third_party(self) -> None:
        assert has_other_activity(A, TARGET, [transfer(TARGET, A, 1), transfer(A, B, 1)])
        assert has_other_activity(A, TARGET, [transfer(B, A, 1)])


class TestFundingClusters:
    """Tests for build_funding_clusters."""

    def test_groups_by_funder(self) -> None:
        clusters = build_funding_clusters({A: "0xF1", B: "0xf1", C: "0xF2", D: ""})

        assert clusters == {"0xf1": [A, B], "0xf2": [C]}
