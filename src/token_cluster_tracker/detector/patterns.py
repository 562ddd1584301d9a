"""Transfer-pattern primitives used by the holdings scorer.

Each function here is a pure function over the transfer set:

- sequential dispersal: the target sending to several distinct wallets in quick succession
- timing correlation: rapid back-and-forth transfers between a wallet and the target
- isolated activity: a wallet whose only token activity is with the target
- funding clusters: wallets grouped by their first gas funder
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from token_cluster_tracker.ingestor.models import TransferEvent

DEFAULT_SEQUENTIAL_GAP_SECONDS = 120
DEFAULT_TIMING_WINDOW_SECONDS = 300
MIN_SEQUENTIAL_GROUP_SIZE = 2

# Rapid opposite-direction pairs -> points, highest tier first.
TIMING_POINTS = ((3, 15), (2, 10), (1, 5))


def detect_sequential_sends(
    target_sends: Iterable[TransferEvent],
    target: str,
    *,
    gap_seconds: int = DEFAULT_SEQUENTIAL_GAP_SECONDS,
) -> list[list[str]]:
    """Group the target's outgoing transfers into rapid-fire dispersal batches.

    Sends are walked in chronological order; a send less than ``gap_seconds``
    after the previous one joins the current group, otherwise it starts a new
    group. Groups with at least two distinct recipients are returned.

    Args:
        target_sends: Transfers sent by the target (any order).
        target: Target wallet.
        gap_seconds: Maximum gap between consecutive sends in one group.

    Returns:
        Groups of lower-cased recipient addresses, in chronological order.
    """
    target = target.lower()
    ordered = sorted(
        (tx for tx in target_sends if tx.timestamp is not None and tx.sender == target),
        key=lambda tx: tx.sort_key,
    )

    groups: list[list[str]] = []
    current: list[str] = []
    last_ts: int | None = None

    for tx in ordered:
        recipient = tx.recipient
        if not recipient or recipient == target:
            continue
        ts = tx.sort_key
        if last_ts is not None and ts - last_ts < gap_seconds:
            if recipient not in current:
                current.append(recipient)
        else:
            if len(current) >= MIN_SEQUENTIAL_GROUP_SIZE:
                groups.append(current)
            current = [recipient]
        last_ts = ts

    if len(current) >= MIN_SEQUENTIAL_GROUP_SIZE:
        groups.append(current)
    return groups


def count_rapid_pairs(
    peer_transfers: Sequence[TransferEvent],
    target: str,
    *,
    window_seconds: int = DEFAULT_TIMING_WINDOW_SECONDS,
) -> int:
    """Count adjacent opposite-direction transfer pairs closer than the window.

    Transfers without a timestamp are left out.
    """
    target = target.lower()
    ordered = sorted(
        (tx for tx in peer_transfers if tx.timestamp is not None),
        key=lambda tx: tx.sort_key,
    )
    pairs = 0
    for prev, curr in zip(ordered, ordered[1:]):
        prev_sent = prev.sender == target
        curr_sent = curr.sender == target
        if prev_sent != curr_sent and curr.sort_key - prev.sort_key < window_seconds:
            pairs += 1
    return pairs


def timing_correlation_points(peer_transfers: Sequence[TransferEvent], target: str) -> int:
    """Points for rapid transfer timing between a wallet and the target (0, 5, 10 or 15)."""
    pairs = count_rapid_pairs(peer_transfers, target)
    for min_pairs, points in TIMING_POINTS:
        if pairs >= min_pairs:
            return points
    return 0


def has_other_activity(address: str, target: str, transfers: Iterable[TransferEvent]) -> bool:
    """True when the wallet moved tokens with anyone other than the target."""
    address = address.lower()
    target = target.lower()
    for tx in transfers:
        if tx.sender == address and tx.recipient not in (target, address):
            return True
        if tx.recipient == address and tx.sender not in (target, address):
            return True
    return False


def build_funding_clusters(funding_sources: Mapping[str, str]) -> dict[str, list[str]]:
    """Group wallets by first gas funder.

    Args:
        funding_sources: Wallet -> funder map; empty funders are skipped.

    Returns:
        Lower-cased funder -> lower-cased wallets, in map order.
    """
    clusters: dict[str, list[str]] = {}
    for wallet, funder in funding_sources.items():
        if not funder:
            continue
        members = clusters.setdefault(funder.lower(), [])
        key = wallet.lower()
        if key not in members:
            members.append(key)
    return clusters
