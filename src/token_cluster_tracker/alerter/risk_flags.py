"""Plain-language risk flags over the scored wallet population.

Rules are evaluated once, in a fixed order; each appends at most one flag.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from token_cluster_tracker.detector.models import HiddenHoldingWallet, PassThroughLink, WalletScore
from token_cluster_tracker.formatting import format_amount, truncate_address
from token_cluster_tracker.ingestor.models import TransferEvent
from token_cluster_tracker.profiler.models import ZERO, TokenOrigin, WalletHistory

DEFAULT_RECENT_DAYS = 7
SECONDS_PER_DAY = 24 * 60 * 60
MIN_RECENT_TRANSFERS = 2
MIN_CLUSTER_SIZE = 2


def latest_timestamp(transfers: Iterable[TransferEvent]) -> int | None:
    """Newest timestamp in the set, None when no transfer carries one."""
    stamps = [tx.timestamp for tx in transfers if tx.timestamp is not None]
    return max(stamps) if stamps else None


def recent_dispersal(
    target_sends: Sequence[TransferEvent],
    *,
    as_of: int | None,
    decimals: int,
    days: int = DEFAULT_RECENT_DAYS,
) -> tuple[Decimal, int]:
    """Amount and count of the target's sends inside the trailing window.

    The window ends at ``as_of`` (defaults to the newest send) and is open at
    its start.
    """
    if as_of is None:
        as_of = latest_timestamp(target_sends)
    if as_of is None:
        return ZERO, 0
    cutoff = as_of - days * SECONDS_PER_DAY
    amount = ZERO
    count = 0
    for tx in target_sends:
        if tx.timestamp is None or tx.timestamp <= cutoff or tx.timestamp > as_of:
            continue
        amount += tx.amount(decimals)
        count += 1
    return amount, count


def generate_risk_flags(
    *,
    target: str,
    wallets: Sequence[HiddenHoldingWallet],
    scores: Sequence[WalletScore],
    sequential_groups: Sequence[Sequence[str]],
    funding_clusters: Mapping[str, Sequence[str]],
    histories: Mapping[str, WalletHistory],
    pass_throughs: Mapping[str, PassThroughLink],
    target_sends: Sequence[TransferEvent],
    decimals: int,
    token_symbol: str,
    as_of: int | None = None,
    recent_days: int = DEFAULT_RECENT_DAYS,
) -> list[str]:
    """Build the ordered risk flag list.

    Args:
        target: Target wallet.
        wallets: Admitted wallets (after confidence inheritance).
        scores: Every scored wallet, admitted or not.
        sequential_groups: Dispersal groups from the target.
        funding_clusters: Funder -> wallets.
        histories: Lower-cased address -> wallet history.
        pass_throughs: Ghost key -> pass-through link.
        target_sends: Transfers sent by the target.
        decimals: Token decimals.
        token_symbol: Symbol used in flag text.
        as_of: End of the recent-dispersal window.
        recent_days: Length of the recent-dispersal window.

    Returns:
        Flag strings, at most one per rule.
    """
    target = target.lower()
    flags: list[str] = []

    for group in sequential_groups:
        if len(group) >= MIN_CLUSTER_SIZE:
            flags.append(
                f"Wallet splitting detected: {len(group)} wallets received tokens "
                "in sequential transactions"
            )
            break

    bidirectional = [w for w in wallets if w.is_bidirectional]
    if bidirectional:
        volume = sum((abs(w.net_flow_from_target) for w in bidirectional), ZERO)
        flags.append(
            f"Possible wash trading: bidirectional transfers totaling "
            f"{format_amount(volume)} {token_symbol}"
        )

    cold = [w for w in wallets if w.is_received_and_held and w.held > 0]
    if cold:
        flags.append(
            f"Cold storage pattern: {len(cold)} wallet(s) received tokens and never moved them"
        )

    for funder, members in funding_clusters.items():
        if len(members) >= MIN_CLUSTER_SIZE:
            flags.append(
                f"Shared funding source: {len(members)} wallets funded by {truncate_address(funder)}"
            )
            break

    buyers = [s for s in scores if s.token_origin is TokenOrigin.FROM_DEX]
    if buyers:
        held = sum((s.balance for s in buyers if s.balance is not None), ZERO)
        flags.append(
            f"Independent buyers: {len(buyers)} wallet(s) bought on DEX and hold "
            f"{format_amount(held)} {token_symbol} (not attributed to target)"
        )

    ghosts = [h for key, h in histories.items() if h.is_ghost and key != target]
    if ghosts:
        peak = sum((h.peak_balance for h in ghosts), ZERO)
        flags.append(
            f"Ghost wallets: {len(ghosts)} wallet(s) emptied after holding a combined "
            f"peak of {format_amount(peak)} {token_symbol}"
        )

    if pass_throughs:
        flags.append(
            f"Pass-through chains: {len(pass_throughs)} ghost wallet(s) forwarded tokens "
            "to a wallet that still holds them"
        )

    amount, count = recent_dispersal(target_sends, as_of=as_of, decimals=decimals, days=recent_days)
    if count >= MIN_RECENT_TRANSFERS and amount > 0:
        flags.append(
            f"Recent dispersal: {format_amount(amount)} {token_symbol} distributed "
            f"in {count} transfers in the last {recent_days} days"
        )

    return flags
