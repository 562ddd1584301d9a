"""Summary of the target's own outbound transfers."""

from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Sequence

from token_cluster_tracker.ingestor.models import TransferEvent
from token_cluster_tracker.profiler.entities import EntityRegistry
from token_cluster_tracker.profiler.models import (
    ZERO,
    DispositionBucket,
    OutboundSummary,
    TopRecipient,
    percent,
)

MAX_TOP_RECIPIENTS = 10


def build_outbound_summary(
    target: str,
    transfers: Sequence[TransferEvent],
    *,
    registry: EntityRegistry,
    decimals: int,
    balances: Mapping[str, Decimal | None],
) -> OutboundSummary:
    """Split the target's outbound volume into contract/DEX and wallet buckets.

    Args:
        target: Target wallet.
        transfers: Full transfer set.
        registry: Entity registry; anything that is not a wallet counts as DEX/contract.
        decimals: Token decimals.
        balances: Current balances for the still-held column.

    Returns:
        OutboundSummary with the top wallet recipients by amount received.
    """
    target = target.lower()
    to_dex = ZERO
    to_dex_count = 0
    to_wallets = ZERO
    to_wallets_count = 0
    per_recipient: dict[str, Decimal] = {}
    per_recipient_count: dict[str, int] = {}
    display: dict[str, str] = {}

    for tx in transfers:
        if tx.sender != target or not tx.recipient or tx.recipient == target:
            continue
        amount = tx.amount(decimals)
        if registry.is_contract(tx.recipient):
            to_dex += amount
            to_dex_count += 1
            continue
        to_wallets += amount
        to_wallets_count += 1
        per_recipient[tx.recipient] = per_recipient.get(tx.recipient, ZERO) + amount
        per_recipient_count[tx.recipient] = per_recipient_count.get(tx.recipient, 0) + 1
        display.setdefault(tx.recipient, tx.to_address)

    total = to_dex + to_wallets
    ranked = sorted(per_recipient.items(), key=lambda item: (-item[1], item[0]))
    top = tuple(
        TopRecipient(
            address=display[address],
            amount=amount,
            tx_count=per_recipient_count[address],
            still_holding=balances.get(address),
        )
        for address, amount in ranked[:MAX_TOP_RECIPIENTS]
    )

    return OutboundSummary(
        total=total,
        to_dex=DispositionBucket(to_dex, percent(to_dex, total), to_dex_count),
        to_wallets=DispositionBucket(to_wallets, percent(to_wallets, total), to_wallets_count),
        top_recipients=top,
    )
