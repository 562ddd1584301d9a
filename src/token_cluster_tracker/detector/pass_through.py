"""Pass-through wallet detection.

A pass-through is a ghost wallet that forwarded nearly everything it sent
to wallets into one other wallet, which still holds a meaningful part of
it. Only a single hop is inspected: a chain G1 -> G2 -> H links G1 to G2
(if G2 qualifies as a holder) and G2 to H, never G1 to H.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Mapping, Sequence

from token_cluster_tracker.detector.models import Confidence, HiddenHoldingWallet, PassThroughLink
from token_cluster_tracker.formatting import truncate_address
from token_cluster_tracker.profiler.models import WalletHistory

logger = logging.getLogger(__name__)

DEFAULT_FORWARD_SHARE = Decimal("0.70")
DEFAULT_HOLDER_RETENTION = Decimal("0.30")
INHERITABLE_TIERS = (Confidence.HIGH, Confidence.MEDIUM)


def detect_pass_throughs(
    histories: Mapping[str, WalletHistory],
    target: str,
    balances: Mapping[str, Decimal | None],
    *,
    forward_share: Decimal = DEFAULT_FORWARD_SHARE,
    holder_retention: Decimal = DEFAULT_HOLDER_RETENTION,
) -> dict[str, PassThroughLink]:
    """Find ghost wallets whose tokens landed with one still-holding wallet.

    Args:
        histories: Lower-cased address -> reconstructed history.
        target: Target wallet; never a ghost nor a final holder here.
        balances: Lower-cased address -> current balance (None = unknown);
            an unknown holder balance falls back to its replayed history.
        forward_share: Top recipient must receive more than this share of the
            ghost's wallet-bound outflow.
        holder_retention: Final holder's balance must exceed this share of
            what it received from the ghost.

    Returns:
        Ghost key -> PassThroughLink.
    """
    target = target.lower()
    links: dict[str, PassThroughLink] = {}

    for key, history in histories.items():
        if key == target or not history.is_ghost:
            continue
        disposition = history.disposition
        top = disposition.top_recipient
        to_wallets = disposition.sent_to_wallets.amount
        if top is None or to_wallets <= 0 or top.received <= 0:
            continue
        holder = top.address.lower()
        if holder == target:
            continue

        share = top.received / to_wallets
        if share <= forward_share:
            continue
        holder_balance = balances.get(holder)
        if holder_balance is None and holder in histories:
            holder_balance = histories[holder].current_balance
        if holder_balance is None or holder_balance <= top.received * holder_retention:
            continue

        links[key] = PassThroughLink(
            ghost=key,
            final_holder=holder,
            ghost_display=history.address,
            final_holder_display=top.address,
            forwarded=top.received,
            forwarded_share=share,
            holder_balance=holder_balance,
        )
        logger.debug(
            "Pass-through %s -> %s (%.1f%% forwarded)",
            truncate_address(history.address),
            truncate_address(top.address),
            float(share * 100),
        )

    return links


def inherit_pass_through_confidence(
    wallets: Sequence[HiddenHoldingWallet],
    links: Mapping[str, PassThroughLink],
) -> list[HiddenHoldingWallet]:
    """Raise a pass-through ghost's tier to its final holder's HIGH/MEDIUM tier.

    Holder tiers are read from the input list, so inheritance never chains.
    A tier is only ever raised.
    """
    by_key = {w.key: w for w in wallets}
    result: list[HiddenHoldingWallet] = []
    for wallet in wallets:
        link = links.get(wallet.key)
        holder = by_key.get(link.final_holder) if link is not None else None
        if (
            holder is not None
            and holder.confidence in INHERITABLE_TIERS
            and holder.confidence.rank > wallet.confidence.rank
        ):
            logger.debug(
                "%s inherits %s confidence from %s",
                truncate_address(wallet.address),
                holder.confidence.value,
                truncate_address(holder.address),
            )
            wallet = wallet.with_inherited(holder.confidence, holder.address)
        result.append(wallet)
    return result
