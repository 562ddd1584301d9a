"""Token origin tracing.

Classifies where a wallet's tokens came from by splitting its inbound volume
into three source classes (the target, contracts, other wallets). A class
that accounts for at least 70% of the inbound volume names the origin;
otherwise the origin is mixed.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from token_cluster_tracker.formatting import format_amount, truncate_address
from token_cluster_tracker.ingestor.models import TransferEvent
from token_cluster_tracker.profiler.entities import EntityRegistry
from token_cluster_tracker.profiler.models import (
    ZERO,
    IncomingTransfer,
    TokenOrigin,
    TokenOriginResult,
)


DOMINANT_SHARE = Decimal("0.70")


def _transacted_with(address: str, target: str, transfers: Sequence[TransferEvent]) -> bool:
    for tx in transfers:
        if (tx.sender == address and tx.recipient == target) or (
            tx.sender == target and tx.recipient == address
        ):
            return True
    return False


def trace_token_origin(
    address: str,
    target: str,
    transfers: Sequence[TransferEvent],
    registry: EntityRegistry,
    decimals: int,
) -> TokenOriginResult:
    """Classify the origin of a wallet's tokens.

    Args:
        address: Wallet to classify.
        target: Target wallet under investigation.
        transfers: Full transfer set.
        registry: Entity registry for contract / DEX detection.
        decimals: Token decimals for raw value conversion.

    Returns:
        TokenOriginResult. Pure function of its inputs.
    """
    address = address.lower()
    target = target.lower()

    incoming = [tx for tx in transfers if tx.recipient == address and tx.sender != address]
    if not incoming:
        return TokenOriginResult(origin=TokenOrigin.UNKNOWN, details="No incoming transfers observed")

    from_target = ZERO
    from_dex = ZERO
    from_third_party = ZERO
    largest: IncomingTransfer | None = None
    largest_third_party: IncomingTransfer | None = None
    dex_sources: dict[str, Decimal] = {}

    for tx in incoming:
        amount = tx.amount(decimals)
        leg = IncomingTransfer(amount=amount, source=tx.from_address, timestamp=tx.timestamp)
        if largest is None or amount > largest.amount:
            largest = leg

        if tx.sender == target:
            from_target += amount
        elif registry.is_contract(tx.sender):
            from_dex += amount
            dex_sources[tx.sender] = dex_sources.get(tx.sender, ZERO) + amount
        else:
            from_third_party += amount
            if largest_third_party is None or amount > largest_third_party.amount:
                largest_third_party = leg

    total = from_target + from_dex + from_third_party
    if total <= 0:
        return TokenOriginResult(
            origin=TokenOrigin.UNKNOWN,
            details="Incoming transfers carried no value",
            largest=largest,
        )

    target_share = from_target / total
    dex_share = from_dex / total
    third_party_share = from_third_party / total

    if target_share >= DOMINANT_SHARE:
        return TokenOriginResult(
            origin=TokenOrigin.FROM_TARGET,
            details=(
                f"{float(target_share * 100):.0f}% of incoming tokens "
                f"({format_amount(from_target)}) came directly from the target"
            ),
            from_target=from_target,
            from_dex=from_dex,
            from_third_party=from_third_party,
            largest=largest,
        )

    if dex_share >= DOMINANT_SHARE:
        top_source = max(dex_sources.items(), key=lambda item: item[1])[0]
        venue = registry.label(top_source) or truncate_address(top_source)
        return TokenOriginResult(
            origin=TokenOrigin.FROM_DEX,
            details=(
                f"{float(dex_share * 100):.0f}% of incoming tokens "
                f"({format_amount(from_dex)}) bought on DEX via {venue}"
            ),
            from_target=from_target,
            from_dex=from_dex,
            from_third_party=from_third_party,
            largest=largest,
        )

    if third_party_share >= DOMINANT_SHARE:
        details = (
            f"{float(third_party_share * 100):.0f}% of incoming tokens "
            f"({format_amount(from_third_party)}) received from third parties"
        )
        intermediary: str | None = None
        if largest_third_party is not None:
            source = largest_third_party.source.lower()
            details += (
                f", largest {format_amount(largest_third_party.amount)} "
                f"from {truncate_address(largest_third_party.source)}"
            )
            if _transacted_with(source, target, transfers):
                intermediary = source
                details += (
                    f"; intermediary pattern: {truncate_address(largest_third_party.source)} "
                    "also transacted with the target"
                )
        return TokenOriginResult(
            origin=TokenOrigin.FROM_THIRD_PARTY,
            details=details,
            from_target=from_target,
            from_dex=from_dex,
            from_third_party=from_third_party,
            largest=largest,
            intermediary=intermediary,
        )

    parts: list[str] = []
    if from_target > 0:
        parts.append(f"{format_amount(from_target)} from target")
    if from_dex > 0:
        parts.append(f"{format_amount(from_dex)} from DEX")
    if from_third_party > 0:
        parts.append(f"{format_amount(from_third_party)} from third parties")

    return TokenOriginResult(
        origin=TokenOrigin.MIXED,
        details="Mixed origin: " + ", ".join(parts),
        from_target=from_target,
        from_dex=from_dex,
        from_third_party=from_third_party,
        largest=largest,
    )
