"""Wallet history reconstruction.

Replays a wallet's transfers in chronological order to recover its balance
trajectory (peak balance and when it was reached) and classifies every
outbound leg by destination:

- burn sentinel                  -> burned_or_lost
- ecosystem contract (staking)   -> sent_to_contracts
- DEX router / pair / contract   -> sold_on_dex
- ordinary wallet                -> sent_to_wallets

For the largest wallet recipients it then looks one hop further and checks
what each recipient did with the tokens (held, sold, passed along).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Mapping, Sequence

from token_cluster_tracker.formatting import truncate_address
from token_cluster_tracker.ingestor.models import TransferEvent
from token_cluster_tracker.profiler.entities import EntityRegistry, EntityType
from token_cluster_tracker.profiler.models import (
    ZERO,
    DispositionBreakdown,
    DispositionBucket,
    RecipientDisposition,
    RecipientStatus,
    WalletHistory,
    percent,
)

logger = logging.getLogger(__name__)

MAX_RECIPIENT_DISPOSITIONS = 10
GHOST_BALANCE_RATIO = Decimal("0.01")
RECIPIENT_MAJORITY = Decimal("0.5")


class WalletHistoryBuilder:
    """Reconstructs WalletHistory objects over one transfer set.

    The builder indexes the transfer set by address once; every ``build``
    call is a pure function of that set, the registry and the balance map.

    Example:
        ```python
        builder = WalletHistoryBuilder(transfers, registry=registry, decimals=18, balances=balances)
        history = builder.build("0xabc...")
        if history is not None and history.is_ghost:
            print(history.disposition.sold_on_dex.percentage)
        ```
    """

    def __init__(
        self,
        transfers: Sequence[TransferEvent],
        *,
        registry: EntityRegistry,
        decimals: int,
        balances: Mapping[str, Decimal | None],
    ) -> None:
        self._registry = registry
        self._decimals = decimals
        self._balances = balances
        self._by_address: dict[str, list[TransferEvent]] = defaultdict(list)
        self._outbound: dict[str, list[TransferEvent]] = defaultdict(list)
        for tx in transfers:
            if not tx.sender or not tx.recipient:
                continue
            self._by_address[tx.sender].append(tx)
            if tx.recipient != tx.sender:
                self._by_address[tx.recipient].append(tx)
            self._outbound[tx.sender].append(tx)

    def build(self, address: str, *, display: str | None = None) -> WalletHistory | None:
        """Replay one wallet's transfers; None when it has none."""
        key = address.lower()
        touching = self._by_address.get(key)
        if not touching:
            return None

        ordered = sorted(touching, key=lambda tx: tx.sort_key)

        balance = ZERO
        peak = ZERO
        peak_date: int | None = None
        total_received = ZERO
        total_sent = ZERO

        sold = ZERO
        sold_count = 0
        dexes: list[str] = []
        to_contracts = ZERO
        to_contracts_count = 0
        burned = ZERO
        burned_count = 0
        to_wallets = ZERO
        to_wallets_count = 0
        recipient_totals: dict[str, Decimal] = {}
        recipient_display: dict[str, str] = {}

        for tx in ordered:
            if tx.sender == tx.recipient:
                continue
            amount = tx.amount(self._decimals)

            if tx.recipient == key:
                balance += amount
                total_received += amount
                if balance > peak:
                    peak = balance
                    peak_date = tx.timestamp
                continue

            # Balance can go negative when the window misses earlier inflows.
            balance = max(balance - amount, ZERO)
            total_sent += amount

            kind = self._registry.classify(tx.recipient)
            if kind is EntityType.BURN:
                burned += amount
                burned_count += 1
            elif kind is EntityType.ECOSYSTEM:
                to_contracts += amount
                to_contracts_count += 1
            elif kind in (EntityType.DEX, EntityType.CONTRACT):
                sold += amount
                sold_count += 1
                venue = self._registry.label(tx.recipient) or truncate_address(tx.to_address)
                if venue not in dexes:
                    dexes.append(venue)
            else:
                to_wallets += amount
                to_wallets_count += 1
                recipient_totals[tx.recipient] = recipient_totals.get(tx.recipient, ZERO) + amount
                recipient_display.setdefault(tx.recipient, tx.to_address)

        recipients = self._recipient_dispositions(recipient_totals, recipient_display)

        disposition = DispositionBreakdown(
            total_outbound=total_sent,
            sold_on_dex=DispositionBucket(sold, percent(sold, total_sent), sold_count),
            dexes=tuple(dexes),
            sent_to_wallets=DispositionBucket(to_wallets, percent(to_wallets, total_sent), to_wallets_count),
            recipients=recipients,
            sent_to_contracts=DispositionBucket(
                to_contracts, percent(to_contracts, total_sent), to_contracts_count
            ),
            burned_or_lost=DispositionBucket(burned, percent(burned, total_sent), burned_count),
        )

        supplied = self._balances.get(key)
        current = supplied if supplied is not None else balance
        is_ghost = peak > 0 and current <= peak * GHOST_BALANCE_RATIO

        if display is None:
            first = ordered[0]
            display = first.from_address if first.sender == key else first.to_address
        if is_ghost:
            logger.debug(
                "Ghost wallet %s: peak=%s current=%s",
                truncate_address(display),
                peak,
                current,
            )

        return WalletHistory(
            address=display,
            current_balance=current,
            peak_balance=peak,
            peak_date=peak_date,
            total_received=total_received,
            total_sent=total_sent,
            net_disposed=max(peak - current, ZERO),
            disposition=disposition,
            is_ghost=is_ghost,
        )

    def _recipient_dispositions(
        self,
        recipient_totals: dict[str, Decimal],
        recipient_display: dict[str, str],
    ) -> tuple[RecipientDisposition, ...]:
        ranked = sorted(recipient_totals.items(), key=lambda item: (-item[1], item[0]))
        dispositions: list[RecipientDisposition] = []
        for recipient, received in ranked[:MAX_RECIPIENT_DISPOSITIONS]:
            to_dex = ZERO
            to_wallets = ZERO
            for tx in self._outbound.get(recipient, ()):
                if tx.recipient == recipient:
                    continue
                kind = self._registry.classify(tx.recipient)
                if kind is EntityType.WALLET:
                    to_wallets += tx.amount(self._decimals)
                elif kind is not EntityType.BURN:
                    to_dex += tx.amount(self._decimals)

            still_holding = self._balances.get(recipient)
            majority = received * RECIPIENT_MAJORITY
            if still_holding is not None and still_holding > majority:
                status = RecipientStatus.HOLDING
            elif to_dex > majority:
                status = RecipientStatus.SOLD
            elif to_wallets > majority:
                status = RecipientStatus.PASSED_ALONG
            elif to_dex + to_wallets > 0:
                status = RecipientStatus.MIXED
            else:
                status = RecipientStatus.UNKNOWN

            dispositions.append(
                RecipientDisposition(
                    address=recipient_display[recipient],
                    received=received,
                    still_holding=still_holding,
                    forwarded_to_dex=to_dex,
                    forwarded_to_wallets=to_wallets,
                    status=status,
                )
            )
        return tuple(dispositions)


def reconstruct_wallet_history(
    address: str,
    transfers: Sequence[TransferEvent],
    *,
    registry: EntityRegistry,
    decimals: int,
    balances: Mapping[str, Decimal | None],
) -> WalletHistory | None:
    """One-off convenience wrapper around WalletHistoryBuilder."""
    builder = WalletHistoryBuilder(transfers, registry=registry, decimals=decimals, balances=balances)
    return builder.build(address)
