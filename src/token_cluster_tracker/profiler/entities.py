"""Known-entity registry for counterparty classification.

Every counterparty of a transfer is one of: a burn sentinel, a labeled
ecosystem contract (staking, vaults), a DEX router / liquidity pair, some
other detected contract, or an ordinary wallet.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from token_cluster_tracker.config import AnalyzerSettings

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

BURN_ADDRESSES: dict[str, str] = {
    ZERO_ADDRESS: "Null Address",
    "0x000000000000000000000000000000000000dead": "Dead Address",
    "0xdead000000000000000000000000000000000000": "Dead Address",
}

# Avalanche C-Chain routers and aggregators.
KNOWN_DEX_ROUTERS: dict[str, str] = {
    "0x60ae616a2155ee3d9a68541ba4544862310933d4": "TraderJoe Router v2",
    "0xb4315e873dbcf96ffd0acd8ea43f689d8c20fb30": "TraderJoe Router v2.1",
    "0x18556ec73e7a7a2b4292c6b2148b570364631f28": "TraderJoe Router v2.2",
    "0xe54ca86531e17ef3616d22ca28b0d458b6c89106": "Pangolin Router",
    "0xdef171fe48cf0115b1d80b88dc8eab59176fee57": "ParaSwap",
    "0x1111111254eeb25477b68fb85ed929f73a960582": "1inch Router",
    "0x6131b5fae19ea4f9d964eac0408e4408b66337b5": "KyberSwap",
}


class EntityType(str, Enum):
    """Counterparty classification."""

    BURN = "burn"
    ECOSYSTEM = "ecosystem"
    DEX = "dex"
    CONTRACT = "contract"
    WALLET = "wallet"


class EntityRegistry:
    """Classifies addresses against known routers, burn sentinels and the contract set.

    Precedence is burn > ecosystem > DEX > other contract > wallet. Any
    detected contract without an ecosystem label is treated as a trading
    venue for disposition purposes.
    """

    def __init__(
        self,
        *,
        contracts: Iterable[str] = (),
        dex_labels: dict[str, str] | None = None,
        ecosystem_labels: dict[str, str] | None = None,
    ) -> None:
        self._dex_labels = dict(KNOWN_DEX_ROUTERS)
        for address, label in (dex_labels or {}).items():
            self._dex_labels[address.lower()] = label
        self._ecosystem_labels = {a.lower(): label for a, label in (ecosystem_labels or {}).items()}
        self._contracts = {a.lower() for a in contracts}

    @classmethod
    def from_settings(
        cls,
        settings: AnalyzerSettings,
        *,
        contracts: Iterable[str] = (),
        labels: dict[str, str] | None = None,
    ) -> EntityRegistry:
        dex_labels = dict(settings.extra_dex_routers)
        dex_labels.update(labels or {})
        return cls(
            contracts=contracts,
            dex_labels=dex_labels,
            ecosystem_labels=settings.ecosystem_contracts,
        )

    def classify(self, address: str) -> EntityType:
        address = address.lower()
        if address in BURN_ADDRESSES:
            return EntityType.BURN
        if address in self._ecosystem_labels:
            return EntityType.ECOSYSTEM
        if address in self._dex_labels:
            return EntityType.DEX
        if address in self._contracts:
            return EntityType.CONTRACT
        return EntityType.WALLET

    def is_contract(self, address: str) -> bool:
        """Return True for anything that is not an ordinary wallet."""
        return self.classify(address) is not EntityType.WALLET

    def is_wallet(self, address: str) -> bool:
        """Return True for ordinary externally owned wallets."""
        return self.classify(address) is EntityType.WALLET

    def label(self, address: str) -> str | None:
        """Registry label of a burn sentinel or known contract, None otherwise."""
        address = address.lower()
        return (
            BURN_ADDRESSES.get(address)
            or self._ecosystem_labels.get(address)
            or self._dex_labels.get(address)
        )
