"""Data models for the ingestor module.

Transfer events arrive from an indexer (explorer API rows) as loosely typed
string fields. Parsing here is lenient on purpose: a malformed amount becomes
0 and a malformed timestamp becomes None, so the analysis never raises on a
bad row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Iterable

logger = logging.getLogger(__name__)


class ScanInputError(Exception):
    """Raised when a payload is structurally not a scan snapshot."""


def parse_int(value: Any) -> int | None:
    """Parse an integer field that may be a string, int or garbage."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        text = str(value).strip()
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(Decimal(text))
    except (ValueError, OverflowError, InvalidOperation):
        return None


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a decimal-adjusted amount (balance maps), None when unknown."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not parsed.is_finite():
        return None
    return parsed


def to_amount(raw_value: int, decimals: int) -> Decimal:
    """Convert raw integer token units to a decimal-adjusted amount."""
    if raw_value <= 0:
        return Decimal(0)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(str(raw_value)))
        return Decimal(raw_value).scaleb(-decimals)


@dataclass(frozen=True)
class TransferEvent:
    """A single token transfer leg.

    Attributes:
        hash: Transaction hash (several legs may share one hash).
        from_address: Sender as supplied (original case, for display).
        to_address: Recipient as supplied (original case, for display).
        raw_value: Amount in integer token units (0 when unparseable).
        timestamp: Unix seconds, or None when unparseable.
        token_decimals: Decimals reported by the indexer, if any.
    """

    hash: str
    from_address: str
    to_address: str
    raw_value: int
    timestamp: int | None
    token_decimals: int | None = None

    @property
    def sender(self) -> str:
        """Lower-cased sender key."""
        return self.from_address.lower()

    @property
    def recipient(self) -> str:
        """Lower-cased recipient key."""
        return self.to_address.lower()

    @property
    def sort_key(self) -> int:
        """Chronological sort key; rows without a timestamp sort first."""
        return self.timestamp if self.timestamp is not None else 0

    def amount(self, decimals: int) -> Decimal:
        """Decimal-adjusted value of this transfer."""
        return to_amount(self.raw_value, decimals)

    def touches(self, address: str) -> bool:
        """Return True if the lower-cased address is sender or recipient."""
        return self.sender == address or self.recipient == address

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransferEvent:
        """Create a TransferEvent from an explorer-style row.

        Accepts both the indexer spelling (``value``, ``timeStamp``,
        ``tokenDecimal``) and the snake_case spelling.
        """
        raw = data.get("raw_value", data.get("rawValue", data.get("value")))
        raw_value = parse_int(raw)
        if raw_value is None or raw_value < 0:
            logger.debug("Unparseable transfer value %r in tx %s", raw, data.get("hash"))
            raw_value = 0

        ts = parse_int(data.get("timestamp", data.get("timeStamp")))
        decimals = parse_int(
            data.get("token_decimals", data.get("tokenDecimals", data.get("tokenDecimal")))
        )

        return cls(
            hash=str(data.get("hash") or ""),
            from_address=str(data.get("from") or data.get("from_address") or ""),
            to_address=str(data.get("to") or data.get("to_address") or ""),
            raw_value=raw_value,
            timestamp=ts if ts is not None and ts >= 0 else None,
            token_decimals=decimals if decimals is not None and 0 <= decimals <= 77 else None,
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize back to the indexer row shape."""
        return {
            "hash": self.hash,
            "from": self.from_address,
            "to": self.to_address,
            "value": str(self.raw_value),
            "timeStamp": str(self.timestamp) if self.timestamp is not None else "",
            "tokenDecimal": str(self.token_decimals) if self.token_decimals is not None else "",
        }


def deduplicate_transfers(transfers: Iterable[TransferEvent]) -> list[TransferEvent]:
    """Drop repeated legs, keyed by ``(hash, from, to)``, keeping first-seen order.

    Used when merging transfer pages fetched for several wallets, where the
    same leg is returned once per participant.
    """
    seen: set[tuple[str, str, str]] = set()
    unique: list[TransferEvent] = []
    for tx in transfers:
        key = (tx.hash.lower(), tx.sender, tx.recipient)
        if key in seen:
            continue
        seen.add(key)
        unique.append(tx)
    return unique


def infer_decimals(transfers: Iterable[TransferEvent], default: int) -> int:
    """Return the first decimals value carried by the transfer set, else default."""
    for tx in transfers:
        if tx.token_decimals is not None:
            return tx.token_decimals
    return default


@dataclass
class ScanInput:
    """Everything the analysis consumes, already resident in memory.

    Attributes:
        target: Target address as supplied (display case).
        transfers: Observed transfer legs (any order).
        contracts: Addresses known to be contracts (detected bytecode).
        labels: Optional address -> label registry for known contracts.
        funding_sources: Wallet -> first gas funder; absence means unknown.
        balances: Wallet -> current decimal-adjusted balance; None/absent means unknown.
    """

    target: str
    transfers: list[TransferEvent]
    contracts: set[str] = field(default_factory=set)
    labels: dict[str, str] = field(default_factory=dict)
    funding_sources: dict[str, str] = field(default_factory=dict)
    balances: dict[str, Decimal | None] = field(default_factory=dict)

    @property
    def target_key(self) -> str:
        """Lower-cased target address used for lookups."""
        return self.target.lower()

    def balance_of(self, address: str) -> Decimal | None:
        """Current balance of a lower-cased address, None when unknown."""
        return self.balances.get(address)

    def normalized(self) -> ScanInput:
        """Return a copy whose lookup maps are keyed by lower-cased addresses."""
        balances: dict[str, Decimal | None] = {}
        for address, value in self.balances.items():
            balances[address.lower()] = value if isinstance(value, Decimal) else parse_decimal(value)
        return ScanInput(
            target=self.target,
            transfers=list(self.transfers),
            contracts={a.lower() for a in self.contracts if a},
            labels={a.lower(): label for a, label in self.labels.items()},
            funding_sources={
                a.lower(): f.lower() for a, f in self.funding_sources.items() if f
            },
            balances=balances,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScanInput:
        """Build a ScanInput from a JSON snapshot.

        Raises:
            ScanInputError: If ``target`` or ``transfers`` is missing.
        """
        if not isinstance(data, dict):
            raise ScanInputError("Scan snapshot must be a JSON object")
        target = data.get("target") or data.get("targetWallet")
        if not target or not isinstance(target, str):
            raise ScanInputError("Scan snapshot is missing 'target'")
        rows = data.get("transfers")
        if not isinstance(rows, list):
            raise ScanInputError("Scan snapshot is missing a 'transfers' list")

        transfers = [TransferEvent.from_dict(row) for row in rows if isinstance(row, dict)]

        balances: dict[str, Decimal | None] = {}
        for address, value in (data.get("balances") or {}).items():
            balances[str(address).lower()] = parse_decimal(value)

        funding: dict[str, str] = {}
        for address, funder in (data.get("funding_sources") or data.get("fundingSources") or {}).items():
            if funder:
                funding[str(address).lower()] = str(funder).lower()

        contracts = {
            str(a).lower()
            for a in (data.get("contracts") or data.get("detectedContracts") or [])
            if a
        }
        labels = {str(a).lower(): str(label) for a, label in (data.get("labels") or {}).items()}

        return cls(
            target=target,
            transfers=transfers,
            contracts=contracts,
            labels=labels,
            funding_sources=funding,
            balances=balances,
        )
