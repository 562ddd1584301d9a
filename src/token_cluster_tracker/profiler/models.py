"""Data models for the profiler module."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from token_cluster_tracker.formatting import decimal_str

ZERO = Decimal(0)


def percent(part: Decimal, total: Decimal) -> float:
    """Return part/total as a percentage, 0.0 when the total is not positive."""
    if total <= 0:
        return 0.0
    return float(part / total * 100)


class TokenOrigin(str, Enum):
    """Where a wallet's tokens originally came from."""

    FROM_TARGET = "from-target"
    FROM_DEX = "from-dex"
    FROM_THIRD_PARTY = "from-third-party"
    MIXED = "mixed"
    UNKNOWN = "unknown"


class RecipientStatus(str, Enum):
    """What a downstream recipient did with the tokens it received."""

    HOLDING = "holding"
    SOLD = "sold"
    PASSED_ALONG = "passed-along"
    MIXED = "mixed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class IncomingTransfer:
    """A single inbound leg kept for explanatory text."""

    amount: Decimal
    source: str
    timestamp: int | None

    def to_dict(self) -> dict[str, object]:
        return {
            "amount": decimal_str(self.amount),
            "source": self.source,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class TokenOriginResult:
    """Classification of a wallet's inbound token sources.

    Attributes:
        origin: Dominant source class (>= 70% of incoming volume) or mixed/unknown.
        details: Human-readable explanation.
        from_target: Volume received directly from the target.
        from_dex: Volume received from contracts (DEX routers, pairs, others).
        from_third_party: Volume received from other wallets.
        largest: The largest single inbound transfer.
        intermediary: Third-party source that also transacted with the target,
            when the origin is third-party and such a link exists.
    """

    origin: TokenOrigin
    details: str
    from_target: Decimal = ZERO
    from_dex: Decimal = ZERO
    from_third_party: Decimal = ZERO
    largest: IncomingTransfer | None = None
    intermediary: str | None = None

    @property
    def is_intermediary_pattern(self) -> bool:
        return self.origin is TokenOrigin.FROM_THIRD_PARTY and self.intermediary is not None

    def to_dict(self) -> dict[str, object]:
        return {
            "origin": self.origin.value,
            "details": self.details,
            "from_target": decimal_str(self.from_target),
            "from_dex": decimal_str(self.from_dex),
            "from_third_party": decimal_str(self.from_third_party),
            "largest": self.largest.to_dict() if self.largest else None,
            "intermediary": self.intermediary,
        }


@dataclass(frozen=True)
class DispositionBucket:
    """Amount, share of total and leg count for one destination class."""

    amount: Decimal = ZERO
    percentage: float = 0.0
    count: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "amount": decimal_str(self.amount),
            "percentage": round(self.percentage, 4),
            "count": self.count,
        }


@dataclass(frozen=True)
class RecipientDisposition:
    """Second-hop view: what one recipient did with what it received.

    Attributes:
        address: Recipient (display case).
        received: Amount received from the wallet under analysis.
        still_holding: Recipient's current balance, None when unknown.
        forwarded_to_dex: Recipient's own outflow to DEX routers / contracts.
        forwarded_to_wallets: Recipient's own outflow to other wallets.
        status: Majority classification.
    """

    address: str
    received: Decimal
    still_holding: Decimal | None
    forwarded_to_dex: Decimal
    forwarded_to_wallets: Decimal
    status: RecipientStatus

    def to_dict(self) -> dict[str, object]:
        return {
            "address": self.address,
            "received": decimal_str(self.received),
            "still_holding": decimal_str(self.still_holding),
            "forwarded_to_dex": decimal_str(self.forwarded_to_dex),
            "forwarded_to_wallets": decimal_str(self.forwarded_to_wallets),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class DispositionBreakdown:
    """Where a wallet's lifetime outbound tokens went."""

    total_outbound: Decimal = ZERO
    sold_on_dex: DispositionBucket = field(default_factory=DispositionBucket)
    dexes: tuple[str, ...] = ()
    sent_to_wallets: DispositionBucket = field(default_factory=DispositionBucket)
    recipients: tuple[RecipientDisposition, ...] = ()
    sent_to_contracts: DispositionBucket = field(default_factory=DispositionBucket)
    burned_or_lost: DispositionBucket = field(default_factory=DispositionBucket)

    @property
    def top_recipient(self) -> RecipientDisposition | None:
        return self.recipients[0] if self.recipients else None

    @property
    def to_venues_amount(self) -> Decimal:
        """Amount that went to DEX routers or any contract."""
        return self.sold_on_dex.amount + self.sent_to_contracts.amount

    def to_dict(self) -> dict[str, object]:
        sold = self.sold_on_dex.to_dict()
        sold["dexes"] = list(self.dexes)
        wallets = self.sent_to_wallets.to_dict()
        wallets["recipients"] = [r.to_dict() for r in self.recipients]
        return {
            "total_outbound": decimal_str(self.total_outbound),
            "sold_on_dex": sold,
            "sent_to_wallets": wallets,
            "sent_to_contracts": self.sent_to_contracts.to_dict(),
            "burned_or_lost": self.burned_or_lost.to_dict(),
        }


@dataclass(frozen=True)
class WalletHistory:
    """A wallet's replayed lifetime balance trajectory and disposition.

    Attributes:
        address: Wallet (display case).
        current_balance: Supplied live balance, else the replayed balance.
        peak_balance: Running maximum of the replayed balance.
        peak_date: Timestamp at which the peak was first reached.
        total_received: Lifetime inbound volume in the transfer set.
        total_sent: Lifetime outbound volume in the transfer set.
        net_disposed: Peak minus current balance (never negative).
        disposition: Outbound breakdown by destination class.
        is_ghost: Peak > 0 and current balance <= 1% of peak.
    """

    address: str
    current_balance: Decimal
    peak_balance: Decimal
    peak_date: int | None
    total_received: Decimal
    total_sent: Decimal
    net_disposed: Decimal
    disposition: DispositionBreakdown
    is_ghost: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "address": self.address,
            "current_balance": decimal_str(self.current_balance),
            "peak_balance": decimal_str(self.peak_balance),
            "peak_date": self.peak_date,
            "total_received": decimal_str(self.total_received),
            "total_sent": decimal_str(self.total_sent),
            "net_disposed": decimal_str(self.net_disposed),
            "disposition": self.disposition.to_dict(),
            "is_ghost": self.is_ghost,
        }


@dataclass
class WalletNode:
    """Aggregated per-address view of the transfer set.

    Balance, peak and disposition are filled in once the address has a
    reconstructed history; they stay None for contracts and unseen wallets.
    """

    id: str
    address: str
    is_target: bool
    is_contract: bool
    label: str | None = None
    tx_count: int = 0
    vol_in: Decimal = ZERO
    vol_out: Decimal = ZERO
    first_seen: int | None = None
    last_seen: int | None = None
    balance: Decimal | None = None
    peak_balance: Decimal | None = None
    peak_date: int | None = None
    is_ghost: bool = False
    disposition: DispositionBreakdown | None = None

    @property
    def net_position(self) -> Decimal:
        return self.vol_in - self.vol_out

    def attach_history(self, history: WalletHistory) -> None:
        self.balance = history.current_balance
        self.peak_balance = history.peak_balance
        self.peak_date = history.peak_date
        self.is_ghost = history.is_ghost
        self.disposition = history.disposition

    def observe(self, timestamp: int | None) -> None:
        self.tx_count += 1
        if timestamp is None:
            return
        if self.first_seen is None or timestamp < self.first_seen:
            self.first_seen = timestamp
        if self.last_seen is None or timestamp > self.last_seen:
            self.last_seen = timestamp

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "address": self.address,
            "is_target": self.is_target,
            "is_contract": self.is_contract,
            "label": self.label,
            "tx_count": self.tx_count,
            "vol_in": decimal_str(self.vol_in),
            "vol_out": decimal_str(self.vol_out),
            "net_position": decimal_str(self.net_position),
            "first_seen": self.first_seen,
            "last_seen": self.last_seen,
            "balance": decimal_str(self.balance),
            "peak_balance": decimal_str(self.peak_balance),
            "peak_date": self.peak_date,
            "is_ghost": self.is_ghost,
            "disposition": self.disposition.to_dict() if self.disposition else None,
        }


@dataclass
class WalletLink:
    """Aggregated directed edge between two addresses."""

    source: str
    target: str
    direction: str
    value: Decimal = ZERO
    tx_count: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "source": self.source,
            "target": self.target,
            "direction": self.direction,
            "value": decimal_str(self.value),
            "tx_count": self.tx_count,
        }


@dataclass(frozen=True)
class TopRecipient:
    """One of the target's largest wallet recipients."""

    address: str
    amount: Decimal
    tx_count: int
    still_holding: Decimal | None

    def to_dict(self) -> dict[str, object]:
        return {
            "address": self.address,
            "amount": decimal_str(self.amount),
            "tx_count": self.tx_count,
            "still_holding": decimal_str(self.still_holding),
        }


@dataclass(frozen=True)
class OutboundSummary:
    """The target's own outbound volume split by destination class."""

    total: Decimal = ZERO
    to_dex: DispositionBucket = field(default_factory=DispositionBucket)
    to_wallets: DispositionBucket = field(default_factory=DispositionBucket)
    top_recipients: tuple[TopRecipient, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "total": decimal_str(self.total),
            "to_dex": self.to_dex.to_dict(),
            "to_wallets": self.to_wallets.to_dict(),
            "top_recipients": [r.to_dict() for r in self.top_recipients],
        }
