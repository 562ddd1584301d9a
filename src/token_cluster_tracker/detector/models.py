"""Data models for the detector module."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum

from token_cluster_tracker.formatting import decimal_str
from token_cluster_tracker.profiler.models import TokenOrigin

HIGH_CONFIDENCE_SCORE = 60
MEDIUM_CONFIDENCE_SCORE = 35

BIDIRECTIONAL_REASON = "Bidirectional transfers with target"


class Confidence(str, Enum):
    """Same-owner confidence tier."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]

    @classmethod
    def for_score(cls, score: int) -> Confidence:
        if score >= HIGH_CONFIDENCE_SCORE:
            return cls.HIGH
        if score >= MEDIUM_CONFIDENCE_SCORE:
            return cls.MEDIUM
        return cls.LOW


class FundingMatch(str, Enum):
    """Which funding heuristic applies to a wallet (at most one)."""

    SHARED_WITH_TARGET = "shared_with_target"
    SHARED_CLUSTER = "shared_cluster"
    NONE = "none"


@dataclass(frozen=True)
class PassThroughLink:
    """A ghost wallet that forwarded its tokens to a single final holder.

    Attributes:
        ghost: Ghost wallet key (lower-case).
        final_holder: Final holder key (lower-case).
        ghost_display: Ghost wallet as displayed.
        final_holder_display: Final holder as displayed.
        forwarded: Amount the ghost sent to the final holder.
        forwarded_share: Final holder's share of the ghost's wallet outflow (0-1).
        holder_balance: Final holder's current balance.
    """

    ghost: str
    final_holder: str
    ghost_display: str
    final_holder_display: str
    forwarded: Decimal
    forwarded_share: Decimal
    holder_balance: Decimal

    def to_dict(self) -> dict[str, object]:
        return {
            "ghost": self.ghost_display,
            "final_holder": self.final_holder_display,
            "forwarded": decimal_str(self.forwarded),
            "forwarded_share": float(self.forwarded_share),
            "holder_balance": decimal_str(self.holder_balance),
        }


@dataclass
class WalletScore:
    """Transient per-wallet scoring state.

    Built up heuristic by heuristic; only wallets reaching the admission
    threshold are turned into HiddenHoldingWallet records.
    """

    address: str
    score: int = 0
    reasons: list[str] = field(default_factory=list)
    funding_source: str | None = None
    funding_match: FundingMatch = FundingMatch.NONE
    first_interaction: int | None = None
    last_interaction: int | None = None
    transfers_with_target: int = 0
    net_flow_from_target: Decimal = Decimal(0)
    balance: Decimal | None = None
    token_origin: TokenOrigin = TokenOrigin.UNKNOWN
    token_origin_details: str = ""
    is_bidirectional: bool = False
    is_received_and_held: bool = False
    is_ghost: bool = False
    pass_through_to: str | None = None

    def add(self, points: int, reason: str) -> None:
        self.score += points
        self.reasons.append(reason)

    def note(self, reason: str) -> None:
        """Record a reason that carries no points."""
        self.reasons.append(reason)


@dataclass(frozen=True)
class HiddenHoldingWallet:
    """A wallet attributed to the target's owner with a confidence tier.

    Attributes:
        address: Wallet (display case).
        score: Summed heuristic score (>= admission threshold).
        confidence: Tier, possibly raised by pass-through inheritance.
        reasons: One human-readable reason per heuristic that fired.
        balance: Current balance, None when unknown.
        inherited_from: Final holder whose tier this ghost inherited.
    """

    address: str
    score: int
    confidence: Confidence
    reasons: tuple[str, ...]
    funding_source: str | None
    funding_match: FundingMatch
    first_interaction: int | None
    last_interaction: int | None
    transfers_with_target: int
    net_flow_from_target: Decimal
    balance: Decimal | None
    token_origin: TokenOrigin
    token_origin_details: str
    is_bidirectional: bool = False
    is_received_and_held: bool = False
    is_ghost: bool = False
    pass_through_to: str | None = None
    inherited_from: str | None = None

    @property
    def key(self) -> str:
        return self.address.lower()

    @property
    def held(self) -> Decimal:
        """Balance for totals; unknown counts as zero."""
        return self.balance if self.balance is not None else Decimal(0)

    @classmethod
    def from_score(cls, score: WalletScore) -> HiddenHoldingWallet:
        return cls(
            address=score.address,
            score=score.score,
            confidence=Confidence.for_score(score.score),
            reasons=tuple(score.reasons),
            funding_source=score.funding_source,
            funding_match=score.funding_match,
            first_interaction=score.first_interaction,
            last_interaction=score.last_interaction,
            transfers_with_target=score.transfers_with_target,
            net_flow_from_target=score.net_flow_from_target,
            balance=score.balance,
            token_origin=score.token_origin,
            token_origin_details=score.token_origin_details,
            is_bidirectional=score.is_bidirectional,
            is_received_and_held=score.is_received_and_held,
            is_ghost=score.is_ghost,
            pass_through_to=score.pass_through_to,
        )

    def with_inherited(self, confidence: Confidence, holder: str) -> HiddenHoldingWallet:
        return replace(self, confidence=confidence, inherited_from=holder)

    def to_dict(self) -> dict[str, object]:
        return {
            "address": self.address,
            "score": self.score,
            "confidence": self.confidence.value,
            "reasons": list(self.reasons),
            "funding_source": self.funding_source,
            "funding_match": self.funding_match.value,
            "first_interaction": self.first_interaction,
            "last_interaction": self.last_interaction,
            "transfers_with_target": self.transfers_with_target,
            "net_flow_from_target": decimal_str(self.net_flow_from_target),
            "balance": decimal_str(self.balance),
            "token_origin": self.token_origin.value,
            "token_origin_details": self.token_origin_details,
            "is_bidirectional": self.is_bidirectional,
            "is_received_and_held": self.is_received_and_held,
            "is_ghost": self.is_ghost,
            "pass_through_to": self.pass_through_to,
            "inherited_from": self.inherited_from,
        }


