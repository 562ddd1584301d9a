"""Detection layer - same-owner scoring and pass-through identification."""

from token_cluster_tracker.detector.models import (
    Confidence,
    FundingMatch,
    HiddenHoldingWallet,
    PassThroughLink,
    WalletScore,
)
from token_cluster_tracker.detector.pass_through import (
    detect_pass_throughs,
    inherit_pass_through_confidence,
)
from token_cluster_tracker.detector.scorer import MIN_SCORE, HoldingsScorer

__all__ = [
    "Confidence",
    "FundingMatch",
    "HiddenHoldingWallet",
    "HoldingsScorer",
    "MIN_SCORE",
    "PassThroughLink",
    "WalletScore",
    "detect_pass_throughs",
    "inherit_pass_through_confidence",
]
