"""Wallet profiling layer - origin tracing, history replay and outbound summaries."""

from token_cluster_tracker.profiler.entities import EntityRegistry, EntityType
from token_cluster_tracker.profiler.graph import WalletGraph, build_wallet_graph
from token_cluster_tracker.profiler.history import WalletHistoryBuilder, reconstruct_wallet_history
from token_cluster_tracker.profiler.models import (
    DispositionBreakdown,
    OutboundSummary,
    RecipientStatus,
    TokenOrigin,
    TokenOriginResult,
    WalletHistory,
)
from token_cluster_tracker.profiler.origin import trace_token_origin
from token_cluster_tracker.profiler.outbound import build_outbound_summary

__all__ = [
    "DispositionBreakdown",
    "EntityRegistry",
    "EntityType",
    "OutboundSummary",
    "RecipientStatus",
    "TokenOrigin",
    "TokenOriginResult",
    "WalletGraph",
    "WalletHistory",
    "WalletHistoryBuilder",
    "build_outbound_summary",
    "build_wallet_graph",
    "reconstruct_wallet_history",
    "trace_token_origin",
]
