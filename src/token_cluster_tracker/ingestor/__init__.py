"""Input layer - transfer events and scan snapshots."""

from token_cluster_tracker.ingestor.models import (
    ScanInput,
    ScanInputError,
    TransferEvent,
    deduplicate_transfers,
)

__all__ = [
    "ScanInput",
    "ScanInputError",
    "TransferEvent",
    "deduplicate_transfers",
]
