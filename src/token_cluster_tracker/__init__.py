"""Token Cluster Tracker - same-owner wallet attribution for a single token."""

__version__ = "0.1.0"
