"""Tor connectivity signal consumed by the fetchers."""

from .state import StaticTorMonitor, TorMonitor, TorState, TorStatus

__all__ = ["StaticTorMonitor", "TorMonitor", "TorState", "TorStatus"]
