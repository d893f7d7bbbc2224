"""Fees fetcher service package."""

from .endpoints import BASE_URL, ONION_BASE_URL, EndpointKind, classify_endpoint
from .fee_router import FeeRatesFetcher
from .mempool_client import ClientRegistry, MempoolClient
from .models import FeeRates, MempoolSnapshot
from .snapshot_source import SnapshotSource

__all__ = [
    "BASE_URL",
    "ONION_BASE_URL",
    "ClientRegistry",
    "EndpointKind",
    "FeeRates",
    "FeeRatesFetcher",
    "MempoolClient",
    "MempoolSnapshot",
    "SnapshotSource",
    "classify_endpoint",
]
