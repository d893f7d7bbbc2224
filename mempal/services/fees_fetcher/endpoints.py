"""Canonical mempool endpoints and custom/default classification."""

from __future__ import annotations

from enum import Enum
from urllib.parse import urlparse

from mempal.services.tor import TorState

BASE_URL = "https://mempool.space/"
ONION_BASE_URL = "http://mempoolhqx4isw62xs7abwphsq7ldayuidyx2v2oethdhhj6mlo2r6ad.onion/"

FEES_PATH = "api/v1/fees/recommended"
PRECISE_FEES_PATH = "api/v1/fees/precise"
MEMPOOL_PATH = "api/mempool"


class EndpointKind(str, Enum):
    DEFAULT = "default"
    CUSTOM = "custom"


def normalize_url(url: str) -> str:
    return url.strip().rstrip("/")


_CANONICAL = {normalize_url(BASE_URL), normalize_url(ONION_BASE_URL)}


def classify_endpoint(url: str) -> EndpointKind:
    """Classify a configured URL; call this per fetch, the user may change it."""

    if normalize_url(url) in _CANONICAL:
        return EndpointKind.DEFAULT
    return EndpointKind.CUSTOM


def is_onion(url: str) -> bool:
    host = urlparse(url).hostname or ""
    return host.endswith(".onion")


def fallback_url(tor: TorState) -> str:
    """Canonical endpoint to fall back to: onion only when Tor is usable."""

    return ONION_BASE_URL if tor.usable else BASE_URL


__all__ = [
    "BASE_URL",
    "ONION_BASE_URL",
    "FEES_PATH",
    "PRECISE_FEES_PATH",
    "MEMPOOL_PATH",
    "EndpointKind",
    "classify_endpoint",
    "fallback_url",
    "is_onion",
    "normalize_url",
]
