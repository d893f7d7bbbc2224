"""Tor status values and the monitor protocol the fetchers read from."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class TorStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class TorState:
    """Snapshot of Tor enablement and connection status."""

    enabled: bool = False
    status: TorStatus = TorStatus.DISCONNECTED

    @property
    def usable(self) -> bool:
        """True when traffic should be routed through Tor."""

        return self.enabled and self.status is TorStatus.CONNECTED


class TorMonitor(Protocol):
    def tor_state(self) -> TorState: ...


class StaticTorMonitor:
    """Monitor whose state is pushed by the owner of the Tor process."""

    def __init__(self, state: TorState | None = None) -> None:
        self._state = state or TorState()

    def tor_state(self) -> TorState:
        return self._state

    def set_state(self, *, enabled: bool | None = None, status: TorStatus | None = None) -> TorState:
        self._state = TorState(
            enabled=self._state.enabled if enabled is None else enabled,
            status=self._state.status if status is None else status,
        )
        return self._state


__all__ = ["TorStatus", "TorState", "TorMonitor", "StaticTorMonitor"]
