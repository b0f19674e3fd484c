"""
Actions are inputs to the connection state machine.

The caller invokes an action; the protocol interprets it according to the
current state. Payloads are opaque bytes and are never inspected.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Action:
    """Base class for all connection actions."""

    @property
    def name(self) -> str:
        return type(self).__name__.lower()


# === Lifecycle ===

@dataclass(frozen=True)
class Open(Action):
    """Request to open the connection (start listening)."""
    pass


@dataclass(frozen=True)
class Close(Action):
    """Request to close the connection."""
    pass


# === Data ===

@dataclass(frozen=True)
class Send(Action):
    """Application wants to send data over the connection."""
    payload: bytes = b""


@dataclass(frozen=True)
class Receive(Action):
    """Data arrived from the peer."""
    payload: bytes = b""


ALL_ACTIONS: tuple[type[Action], ...] = (Open, Close, Send, Receive)
