"""
Connection state representation.

ConnectionState is a closed enumeration with no payload. The machine
replaces its current state wholesale on every transition; a state value
is never mutated in place.
"""
from __future__ import annotations

from enum import Enum


class ConnectionState(Enum):
    """Connection lifecycle states."""

    # No connection, nothing listening (initial state)
    CLOSED = "Closed"

    # Waiting for the peer; first received data completes the handshake
    LISTENING = "Listening"

    # Active connection, data flows both ways
    ESTABLISHED = "Established"

    @property
    def label(self) -> str:
        """Human-facing name used in effect messages."""
        return self.value

    @classmethod
    def parse(cls, text: str | ConnectionState) -> ConnectionState:
        """Look up a state by name, case-insensitively ("closed", "LISTENING", ...)."""
        if isinstance(text, ConnectionState):
            return text
        key = str(text).strip().upper()
        try:
            return cls[key]
        except KeyError:
            names = ", ".join(s.name.lower() for s in cls)
            raise ValueError(f"Unknown connection state {text!r} (expected one of: {names})") from None
