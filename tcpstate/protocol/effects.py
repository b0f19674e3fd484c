"""
Effect reports are outputs of the connection state machine.

Every action produces exactly one report. A rejected action is a normal
outcome carried in the report, not an exception.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from .events import Action
from .state import ConnectionState


class Outcome(Enum):
    """How the machine treated an action."""

    TRANSITIONED = auto()   # State changed
    UNCHANGED = auto()      # No-op, e.g. "already listening"
    ACCEPTED = auto()       # Data sent or received, state unchanged
    REJECTED = auto()       # Action not allowed in the current state


@dataclass(frozen=True)
class EffectReport:
    """Observable result of one action."""

    action: Action
    previous: ConnectionState
    current: ConnectionState
    outcome: Outcome
    message: str

    @property
    def accepted(self) -> bool:
        return self.outcome is not Outcome.REJECTED

    @property
    def rejected(self) -> bool:
        return self.outcome is Outcome.REJECTED

    @property
    def transitioned(self) -> bool:
        return self.previous is not self.current

    def __str__(self) -> str:
        return self.message
