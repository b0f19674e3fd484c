"""
Connection Protocol - Pure functional state machine.

This module contains the transition logic separated from locking, logging
and callbacks. ConnectionProtocol.step() is the core: it takes a state and
an action, returns the new state and an effect report.
"""
from .state import ConnectionState
from .events import (
    Action,
    Open,
    Close,
    Send,
    Receive,
    ALL_ACTIONS,
)
from .effects import EffectReport, Outcome
from .machine import ConnectionProtocol, StepResult

__all__ = [
    # State
    "ConnectionState",
    # Actions
    "Action",
    "Open",
    "Close",
    "Send",
    "Receive",
    "ALL_ACTIONS",
    # Effects
    "EffectReport",
    "Outcome",
    # Protocol
    "ConnectionProtocol",
    "StepResult",
]
