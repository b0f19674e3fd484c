"""
Connection State Machine.

This is the core connection logic, implemented as a pure function:
    step(state, action) -> (new_state, report)

No I/O, no side effects, no locking.
ConnectionStateMachine holds the current state and commits the result.
"""
from __future__ import annotations

from itertools import product
from typing import Callable

from .state import ConnectionState
from .events import Action, Open, Close, Send, Receive, ALL_ACTIONS
from .effects import EffectReport, Outcome


# Type alias for the step function signature
StepResult = tuple[ConnectionState, EffectReport]

Handler = Callable[[ConnectionState, Action], StepResult]


class ConnectionProtocol:
    """
    Pure functional state machine for one logical connection.

    Usage:
        state = ConnectionState.CLOSED
        state, report = ConnectionProtocol.step(state, Open())
        print(report)          # Transitioning from Closed to Listening state.
        state, report = ConnectionProtocol.step(state, Receive(b"SYN"))
        # state is now ESTABLISHED
    """

    @staticmethod
    def step(state: ConnectionState, action: Action) -> StepResult:
        """
        Interpret an action in the given state and return (new_state, report).

        Total over every state and the four known actions. Anything else is
        rejected with the state unchanged.
        """
        handler = _HANDLERS.get((state, type(action)))

        if handler:
            return handler(state, action)

        return (
            state,
            EffectReport(
                action, state, state, Outcome.REJECTED,
                f"Unsupported action {type(action).__name__} in {state.label} state.",
            ),
        )

    @staticmethod
    def is_exhaustive() -> bool:
        """True if every (state, action) pair has a handler."""
        return all(key in _HANDLERS for key in product(ConnectionState, ALL_ACTIONS))


def _render(payload: bytes) -> str:
    return payload.decode("utf-8", errors="backslashreplace")


# =============================================================================
# Report builders
# =============================================================================

def _transition(state: ConnectionState, action: Action, target: ConnectionState) -> StepResult:
    message = f"Transitioning from {state.label} to {target.label} state."
    return (target, EffectReport(action, state, target, Outcome.TRANSITIONED, message))


def _already(state: ConnectionState, action: Action) -> StepResult:
    message = f"Already in {state.label} state."
    return (state, EffectReport(action, state, state, Outcome.UNCHANGED, message))


def _reject(state: ConnectionState, action: Action, message: str) -> StepResult:
    return (state, EffectReport(action, state, state, Outcome.REJECTED, message))


def _accept(state: ConnectionState, action: Action, message: str) -> StepResult:
    return (state, EffectReport(action, state, state, Outcome.ACCEPTED, message))


# =============================================================================
# State-specific handlers
# =============================================================================

# --- Closed ---

def _handle_closed_open(state: ConnectionState, action: Open) -> StepResult:
    """CLOSED + Open -> start listening."""
    return _transition(state, action, ConnectionState.LISTENING)


def _handle_closed_send(state: ConnectionState, action: Send) -> StepResult:
    return _reject(state, action, "Cannot send data. Connection is closed.")


def _handle_closed_receive(state: ConnectionState, action: Receive) -> StepResult:
    return _reject(state, action, "Cannot receive data. Connection is closed.")


# --- Listening ---

def _handle_listening_send(state: ConnectionState, action: Send) -> StepResult:
    return _reject(state, action, "Cannot send data. Connection is in Listening state.")


def _handle_listening_receive(state: ConnectionState, action: Receive) -> StepResult:
    """LISTENING + Receive -> handshake complete.

    Any payload completes the handshake; its content is not validated.
    """
    return _transition(state, action, ConnectionState.ESTABLISHED)


# --- Established ---

def _handle_established_send(state: ConnectionState, action: Send) -> StepResult:
    """ESTABLISHED + Send -> the only state where sending is accepted."""
    return _accept(state, action, f"Sending data: {_render(action.payload)}")


def _handle_established_receive(state: ConnectionState, action: Receive) -> StepResult:
    return _accept(state, action, f"Receiving data: {_render(action.payload)}")


# --- Any state ---

def _handle_close(state: ConnectionState, action: Close) -> StepResult:
    """Close from any state ends in CLOSED."""
    if state is ConnectionState.CLOSED:
        return _already(state, action)
    return _transition(state, action, ConnectionState.CLOSED)


# =============================================================================
# Handler dispatch table
# =============================================================================

# (state, action_type) -> handler
_HANDLERS: dict[tuple[ConnectionState, type], Handler] = {
    # CLOSED
    (ConnectionState.CLOSED, Open): _handle_closed_open,
    (ConnectionState.CLOSED, Close): _handle_close,
    (ConnectionState.CLOSED, Send): _handle_closed_send,
    (ConnectionState.CLOSED, Receive): _handle_closed_receive,

    # LISTENING
    (ConnectionState.LISTENING, Open): _already,
    (ConnectionState.LISTENING, Close): _handle_close,
    (ConnectionState.LISTENING, Send): _handle_listening_send,
    (ConnectionState.LISTENING, Receive): _handle_listening_receive,

    # ESTABLISHED
    (ConnectionState.ESTABLISHED, Open): _already,
    (ConnectionState.ESTABLISHED, Close): _handle_close,
    (ConnectionState.ESTABLISHED, Send): _handle_established_send,
    (ConnectionState.ESTABLISHED, Receive): _handle_established_receive,
}
