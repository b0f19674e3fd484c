"""
Connection - stateful wrapper around the pure connection protocol.

ConnectionStateMachine owns the current state, feeds actions to
ConnectionProtocol.step() and commits the result. It also carries the
ambient pieces the pure core leaves out:
- Logging (injected callable, no-op by default)
- Transition listener
- Report history
- A per-instance lock so each action is atomic across threads
"""
from __future__ import annotations

import threading
from collections import deque
from typing import Callable, Deque, Union

from .protocol import (
    ConnectionProtocol,
    ConnectionState,
    EffectReport,
    Outcome,
    Action,
    Open,
    Close,
    Send,
    Receive,
)


Payload = Union[bytes, bytearray, memoryview, str]
Logger = Callable[[str, str], None]
TransitionListener = Callable[[ConnectionState, ConnectionState], None]

_LOG_LEVELS = {
    Outcome.TRANSITIONED: "info",
    Outcome.ACCEPTED: "info",
    Outcome.UNCHANGED: "debug",
    Outcome.REJECTED: "warn",
}


def _to_bytes(payload: Payload) -> bytes:
    if isinstance(payload, str):
        return payload.encode("utf-8")
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    raise TypeError(f"payload must be bytes or str, not {type(payload).__name__}")


class ConnectionStateMachine:
    """
    One logical connection driven through open/close/send/receive.

    Usage:
        conn = ConnectionStateMachine()
        conn.on_transition = lambda old, new: print(f"{old.label} -> {new.label}")

        conn.send("Hello")        # rejected, still Closed
        conn.open()               # -> Listening
        conn.receive(b"SYN")      # -> Established
        report = conn.send("Hello")
        assert report.outcome is Outcome.ACCEPTED
    """

    def __init__(
        self,
        initial: ConnectionState = ConnectionState.CLOSED,
        logger: Logger | None = None,
        history_limit: int | None = None,
    ):
        if history_limit is not None and history_limit < 0:
            raise ValueError(f"history_limit must be >= 0, got {history_limit}")
        self._state = ConnectionState.parse(initial)
        self._logger = logger or (lambda level, msg: None)
        self._lock = threading.Lock()
        # Oldest reports are dropped once history_limit is reached
        self._history: Deque[EffectReport] = deque(maxlen=history_limit)

        # Called with (old_state, new_state) after a committed change
        self.on_transition: TransitionListener | None = None

    # === Properties ===

    @property
    def state(self) -> ConnectionState:
        """Current connection state (read-only)."""
        return self._state

    @property
    def is_established(self) -> bool:
        return self._state is ConnectionState.ESTABLISHED

    @property
    def is_closed(self) -> bool:
        return self._state is ConnectionState.CLOSED

    @property
    def history(self) -> tuple[EffectReport, ...]:
        """Reports since construction or the last reset(), oldest first.

        Holds at most `history_limit` entries when a limit was given.
        """
        with self._lock:
            return tuple(self._history)

    # === State control ===

    def set_state(self, state: ConnectionState) -> None:
        """Overwrite the current state unconditionally."""
        state = ConnectionState.parse(state)
        with self._lock:
            previous = self._state
            self._state = state

        self._logger("debug", f"[Connection] State set: {previous.label} -> {state.label}")
        if previous is not state:
            self._notify(previous, state)

    def reset(self, initial: ConnectionState = ConnectionState.CLOSED) -> None:
        """Return to `initial` and forget the report history."""
        initial = ConnectionState.parse(initial)
        with self._lock:
            self._state = initial
            self._history.clear()
        self._logger("debug", f"[Connection] Reset to {initial.label}")

    # === Actions ===

    def open(self) -> EffectReport:
        return self.dispatch(Open())

    def close(self) -> EffectReport:
        return self.dispatch(Close())

    def send(self, payload: Payload) -> EffectReport:
        return self.dispatch(Send(_to_bytes(payload)))

    def receive(self, payload: Payload) -> EffectReport:
        return self.dispatch(Receive(_to_bytes(payload)))

    def dispatch(self, action: Action) -> EffectReport:
        """
        Feed an action to the protocol and commit the resulting state.

        Look-up, effect and commit happen under the lock; logging and the
        transition listener run after it is released.
        """
        with self._lock:
            new_state, report = ConnectionProtocol.step(self._state, action)
            self._state = new_state
            self._history.append(report)

        self._logger(_LOG_LEVELS[report.outcome], f"[Connection] {report.message}")
        if report.transitioned:
            self._notify(report.previous, report.current)
        return report

    # === Internals ===

    def _notify(self, previous: ConnectionState, current: ConnectionState) -> None:
        if self.on_transition is None:
            return
        try:
            self.on_transition(previous, current)
        except Exception as e:
            self._logger("error", f"[Connection] Transition listener failed: {e}")

    def __repr__(self) -> str:
        return f"ConnectionStateMachine(state={self._state.name})"
