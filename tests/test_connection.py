"""
Tests for ConnectionStateMachine.

Covers the stateful wrapper: state commits, set_state, history, the
transition listener, logging and serialized access from threads.
"""
import threading

import pytest

from tcpstate import ConnectionStateMachine, ConnectionState, Outcome, Send


class TestConstruction:

    def test_default_initial_state_is_closed(self):
        assert ConnectionStateMachine().state is ConnectionState.CLOSED

    @pytest.mark.parametrize("state", list(ConnectionState))
    def test_any_initial_state_is_legal(self, state):
        conn = ConnectionStateMachine(state)
        assert conn.state is state
        assert conn.history == ()

    def test_initial_state_by_name(self):
        assert ConnectionStateMachine("listening").state is ConnectionState.LISTENING


class TestReferenceRun:
    """The demonstration sequence, step by step."""

    def test_reference_sequence(self, conn):
        report = conn.send("Hello")
        assert report.rejected and conn.state is ConnectionState.CLOSED

        report = conn.receive("Hi")
        assert report.rejected and conn.state is ConnectionState.CLOSED

        conn.set_state(ConnectionState.LISTENING)
        assert conn.state is ConnectionState.LISTENING

        report = conn.receive("Hello")
        assert report.outcome is Outcome.TRANSITIONED
        assert conn.state is ConnectionState.ESTABLISHED
        assert conn.is_established

        report = conn.send("Hello")
        assert report.outcome is Outcome.ACCEPTED
        assert report.message == "Sending data: Hello"

        report = conn.receive("Hi")
        assert report.outcome is Outcome.ACCEPTED
        assert report.message == "Receiving data: Hi"

        conn.close()
        assert conn.is_closed

    def test_reopen_indefinitely(self, conn):
        for _ in range(3):
            conn.open()
            conn.receive(b"SYN")
            assert conn.is_established
            conn.close()
            assert conn.is_closed


class TestPayloads:

    def test_text_payload_is_encoded(self, conn):
        conn.set_state(ConnectionState.ESTABLISHED)
        report = conn.send("Hello")
        assert report.action == Send(b"Hello")

    def test_bytes_like_payloads(self, conn):
        conn.set_state(ConnectionState.ESTABLISHED)
        assert conn.send(bytearray(b"ab")).action == Send(b"ab")
        assert conn.send(memoryview(b"cd")).action == Send(b"cd")

    def test_other_payload_types_refused(self, conn):
        with pytest.raises(TypeError, match="payload must be bytes or str"):
            conn.send(42)
        assert conn.history == ()


class TestHistory:

    def test_history_limit_keeps_newest(self):
        conn = ConnectionStateMachine(history_limit=2)
        conn.open()
        r2 = conn.receive("SYN")
        r3 = conn.send("data")
        assert conn.history == (r2, r3)

    def test_history_limit_survives_reset(self):
        conn = ConnectionStateMachine(history_limit=1)
        conn.open()
        conn.reset()
        conn.open()
        r = conn.close()
        assert conn.history == (r,)

    def test_zero_limit_keeps_nothing(self):
        conn = ConnectionStateMachine(history_limit=0)
        report = conn.open()
        assert report.outcome is Outcome.TRANSITIONED
        assert conn.history == ()

    def test_negative_limit_refused(self):
        with pytest.raises(ValueError, match="history_limit must be >= 0"):
            ConnectionStateMachine(history_limit=-1)

    def test_unbounded_by_default(self, conn):
        for _ in range(50):
            conn.open()
        assert len(conn.history) == 50

    def test_history_records_reports_in_order(self, conn):
        r1 = conn.open()
        r2 = conn.open()
        r3 = conn.close()
        assert conn.history == (r1, r2, r3)

    def test_set_state_adds_no_report(self, conn):
        conn.set_state(ConnectionState.ESTABLISHED)
        assert conn.history == ()

    def test_reset_clears_history(self, conn):
        conn.open()
        conn.reset(ConnectionState.ESTABLISHED)
        assert conn.history == ()
        assert conn.state is ConnectionState.ESTABLISHED


class TestTransitionListener:

    def test_listener_fires_on_real_changes_only(self, conn):
        seen = []
        conn.on_transition = lambda old, new: seen.append((old, new))

        conn.open()
        conn.open()
        conn.send("x")
        conn.close()
        conn.close()

        assert seen == [
            (ConnectionState.CLOSED, ConnectionState.LISTENING),
            (ConnectionState.LISTENING, ConnectionState.CLOSED),
        ]

    def test_set_state_notifies_listener(self, conn):
        seen = []
        conn.on_transition = lambda old, new: seen.append((old, new))
        conn.set_state(ConnectionState.CLOSED)
        conn.set_state(ConnectionState.LISTENING)
        assert seen == [(ConnectionState.CLOSED, ConnectionState.LISTENING)]

    def test_listener_error_is_logged_and_state_kept(self, conn, log):
        def boom(old, new):
            raise RuntimeError("listener exploded")

        conn.on_transition = boom
        report = conn.open()

        assert report.outcome is Outcome.TRANSITIONED
        assert conn.state is ConnectionState.LISTENING
        assert any("listener exploded" in msg for msg in log.at("error"))


class TestLogging:

    def test_levels_follow_outcome(self, conn, log):
        conn.send("x")
        conn.open()
        conn.open()

        assert log.at("warn") == ["[Connection] Cannot send data. Connection is closed."]
        assert log.at("info") == ["[Connection] Transitioning from Closed to Listening state."]
        assert "[Connection] Already in Listening state." in log.at("debug")

    def test_set_state_logged_at_debug(self, conn, log):
        conn.set_state(ConnectionState.ESTABLISHED)
        assert log.at("debug") == ["[Connection] State set: Closed -> Established"]

    def test_default_logger_is_silent(self):
        conn = ConnectionStateMachine()
        conn.send("x")
        assert conn.history[0].rejected


class TestConcurrency:
    """Actions from many threads are serialized per machine."""

    def test_parallel_actions_keep_consistent_history(self):
        conn = ConnectionStateMachine()
        workers = 8
        rounds = 200
        barrier = threading.Barrier(workers)

        def worker():
            barrier.wait()
            for _ in range(rounds):
                conn.open()
                conn.receive(b"SYN")
                conn.send(b"data")
                conn.close()

        threads = [threading.Thread(target=worker) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        history = conn.history
        assert len(history) == workers * rounds * 4
        assert conn.state is ConnectionState.CLOSED
        for before, after in zip(history, history[1:]):
            assert after.previous is before.current
