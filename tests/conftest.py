"""
Pytest configuration for tcpstate tests.

This file provides fixtures and utilities for testing.
"""
import pytest
import sys
from pathlib import Path

# Ensure tcpstate package is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from tcpstate import ConnectionStateMachine, ConnectionState

SCENARIO_DIR = Path(__file__).parent.parent / "scenarios"


class RecordingLogger:
    """Collects (level, message) pairs instead of printing them."""

    def __init__(self):
        self.records: list[tuple[str, str]] = []

    def __call__(self, level: str, message: str) -> None:
        self.records.append((level, message))

    def at(self, level: str) -> list[str]:
        return [msg for lvl, msg in self.records if lvl == level]


@pytest.fixture
def log():
    return RecordingLogger()


@pytest.fixture
def conn(log):
    """Fresh connection in the Closed state with a recording logger."""
    return ConnectionStateMachine(ConnectionState.CLOSED, logger=log)


@pytest.fixture
def scenario_dir():
    return SCENARIO_DIR
