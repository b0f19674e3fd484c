"""
Demonstration run: drive one connection through a scenario and narrate it.

    python -m tcpstate.demo                 # built-in reference run
    python -m tcpstate.demo my_run.yaml     # scripted run
    python -m tcpstate.demo --verbose       # also print debug/info log lines

TCPSTATE_SCENARIO names a scenario file to use when none is given.
"""
from __future__ import annotations

import os
import sys

from .connection import ConnectionStateMachine, Logger
from .scenario import REFERENCE_SCENARIO, Scenario, ScenarioError, load_scenario

_LEVEL_ORDER = {"debug": 0, "info": 1, "warn": 2, "error": 3}


def console_logger(min_level: str = "warn", stream=None) -> Logger:
    """Logger that prints "[LEVEL] message" for levels >= min_level."""
    threshold = _LEVEL_ORDER[min_level]

    def log(level: str, message: str) -> None:
        if _LEVEL_ORDER.get(level, 3) >= threshold:
            print(f"[{level.upper()}] {message}", file=stream or sys.stderr)

    return log


def resolve_scenario(path: str | None) -> Scenario:
    path = path or os.environ.get("TCPSTATE_SCENARIO")
    if not path:
        return REFERENCE_SCENARIO
    return load_scenario(path)


def run(scenario: Scenario, logger: Logger | None = None, out=None) -> int:
    out = out or sys.stdout
    machine = ConnectionStateMachine(scenario.initial, logger=logger)

    print(f"Scenario {scenario.name!r}, starting {scenario.initial.label}", file=out)
    for step in scenario.steps:
        before = machine.state
        report = step.apply(machine)
        if report is not None:
            print(report.message, file=out)
        if machine.state is not before:
            print(f"  state: {before.label} -> {machine.state.label}", file=out)

    print(f"Final state: {machine.state.label}", file=out)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    verbose = "--verbose" in args
    paths = [a for a in args if not a.startswith("--")]
    if len(paths) > 1:
        print("Usage: python -m tcpstate.demo [scenario.yaml] [--verbose]")
        return 2

    try:
        scenario = resolve_scenario(paths[0] if paths else None)
    except ScenarioError as e:
        print(f"Scenario error: {e}")
        return 2

    logger = console_logger("debug" if verbose else "error")
    return run(scenario, logger=logger)


if __name__ == "__main__":
    sys.exit(main())
