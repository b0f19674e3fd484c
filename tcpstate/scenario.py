"""
Scenarios - scripted action sequences for a connection.

A scenario is a YAML document naming an initial state and a list of steps:

    name: reference_run
    initial: closed
    steps:
      - send: Hello
      - set_state: listening
      - receive: Hello
      - close

Bare step names (``open``, ``close``) take no argument. ``send`` and
``receive`` take a text payload, ``set_state`` takes a state name.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .connection import ConnectionStateMachine, Logger
from .protocol import ConnectionState, EffectReport

STEP_KINDS = ("open", "close", "send", "receive", "set_state")
_PAYLOAD_KINDS = ("send", "receive")


class ScenarioError(ValueError):
    """A scenario document could not be parsed."""


@dataclass(frozen=True)
class Step:
    """One scripted call on the connection."""
    kind: str
    payload: str | None = None
    state: ConnectionState | None = None

    def apply(self, machine: ConnectionStateMachine) -> EffectReport | None:
        """Run this step; set_state produces no report."""
        if self.kind == "open":
            return machine.open()
        if self.kind == "close":
            return machine.close()
        if self.kind == "send":
            return machine.send(self.payload or "")
        if self.kind == "receive":
            return machine.receive(self.payload or "")
        if self.kind == "set_state" and self.state is not None:
            machine.set_state(self.state)
            return None
        raise ScenarioError(f"Cannot apply step {self.kind!r} (state={self.state!r})")

    def to_yaml(self) -> Any:
        if self.kind in _PAYLOAD_KINDS:
            return {self.kind: self.payload}
        if self.kind == "set_state":
            return {self.kind: self.state.name.lower()}
        return self.kind


@dataclass
class ScenarioResult:
    """Outcome of replaying a scenario."""
    name: str
    final_state: ConnectionState
    reports: list[EffectReport] = field(default_factory=list)

    @property
    def accepted(self) -> list[EffectReport]:
        return [r for r in self.reports if r.accepted]

    @property
    def rejected(self) -> list[EffectReport]:
        return [r for r in self.reports if r.rejected]


@dataclass(frozen=True)
class Scenario:
    name: str
    initial: ConnectionState = ConnectionState.CLOSED
    steps: tuple[Step, ...] = ()

    def run(
        self,
        machine: ConnectionStateMachine | None = None,
        logger: Logger | None = None,
    ) -> ScenarioResult:
        """
        Replay the steps on `machine` (a fresh one if omitted).

        A supplied machine is reset to the scenario's initial state first.
        """
        log = logger or (lambda level, msg: None)
        if machine is None:
            machine = ConnectionStateMachine(self.initial, logger=logger)
        else:
            machine.reset(self.initial)

        log("info", f"[Scenario] Running {self.name!r} ({len(self.steps)} steps) from {self.initial.label}")
        result = ScenarioResult(self.name, machine.state)
        for step in self.steps:
            report = step.apply(machine)
            if report is not None:
                result.reports.append(report)
        result.final_state = machine.state
        log("info", f"[Scenario] {self.name!r} finished in {machine.state.label}")
        return result

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "initial": self.initial.name.lower(),
            "steps": [step.to_yaml() for step in self.steps],
        }


# =============================================================================
# Parsing
# =============================================================================

def _parse_step(index: int, raw: Any) -> Step:
    if isinstance(raw, str):
        kind, arg = raw.strip(), None
    elif isinstance(raw, dict) and len(raw) == 1:
        kind, arg = next(iter(raw.items()))
    else:
        raise ScenarioError(f"Step {index}: expected a name or a single-key mapping, got {raw!r}")

    if kind not in STEP_KINDS:
        raise ScenarioError(f"Step {index}: unknown step {kind!r} (expected one of: {', '.join(STEP_KINDS)})")

    if kind in _PAYLOAD_KINDS:
        if arg is None:
            raise ScenarioError(f"Step {index}: {kind} requires a payload")
        # YAML turns unquoted yes/1.0/2024-01-01 into non-strings
        if not isinstance(arg, str):
            raise ScenarioError(
                f"Step {index}: {kind} payload must be text, got {type(arg).__name__} {arg!r} (quote it)"
            )
        return Step(kind, payload=arg)

    if kind == "set_state":
        if arg is None:
            raise ScenarioError(f"Step {index}: set_state requires a state name")
        try:
            return Step(kind, state=ConnectionState.parse(arg))
        except ValueError as e:
            raise ScenarioError(f"Step {index}: {e}") from e

    if arg is not None:
        raise ScenarioError(f"Step {index}: {kind} takes no argument")
    return Step(kind)


def parse_scenario(doc: Any, default_name: str = "scenario") -> Scenario:
    """Build a Scenario from an already-loaded YAML document."""
    if not isinstance(doc, dict):
        raise ScenarioError("Scenario document must be a mapping")

    raw_steps = doc.get("steps") or []
    if not isinstance(raw_steps, list):
        raise ScenarioError("'steps' must be a list")

    try:
        initial = ConnectionState.parse(doc.get("initial", "closed"))
    except ValueError as e:
        raise ScenarioError(str(e)) from e

    steps = tuple(_parse_step(i, raw) for i, raw in enumerate(raw_steps, start=1))
    name = doc.get("name")
    return Scenario(default_name if name is None else str(name), initial, steps)


def load_scenario(path: str | Path) -> Scenario:
    """Read a scenario from a YAML file."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            doc = yaml.safe_load(f)
    except OSError as e:
        raise ScenarioError(f"Cannot read scenario {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise ScenarioError(f"Cannot decode scenario {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ScenarioError(f"Invalid YAML in {path}: {e}") from e
    return parse_scenario(doc, default_name=path.stem)


def dump_scenario(scenario: Scenario) -> str:
    return yaml.safe_dump(scenario.to_dict(), sort_keys=False)


# The demonstration run: rejections while closed, then a forced move to
# Listening, a handshake-completing receive, traffic, and a close.
REFERENCE_SCENARIO = Scenario(
    name="reference_run",
    initial=ConnectionState.CLOSED,
    steps=(
        Step("send", payload="Hello"),
        Step("receive", payload="Hi"),
        Step("set_state", state=ConnectionState.LISTENING),
        Step("receive", payload="Hello"),
        Step("send", payload="Hello"),
        Step("receive", payload="Hi"),
        Step("close"),
    ),
)
