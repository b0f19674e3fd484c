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
from .connection import ConnectionStateMachine
from .scenario import (
    REFERENCE_SCENARIO,
    Scenario,
    ScenarioError,
    ScenarioResult,
    Step,
    dump_scenario,
    load_scenario,
    parse_scenario,
)

__all__ = [
    "ConnectionProtocol",
    "ConnectionState",
    "EffectReport",
    "Outcome",
    "Action",
    "Open",
    "Close",
    "Send",
    "Receive",
    "ConnectionStateMachine",
    "REFERENCE_SCENARIO",
    "Scenario",
    "ScenarioError",
    "ScenarioResult",
    "Step",
    "dump_scenario",
    "load_scenario",
    "parse_scenario",
]

__version__ = "0.1.0"
