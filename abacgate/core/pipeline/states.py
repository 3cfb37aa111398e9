"""Interception pipeline states and transitions.

State Machine Diagram:

    ┌───────┐   no caller
    │ START │──────────────────────────┐
    └───┬───┘                          │
        │                              │
    ┌───▼────────────┐                 │
    │ INPUT_FILTERED │───┐             │
    └───┬────────────┘   │             │
        │                │  ┌───────┐  │
    ┌───▼────────────┐   ├─►│ ERROR │  │ (access denied)
    │ DELETE_CHECKED │───┘  └───────┘  │
    └───┬────────────┘                 │
        │                              │
    ┌───▼─────────────┐◄───────────────┘
    │ HANDLER_INVOKED │
    └───┬─────────────┘
        │
    ┌───▼─────────────┐
    │ OUTPUT_FILTERED │
    └───┬─────────────┘
        │
    ┌───▼──┐
    │ DONE │
    └──────┘

Each state names the phase the request has entered; a denial while in
INPUT_FILTERED or DELETE_CHECKED moves the request to ERROR before the
handler runs.
"""

from enum import Enum
from typing import Dict, FrozenSet


class PipelineState(str, Enum):
    """Phases of one intercepted request."""

    START = "start"
    INPUT_FILTERED = "input_filtered"
    DELETE_CHECKED = "delete_checked"
    HANDLER_INVOKED = "handler_invoked"
    OUTPUT_FILTERED = "output_filtered"
    DONE = "done"
    ERROR = "error"


VALID_TRANSITIONS: Dict[PipelineState, FrozenSet[PipelineState]] = {
    PipelineState.START: frozenset([
        PipelineState.INPUT_FILTERED,
        PipelineState.HANDLER_INVOKED,  # unauthenticated requests skip filtering
    ]),
    PipelineState.INPUT_FILTERED: frozenset([
        PipelineState.DELETE_CHECKED,
        PipelineState.ERROR,
    ]),
    PipelineState.DELETE_CHECKED: frozenset([
        PipelineState.HANDLER_INVOKED,
        PipelineState.ERROR,
    ]),
    PipelineState.HANDLER_INVOKED: frozenset([PipelineState.OUTPUT_FILTERED]),
    PipelineState.OUTPUT_FILTERED: frozenset([PipelineState.DONE]),
}

TERMINAL_STATES: FrozenSet[PipelineState] = frozenset([
    PipelineState.DONE,
    PipelineState.ERROR,
])


def can_transition(from_state: PipelineState, to_state: PipelineState) -> bool:
    """Check if a transition is valid from the given state."""
    return to_state in VALID_TRANSITIONS.get(from_state, frozenset())
