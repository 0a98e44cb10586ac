from enum import Enum
from typing import Dict, FrozenSet, List


class AssignmentStateException(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


class AssignmentState(Enum):
    INIT = "init"
    OPTIMISTIC_APPLIED = "optimistic_applied"
    AWAITING_SERVER = "awaiting_server"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    RECONCILING = "reconciling"
    DONE = "done"


ALLOWED_TRANSITIONS: Dict[AssignmentState, FrozenSet[AssignmentState]] = {
    AssignmentState.INIT: frozenset({AssignmentState.OPTIMISTIC_APPLIED}),
    AssignmentState.OPTIMISTIC_APPLIED: frozenset({AssignmentState.AWAITING_SERVER}),
    AssignmentState.AWAITING_SERVER: frozenset({AssignmentState.CONFIRMED, AssignmentState.FAILED}),
    AssignmentState.CONFIRMED: frozenset({AssignmentState.RECONCILING}),
    AssignmentState.FAILED: frozenset({AssignmentState.RECONCILING}),
    AssignmentState.RECONCILING: frozenset({AssignmentState.DONE}),
    AssignmentState.DONE: frozenset(),
}


class AssignmentStateMachine:
    """
    Tracks one assignment attempt. Every move is checked against ALLOWED_TRANSITIONS,
    so e.g. CONFIRMED -> OPTIMISTIC_APPLIED cannot happen.
    """

    def __init__(self, order_id: str):
        self.order_id = order_id
        self.state = AssignmentState.INIT
        self.history: List[AssignmentState] = [AssignmentState.INIT]

    def transition(self, next_state: AssignmentState) -> AssignmentState:
        if next_state not in ALLOWED_TRANSITIONS[self.state]:
            raise AssignmentStateException(
                f"Cannot move assignment of order {self.order_id} from {self.state.value} to {next_state.value}"
            )
        self.state = next_state
        self.history.append(next_state)
        return next_state

    @property
    def finished(self) -> bool:
        return self.state == AssignmentState.DONE
