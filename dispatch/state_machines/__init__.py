from .assignment_state import (
    ALLOWED_TRANSITIONS,
    AssignmentState,
    AssignmentStateException,
    AssignmentStateMachine,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "AssignmentState",
    "AssignmentStateException",
    "AssignmentStateMachine",
]
