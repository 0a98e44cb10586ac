#Expose the high-level console pieces:
#Assignment coordinator (the "one call" entry point for assign/reassign)
#Console session (what views subscribe to)
#Policy knobs

from .console import DispatchConsole, RefreshStatus, Subscription
from .coordinator import AssignmentCoordinator, AssignmentResult
from .policy import ConsolePolicy, FailureStrategy, default_console_policy, rollback_console_policy

__all__ = [
    "AssignmentCoordinator",
    "AssignmentResult",
    "ConsolePolicy",
    "DispatchConsole",
    "FailureStrategy",
    "RefreshStatus",
    "Subscription",
    "default_console_policy",
    "rollback_console_policy",
]
