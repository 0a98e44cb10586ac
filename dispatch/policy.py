"""
Purpose: Central configuration for the dispatch console session.
What it does:

Stores the tunable knobs of the assignment flow:

ON_FAILURE = KEEP (optimistic assignment stays visible if the server call fails)
REFRESH_AFTER_ASSIGNMENT = True
POLL_INTERVAL_SECONDS = 30

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FailureStrategy(Enum):
    """
    What happens to the optimistic override when the assign call fails.

    KEEP favours availability: the dispatcher keeps seeing the assignment and the
    next refresh corrects it once the server reports a different rider.
    ROLLBACK restores whatever override existed before the attempt.
    """
    KEEP = "keep"
    ROLLBACK = "rollback"


@dataclass(frozen=True)
class ConsolePolicy:
    """
    Central configuration for the assignment coordinator and console.
    """

    # --- Assignment ---
    on_failure: FailureStrategy = FailureStrategy.KEEP

    # Schedule a background snapshot refresh after every assignment attempt,
    # successful or not.
    refresh_after_assignment: bool = True

    # --- Snapshot polling ---
    poll_interval_seconds: float = 30.0

    # --- Backend paging ---
    orders_page_limit: int = 100

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if not isinstance(self.on_failure, FailureStrategy):
            raise ValueError("on_failure must be a FailureStrategy")

        if self.poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be > 0")

        if self.orders_page_limit <= 0:
            raise ValueError("orders_page_limit must be > 0")


def default_console_policy() -> ConsolePolicy:
    """
    Convenience factory for the default policy.
    """
    p = ConsolePolicy()
    p.validate()
    return p


def rollback_console_policy() -> ConsolePolicy:
    """
    Same as the default, but failed assignments are rolled back locally.
    """
    p = ConsolePolicy(on_failure=FailureStrategy.ROLLBACK)
    p.validate()
    return p
