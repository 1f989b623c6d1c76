"""
Incident Lifecycle Engine - vote-driven active/inactive state.

DESIGN PRINCIPLES:
- Pure function of its inputs, no storage access
- Counts only ever grow by exactly one per accepted vote
- Deactivation is one-way: a dismissed incident never comes back
"""

from dataclasses import dataclass, replace

from roadblock.core.settings import settings
from roadblock.models.verification import VerificationAction

DISMISS_THRESHOLD = settings.DISMISS_THRESHOLD


@dataclass(frozen=True)
class LifecycleState:
    """The mutable part of an incident, as seen by the lifecycle engine."""
    active: bool = True
    confirm_count: int = 0
    dismiss_count: int = 0

    @classmethod
    def of(cls, incident) -> "LifecycleState":
        return cls(
            active=incident.active,
            confirm_count=incident.confirm_count,
            dismiss_count=incident.dismiss_count,
        )


def apply_verification(
    state: LifecycleState,
    action: VerificationAction,
    threshold: int = DISMISS_THRESHOLD,
) -> LifecycleState:
    """
    Compute the next lifecycle state for one accepted vote.

    Confirm:  confirm_count + 1, active unchanged (never reactivates).
    Dismiss:  dismiss_count + 1, active becomes False once dismiss_count
              reaches ``threshold`` and stays False afterwards.

    Total over its domain; callers check vote eligibility first.
    """
    if action == VerificationAction.CONFIRM:
        return replace(state, confirm_count=state.confirm_count + 1)

    dismiss_count = state.dismiss_count + 1
    return replace(
        state,
        dismiss_count=dismiss_count,
        active=state.active and dismiss_count < threshold,
    )


def is_deactivation(before: LifecycleState, after: LifecycleState) -> bool:
    """True when this transition switched the incident off."""
    return before.active and not after.active
