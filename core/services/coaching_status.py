"""Coaching client lifecycle statuses.

The onboarding funnel runs::

    enrolled -> intake_complete -> plan_generating -> plan_ready -> active
    active <-> paused, active/paused -> completed
    any non-terminal status -> cancelled

``completed`` and ``cancelled`` are terminal: a user whose latest enrollment
is terminal may be enrolled again.
"""

from __future__ import annotations

from enum import Enum


class CoachingStatus(str, Enum):
    enrolled = "enrolled"
    intake_complete = "intake_complete"
    plan_generating = "plan_generating"
    plan_ready = "plan_ready"
    active = "active"
    paused = "paused"
    completed = "completed"
    cancelled = "cancelled"


TERMINAL_STATUSES: frozenset[str] = frozenset({CoachingStatus.completed.value, CoachingStatus.cancelled.value})

ALL_STATUSES: tuple[str, ...] = tuple(s.value for s in CoachingStatus)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "enrolled": frozenset({"intake_complete", "cancelled"}),
    "intake_complete": frozenset({"plan_generating", "cancelled"}),
    "plan_generating": frozenset({"plan_ready", "cancelled"}),
    "plan_ready": frozenset({"active", "cancelled"}),
    "active": frozenset({"paused", "completed", "cancelled"}),
    "paused": frozenset({"active", "completed", "cancelled"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}


class InvalidStatusTransition(ValueError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move coaching client from '{current}' to '{requested}'")


def is_known_status(status: str) -> bool:
    return status in ALLOWED_TRANSITIONS


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def is_open(status: str) -> bool:
    """An enrollment counts as active until it is completed or cancelled."""
    return not is_terminal(status)


def can_transition(current: str, requested: str) -> bool:
    if current == requested:
        return is_known_status(current)
    return requested in ALLOWED_TRANSITIONS.get(current, frozenset())


def check_transition(current: str, requested: str) -> None:
    if not can_transition(current, requested):
        raise InvalidStatusTransition(current, requested)
