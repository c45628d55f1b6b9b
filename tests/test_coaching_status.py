import pytest

from core.services.coaching_status import (
    ALL_STATUSES,
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    CoachingStatus,
    InvalidStatusTransition,
    can_transition,
    check_transition,
    is_open,
    is_terminal,
)


def test_every_status_has_a_transition_row():
    assert set(ALLOWED_TRANSITIONS) == set(ALL_STATUSES)
    for targets in ALLOWED_TRANSITIONS.values():
        assert targets <= set(ALL_STATUSES)


def test_terminal_statuses():
    assert TERMINAL_STATUSES == {"completed", "cancelled"}
    assert is_terminal("cancelled")
    assert is_terminal("completed")
    for status in ["enrolled", "intake_complete", "plan_generating", "plan_ready", "active", "paused"]:
        assert is_open(status), status


def test_terminal_statuses_have_no_exits():
    assert ALLOWED_TRANSITIONS["completed"] == frozenset()
    assert ALLOWED_TRANSITIONS["cancelled"] == frozenset()


def test_forward_chain_is_allowed():
    chain = ["enrolled", "intake_complete", "plan_generating", "plan_ready", "active", "completed"]
    for current, nxt in zip(chain, chain[1:]):
        assert can_transition(current, nxt), (current, nxt)


def test_pause_round_trip():
    assert can_transition("active", "paused")
    assert can_transition("paused", "active")
    assert can_transition("paused", "completed")


def test_cancel_reachable_from_every_open_status():
    for status in ALL_STATUSES:
        if is_open(status):
            assert can_transition(status, "cancelled"), status


def test_backward_and_unknown_moves_rejected():
    assert not can_transition("active", "enrolled")
    assert not can_transition("cancelled", "active")
    assert not can_transition("enrolled", "bogus")
    assert not can_transition("bogus", "bogus")
    assert can_transition("active", "active")


def test_check_transition_raises_typed_error():
    with pytest.raises(InvalidStatusTransition) as exc_info:
        check_transition("plan_ready", "enrolled")
    assert exc_info.value.current == "plan_ready"
    assert exc_info.value.requested == "enrolled"
    assert isinstance(exc_info.value, ValueError)


def test_status_enum_is_str():
    assert CoachingStatus.active == "active"
    assert CoachingStatus("plan_generating") is CoachingStatus.plan_generating
