"""Pick the coaching screen to show.

``decide_screen`` is recomputed from scratch on every input change and has no
memory of earlier calls. Rules are checked in order and the first match wins;
a 401 must be handled before anything that could read as "not enrolled".
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional


class Screen(str, Enum):
    login = "login"
    loading = "loading"
    not_enrolled = "not_enrolled"
    terms_modal = "terms_modal"
    welcome = "welcome"
    intake_form = "intake_form"
    waiting = "waiting"
    dashboard = "dashboard"
    error = "error"


STATUS_SCREENS: dict[str, Screen] = {
    "enrolled": Screen.intake_form,
    "intake_complete": Screen.waiting,
    "plan_generating": Screen.waiting,
    "plan_ready": Screen.waiting,
    "paused": Screen.waiting,
    "completed": Screen.waiting,
    "active": Screen.dashboard,
}

# Unrecognised status values render as loading rather than failing.
UNKNOWN_STATUS_SCREEN = Screen.loading


@dataclass(frozen=True)
class CachedUser:
    """The identity the client keeps between page loads."""

    id: Any = None
    email: str = ""
    terms_accepted: bool = False
    disclaimer_accepted: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CachedUser":
        return cls(
            id=data.get("id"),
            email=str(data.get("email") or ""),
            terms_accepted=bool(_field(data, "terms_accepted", "termsAccepted")),
            disclaimer_accepted=bool(_field(data, "disclaimer_accepted", "disclaimerAccepted")),
        )


def _field(obj: Any, snake: str, camel: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(snake, obj.get(camel))
    return getattr(obj, snake, getattr(obj, camel, None))


def _status(response: Any) -> Optional[int]:
    value = _field(response, "status", "status")
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _client(response: Any) -> Optional[Mapping[str, Any]]:
    body = _field(response, "body", "body")
    if not isinstance(body, Mapping):
        return None
    client = body.get("client")
    return client if isinstance(client, Mapping) else None


def _has_accepted(user: Any) -> bool:
    return bool(_field(user, "terms_accepted", "termsAccepted")) and bool(
        _field(user, "disclaimer_accepted", "disclaimerAccepted")
    )


def _is_transport_failure(status: Optional[int]) -> bool:
    return status is None or status == 0 or status >= 500


def _status_screen(user: Any, response: Any, is_loading: bool) -> Screen:
    client = _client(response)
    return STATUS_SCREENS.get(str(client.get("status")), UNKNOWN_STATUS_SCREEN)


Predicate = Callable[[Any, Any, bool], bool]

# (name, predicate, screen). Everything after "no_plan_response" may assume a response.
RULES: tuple[tuple[str, Predicate, Screen], ...] = (
    ("no_cached_user", lambda user, response, loading: user is None, Screen.login),
    ("fetch_in_flight", lambda user, response, loading: bool(loading), Screen.loading),
    ("no_plan_response", lambda user, response, loading: response is None, Screen.loading),
    ("session_rejected", lambda user, response, loading: _status(response) == 401, Screen.login),
    ("not_enrolled", lambda user, response, loading: _status(response) == 404, Screen.not_enrolled),
    ("fetch_failed", lambda user, response, loading: _is_transport_failure(_status(response)), Screen.error),
    ("missing_client", lambda user, response, loading: _client(response) is None, Screen.loading),
    ("acceptance_pending", lambda user, response, loading: not _has_accepted(user), Screen.terms_modal),
)


def decide_screen(user_in_state: Any, plan_response: Any, is_loading: bool) -> Screen:
    for _name, predicate, screen in RULES:
        if predicate(user_in_state, plan_response, is_loading):
            return screen
    return _status_screen(user_in_state, plan_response, is_loading)


def explain_screen(user_in_state: Any, plan_response: Any, is_loading: bool) -> str:
    """Name of the rule that decided the screen, for logging."""
    for name, predicate, _screen in RULES:
        if predicate(user_in_state, plan_response, is_loading):
            return name
    return "client_status"
