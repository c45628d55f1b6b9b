"""Tests for the coaching HTTP client.

Covers: response interpretation (401 clears auth, 404 marks not enrolled,
other failures raise), transport errors surfacing as status 0, and the
screen controller's reaction to each.
"""

from __future__ import annotations

import httpx
import pytest

from core.services.my_plan import PlanResponse
from core.services.plan_client import (
    CoachingApiClient,
    PlanFetchError,
    PlanQueryOutcome,
    ScreenController,
    interpret_plan_response,
)
from core.services.screen_router import CachedUser, Screen

ACCEPTED = CachedUser(id=1, email="jane@example.com", terms_accepted=True, disclaimer_accepted=True)


def _api(handler) -> CoachingApiClient:
    return CoachingApiClient(http=httpx.Client(base_url="http://coaching.test", transport=httpx.MockTransport(handler)))


# ── interpret_plan_response ───────────────────────────────────────────────

class TestInterpretPlanResponse:
    def test_401_clears_auth(self):
        outcome = interpret_plan_response(PlanResponse(401, {"message": "Not authenticated"}))
        assert outcome == PlanQueryOutcome(data=None, should_clear_auth=True)

    def test_404_is_not_enrolled_marker(self):
        outcome = interpret_plan_response(PlanResponse(404, {"message": "No coaching enrollment found"}))
        assert outcome.not_enrolled is True
        assert outcome.should_clear_auth is False
        assert outcome.data == {"client": None, "notEnrolled": True}

    def test_200_passes_body_through(self):
        body = {"client": {"status": "active"}}
        assert interpret_plan_response(PlanResponse(200, body)).data is body

    @pytest.mark.parametrize("status", [0, 400, 403, 500, 503])
    def test_other_failures_raise(self, status):
        with pytest.raises(PlanFetchError) as exc_info:
            interpret_plan_response(PlanResponse(status, {"message": "boom"}))
        assert exc_info.value.status == status
        assert "boom" in str(exc_info.value)


# ── CoachingApiClient ─────────────────────────────────────────────────────

class TestCoachingApiClient:
    def test_login_stores_token_and_sends_bearer(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path == "/api/login":
                return httpx.Response(200, json={"success": True, "token": "tok-1", "user": {"id": 1}})
            return httpx.Response(200, json={"client": {"status": "active"}})

        with _api(handler) as api:
            assert api.login("jane@example.com", "pw")["success"] is True
            assert api.token == "tok-1"
            plan = api.fetch_my_plan()

        assert plan == PlanResponse(200, {"client": {"status": "active"}})
        assert seen[-1].headers["Authorization"] == "Bearer tok-1"
        assert "Authorization" not in seen[0].headers

    def test_failed_login_keeps_no_token(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"success": False, "error": "Invalid credentials"})

        api = _api(handler)
        assert api.login("jane@example.com", "bad")["error"] == "Invalid credentials"
        assert api.token is None

    def test_transport_error_becomes_status_zero(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        plan = _api(handler).fetch_my_plan()
        assert plan.status == 0
        assert "connection refused" in plan.body["message"]

    def test_non_json_body_is_empty_mapping(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>bad gateway</html>")

        assert _api(handler).fetch_my_plan() == PlanResponse(502, {})

    def test_logout_drops_token(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True})

        api = _api(handler)
        api.token = "tok-1"
        api.logout()
        assert api.token is None


# ── ScreenController ──────────────────────────────────────────────────────

class TestScreenController:
    def test_401_clears_cached_identity(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "Not authenticated"})

        controller = ScreenController(_api(handler), cached_user=ACCEPTED)
        controller.api.token = "stale"
        assert controller.refresh() is Screen.login
        assert controller.cached_user is None
        assert controller.api.token is None

    def test_404_keeps_identity(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "No coaching enrollment found"})

        controller = ScreenController(_api(handler), cached_user=ACCEPTED)
        assert controller.refresh() is Screen.not_enrolled
        assert controller.cached_user == ACCEPTED

    def test_server_error_shows_error_screen(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"message": "unavailable"})

        controller = ScreenController(_api(handler), cached_user=ACCEPTED)
        assert controller.refresh() is Screen.error
        assert controller.cached_user == ACCEPTED

    def test_no_cached_user_skips_fetch(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        controller = ScreenController(_api(handler))
        assert controller.refresh() is Screen.login
        assert controller.screen(is_loading=True) is Screen.login
