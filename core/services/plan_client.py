"""HTTP client for the coaching API and the screen state that sits on it.

Mirrors how the web client consumes ``GET /api/my-plan``: a 401 drops the
cached identity so the login screen comes back, a 404 is a "not enrolled"
marker, and any other failure is an error rather than an empty plan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from core.services.my_plan import PlanResponse
from core.services.screen_router import CachedUser, Screen, decide_screen

logger = logging.getLogger(__name__)

TRANSPORT_FAILURE_STATUS = 0


class PlanFetchError(RuntimeError):
    def __init__(self, status: int, message: str = ""):
        self.status = status
        super().__init__(f"my-plan request failed with status {status}: {message}".rstrip(": "))


@dataclass
class PlanQueryOutcome:
    data: Optional[dict[str, Any]]
    not_enrolled: bool = False
    should_clear_auth: bool = False


def interpret_plan_response(response: PlanResponse) -> PlanQueryOutcome:
    if response.status == 401:
        return PlanQueryOutcome(data=None, should_clear_auth=True)
    if response.status == 404:
        return PlanQueryOutcome(data={"client": None, "notEnrolled": True}, not_enrolled=True)
    if response.status >= 400 or response.status == TRANSPORT_FAILURE_STATUS:
        raise PlanFetchError(response.status, str(response.body.get("message", "")))
    return PlanQueryOutcome(data=response.body)


class CoachingApiClient:
    """Thin wrapper over the coaching endpoints.

    Pass ``http`` to reuse an existing ``httpx.Client`` (for example a FastAPI
    ``TestClient``); otherwise one is built for ``base_url``.
    """

    def __init__(self, base_url: str = "", *, http: Optional[httpx.Client] = None, timeout: float = 10.0):
        self._owns_http = http is None
        self._http = http if http is not None else httpx.Client(base_url=base_url, timeout=timeout)
        self.token: Optional[str] = None

    def __enter__(self) -> "CoachingApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    @staticmethod
    def _json(resp: httpx.Response) -> dict[str, Any]:
        try:
            data = resp.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def login(self, email: str, password: str, *, accept_terms: bool = False, accept_disclaimer: bool = False) -> dict[str, Any]:
        resp = self._http.post(
            "/api/login",
            json={
                "email": email,
                "password": password,
                "termsAccepted": accept_terms,
                "disclaimerAccepted": accept_disclaimer,
            },
        )
        data = self._json(resp)
        if resp.status_code == 200 and data.get("success"):
            self.token = data.get("token")
        return data

    def logout(self) -> None:
        self._http.post("/api/logout", headers=self._headers())
        self.token = None

    def accept_terms(self, *, terms: bool = True, disclaimer: bool = True) -> dict[str, Any]:
        resp = self._http.post(
            "/api/accept-terms",
            json={"termsAccepted": terms, "disclaimerAccepted": disclaimer},
            headers=self._headers(),
        )
        return self._json(resp)

    def fetch_my_plan(self) -> PlanResponse:
        try:
            resp = self._http.get("/api/my-plan", headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("my_plan_transport_error", extra={"error": str(exc)})
            return PlanResponse(TRANSPORT_FAILURE_STATUS, {"message": str(exc)})
        return PlanResponse(resp.status_code, self._json(resp))

    def submit_form_response(self, form_type: str, responses: Any) -> dict[str, Any]:
        resp = self._http.post(
            "/api/coaching-clients/form-responses",
            json={"formType": form_type, "responses": responses},
            headers=self._headers(),
        )
        return self._json(resp)


class ScreenController:
    """Cached identity plus last plan fetch, re-evaluated on each refresh."""

    def __init__(self, api: CoachingApiClient, cached_user: Optional[CachedUser] = None):
        self.api = api
        self.cached_user = cached_user
        self.plan_response: Optional[PlanResponse] = None

    def screen(self, is_loading: bool = False) -> Screen:
        return decide_screen(self.cached_user, self.plan_response, is_loading)

    def sign_in(self, email: str, password: str, **kwargs: bool) -> Screen:
        result = self.api.login(email, password, **kwargs)
        if result.get("success") and isinstance(result.get("user"), dict):
            self.cached_user = CachedUser.from_mapping(result["user"])
        return self.refresh()

    def accept_terms(self) -> Screen:
        result = self.api.accept_terms()
        if result.get("success") and isinstance(result.get("user"), dict):
            self.cached_user = CachedUser.from_mapping(result["user"])
        return self.refresh()

    def sign_out(self) -> Screen:
        self.api.logout()
        self.cached_user = None
        self.plan_response = None
        return self.screen()

    def refresh(self) -> Screen:
        if self.cached_user is None:
            self.plan_response = None
            return self.screen()
        self.plan_response = self.api.fetch_my_plan()
        if self.plan_response.status == 401:
            logger.info("cached_identity_cleared", extra={"reason": "session_rejected"})
            self.cached_user = None
            self.api.token = None
        return self.screen()
