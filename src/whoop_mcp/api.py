"""
Read-only gateway over the WHOOP developer API (v2).

Every call goes through `AuthFlow.ensure_valid()` first and returns the
upstream JSON unmodified.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping
from urllib.parse import quote

from whoop_mcp.auth import AuthFlow
from whoop_mcp.constants import API_BASE_URL
from whoop_mcp.http_client import HttpClient
from whoop_mcp.models import CollectionQuery

log = logging.getLogger(__name__)


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


class WhoopApi:
    def __init__(self, auth: AuthFlow, http: HttpClient, *, base_url: str = API_BASE_URL) -> None:
        self.auth = auth
        self.http = http
        self.base_url = base_url.rstrip("/")

    def _get(self, path: str, what: str, params: Mapping[str, str] | None = None) -> Any:
        token = self.auth.ensure_valid()
        return self.http.get_json(
            f"{self.base_url}{path}",
            action=f"Failed to get {what}",
            headers={"Authorization": f"Bearer {token}"},
            params=params,
        )

    # --- user -------------------------------------------------------------

    def get_profile(self) -> Any:
        return self._get("/user/profile/basic", "profile")

    def get_body_measurement(self) -> Any:
        return self._get("/user/measurement/body", "body measurement")

    # --- cycles -----------------------------------------------------------

    def get_cycles(self, query: CollectionQuery) -> Any:
        return self._get("/cycle", "cycles", query.query_params())

    def get_cycle_by_id(self, cycle_id: int) -> Any:
        return self._get(f"/cycle/{_segment(cycle_id)}", "cycle")

    def get_recovery_for_cycle(self, cycle_id: int) -> Any:
        return self._get(f"/cycle/{_segment(cycle_id)}/recovery", "recovery for cycle")

    def get_sleep_for_cycle(self, cycle_id: int) -> Any:
        return self._get(f"/cycle/{_segment(cycle_id)}/sleep", "sleep for cycle")

    # --- recovery / sleep / workouts --------------------------------------

    def get_recovery(self, query: CollectionQuery) -> Any:
        return self._get("/recovery", "recovery", query.query_params())

    def get_sleep(self, query: CollectionQuery) -> Any:
        return self._get("/activity/sleep", "sleep", query.query_params())

    def get_sleep_by_id(self, sleep_id: str) -> Any:
        return self._get(f"/activity/sleep/{_segment(sleep_id)}", "sleep")

    def get_workouts(self, query: CollectionQuery) -> Any:
        return self._get("/activity/workout", "workouts", query.query_params())

    def get_workout_by_id(self, workout_id: str) -> Any:
        return self._get(f"/activity/workout/{_segment(workout_id)}", "workout")
