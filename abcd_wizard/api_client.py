"""
HTTP client for the course API.

Thin wrapper over httpx: one method per endpoint the wizard uses, JSON in and
out, every failure raised as ApiError. Retrying and swallowing errors is the
caller's business.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from abcd_wizard.constants import get_api_base_url, get_request_timeout
from abcd_wizard.exceptions import ApiError
from abcd_wizard.mapping import (
    build_na_sections,
    build_na_summary,
    extract_audiences,
    objective_from_db,
    sub_tasks_from_triage_rows,
    triage_item_from_db,
)
from abcd_wizard.models.entities import GapClassification
from abcd_wizard.models.files import WizardSnapshot

logger = logging.getLogger(__name__)


class WizardApiClient:
    """
    Client for the course API.

    Handles:
    - Gap, sub-task and objective writes used by autosave
    - Loading a whole session (overview, analysis context, objectives,
      triage items, gap)
    - Mapping HTTP and decoding failures to ApiError
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """
        Initialize WizardApiClient.

        Args:
            base_url: API root. Defaults to the configured api_base_url.
            timeout: Per-request timeout in seconds. Defaults to config.
            transport: httpx transport override (tests use MockTransport).
            headers: Extra headers sent with every request.
        """
        self.base_url = (base_url or get_api_base_url()).rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else get_request_timeout(),
            transport=transport,
            headers=headers,
        )

    def close(self) -> None:
        """Release the underlying connection pool."""
        self._client.close()

    def __enter__(self) -> "WizardApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, json: Any = None) -> Any:
        """Send one request and decode the JSON body.

        Returns:
            Decoded body, or None for empty responses.

        Raises:
            ApiError: On transport errors, non-2xx status or invalid JSON.
        """
        logger.debug("%s %s", method, path)
        try:
            response = self._client.request(method, path, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ApiError(
                f"{method} {path} failed with status {e.response.status_code}",
                status_code=e.response.status_code,
            )
        except httpx.HTTPError as e:
            raise ApiError(f"{method} {path} failed: {e}")

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise ApiError(f"{method} {path} returned invalid JSON", status_code=response.status_code)

    def _created_id(self, body: Any, what: str) -> str:
        if not isinstance(body, dict) or not body.get("id"):
            raise ApiError(f"Create {what} response has no id")
        return str(body["id"])

    # ------------------------------------------------------------------
    # Gap
    # ------------------------------------------------------------------

    def update_gap(self, course_id: str, gap: GapClassification) -> None:
        self._request("PATCH", f"/api/courses/{course_id}/gap", json=gap.to_wire())

    # ------------------------------------------------------------------
    # Sub-tasks
    # ------------------------------------------------------------------

    def create_sub_task(self, course_id: str, task_id: str, payload: Dict[str, Any]) -> str:
        """Create a sub-task and return its server id."""
        body = self._request(
            "POST", f"/api/courses/{course_id}/triage-items/{task_id}/sub-tasks", json=payload
        )
        return self._created_id(body, "sub-task")

    def update_sub_task(self, course_id: str, task_id: str, sub_task_id: str, fields: Dict[str, Any]) -> None:
        self._request(
            "PATCH", f"/api/courses/{course_id}/triage-items/{task_id}/sub-tasks/{sub_task_id}", json=fields
        )

    def delete_sub_task(self, course_id: str, task_id: str, sub_task_id: str) -> None:
        self._request("DELETE", f"/api/courses/{course_id}/triage-items/{task_id}/sub-tasks/{sub_task_id}")

    # ------------------------------------------------------------------
    # Objectives
    # ------------------------------------------------------------------

    def create_objective(self, course_id: str, payload: Optional[Dict[str, Any]] = None) -> str:
        """Create an objective and return its server id."""
        body = self._request(
            "POST",
            f"/api/courses/{course_id}/objectives",
            json=payload if payload is not None else {"title": "", "objectivePriority": "SHOULD"},
        )
        return self._created_id(body, "objective")

    def update_objective(self, objective_id: str, fields: Dict[str, Any]) -> None:
        self._request("PUT", f"/api/objectives/{objective_id}", json=fields)

    def delete_objective(self, objective_id: str) -> None:
        self._request("DELETE", f"/api/objectives/{objective_id}")

    # ------------------------------------------------------------------
    # Session load
    # ------------------------------------------------------------------

    def _optional(self, path: str, default: Any) -> Any:
        try:
            body = self._request("GET", path)
        except ApiError as e:
            logger.info("Optional %s unavailable: %s", path, e)
            return default
        return default if body is None else body

    def load_session(self, course_id: str) -> WizardSnapshot:
        """Load everything the wizard needs for one course.

        The overview is required; every other resource falls back to empty
        data when it cannot be loaded.

        Raises:
            ApiError: If the course overview cannot be loaded.
        """
        overview = self._request("GET", f"/api/courses/{course_id}/overview") or {}
        course = overview.get("course") or overview

        context = self._optional(f"/api/courses/{course_id}/analysis-context", None)
        objective_rows = self._optional(f"/api/courses/{course_id}/objectives", [])
        triage_rows = self._optional(f"/api/courses/{course_id}/triage-items", [])
        gap = self._optional(f"/api/courses/{course_id}/gap", {})

        gap = gap if isinstance(gap, dict) else {}
        objective_rows = objective_rows if isinstance(objective_rows, list) else []
        triage_rows = triage_rows if isinstance(triage_rows, list) else []

        return WizardSnapshot(
            course_id=course_id,
            course_name=course.get("name") or "",
            objectives=[objective_from_db(o) for o in objective_rows],
            triage_items=[triage_item_from_db(t) for t in triage_rows],
            sub_tasks=sub_tasks_from_triage_rows(triage_rows),
            gap=GapClassification(
                knowledge=bool(gap.get("gapKnowledge")),
                skill=bool(gap.get("gapSkill")),
            ),
            na_summary=build_na_summary(context, course),
            na_sections=build_na_sections(context, course),
            audiences=extract_audiences(context),
        )
