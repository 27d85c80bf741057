"""HTTP client for the task API, used by the board."""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx

from taskflow.config import settings
from taskflow.core.statuses import TaskStatus

logger = logging.getLogger(__name__)


class TaskApiError(Exception):
    """Server rejected a request, or the request never reached it."""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def _error_detail(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    if isinstance(detail, list):
        # Request validation errors
        detail = "; ".join(str(item.get("msg", item)) for item in detail)
    return str(detail or response.reason_phrase or f"HTTP {response.status_code}")


class TaskApiClient:
    """Thin synchronous wrapper over the ``/api/v1`` task endpoints."""

    def __init__(
        self,
        base_url: str,
        actor_id: UUID,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 10.0,
    ):
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={"X-Actor-Id": str(actor_id)},
            transport=transport,
            timeout=timeout,
        )
        self.api_prefix = settings.API_V1_PREFIX

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "TaskApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self._client.request(method, f"{self.api_prefix}{path}", **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Task API %s %s failed: %s", method, path, exc)
            raise TaskApiError(f"Task service unreachable: {exc}") from exc

        if response.is_error:
            raise TaskApiError(_error_detail(response), status_code=response.status_code)
        if response.status_code == httpx.codes.NO_CONTENT:
            return None
        return response.json()

    def list_tasks(self, **params: Any) -> Dict[str, Any]:
        query = {key: value for key, value in params.items() if value is not None}
        return self._request("GET", "/tasks", params=query)

    def get_task(self, task_id: UUID) -> Dict[str, Any]:
        return self._request("GET", f"/tasks/{task_id}")

    def change_status(self, task_id: UUID, status: TaskStatus, comment: Optional[str] = None) -> Dict[str, Any]:
        """PATCH the task's status; returns the updated task."""
        payload: Dict[str, Any] = {"status": TaskStatus(status).value}
        if comment:
            payload["comment"] = comment
        return self._request("PATCH", f"/tasks/{task_id}/status", json=payload)

    def get_transitions(self) -> Dict[str, List[str]]:
        return self._request("GET", "/meta/transitions")
