"""Overdue notification integration with stub and live modes."""
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential

from taskflow.config import settings

logger = logging.getLogger(__name__)


class NotifierMode(str, Enum):
    """Delivery mode for notifications."""

    STUB = "stub"
    LIVE = "live"


@dataclass(frozen=True)
class OverdueNotice:
    """What the manager and the CEO are told about one overdue task."""

    task_id: UUID
    task_title: str
    deadline: Optional[datetime]
    manager_email: str
    ceo_email: str

    def to_payload(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["task_id"] = str(self.task_id)
        payload["deadline"] = self.deadline.isoformat() if self.deadline else None
        return payload


class OverdueNotifier:
    """Sends overdue notices to the configured mail relay."""

    def __init__(
        self,
        mode: Optional[str] = None,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
    ):
        self.mode = NotifierMode((mode or settings.NOTIFIER_MODE).lower())
        base_url = base_url if base_url is not None else settings.NOTIFIER_BASE_URL
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key if api_key is not None else settings.NOTIFIER_API_KEY
        self.sender = sender or settings.NOTIFIER_SENDER

    def _build_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @staticmethod
    def _build_message(notice: OverdueNotice) -> Dict[str, Any]:
        deadline = notice.deadline.strftime("%Y-%m-%d %H:%M") if notice.deadline else "not set"
        return {
            "to": [notice.manager_email],
            "cc": [notice.ceo_email],
            "subject": f"Overdue task: {notice.task_title}",
            "text": (
                f'The task "{notice.task_title}" passed its deadline ({deadline} UTC) '
                "and has been marked Overdue."
            ),
        }

    def notify_overdue(self, notice: OverdueNotice) -> Dict[str, Any]:
        """Notify the manager (cc CEO) that a task is overdue.

        Returns ``{"message": ...}`` on success; raises on delivery failure.
        """
        if self.mode == NotifierMode.STUB:
            message = (
                f"SIMULATED EMAIL: overdue notice for task {notice.task_id} "
                f"sent to {notice.manager_email} (cc {notice.ceo_email})"
            )
            logger.info(message)
            return {"message": message}
        return self._notify_live(notice)

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=2, max=10), reraise=True)
    def _notify_live(self, notice: OverdueNotice) -> Dict[str, Any]:
        """Send the notice through the mail relay (live mode)."""
        if not self.base_url:
            raise ValueError("Notifier base URL not configured")

        request_payload = {
            "from": self.sender,
            "notice": notice.to_payload(),
            **self._build_message(notice),
        }
        with httpx.Client() as client:
            response = client.post(
                f"{self.base_url}/notifications/overdue",
                json=request_payload,
                headers=self._build_headers(),
                timeout=30,
            )
            response.raise_for_status()
            data = response.json() if response.content else {}

        return {"message": data.get("message") or f"Overdue notice sent to {notice.manager_email}"}


overdue_notifier = OverdueNotifier()
