"""Kanban board state and optimistic synchronisation with the task API.

A move is checked against the transition table before any request is made,
applied locally right away, and rolled back if the server refuses it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from taskflow.client.api_client import TaskApiClient, TaskApiError
from taskflow.core.statuses import TaskStatus
from taskflow.core.transitions import TRANSITIONS, TransitionTable, coerce_status

logger = logging.getLogger(__name__)


@dataclass
class Card:
    """One task as shown on the board."""

    task_id: UUID
    title: str
    status: TaskStatus

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Card":
        return cls(task_id=UUID(str(payload["id"])), title=payload["title"], status=TaskStatus(payload["status"]))


class Board:
    """Cards grouped into one column per status."""

    def __init__(self, cards: Iterable[Card] = ()):
        self._cards: Dict[UUID, Card] = {card.task_id: card for card in cards}

    @classmethod
    def from_tasks(cls, tasks: Iterable[Dict[str, Any]]) -> "Board":
        return cls(Card.from_payload(item) for item in tasks)

    def get(self, task_id: UUID) -> Optional[Card]:
        return self._cards.get(task_id)

    def place(self, task_id: UUID, status: TaskStatus) -> None:
        self._cards[task_id].status = status

    def column(self, status: TaskStatus) -> List[Card]:
        return [card for card in self._cards.values() if card.status == status]

    def columns(self) -> Dict[TaskStatus, List[Card]]:
        return {status: self.column(status) for status in TaskStatus}


@dataclass(frozen=True)
class MoveOutcome:
    """Result of a drag-and-drop; ``reason`` is shown to the user when not accepted."""

    accepted: bool
    status: Optional[TaskStatus] = None
    reason: Optional[str] = None


class BoardSyncController:
    """Applies board moves optimistically and keeps the board consistent with the server."""

    def __init__(self, board: Board, api: TaskApiClient, table: TransitionTable = TRANSITIONS):
        self.board = board
        self.api = api
        self.table = table

    def move(self, task_id: UUID, target: TaskStatus, comment: Optional[str] = None) -> MoveOutcome:
        card = self.board.get(task_id)
        if card is None:
            return MoveOutcome(accepted=False, reason=f"Task {task_id} is not on the board")

        previous = card.status
        target_status = coerce_status(target)
        if target_status is None or not self.table.can_transition(previous, target_status):
            reason = f"Cannot move task from '{previous.value}' to '{getattr(target, 'value', target)}'"
            return MoveOutcome(accepted=False, status=previous, reason=reason)

        self.board.place(task_id, target_status)
        try:
            updated = self.api.change_status(task_id, target_status, comment=comment)
        except TaskApiError as exc:
            logger.warning("Move of task %s to %s reverted: %s", task_id, target_status.value, exc.detail)
            self.board.place(task_id, previous)
            return MoveOutcome(accepted=False, status=previous, reason=exc.detail)

        # Server is authoritative for the resulting status
        confirmed = TaskStatus(updated.get("status", target_status.value)) if updated else target_status
        self.board.place(task_id, confirmed)
        return MoveOutcome(accepted=True, status=confirmed)

    def refresh_table(self) -> TransitionTable:
        """Replace the local transition table with the one the server publishes."""
        self.table = TransitionTable.from_dict(self.api.get_transitions())
        return self.table
