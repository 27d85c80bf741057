"""Task status transition table.

This is the only place that decides whether a status change is legal. The
server-side workflow and the board client both consult it, the client either
by importing this module or by rebuilding the table from the payload served
at ``GET /api/v1/meta/transitions``.

Authorization is a separate concern (see ``taskflow.utils.permissions``).
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

from taskflow.core.exceptions import IllegalTransitionError
from taskflow.core.statuses import TaskStatus

StatusLike = Union[TaskStatus, str]


def coerce_status(value: StatusLike) -> Optional[TaskStatus]:
    """Return the ``TaskStatus`` for a member or value string, ``None`` if unknown."""
    if isinstance(value, TaskStatus):
        return value
    try:
        return TaskStatus(value)
    except ValueError:
        return None


class TransitionTable:
    """Immutable mapping of current status to allowed next statuses."""

    def __init__(self, rules: Mapping[TaskStatus, Iterable[TaskStatus]]):
        table: Dict[TaskStatus, FrozenSet[TaskStatus]] = {status: frozenset() for status in TaskStatus}
        for current, targets in rules.items():
            table[TaskStatus(current)] = frozenset(TaskStatus(target) for target in targets)
        self._rules = MappingProxyType(table)

    def can_transition(self, current: StatusLike, target: StatusLike) -> bool:
        """Return True if moving from ``current`` to ``target`` is allowed."""
        current_status = coerce_status(current)
        target_status = coerce_status(target)
        if current_status is None or target_status is None:
            return False
        return target_status in self._rules[current_status]

    def allowed_targets(self, current: StatusLike) -> FrozenSet[TaskStatus]:
        current_status = coerce_status(current)
        if current_status is None:
            return frozenset()
        return self._rules[current_status]

    def is_terminal(self, status: StatusLike) -> bool:
        return not self.allowed_targets(status)

    def ensure_transition(self, current: StatusLike, target: StatusLike, locale: str = "en") -> None:
        """Raise ``IllegalTransitionError`` unless the move is allowed."""
        if not self.can_transition(current, target):
            raise IllegalTransitionError(current, target, locale)

    def as_dict(self) -> Dict[str, List[str]]:
        """Serialisable form, ordered by enum declaration."""
        return {
            current.value: [target.value for target in TaskStatus if target in targets]
            for current, targets in self._rules.items()
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Iterable[str]]) -> "TransitionTable":
        """Rebuild a table from ``as_dict()`` output. Unknown statuses are rejected."""
        return cls({TaskStatus(current): [TaskStatus(target) for target in targets] for current, targets in payload.items()})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransitionTable):
            return NotImplemented
        return dict(self._rules) == dict(other._rules)

    def __repr__(self) -> str:
        return f"TransitionTable({self.as_dict()!r})"


TRANSITIONS = TransitionTable(
    {
        TaskStatus.PENDING_APPROVAL: [TaskStatus.TO_DO, TaskStatus.NEEDS_CHANGES, TaskStatus.REJECTED],
        TaskStatus.NEEDS_CHANGES: [TaskStatus.PENDING_APPROVAL, TaskStatus.REJECTED],
        TaskStatus.TO_DO: [TaskStatus.IN_PROGRESS, TaskStatus.OVERDUE],
        TaskStatus.IN_PROGRESS: [TaskStatus.COMPLETED, TaskStatus.NEEDS_CHANGES, TaskStatus.OVERDUE],
        TaskStatus.OVERDUE: [TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED],
        TaskStatus.REJECTED: [],
        TaskStatus.COMPLETED: [],
    }
)


def can_transition(current: StatusLike, target: StatusLike) -> bool:
    """Module-level shortcut for the default table."""
    return TRANSITIONS.can_transition(current, target)


def ensure_transition(current: StatusLike, target: StatusLike, locale: str = "en") -> None:
    TRANSITIONS.ensure_transition(current, target, locale)
