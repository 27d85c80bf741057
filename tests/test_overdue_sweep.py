"""Tests for the overdue sweep."""
import asyncio
import time
from datetime import datetime

import pytest

from taskflow.core.exceptions import AuthorizationError
from taskflow.core.statuses import TaskStatus
from taskflow.crud.task import task as task_store
from taskflow.services.workflow_service import workflow_service


class RecordingNotifier:
    """Collects notices; fails for the titles it is told to."""

    def __init__(self, fail_for=()):
        self.notices = []
        self.fail_for = set(fail_for)

    def notify_overdue(self, notice):
        if notice.task_title in self.fail_for:
            raise RuntimeError("mail relay unavailable")
        self.notices.append(notice)
        return {"message": f"sent to {notice.manager_email}"}


@pytest.mark.asyncio
async def test_sweep_marks_overdue_and_collects_missing_email(
    db_session, admin_user, no_email_user, assignee_user, make_task, past_deadline, future_deadline
):
    first = await make_task(
        admin_user, title="Ship invoices", status=TaskStatus.TO_DO, assigned_user_id=assignee_user.id, deadline=past_deadline
    )
    second = await make_task(
        admin_user, title="Call supplier", status=TaskStatus.IN_PROGRESS, assigned_user_id=assignee_user.id, deadline=past_deadline
    )
    orphan = await make_task(
        no_email_user, title="Update wiki", status=TaskStatus.TO_DO, assigned_user_id=assignee_user.id, deadline=past_deadline
    )
    on_time = await make_task(
        admin_user, title="Plan sprint", status=TaskStatus.TO_DO, assigned_user_id=assignee_user.id, deadline=future_deadline
    )
    finished = await make_task(
        admin_user, title="Close books", status=TaskStatus.COMPLETED, assigned_user_id=assignee_user.id, deadline=past_deadline
    )
    notifier = RecordingNotifier()

    result = await workflow_service.sweep_overdue(db_session, now=datetime.utcnow(), notifier=notifier)

    assert set(result.transitioned) == {first.id, second.id, orphan.id}
    assert set(result.notified) == {first.id, second.id}
    assert [failure.task_id for failure in result.failed] == [orphan.id]
    assert "email" in result.failed[0].reason
    for task_id in (first.id, second.id, orphan.id):
        assert (await task_store.get_task_or_404(db_session, task_id)).status == TaskStatus.OVERDUE
    assert (await task_store.get_task_or_404(db_session, on_time.id)).status == TaskStatus.TO_DO
    assert (await task_store.get_task_or_404(db_session, finished.id)).status == TaskStatus.COMPLETED

    notice = notifier.notices[0]
    assert notice.manager_email == "admin@example.com"
    assert notice.ceo_email == "ceo@taskflow.local"


@pytest.mark.asyncio
async def test_sweep_is_idempotent(db_session, admin_user, assignee_user, make_task, past_deadline):
    await make_task(admin_user, status=TaskStatus.TO_DO, assigned_user_id=assignee_user.id, deadline=past_deadline)
    notifier = RecordingNotifier()

    first_run = await workflow_service.sweep_overdue(db_session, notifier=notifier)
    second_run = await workflow_service.sweep_overdue(db_session, notifier=notifier)

    assert len(first_run.transitioned) == 1
    assert second_run.transitioned == []
    assert second_run.notified == []
    assert len(notifier.notices) == 1


@pytest.mark.asyncio
async def test_notification_failure_does_not_abort_batch(db_session, admin_user, assignee_user, make_task, past_deadline):
    failing = await make_task(
        admin_user, title="Flaky", status=TaskStatus.TO_DO, assigned_user_id=assignee_user.id, deadline=past_deadline
    )
    healthy = await make_task(
        admin_user, title="Fine", status=TaskStatus.TO_DO, assigned_user_id=assignee_user.id, deadline=past_deadline
    )

    result = await workflow_service.sweep_overdue(db_session, notifier=RecordingNotifier(fail_for={"Flaky"}))

    assert set(result.transitioned) == {failing.id, healthy.id}
    assert result.notified == [healthy.id]
    assert result.failed[0].task_id == failing.id
    assert "mail relay unavailable" in result.failed[0].reason


@pytest.mark.asyncio
async def test_sweep_via_actor_requires_admin(db_session, submitter):
    with pytest.raises(AuthorizationError):
        await workflow_service.sweep_overdue(db_session, actor=submitter)


class SlowNotifier:
    """Blocks like a live relay call and records how far the event loop got meanwhile."""

    def __init__(self, ticks, delay=0.3):
        self.ticks = ticks
        self.delay = delay
        self.ticks_during_call = []

    def notify_overdue(self, notice):
        before = len(self.ticks)
        time.sleep(self.delay)
        self.ticks_during_call.append(len(self.ticks) - before)
        return {"message": "sent"}


@pytest.mark.asyncio
async def test_slow_notifier_does_not_block_event_loop(db_session, admin_user, assignee_user, make_task, past_deadline):
    await make_task(admin_user, status=TaskStatus.TO_DO, assigned_user_id=assignee_user.id, deadline=past_deadline)
    ticks = []

    async def ticker():
        while True:
            ticks.append(time.monotonic())
            await asyncio.sleep(0.02)

    ticking = asyncio.create_task(ticker())
    notifier = SlowNotifier(ticks)
    try:
        result = await workflow_service.sweep_overdue(db_session, notifier=notifier)
    finally:
        ticking.cancel()

    assert len(result.notified) == 1
    assert notifier.ticks_during_call[0] >= 3
