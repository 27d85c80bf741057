"""Tests for role and ownership authorization."""
import uuid
from types import SimpleNamespace

import pytest

from taskflow.core.exceptions import AuthorizationError
from taskflow.core.security import Permission, TaskAction
from taskflow.core.statuses import UserRole
from taskflow.utils.permissions import Actor, authorize, ensure_authorized, get_actor_permissions, has_permission


@pytest.fixture
def admin_actor():
    return Actor(id=uuid.uuid4(), role=UserRole.ADMIN)


@pytest.fixture
def user_actor():
    return Actor(id=uuid.uuid4(), role=UserRole.USER)


def test_admin_holds_every_permission(admin_actor):
    assert set(get_actor_permissions(admin_actor)) == {perm.value for perm in Permission}


def test_user_may_only_view_and_submit(user_actor):
    assert has_permission(user_actor, Permission.TASK_SUBMIT)
    assert has_permission(user_actor, Permission.TASK_VIEW)
    for action in (TaskAction.APPROVE, TaskAction.REJECT, TaskAction.REQUEST_REVISIONS, TaskAction.DELETE):
        assert not authorize(user_actor, action)


def test_inactive_actor_is_denied():
    inactive = Actor(id=uuid.uuid4(), role=UserRole.ADMIN, is_active=False)
    assert not authorize(inactive, TaskAction.APPROVE)
    assert not authorize(inactive, TaskAction.VIEW)


def test_resubmit_requires_the_submitter(admin_actor, user_actor):
    task = SimpleNamespace(assigner_id=user_actor.id, assigned_user_id=None)

    assert authorize(user_actor, TaskAction.RESUBMIT, task)
    # Being an admin does not make you the submitter
    assert not authorize(admin_actor, TaskAction.RESUBMIT, task)


def test_start_and_complete_require_the_assignee(admin_actor, user_actor):
    task = SimpleNamespace(assigner_id=admin_actor.id, assigned_user_id=user_actor.id)

    assert authorize(user_actor, TaskAction.START, task)
    assert authorize(user_actor, TaskAction.COMPLETE, task)
    assert not authorize(admin_actor, TaskAction.COMPLETE, task)
    assert not authorize(user_actor, TaskAction.START, None)


def test_ensure_authorized_messages(user_actor):
    with pytest.raises(AuthorizationError) as exc_info:
        ensure_authorized(user_actor, TaskAction.APPROVE)
    assert exc_info.value.status_code == 403
    assert "administrators" in exc_info.value.detail

    task = SimpleNamespace(assigner_id=uuid.uuid4(), assigned_user_id=uuid.uuid4())
    with pytest.raises(AuthorizationError) as exc_info:
        ensure_authorized(user_actor, TaskAction.START, task)
    assert "assignee" in exc_info.value.detail
