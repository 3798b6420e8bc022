import pytest

from adventures.errors import AuthenticationError, AuthorizationError
from adventures.models.user import Role
from adventures.utils.permissions import Action, can, require


def test_progression_actions_are_self_only(make_user):
    student = make_user(Role.STUDENT)
    admin = make_user(Role.ADMIN)
    assert can(student, Action.COMPLETE_LESSON, student)
    assert not can(admin, Action.COMPLETE_LESSON, student)


def test_stats_visibility(make_user, session):
    child = make_user(Role.STUDENT)
    other_child = make_user(Role.STUDENT)
    parent = make_user(Role.PARENT)
    teacher = make_user(Role.TEACHER)
    admin = make_user(Role.ADMIN)
    parent.children.append(child)
    session.commit()

    assert can(child, Action.VIEW_STATS, child)
    assert can(parent, Action.VIEW_STATS, child)
    assert not can(parent, Action.VIEW_STATS, other_child)
    assert can(teacher, Action.VIEW_STATS, child)
    assert not can(teacher, Action.VIEW_STATS, admin)
    assert can(admin, Action.VIEW_STATS, teacher)
    assert not can(other_child, Action.VIEW_STATS, child)


def test_inactive_users_can_do_nothing(make_user):
    user = make_user(is_active=False)
    assert not can(user, Action.VIEW_PROGRESS, user)


def test_require_raises(make_user):
    student = make_user()
    other = make_user()
    with pytest.raises(AuthenticationError):
        require(None, Action.VIEW_STATS, student)
    with pytest.raises(AuthorizationError):
        require(other, Action.VIEW_STATS, student)
