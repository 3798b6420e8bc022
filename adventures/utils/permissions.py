"""One capability check for every progression operation.

Route handlers call ``require(current_user, action, target)`` instead of
inlining role comparisons.
"""
import enum

from adventures.errors import AuthenticationError, AuthorizationError
from adventures.models.user import Role


class Action(enum.Enum):
    START_LESSON = 'start_lesson'
    COMPLETE_LESSON = 'complete_lesson'
    REVEAL_ANSWER = 'reveal_answer'
    ENROLL = 'enroll'
    VIEW_PROGRESS = 'view_progress'
    VIEW_STATS = 'view_stats'


# Actions that change a learner's own XP/progress
_SELF_ONLY = {Action.START_LESSON, Action.COMPLETE_LESSON, Action.REVEAL_ANSWER, Action.ENROLL}


def can(subject, action, resource):
    """``resource`` is the user whose progress is being touched."""
    if subject is None or not subject.is_active:
        return False
    if action in _SELF_ONLY:
        return subject.id == resource.id
    if subject.id == resource.id or subject.role == Role.ADMIN:
        return True
    if subject.role == Role.TEACHER:
        return resource.role == Role.STUDENT
    if subject.role == Role.PARENT:
        return subject.is_parent_of(resource.id)
    return False


def require(subject, action, resource):
    if subject is None:
        raise AuthenticationError()
    if not can(subject, action, resource):
        raise AuthorizationError(f'Not allowed to {action.value.replace("_", " ")}')
