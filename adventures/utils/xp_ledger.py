import logging
import math
from collections import namedtuple

from sqlalchemy.exc import IntegrityError

from adventures.errors import InsufficientXP, ValidationError
from adventures.models.gamification import UserLevel, XPTransaction, XPSource
from adventures.utils.helpers import to_utc_naive

logger = logging.getLogger(__name__)

XPAward = namedtuple('XPAward', ['xp_awarded', 'new_total_xp', 'leveled_up', 'old_level', 'new_level'])


def get_user_level(session, user_id, lock=False):
    query = session.query(UserLevel).filter_by(user_id=user_id)
    if lock:
        query = query.with_for_update()
    return query.first()


def get_or_create_user_level(session, user_id, lock=False):
    level_state = get_user_level(session, user_id, lock=lock)
    if level_state:
        return level_state
    try:
        with session.begin_nested():
            level_state = UserLevel(user_id=user_id, total_xp=0, current_level=1,
                                    xp_to_next_level=100, current_streak=0, longest_streak=0)
            session.add(level_state)
    except IntegrityError:
        # A concurrent request created the row first
        level_state = get_user_level(session, user_id, lock=lock)
    return level_state


def _ledger_row(user_id, amount, source, reason, now):
    transaction = XPTransaction(user_id=user_id, amount=amount, source=source, reason=reason[:200])
    if now is not None:
        transaction.created_at = to_utc_naive(now)
    return transaction


def award_xp(session, user_id, amount, source, policy, reason='', now=None):
    """Add XP to a user's balance and recompute their level.

    Handles jumps across several levels in one award. Zero is accepted and
    only reports the current state.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise ValidationError('XP amount must be a non-negative integer', details={'amount': amount})

    level_state = get_or_create_user_level(session, user_id, lock=True)
    old_level = level_state.current_level
    if amount == 0:
        return XPAward(0, level_state.total_xp, False, old_level, old_level)

    level_state.total_xp += amount
    # Spending XP never lowers a level, so the stored one is a floor
    new_level = max(old_level, policy.level_from_xp(level_state.total_xp))
    level_state.current_level = new_level
    level_state.xp_to_next_level = max(
        0, policy.total_xp_for_level(new_level + 1) - level_state.total_xp)

    session.add(_ledger_row(user_id, amount, source, reason, now))
    session.flush()

    leveled_up = new_level > old_level
    if leveled_up:
        logger.info('User %s leveled up %s -> %s (%s XP)', user_id, old_level, new_level,
                    level_state.total_xp)
    return XPAward(amount, level_state.total_xp, leveled_up, old_level, new_level)


def calculate_reveal_cost(question_points, user_level, policy):
    """XP price of revealing an answer: scales with points, eases with level."""
    damping = 1 + policy.reveal_level_damping * max(0, user_level - 1)
    return max(1, math.floor(question_points * policy.reveal_cost_ratio / damping))


def reveal_answer_with_xp(session, user_id, cost, policy, reason='Revealed quiz answer', now=None):
    """Spend ``cost`` XP; returns the remaining balance."""
    if isinstance(cost, bool) or not isinstance(cost, int) or cost < 1:
        raise ValidationError('XP cost must be a positive integer', details={'cost': cost})

    level_state = get_or_create_user_level(session, user_id)
    # Conditional decrement: a concurrent spend cannot push the balance negative
    updated = session.query(UserLevel).filter(
        UserLevel.user_id == user_id,
        UserLevel.total_xp >= cost,
    ).update({UserLevel.total_xp: UserLevel.total_xp - cost}, synchronize_session=False)
    session.refresh(level_state)

    if not updated:
        raise InsufficientXP(
            f'Insufficient XP. You need {cost} XP but only have {level_state.total_xp} XP',
            details={'xpCost': cost, 'totalXP': level_state.total_xp},
        )

    level_state.xp_to_next_level = max(
        0, policy.total_xp_for_level(level_state.current_level + 1) - level_state.total_xp)
    session.add(_ledger_row(user_id, -cost, XPSource.REVEAL, reason, now))
    session.flush()
    logger.info('User %s spent %s XP on a reveal, %s left', user_id, cost, level_state.total_xp)
    return level_state.total_xp


def get_xp_transactions(session, user_id, limit=20, since=None):
    """Latest ledger rows, newest first; ``since`` keeps only rows at or after that moment."""
    query = session.query(XPTransaction).filter_by(user_id=user_id)
    if since is not None:
        query = query.filter(XPTransaction.created_at >= to_utc_naive(since))
    return query.order_by(
        XPTransaction.created_at.desc(), XPTransaction.id.desc()
    ).limit(limit).all()
