import logging
from collections import namedtuple
from decimal import Decimal

logger = logging.getLogger(__name__)

StreakUpdate = namedtuple('StreakUpdate', [
    'current_streak', 'longest_streak', 'last_activity_date', 'continued', 'broken',
])

XPCalculation = namedtuple('XPCalculation', [
    'base_xp', 'multiplier', 'streak_bonus_xp', 'total_xp',
])


def advance_streak(current_streak, longest_streak, last_activity_date, today):
    """Apply one day of qualifying activity to a streak."""
    if last_activity_date is not None and today <= last_activity_date:
        # Already counted today (or the clock went backwards)
        return StreakUpdate(current_streak, longest_streak, last_activity_date, True, False)

    continued = False
    broken = False
    if last_activity_date is None:
        new_streak = 1
    elif (today - last_activity_date).days == 1:
        new_streak = current_streak + 1
        continued = True
    else:
        new_streak = 1
        broken = True

    return StreakUpdate(new_streak, max(longest_streak, new_streak), today, continued, broken)


def update_user_streak(level_state, today):
    """Advance the streak stored on a ``UserLevel`` row in place."""
    update = advance_streak(level_state.current_streak, level_state.longest_streak,
                            level_state.last_activity_date, today)
    if update.broken:
        logger.info('Streak reset for user %s after %s-day streak',
                    level_state.user_id, level_state.current_streak)
    level_state.current_streak = update.current_streak
    level_state.longest_streak = update.longest_streak
    level_state.last_activity_date = update.last_activity_date
    return update


def get_streak_multiplier(streak_days, tiers):
    """Highest tier multiplier the streak qualifies for, 1.0 below the first tier."""
    multiplier = 1.0
    for min_days, tier_multiplier in tiers:
        if streak_days >= min_days:
            multiplier = tier_multiplier
    return multiplier


def calculate_xp_with_streak(base_xp, streak_days, tiers):
    multiplier = get_streak_multiplier(streak_days, tiers)
    # Decimal keeps 50 * 1.1 from flooring to 54
    total = int(Decimal(base_xp) * Decimal(str(multiplier)))
    return XPCalculation(base_xp, multiplier, total - base_xp, total)
