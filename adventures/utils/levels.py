"""Level threshold math.

Going from level ``n`` to ``n + 1`` costs ``floor(base * n ** exponent)`` XP.
The XP needed to *reach* level ``L`` is the running sum of those steps from
level 1, so level 1 starts at 0 XP, level 2 at 100, level 3 at 382, and so on
with the default constants.
"""
import math

BASE_XP = 100
LEVEL_EXPONENT = 1.5


def xp_for_next_level(level, base=BASE_XP, exponent=LEVEL_EXPONENT):
    """XP needed to advance from ``level`` to ``level + 1``."""
    if level < 1:
        return 0
    return math.floor(base * math.pow(level, exponent))


def total_xp_for_level(level, base=BASE_XP, exponent=LEVEL_EXPONENT):
    """Cumulative XP needed to reach ``level`` from level 1."""
    total = 0
    for n in range(1, level):
        total += xp_for_next_level(n, base, exponent)
    return total


def level_from_xp(total_xp, base=BASE_XP, exponent=LEVEL_EXPONENT):
    """Largest level whose cumulative threshold is <= ``total_xp``."""
    level = 1
    xp_so_far = 0
    while True:
        step = xp_for_next_level(level, base, exponent)
        if xp_so_far + step > total_xp:
            break
        xp_so_far += step
        level += 1
    return level


def level_info(total_xp, current_level=None, base=BASE_XP, exponent=LEVEL_EXPONENT):
    """Progress details for display.

    ``current_level`` may be passed when the stored level is ahead of the
    balance (XP spent on answer reveals never lowers a level).
    """
    level = level_from_xp(total_xp, base, exponent)
    if current_level is not None:
        level = max(level, current_level)
    level_start = total_xp_for_level(level, base, exponent)
    required = xp_for_next_level(level, base, exponent)
    in_level = max(0, total_xp - level_start)
    to_next = max(0, level_start + required - total_xp)
    progress = min(100, round(in_level / required * 100)) if required > 0 else 100
    return {
        'currentLevel': level,
        'totalXP': total_xp,
        'xpInCurrentLevel': in_level,
        'xpRequiredForNextLevel': required,
        'xpToNextLevel': to_next,
        'progressToNextLevel': progress,
    }
