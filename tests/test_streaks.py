from datetime import date, timedelta

from adventures.utils.streaks import (
    advance_streak, calculate_xp_with_streak, get_streak_multiplier,
)

TIERS = ((3, 1.1), (7, 1.25), (30, 1.5))
TODAY = date(2026, 3, 10)


def test_first_activity_starts_streak():
    update = advance_streak(0, 0, None, TODAY)
    assert update.current_streak == 1
    assert update.longest_streak == 1
    assert update.last_activity_date == TODAY


def test_same_day_activity_is_unchanged():
    update = advance_streak(4, 9, TODAY, TODAY)
    assert (update.current_streak, update.longest_streak) == (4, 9)
    assert not update.broken


def test_consecutive_day_increments_by_one():
    update = advance_streak(6, 6, TODAY - timedelta(days=1), TODAY)
    assert update.current_streak == 7
    assert update.longest_streak == 7
    assert update.continued


def test_gap_resets_to_one_and_keeps_longest():
    update = advance_streak(12, 15, TODAY - timedelta(days=2), TODAY)
    assert update.current_streak == 1
    assert update.longest_streak == 15
    assert update.broken


def test_longest_streak_never_decreases():
    current, longest, last = 0, 0, None
    day = TODAY
    for gap in [1, 1, 1, 3, 1, 0, 1, 5, 1, 1, 1, 1]:
        day = day + timedelta(days=gap)
        update = advance_streak(current, longest, last, day)
        assert update.longest_streak >= longest
        assert update.longest_streak >= update.current_streak
        current, longest, last = update.current_streak, update.longest_streak, update.last_activity_date
    assert longest == 5


def test_multiplier_tiers():
    assert get_streak_multiplier(0, TIERS) == 1.0
    assert get_streak_multiplier(2, TIERS) == 1.0
    assert get_streak_multiplier(3, TIERS) == 1.1
    assert get_streak_multiplier(6, TIERS) == 1.1
    assert get_streak_multiplier(7, TIERS) == 1.25
    assert get_streak_multiplier(30, TIERS) == 1.5
    assert get_streak_multiplier(365, TIERS) == 1.5


def test_bonus_is_rounded_down():
    calc = calculate_xp_with_streak(50, 7, TIERS)
    assert calc.total_xp == 62
    assert calc.streak_bonus_xp == 12
    assert calc.multiplier == 1.25


def test_no_bonus_below_first_tier():
    calc = calculate_xp_with_streak(50, 1, TIERS)
    assert calc.total_xp == 50
    assert calc.streak_bonus_xp == 0


def test_decimal_keeps_exact_products():
    assert calculate_xp_with_streak(50, 3, TIERS).total_xp == 55
    assert calculate_xp_with_streak(100, 3, TIERS).total_xp == 110
