from datetime import datetime, timezone
from numbers import Number

from adventures.errors import ValidationError


def localnow():
    """Current time in the server's local timezone (calendar days are local)."""
    return datetime.now().astimezone()


def to_utc_naive(moment):
    """Naive UTC form of ``moment``, as ledger timestamps are stored. Naive input is local time."""
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def safe_int(value, default=1):
    """Safely convert to int."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_int(value, field):
    if isinstance(value, bool) or not isinstance(value, Number):
        raise ValidationError(f'{field} must be a number')
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f'{field} must be a whole number')
        value = int(value)
    return int(value)


def validate_score(score):
    """Score is optional; when given it must be a whole number in 0..100."""
    if score is None:
        return None
    score = _as_int(score, 'Score')
    if score < 0 or score > 100:
        raise ValidationError('Score must be between 0 and 100', details={'score': score})
    return score


def validate_time_spent(time_spent):
    if time_spent is None:
        return 0
    time_spent = _as_int(time_spent, 'Time spent')
    if time_spent < 0:
        raise ValidationError('Time spent cannot be negative', details={'timeSpent': time_spent})
    return time_spent
