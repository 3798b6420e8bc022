from datetime import timedelta

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from adventures.models.gamification import DailyXP

_COUNTERS = ('xp_from_lessons', 'xp_from_games', 'xp_from_streak', 'total_xp',
             'lessons_completed', 'games_completed')
_UPSERT_DIALECTS = {'postgresql': postgresql.insert, 'sqlite': sqlite.insert}


def record_daily_xp(session, user_id, day, lessons=0, games=0, streak=0,
                    lessons_completed=0, games_completed=0):
    """Add one activity's XP to the user's row for ``day``.

    Every call accumulates: each one stands for a distinct completed activity.
    The (user_id, date) unique key guarantees a single row per day.
    """
    values = {
        'xp_from_lessons': lessons,
        'xp_from_games': games,
        'xp_from_streak': streak,
        'total_xp': lessons + games + streak,
        'lessons_completed': lessons_completed,
        'games_completed': games_completed,
    }

    insert = _UPSERT_DIALECTS.get(session.get_bind().dialect.name)
    if insert is not None:
        stmt = insert(DailyXP).values(user_id=user_id, date=day, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=['user_id', 'date'],
            set_={name: getattr(DailyXP.__table__.c, name) + getattr(stmt.excluded, name)
                  for name in _COUNTERS},
        )
        session.execute(stmt)
    else:
        _record_with_savepoint(session, user_id, day, values)

    return session.query(DailyXP).filter_by(user_id=user_id, date=day).populate_existing().one()


def _record_with_savepoint(session, user_id, day, values):
    exists = session.query(DailyXP.id).filter_by(user_id=user_id, date=day).first()
    if not exists:
        try:
            with session.begin_nested():
                session.add(DailyXP(user_id=user_id, date=day, **values))
            return
        except IntegrityError:
            pass  # lost the insert race, add to the winner's row instead
    session.query(DailyXP).filter_by(user_id=user_id, date=day).update(
        {getattr(DailyXP, name): getattr(DailyXP, name) + values[name] for name in _COUNTERS},
        synchronize_session=False,
    )


def get_daily_xp(session, user_id, day):
    return session.query(DailyXP).filter_by(user_id=user_id, date=day).first()


def empty_daily_xp(day):
    """Serialized shape of a day without activity."""
    return {
        'date': day.isoformat(),
        'xpFromLessons': 0,
        'xpFromGames': 0,
        'xpFromStreak': 0,
        'totalXP': 0,
        'lessonsCompleted': 0,
        'gamesCompleted': 0,
        'percentFromLessons': 0,
        'percentFromGames': 0,
        'percentFromStreak': 0,
    }


def get_xp_history(session, user_id, start, end):
    return session.query(DailyXP).filter(
        DailyXP.user_id == user_id,
        DailyXP.date >= start,
        DailyXP.date <= end,
    ).order_by(DailyXP.date).all()


def get_recent_xp(session, user_id, today, days=7):
    """Total XP earned over the last ``days`` days, today included."""
    start = today - timedelta(days=days - 1)
    result = session.query(func.coalesce(func.sum(DailyXP.total_xp), 0)).filter(
        DailyXP.user_id == user_id,
        DailyXP.date >= start,
        DailyXP.date <= today,
    ).scalar()
    return int(result)
