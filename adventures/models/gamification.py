import enum
from datetime import datetime, timezone
from adventures.extensions import db


class XPSource(enum.Enum):
    LESSON = 'lesson'
    GAME = 'game'
    QUIZ = 'quiz'
    PROJECT = 'project'
    REVEAL = 'reveal'


class UserLevel(db.Model):
    __tablename__ = 'user_levels'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'),
                        nullable=False, unique=True, index=True)
    total_xp = db.Column(db.Integer, nullable=False, default=0)
    current_level = db.Column(db.Integer, nullable=False, default=1)
    xp_to_next_level = db.Column(db.Integer, nullable=False, default=100)
    current_streak = db.Column(db.Integer, nullable=False, default=0)
    longest_streak = db.Column(db.Integer, nullable=False, default=0)
    last_activity_date = db.Column(db.Date, nullable=True)
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    user = db.relationship('User', backref=db.backref('level_state', uselist=False))

    __table_args__ = (
        db.CheckConstraint('total_xp >= 0', name='ck_user_levels_total_xp_non_negative'),
    )

    def to_dict(self):
        return {
            'currentLevel': self.current_level,
            'totalXP': self.total_xp,
            'xpToNextLevel': self.xp_to_next_level,
            'currentStreak': self.current_streak,
            'longestStreak': self.longest_streak,
            'lastActivityDate': self.last_activity_date.isoformat() if self.last_activity_date else None,
        }

    def __repr__(self):
        return f'<UserLevel user={self.user_id} xp={self.total_xp} level={self.current_level}>'


class XPTransaction(db.Model):
    __tablename__ = 'xp_transactions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    amount = db.Column(db.Integer, nullable=False)  # negative for spends
    source = db.Column(db.Enum(XPSource), nullable=False)
    reason = db.Column(db.String(200), nullable=False, default='')
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    user = db.relationship('User', backref=db.backref('xp_transactions', lazy='dynamic'))

    def to_dict(self):
        return {
            'id': self.id,
            'amount': self.amount,
            'source': self.source.value,
            'reason': self.reason,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }


class DailyXP(db.Model):
    __tablename__ = 'daily_xp'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    xp_from_lessons = db.Column(db.Integer, nullable=False, default=0)
    xp_from_games = db.Column(db.Integer, nullable=False, default=0)
    xp_from_streak = db.Column(db.Integer, nullable=False, default=0)
    total_xp = db.Column(db.Integer, nullable=False, default=0)
    lessons_completed = db.Column(db.Integer, nullable=False, default=0)
    games_completed = db.Column(db.Integer, nullable=False, default=0)

    user = db.relationship('User', backref=db.backref('daily_xp', lazy='dynamic'))

    __table_args__ = (
        db.UniqueConstraint('user_id', 'date', name='uq_daily_xp_user_date'),
    )

    def to_dict(self):
        def percent(part):
            return round(part / self.total_xp * 100) if self.total_xp > 0 else 0

        return {
            'date': self.date.isoformat(),
            'xpFromLessons': self.xp_from_lessons,
            'xpFromGames': self.xp_from_games,
            'xpFromStreak': self.xp_from_streak,
            'totalXP': self.total_xp,
            'lessonsCompleted': self.lessons_completed,
            'gamesCompleted': self.games_completed,
            'percentFromLessons': percent(self.xp_from_lessons),
            'percentFromGames': percent(self.xp_from_games),
            'percentFromStreak': percent(self.xp_from_streak),
        }
