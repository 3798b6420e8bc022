import enum
from datetime import datetime, timezone
from adventures.extensions import db


class LessonType(enum.Enum):
    VIDEO = 'video'
    INTERACTIVE = 'interactive'
    QUIZ = 'quiz'
    GAME = 'game'
    READING = 'reading'
    PROJECT = 'project'


class CourseStatus(enum.Enum):
    NOT_STARTED = 'not_started'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'


class LessonProgressStatus(enum.Enum):
    LOCKED = 'locked'
    UNLOCKED = 'unlocked'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'


class Course(db.Model):
    __tablename__ = 'courses'

    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(200), unique=True, nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    subject = db.Column(db.String(50), nullable=False, default='')
    is_premium = db.Column(db.Boolean, nullable=False, default=False)
    is_published = db.Column(db.Boolean, nullable=False, default=True)
    prerequisite_course_ids = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    lessons = db.relationship('CourseLesson', backref='course', lazy='dynamic',
                              order_by='CourseLesson.order', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'slug': self.slug,
            'title': self.title,
            'subject': self.subject,
            'isPremium': self.is_premium,
            'prerequisiteCourseIds': list(self.prerequisite_course_ids or []),
        }

    def __repr__(self):
        return f'<Course {self.slug}>'


class CourseLesson(db.Model):
    __tablename__ = 'course_lessons'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False, index=True)
    order = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(200), nullable=False)
    lesson_type = db.Column(db.Enum(LessonType), nullable=False, default=LessonType.INTERACTIVE)
    xp_reward = db.Column(db.Integer, nullable=False, default=50)
    required_score = db.Column(db.Integer, nullable=True)
    duration = db.Column(db.Integer, nullable=False, default=10)  # minutes
    quiz_data = db.Column(db.JSON, nullable=True)

    __table_args__ = (
        db.UniqueConstraint('course_id', 'order', name='uq_course_lesson_order'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'courseId': self.course_id,
            'order': self.order,
            'title': self.title,
            'type': self.lesson_type.value,
            'xpReward': self.xp_reward,
            'requiredScore': self.required_score,
            'duration': self.duration,
        }

    def __repr__(self):
        return f'<CourseLesson {self.course_id}#{self.order}>'


class CourseEnrollment(db.Model):
    __tablename__ = 'course_enrollments'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False)
    status = db.Column(db.Enum(CourseStatus), nullable=False, default=CourseStatus.NOT_STARTED)
    total_lessons = db.Column(db.Integer, nullable=False, default=0)
    completed_lessons = db.Column(db.Integer, nullable=False, default=0)
    current_lesson_order = db.Column(db.Integer, nullable=False, default=1)
    total_xp_earned = db.Column(db.Integer, nullable=False, default=0)
    certificate_earned = db.Column(db.Boolean, nullable=False, default=False)
    enrolled_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    last_accessed_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship('User', backref=db.backref('enrollments', lazy='dynamic'))
    course = db.relationship('Course', backref=db.backref('enrollments', lazy='dynamic'))
    lesson_progress = db.relationship('CourseLessonProgress', backref='enrollment', lazy='dynamic')

    __table_args__ = (
        db.UniqueConstraint('user_id', 'course_id', name='uq_enrollment_user_course'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'courseId': self.course_id,
            'status': self.status.value,
            'totalLessons': self.total_lessons,
            'completedLessons': self.completed_lessons,
            'currentLessonOrder': self.current_lesson_order,
            'totalXPEarned': self.total_xp_earned,
            'certificateEarned': self.certificate_earned,
            'lastAccessedAt': self.last_accessed_at.isoformat() if self.last_accessed_at else None,
            'completedAt': self.completed_at.isoformat() if self.completed_at else None,
        }


class CourseLessonProgress(db.Model):
    __tablename__ = 'course_lesson_progress'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    enrollment_id = db.Column(db.Integer, db.ForeignKey('course_enrollments.id', ondelete='CASCADE'),
                              nullable=False, index=True)
    lesson_id = db.Column(db.Integer, db.ForeignKey('course_lessons.id', ondelete='CASCADE'), nullable=False)
    status = db.Column(db.Enum(LessonProgressStatus), nullable=False, default=LessonProgressStatus.LOCKED)
    score = db.Column(db.Integer, nullable=True)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    time_spent = db.Column(db.Integer, nullable=False, default=0)  # seconds
    xp_earned = db.Column(db.Integer, nullable=False, default=0)
    started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    lesson = db.relationship('CourseLesson', backref=db.backref('progress_rows', lazy='dynamic'))

    __table_args__ = (
        db.UniqueConstraint('user_id', 'lesson_id', name='uq_lesson_progress_user_lesson'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'lessonId': self.lesson_id,
            'status': self.status.value,
            'score': self.score,
            'attempts': self.attempts,
            'timeSpent': self.time_spent,
            'xpEarned': self.xp_earned,
            'startedAt': self.started_at.isoformat() if self.started_at else None,
            'completedAt': self.completed_at.isoformat() if self.completed_at else None,
        }
