from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token

from adventures import create_app
from adventures.extensions import db
from adventures.models.course import Course, CourseLesson, LessonType
from adventures.models.user import User, Role
from adventures.utils.policy import ProgressionPolicy

FIXED_NOW = datetime(2026, 3, 10, 9, 30)

SAMPLE_QUIZ = {
    'passingScore': 70,
    'allowRetry': True,
    'maxAttempts': 3,
    'questions': [
        {
            'id': 'q1', 'type': 'multiple-choice', 'points': 10,
            'question': 'Which keyword defines a function?',
            'options': ['func', 'def', 'function'],
            'correctAnswer': 1,
            'explanation': '`def` starts a function definition.',
            'hints': ['Three letters.', 'Short for "define".'],
        },
        {
            'id': 'q2', 'type': 'true-false', 'points': 10,
            'question': 'Lists can hold mixed types.',
            'correctAnswer': True,
            'explanation': 'Lists are heterogeneous.',
            'hints': ['Try it in the console.'],
        },
        {
            'id': 'q3', 'type': 'fill-blank', 'points': 20,
            'question': '___ i in range(3)',
            'correctAnswer': 'for',
            'explanation': '`for` iterates over any iterable.',
            'hints': ['Not `while`.'],
        },
    ],
}


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, days=0, hours=0):
        self.now += timedelta(days=days, hours=hours)


@pytest.fixture
def clock():
    return FakeClock(FIXED_NOW)


@pytest.fixture
def app(clock):
    app = create_app('testing', clock=clock)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session(app):
    return db.session


@pytest.fixture
def policy():
    return ProgressionPolicy()


@pytest.fixture
def service(app):
    return app.extensions['progression']


@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def _make(role=Role.STUDENT, **kwargs):
        counter['n'] += 1
        kwargs.setdefault('name', f'User {counter["n"]}')
        kwargs.setdefault('email', f'user{counter["n"]}@example.com')
        user = User(role=role, **kwargs)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def student(make_user):
    return make_user(Role.STUDENT, name='Ahmed')


@pytest.fixture
def make_course(app):
    counter = {'n': 0}

    def _make(lessons=3, xp_reward=50, lesson_type=LessonType.INTERACTIVE, required_score=None,
              **kwargs):
        """``lessons`` is a count or a list of per-lesson keyword dicts."""
        counter['n'] += 1
        kwargs.setdefault('slug', f'course-{counter["n"]}')
        kwargs.setdefault('title', f'Course {counter["n"]}')
        course = Course(**kwargs)
        db.session.add(course)
        db.session.flush()

        if isinstance(lessons, int):
            lessons = [{} for _ in range(lessons)]
        for order, overrides in enumerate(lessons, 1):
            lesson_kwargs = {
                'title': f'Lesson {order}',
                'lesson_type': lesson_type,
                'xp_reward': xp_reward,
                'required_score': required_score,
            }
            lesson_kwargs.update(overrides)
            db.session.add(CourseLesson(course_id=course.id, order=order, **lesson_kwargs))
        db.session.commit()
        return course

    return _make


@pytest.fixture
def quiz_course(make_course):
    return make_course(lessons=[
        {'title': 'Intro'},
        {'title': 'Quiz', 'lesson_type': LessonType.QUIZ, 'xp_reward': 100, 'quiz_data': SAMPLE_QUIZ},
    ])


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(identity=str(user.id))
        return {'Authorization': f'Bearer {token}'}

    return _headers
