"""Demo catalog and users for local development."""
from adventures.extensions import db
from adventures.models.course import Course, CourseLesson, LessonType
from adventures.models.user import User, Role

COURSES = [
    {
        'slug': 'python-basics',
        'title': 'Python Basics',
        'subject': 'coding',
        'description': 'Variables, loops and functions through small games.',
        'is_premium': False,
        'prerequisites': [],
        'lessons': [
            ('Hello, Python', LessonType.VIDEO, 50, None),
            ('Variables Playground', LessonType.INTERACTIVE, 50, None),
            ('Loop Game', LessonType.GAME, 75, None),
            ('Basics Quiz', LessonType.QUIZ, 100, 70),
        ],
    },
    {
        'slug': 'python-projects',
        'title': 'Python Projects',
        'subject': 'coding',
        'description': 'Build a calculator and a story app.',
        'is_premium': True,
        'prerequisites': ['python-basics'],
        'lessons': [
            ('Planning a Project', LessonType.READING, 50, None),
            ('Calculator', LessonType.PROJECT, 150, None),
            ('Story App', LessonType.PROJECT, 200, None),
        ],
    },
    {
        'slug': 'digital-safety',
        'title': 'Digital Safety',
        'subject': 'safety',
        'description': 'Passwords, privacy and spotting scams.',
        'is_premium': False,
        'prerequisites': [],
        'lessons': [
            ('Strong Passwords', LessonType.INTERACTIVE, 50, None),
            ('Safety Quiz', LessonType.QUIZ, 100, 80),
        ],
    },
]

BASICS_QUIZ = {
    'passingScore': 70,
    'allowRetry': True,
    'maxAttempts': 3,
    'questions': [
        {
            'id': 'q1', 'type': 'multiple-choice', 'points': 10,
            'question': 'Which keyword defines a function?',
            'options': ['func', 'def', 'function', 'lambda'],
            'correctAnswer': 1,
            'explanation': '`def` starts a function definition.',
            'hints': ['It is three letters long.', 'Short for "define".'],
        },
        {
            'id': 'q2', 'type': 'true-false', 'points': 10,
            'question': 'Python lists can hold values of different types.',
            'correctAnswer': True,
            'explanation': 'Lists are heterogeneous.',
            'hints': ['Try [1, "a", 2.0] in the console.'],
        },
        {
            'id': 'q3', 'type': 'fill-blank', 'points': 20,
            'question': 'A loop over a range is written: ___ i in range(3)',
            'correctAnswer': 'for',
            'explanation': '`for` iterates over any iterable.',
            'hints': ['It is not `while`.'],
        },
    ],
}

DEMO_USERS = [
    ('admin@adventures.dev', 'System Admin', Role.ADMIN, None),
    ('teacher@adventures.dev', 'Ms. Sarah', Role.TEACHER, None),
    ('student1@adventures.dev', 'Ahmed', Role.STUDENT, 'active'),
    ('student2@adventures.dev', 'Maya', Role.STUDENT, None),
    ('parent1@adventures.dev', "Ahmed's Parent", Role.PARENT, 'active'),
]


def seed_courses():
    created = 0
    by_slug = {}
    for course_data in COURSES:
        course = Course.query.filter_by(slug=course_data['slug']).first()
        if course:
            print(f'  Course "{course.slug}" already exists, skipping.')
            by_slug[course.slug] = course
            continue

        course = Course(
            slug=course_data['slug'], title=course_data['title'],
            subject=course_data['subject'], description=course_data['description'],
            is_premium=course_data['is_premium'],
            prerequisite_course_ids=[by_slug[slug].id for slug in course_data['prerequisites']],
        )
        db.session.add(course)
        db.session.flush()
        for order, (title, lesson_type, xp_reward, required_score) in enumerate(course_data['lessons'], 1):
            db.session.add(CourseLesson(
                course_id=course.id, order=order, title=title, lesson_type=lesson_type,
                xp_reward=xp_reward, required_score=required_score,
                quiz_data=(dict(BASICS_QUIZ, passingScore=required_score)
                           if lesson_type == LessonType.QUIZ else None),
            ))
        by_slug[course.slug] = course
        created += 1

    db.session.commit()
    print(f'  Created {created} courses.')


def seed_demo_users():
    if User.query.filter_by(email=DEMO_USERS[0][0]).first():
        print('  Demo users already exist.')
        return

    users = {}
    for email, name, role, subscription in DEMO_USERS:
        user = User(email=email, name=name, role=role, subscription_status=subscription)
        db.session.add(user)
        users[email] = user
    db.session.flush()

    # Link parent to student
    users['parent1@adventures.dev'].children.append(users['student1@adventures.dev'])
    db.session.commit()
    print(f'  Created {len(users)} demo users.')


def seed_demo_data():
    print('Seeding courses...')
    seed_courses()
    print('Seeding demo users...')
    seed_demo_users()
    print('Done!')
