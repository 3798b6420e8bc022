from datetime import timedelta

from adventures.models.course import CourseStatus
from adventures.models.user import Role
from adventures.utils.enrollment import (
    check_completion_requirements, check_enrollment_eligibility, check_prerequisites,
    create_enrollment, get_completed_courses, get_enrollment_progress, get_in_progress_courses,
    get_missing_prerequisites, get_user_course_stats, get_user_enrollments, update_enrollment_activity,
)

from tests.conftest import FIXED_NOW


def test_prerequisites(session, student, make_course):
    basics = make_course(lessons=1, title='Basics')
    intro = make_course(lessons=1, title='Intro')
    advanced = make_course(lessons=1, prerequisite_course_ids=[basics.id, intro.id])

    assert not check_prerequisites(session, student.id, advanced)
    assert [c.title for c in get_missing_prerequisites(session, student.id, advanced)] == ['Basics', 'Intro']

    enrollment = create_enrollment(session, student.id, basics, FIXED_NOW)
    enrollment.status = CourseStatus.COMPLETED
    session.commit()
    assert [c.title for c in get_missing_prerequisites(session, student.id, advanced)] == ['Intro']
    assert check_prerequisites(session, student.id, basics)


def test_eligibility_reports_reason(session, make_user, make_course, policy):
    teacher = make_user(Role.TEACHER)
    premium = make_course(lessons=1, is_premium=True)
    student = make_user()

    denied = check_enrollment_eligibility(session, student, premium, policy)
    assert not denied['can_enroll']
    assert denied['reason'] == 'Premium subscription required'
    assert denied['requires_premium']

    allowed = check_enrollment_eligibility(session, teacher, premium, policy)
    assert allowed['can_enroll']


def test_premium_users_skip_free_course_limit(session, make_user, make_course, policy):
    subscriber = make_user(subscription_status='active')
    for _ in range(3):
        create_enrollment(session, subscriber.id, make_course(lessons=1), FIXED_NOW)
    session.commit()
    result = check_enrollment_eligibility(session, subscriber, make_course(lessons=1), policy)
    assert result['can_enroll']


def test_enrollment_progress_percent(session, student, make_course):
    enrollment = create_enrollment(session, student.id, make_course(lessons=3), FIXED_NOW)
    assert get_enrollment_progress(enrollment) == 0
    enrollment.completed_lessons = 2
    assert get_enrollment_progress(enrollment) == 67


def test_completion_requirements_for_new_enrollment(session, student, make_course, policy):
    enrollment = create_enrollment(session, student.id, make_course(lessons=2), FIXED_NOW)
    requirements = check_completion_requirements(session, enrollment, policy)
    assert requirements['total_lessons'] == 2
    assert requirements['completed_lessons'] == 0
    assert not requirements['is_complete']
    assert not requirements['can_earn_certificate']


def test_enrollment_listings(session, make_user, make_course):
    subscriber = make_user(subscription_status='active')
    older, newer, done, idle = [
        create_enrollment(session, subscriber.id, make_course(lessons=1, title=title), FIXED_NOW,
                          status=CourseStatus.IN_PROGRESS)
        for title in ('Older', 'Newer', 'Done', 'Idle')
    ]
    update_enrollment_activity(older, FIXED_NOW)
    update_enrollment_activity(newer, FIXED_NOW + timedelta(hours=2))
    done.status = CourseStatus.COMPLETED
    idle.status = CourseStatus.NOT_STARTED
    session.commit()

    assert [e.course.title for e in get_in_progress_courses(session, subscriber.id)] == ['Newer', 'Older']
    assert [e.course.title for e in get_completed_courses(session, subscriber.id)] == ['Done']
    assert len(get_user_enrollments(session, subscriber.id)) == 4


def test_stats_for_user_without_activity(session, student):
    stats = get_user_course_stats(session, student.id)
    assert stats == {
        'totalCoursesEnrolled': 0,
        'coursesInProgress': 0,
        'coursesCompleted': 0,
        'totalXPEarned': 0,
        'currentStreak': 0,
        'longestStreak': 0,
        'averageScore': 0,
        'totalTimeSpent': 0,
        'certificatesEarned': 0,
    }
