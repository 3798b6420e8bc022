import logging

from sqlalchemy.exc import IntegrityError

from adventures.models.course import (
    Course, CourseEnrollment, CourseLesson, CourseLessonProgress,
    CourseStatus, LessonProgressStatus,
)
from adventures.models.gamification import UserLevel
from adventures.utils.lesson_gate import pass_score_for

logger = logging.getLogger(__name__)


# ─── Prerequisites & eligibility ────────────────────────────────────────────

def _completed_course_ids(session, user_id, course_ids):
    if not course_ids:
        return set()
    rows = session.query(CourseEnrollment.course_id).filter(
        CourseEnrollment.user_id == user_id,
        CourseEnrollment.course_id.in_(course_ids),
        CourseEnrollment.status == CourseStatus.COMPLETED,
    ).all()
    return {row.course_id for row in rows}


def check_prerequisites(session, user_id, course):
    required = list(course.prerequisite_course_ids or [])
    return len(_completed_course_ids(session, user_id, required)) == len(set(required))


def get_missing_prerequisites(session, user_id, course):
    """Prerequisite courses the user has not completed yet."""
    required = list(course.prerequisite_course_ids or [])
    if not required:
        return []
    completed = _completed_course_ids(session, user_id, required)
    missing_ids = [course_id for course_id in required if course_id not in completed]
    if not missing_ids:
        return []
    return session.query(Course).filter(Course.id.in_(missing_ids)).order_by(Course.id).all()


def check_enrollment_eligibility(session, user, course, policy):
    result = {
        'can_enroll': False,
        'reason': None,
        'prerequisites_met': True,
        'missing_prerequisites': [],
        'requires_premium': course.is_premium,
        'has_premium_access': user.has_premium_access,
    }

    if get_enrollment(session, user.id, course.id) is not None:
        result['reason'] = 'Already enrolled in this course'
        return result

    missing = get_missing_prerequisites(session, user.id, course)
    if missing:
        result.update(reason='Prerequisites not met', prerequisites_met=False,
                      missing_prerequisites=[c.title for c in missing])
        return result

    if course.is_premium and not user.has_premium_access:
        result['reason'] = 'Premium subscription required'
        return result

    if not course.is_premium and not user.has_premium_access:
        free_count = session.query(CourseEnrollment).join(Course).filter(
            CourseEnrollment.user_id == user.id,
            Course.is_premium.is_(False),
        ).count()
        if free_count >= policy.max_free_enrollments:
            result.update(
                reason=(f'Free users can only enroll in {policy.max_free_enrollments} free courses. '
                        'Upgrade to premium for unlimited access.'),
                free_course_limit=policy.max_free_enrollments,
                free_courses_enrolled=free_count,
            )
            return result

    result['can_enroll'] = True
    return result


# ─── Enrollment rows ────────────────────────────────────────────────────────

def get_enrollment(session, user_id, course_id, lock=False):
    query = session.query(CourseEnrollment).filter_by(user_id=user_id, course_id=course_id)
    if lock:
        query = query.with_for_update()
    return query.first()


def create_enrollment(session, user_id, course, now, status=CourseStatus.NOT_STARTED):
    """Create the enrollment plus one progress row per lesson.

    The first lesson starts UNLOCKED, every other lesson LOCKED.
    """
    lessons = session.query(CourseLesson).filter_by(course_id=course.id).order_by(CourseLesson.order).all()
    try:
        with session.begin_nested():
            enrollment = CourseEnrollment(
                user_id=user_id, course_id=course.id, status=status,
                total_lessons=len(lessons), completed_lessons=0,
                current_lesson_order=lessons[0].order if lessons else 1,
                total_xp_earned=0, enrolled_at=now, last_accessed_at=now,
                started_at=now if status == CourseStatus.IN_PROGRESS else None,
            )
            session.add(enrollment)
            session.flush()
            for index, lesson in enumerate(lessons):
                session.add(CourseLessonProgress(
                    user_id=user_id, enrollment_id=enrollment.id, lesson_id=lesson.id,
                    status=LessonProgressStatus.UNLOCKED if index == 0 else LessonProgressStatus.LOCKED,
                    attempts=0, time_spent=0, xp_earned=0,
                ))
    except IntegrityError:
        # Concurrent first touch of the same course
        return get_enrollment(session, user_id, course.id, lock=True)

    logger.info('User %s enrolled in course %s', user_id, course.slug)
    return enrollment


def mark_enrollment_started(enrollment, now):
    if enrollment.status == CourseStatus.NOT_STARTED:
        enrollment.status = CourseStatus.IN_PROGRESS
        enrollment.started_at = now


def update_enrollment_activity(enrollment, now):
    enrollment.last_accessed_at = now


# ─── Completion ─────────────────────────────────────────────────────────────

def check_completion_requirements(session, enrollment, policy):
    lessons = session.query(CourseLesson).filter_by(course_id=enrollment.course_id).all()
    progress = {row.lesson_id: row for row in session.query(CourseLessonProgress).filter_by(
        user_id=enrollment.user_id).filter(
        CourseLessonProgress.lesson_id.in_([lesson.id for lesson in lessons])).all()}

    completed = [lesson for lesson in lessons
                 if lesson.id in progress and progress[lesson.id].status == LessonProgressStatus.COMPLETED]
    scored = [lesson for lesson in lessons if pass_score_for(lesson, policy) is not None]
    passed_scored = [
        lesson for lesson in scored
        if lesson in completed and progress[lesson.id].score is not None
        and progress[lesson.id].score >= pass_score_for(lesson, policy)
    ]

    is_complete = len(lessons) > 0 and len(completed) == len(lessons)
    return {
        'total_lessons': len(lessons),
        'completed_lessons': len(completed),
        'required_lessons': len(scored),
        'passed_required_lessons': len(passed_scored),
        'is_complete': is_complete,
        'can_earn_certificate': is_complete and len(passed_scored) == len(scored),
    }


def complete_course(enrollment, requirements, now):
    enrollment.status = CourseStatus.COMPLETED
    enrollment.completed_at = now
    enrollment.certificate_earned = requirements['can_earn_certificate']
    logger.info('User %s completed course %s (certificate=%s)', enrollment.user_id,
                enrollment.course_id, enrollment.certificate_earned)


def get_enrollment_progress(enrollment):
    if not enrollment.total_lessons:
        return 0
    return round(enrollment.completed_lessons / enrollment.total_lessons * 100)


# ─── Listings ───────────────────────────────────────────────────────────────

def get_user_enrollments(session, user_id, status=None):
    """A user's enrollments, most recently accessed first."""
    query = session.query(CourseEnrollment).filter_by(user_id=user_id)
    if status is not None:
        query = query.filter_by(status=status)
    return query.order_by(
        CourseEnrollment.last_accessed_at.desc().nullslast(), CourseEnrollment.id.desc()
    ).all()


def get_in_progress_courses(session, user_id):
    return get_user_enrollments(session, user_id, CourseStatus.IN_PROGRESS)


def get_completed_courses(session, user_id):
    return get_user_enrollments(session, user_id, CourseStatus.COMPLETED)


# ─── Statistics ─────────────────────────────────────────────────────────────

def get_user_course_stats(session, user_id):
    enrollments = session.query(CourseEnrollment).filter_by(user_id=user_id).all()
    progress_rows = session.query(CourseLessonProgress).filter_by(user_id=user_id).all()
    level_state = session.query(UserLevel).filter_by(user_id=user_id).first()

    scores = [p.score for p in progress_rows
              if p.status == LessonProgressStatus.COMPLETED and p.score is not None]
    total_seconds = sum(p.time_spent or 0 for p in progress_rows)

    return {
        'totalCoursesEnrolled': len(enrollments),
        'coursesInProgress': sum(1 for e in enrollments if e.status == CourseStatus.IN_PROGRESS),
        'coursesCompleted': sum(1 for e in enrollments if e.status == CourseStatus.COMPLETED),
        'totalXPEarned': sum(e.total_xp_earned for e in enrollments),
        'currentStreak': level_state.current_streak if level_state else 0,
        'longestStreak': level_state.longest_streak if level_state else 0,
        'averageScore': round(sum(scores) / len(scores)) if scores else 0,
        'totalTimeSpent': round(total_seconds / 60),
        'certificatesEarned': sum(1 for e in enrollments if e.certificate_earned),
    }
