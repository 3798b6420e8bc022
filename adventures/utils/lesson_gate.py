"""Linear lesson unlocking and per-lesson progress rows.

A lesson is open when it is the first lesson of its course, when its progress
row has been unlocked (or started), or when the lesson right before it is
completed.
"""
from sqlalchemy import func

from adventures.errors import NotFoundError
from adventures.models.course import (
    CourseLesson, CourseLessonProgress, LessonProgressStatus, LessonType,
)

OPEN_STATUSES = (LessonProgressStatus.UNLOCKED, LessonProgressStatus.IN_PROGRESS,
                 LessonProgressStatus.COMPLETED)
STARTED_STATUSES = (LessonProgressStatus.IN_PROGRESS, LessonProgressStatus.COMPLETED)


def get_lesson(session, lesson_id):
    lesson = session.get(CourseLesson, lesson_id)
    if lesson is None:
        raise NotFoundError('Lesson not found', details={'lessonId': lesson_id})
    return lesson


def get_course_lessons(session, course_id):
    return session.query(CourseLesson).filter_by(course_id=course_id).order_by(CourseLesson.order).all()


def get_next_lesson(session, lesson):
    return session.query(CourseLesson).filter(
        CourseLesson.course_id == lesson.course_id,
        CourseLesson.order > lesson.order,
    ).order_by(CourseLesson.order).first()


def get_previous_lesson(session, lesson):
    return session.query(CourseLesson).filter(
        CourseLesson.course_id == lesson.course_id,
        CourseLesson.order < lesson.order,
    ).order_by(CourseLesson.order.desc()).first()


def is_first_lesson(session, lesson):
    first_order = session.query(func.min(CourseLesson.order)).filter_by(
        course_id=lesson.course_id).scalar()
    return lesson.order == first_order


def get_progress(session, user_id, lesson_id, lock=False):
    query = session.query(CourseLessonProgress).filter_by(user_id=user_id, lesson_id=lesson_id)
    if lock:
        query = query.with_for_update()
    return query.first()


def check_lesson_access(session, user_id, lesson, progress=None):
    """Return ``{can_access, is_locked, reason}`` for a user and lesson."""
    if progress is None:
        progress = get_progress(session, user_id, lesson.id)

    if is_first_lesson(session, lesson):
        return {'can_access': True, 'is_locked': False, 'reason': None}

    if progress is not None and progress.status in OPEN_STATUSES:
        return {'can_access': True, 'is_locked': False, 'reason': None}

    previous = get_previous_lesson(session, lesson)
    previous_progress = get_progress(session, user_id, previous.id) if previous else None
    if previous_progress is not None and previous_progress.status == LessonProgressStatus.COMPLETED:
        return {'can_access': True, 'is_locked': False, 'reason': None}

    return {
        'can_access': False,
        'is_locked': True,
        'reason': 'Previous lesson not completed',
    }


def pass_score_for(lesson, policy):
    """Minimum score for ``lesson``, or None when any completion passes.

    A lesson carrying quiz data is held to the quiz's own passing score so
    grading and completion always agree.
    """
    if isinstance(lesson.quiz_data, dict) and lesson.quiz_data.get('passingScore') is not None:
        return lesson.quiz_data['passingScore']
    if lesson.required_score is not None:
        return lesson.required_score
    if lesson.lesson_type == LessonType.QUIZ:
        return policy.pass_score
    return None


def is_passing(lesson, score, policy):
    required = pass_score_for(lesson, policy)
    if required is None:
        return True
    return score is not None and score >= required


def begin_lesson(session, enrollment, lesson, now):
    """Mark a lesson as being worked on and count the attempt."""
    progress = get_progress(session, enrollment.user_id, lesson.id, lock=True)
    if progress is None:
        progress = CourseLessonProgress(user_id=enrollment.user_id, enrollment_id=enrollment.id,
                                        lesson_id=lesson.id, attempts=0, time_spent=0, xp_earned=0)
        session.add(progress)

    if progress.status != LessonProgressStatus.COMPLETED:
        progress.status = LessonProgressStatus.IN_PROGRESS
    if progress.started_at is None:
        progress.started_at = now
    progress.attempts = (progress.attempts or 0) + 1
    session.flush()
    return progress


def record_failed_attempt(progress, time_spent):
    progress.time_spent = (progress.time_spent or 0) + time_spent


def claim_completion(session, progress, score, time_spent, now):
    """Flip a progress row to COMPLETED exactly once.

    Returns False when another request already completed it; the conditional
    UPDATE is what keeps two concurrent completions from both paying out.
    """
    claimed = session.query(CourseLessonProgress).filter(
        CourseLessonProgress.id == progress.id,
        CourseLessonProgress.status != LessonProgressStatus.COMPLETED,
    ).update({
        CourseLessonProgress.status: LessonProgressStatus.COMPLETED,
        CourseLessonProgress.score: score,
        CourseLessonProgress.completed_at: now,
        CourseLessonProgress.time_spent: CourseLessonProgress.time_spent + time_spent,
    }, synchronize_session=False)
    session.refresh(progress)
    return claimed == 1


def unlock_next_lesson(session, enrollment, lesson):
    """Open the lesson after ``lesson``; returns it, or None at the end of the course."""
    next_lesson = get_next_lesson(session, lesson)
    if next_lesson is None:
        return None

    progress = get_progress(session, enrollment.user_id, next_lesson.id, lock=True)
    if progress is None:
        session.add(CourseLessonProgress(
            user_id=enrollment.user_id, enrollment_id=enrollment.id, lesson_id=next_lesson.id,
            status=LessonProgressStatus.UNLOCKED, attempts=0, time_spent=0, xp_earned=0,
        ))
    elif progress.status == LessonProgressStatus.LOCKED:
        progress.status = LessonProgressStatus.UNLOCKED
    session.flush()
    return next_lesson


def is_unlocked(session, user_id, lesson):
    progress = get_progress(session, user_id, lesson.id)
    return progress is not None and progress.status in OPEN_STATUSES


def get_course_lessons_with_progress(session, user_id, course_id, policy):
    lessons = get_course_lessons(session, course_id)
    rows = session.query(CourseLessonProgress).join(CourseLesson).filter(
        CourseLessonProgress.user_id == user_id,
        CourseLesson.course_id == course_id,
    ).all()
    by_lesson = {row.lesson_id: row for row in rows}

    result = []
    previous_completed = True
    for lesson in lessons:
        progress = by_lesson.get(lesson.id)
        is_open = (previous_completed
                   or (progress is not None and progress.status in OPEN_STATUSES))
        completed = progress is not None and progress.status == LessonProgressStatus.COMPLETED
        item = lesson.to_dict()
        item.update({
            'progress': progress.to_dict() if progress else None,
            'isLocked': not is_open,
            'canAccess': is_open,
            'isPassed': completed and is_passing(lesson, progress.score, policy),
        })
        result.append(item)
        previous_completed = completed
    return result
