"""Transactional progression operations.

``ProgressionService`` stitches the XP ledger, streaks, daily aggregates,
lesson gate and enrollment helpers together. Each public method is one
database transaction: committed when it returns, rolled back when it raises.
"""
import logging
from contextlib import contextmanager
from datetime import datetime, time, timedelta

from adventures.errors import (
    EnrollmentNotAllowed, LessonLocked, LessonNotStarted, NotFoundError,
    PrerequisitesNotMet, ValidationError,
)
from adventures.models.course import Course, CourseStatus, LessonProgressStatus, LessonType
from adventures.models.gamification import XPSource
from adventures.utils import lesson_gate, quiz
from adventures.utils.daily_xp import (
    empty_daily_xp, get_daily_xp, get_recent_xp, get_xp_history, record_daily_xp,
)
from adventures.utils.enrollment import (
    check_completion_requirements, check_enrollment_eligibility, complete_course,
    create_enrollment, get_completed_courses, get_enrollment, get_enrollment_progress,
    get_in_progress_courses, get_missing_prerequisites, get_user_course_stats,
    mark_enrollment_started, update_enrollment_activity,
)
from adventures.utils.helpers import localnow, safe_int, validate_score, validate_time_spent
from adventures.utils.streaks import calculate_xp_with_streak, get_streak_multiplier, update_user_streak
from adventures.utils.xp_ledger import (
    award_xp, calculate_reveal_cost, get_or_create_user_level, get_user_level,
    get_xp_transactions, reveal_answer_with_xp,
)

logger = logging.getLogger(__name__)

MAX_HISTORY_DAYS = 365

_XP_SOURCES = {
    LessonType.QUIZ: XPSource.QUIZ,
    LessonType.GAME: XPSource.GAME,
    LessonType.PROJECT: XPSource.PROJECT,
}


class ProgressionService:

    def __init__(self, session, policy, clock=None):
        self.session = session
        self.policy = policy
        self.clock = clock or localnow

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def _get_course(self, course_id):
        course = self.session.get(Course, course_id)
        if course is None or not course.is_published:
            raise NotFoundError('Course not found', details={'courseId': course_id})
        return course

    # ─── Lessons ────────────────────────────────────────────────────────────

    def start_lesson(self, user, lesson_id):
        """Open a lesson for work, enrolling the user in its course if needed."""
        with self._transaction():
            now = self.clock()
            lesson = lesson_gate.get_lesson(self.session, lesson_id)
            enrollment = get_enrollment(self.session, user.id, lesson.course_id, lock=True)
            if enrollment is None:
                course = lesson.course
                missing = get_missing_prerequisites(self.session, user.id, course)
                if missing:
                    raise PrerequisitesNotMet(details={'missingPrerequisites': [c.title for c in missing]})
                if course.is_premium and not user.has_premium_access:
                    raise EnrollmentNotAllowed('Premium subscription required')
                enrollment = create_enrollment(self.session, user.id, course, now,
                                               status=CourseStatus.IN_PROGRESS)

            progress = lesson_gate.get_progress(self.session, user.id, lesson.id, lock=True)
            access = lesson_gate.check_lesson_access(self.session, user.id, lesson, progress)
            if not access['can_access']:
                raise LessonLocked(access['reason'], details={'lessonId': lesson.id})

            mark_enrollment_started(enrollment, now)
            update_enrollment_activity(enrollment, now)
            progress = lesson_gate.begin_lesson(self.session, enrollment, lesson, now)
            return progress.to_dict()

    def complete_lesson(self, user, lesson_id, score=None, time_spent=0):
        """Record a lesson attempt and pay out XP the first time it passes.

        Completing an already completed lesson returns the stored outcome with
        no XP, so retries and double submits are safe.
        """
        score = validate_score(score)
        time_spent = validate_time_spent(time_spent)

        with self._transaction():
            now = self.clock()
            lesson = lesson_gate.get_lesson(self.session, lesson_id)
            progress = lesson_gate.get_progress(self.session, user.id, lesson.id, lock=True)
            if progress is None or progress.status not in lesson_gate.STARTED_STATUSES:
                raise LessonNotStarted('Start the lesson before completing it',
                                       details={'lessonId': lesson.id})

            enrollment = get_enrollment(self.session, user.id, lesson.course_id, lock=True)
            update_enrollment_activity(enrollment, now)

            if not lesson_gate.is_passing(lesson, score, self.policy):
                lesson_gate.record_failed_attempt(progress, time_spent)
                return self._failed_result(lesson, progress, score)

            if progress.status == LessonProgressStatus.COMPLETED:
                return self._stored_result(user, lesson, enrollment)

            if not lesson_gate.claim_completion(self.session, progress, score, time_spent, now):
                return self._stored_result(user, lesson, enrollment)

            return self._pay_out(user, lesson, progress, enrollment, now)

    def _pay_out(self, user, lesson, progress, enrollment, now):
        today = now.date()
        level_state = get_or_create_user_level(self.session, user.id, lock=True)
        # Today's activity counts toward the streak before the bonus is priced
        update_user_streak(level_state, today)
        calculation = calculate_xp_with_streak(lesson.xp_reward, level_state.current_streak,
                                               self.policy.streak_bonus_tiers)

        source = _XP_SOURCES.get(lesson.lesson_type, XPSource.LESSON)
        award = award_xp(self.session, user.id, calculation.total_xp, source, self.policy,
                         reason=f'Completed lesson: {lesson.title}', now=now)
        if lesson.lesson_type == LessonType.GAME:
            record_daily_xp(self.session, user.id, today, games=calculation.base_xp,
                            streak=calculation.streak_bonus_xp, games_completed=1)
        else:
            record_daily_xp(self.session, user.id, today, lessons=calculation.base_xp,
                            streak=calculation.streak_bonus_xp, lessons_completed=1)

        progress.xp_earned = calculation.total_xp
        next_lesson = lesson_gate.unlock_next_lesson(self.session, enrollment, lesson)

        mark_enrollment_started(enrollment, now)
        enrollment.completed_lessons = enrollment.lesson_progress.filter_by(
            status=LessonProgressStatus.COMPLETED).count()
        enrollment.total_xp_earned = (enrollment.total_xp_earned or 0) + calculation.total_xp
        enrollment.current_lesson_order = next_lesson.order if next_lesson else lesson.order

        course_completed = False
        requirements = check_completion_requirements(self.session, enrollment, self.policy)
        if requirements['is_complete'] and enrollment.status != CourseStatus.COMPLETED:
            complete_course(enrollment, requirements, now)
            course_completed = True
        self.session.flush()

        logger.info('User %s completed lesson %s (+%s XP, streak %s)', user.id, lesson.id,
                    calculation.total_xp, level_state.current_streak)
        return {
            'passed': True,
            'score': progress.score,
            'xpAwarded': award.xp_awarded,
            'baseXP': calculation.base_xp,
            'streakBonusXP': calculation.streak_bonus_xp,
            'streakMultiplier': calculation.multiplier,
            'nextLessonUnlocked': next_lesson is not None,
            'nextLesson': next_lesson.to_dict() if next_lesson else None,
            'leveledUp': award.leveled_up,
            'newLevel': award.new_level,
            'courseCompleted': course_completed,
            'certificateEarned': enrollment.certificate_earned,
            'alreadyCompleted': False,
        }

    def _failed_result(self, lesson, progress, score):
        return {
            'passed': False,
            'score': score,
            'requiredScore': lesson_gate.pass_score_for(lesson, self.policy),
            'xpAwarded': 0,
            'alreadyCompleted': progress.status == LessonProgressStatus.COMPLETED,
            'message': 'Lesson not passed. Try again!',
        }

    def _stored_result(self, user, lesson, enrollment):
        progress = lesson_gate.get_progress(self.session, user.id, lesson.id)
        next_lesson = lesson_gate.get_next_lesson(self.session, lesson)
        level_state = get_user_level(self.session, user.id)
        return {
            'passed': True,
            'score': progress.score,
            'xpAwarded': 0,
            'baseXP': 0,
            'streakBonusXP': 0,
            'streakMultiplier': 1.0,
            'nextLessonUnlocked': (next_lesson is not None
                                   and lesson_gate.is_unlocked(self.session, user.id, next_lesson)),
            'nextLesson': next_lesson.to_dict() if next_lesson else None,
            'leveledUp': False,
            'newLevel': level_state.current_level if level_state else 1,
            'courseCompleted': enrollment.status == CourseStatus.COMPLETED,
            'certificateEarned': enrollment.certificate_earned,
            'alreadyCompleted': True,
        }

    # ─── Quizzes ────────────────────────────────────────────────────────────

    def _get_quiz(self, lesson):
        if not quiz.validate_quiz_structure(lesson.quiz_data):
            raise ValidationError('Lesson has no valid quiz', details={'lessonId': lesson.id})
        return lesson.quiz_data

    def submit_quiz(self, user, lesson_id, answers, attempt_number=0):
        """Grade a quiz and complete its lesson with the resulting score."""
        if not isinstance(answers, dict):
            raise ValidationError('Answers must be an object keyed by question id')
        attempt_number = safe_int(attempt_number, 0)
        if attempt_number < 0:
            raise ValidationError('Attempt number cannot be negative')

        lesson = lesson_gate.get_lesson(self.session, lesson_id)
        quiz_data = self._get_quiz(lesson)
        if not quiz.can_retry_quiz(quiz_data, attempt_number):
            raise ValidationError('No quiz attempts left', details={'maxAttempts': quiz_data.get('maxAttempts')})

        grading = quiz.validate_quiz_answers(quiz_data, answers, attempt_number)
        completion = self.complete_lesson(user, lesson_id, score=grading['score'])
        return {'quiz': grading, 'completion': completion}

    def reveal_answer(self, user, lesson_id, question_id):
        """Trade XP for a question's answer."""
        with self._transaction():
            lesson = lesson_gate.get_lesson(self.session, lesson_id)
            quiz_data = self._get_quiz(lesson)
            question = quiz.find_question(quiz_data, question_id)
            if question is None:
                raise NotFoundError('Question not found', details={'questionId': question_id})

            access = lesson_gate.check_lesson_access(self.session, user.id, lesson)
            if not access['can_access']:
                raise LessonLocked(access['reason'], details={'lessonId': lesson.id})

            level_state = get_or_create_user_level(self.session, user.id)
            cost = calculate_reveal_cost(question['points'], level_state.current_level, self.policy)
            remaining = reveal_answer_with_xp(self.session, user.id, cost, self.policy,
                                              reason=f'Revealed answer to {question_id} in {lesson.title}',
                                              now=self.clock())
            return {
                'questionId': question_id,
                'correctAnswer': question['correctAnswer'],
                'explanation': question['explanation'],
                'xpCost': cost,
                'remainingXP': remaining,
            }

    # ─── Courses ────────────────────────────────────────────────────────────

    def enroll(self, user, course_id):
        with self._transaction():
            course = self._get_course(course_id)
            eligibility = check_enrollment_eligibility(self.session, user, course, self.policy)
            if not eligibility['can_enroll']:
                if not eligibility['prerequisites_met']:
                    raise PrerequisitesNotMet(
                        details={'missingPrerequisites': eligibility['missing_prerequisites']})
                raise EnrollmentNotAllowed(eligibility['reason'], details={
                    'requiresPremium': eligibility['requires_premium'],
                    'hasPremiumAccess': eligibility['has_premium_access'],
                })
            enrollment = create_enrollment(self.session, user.id, course, self.clock())
            return enrollment.to_dict()

    def course_lessons(self, user, course_id):
        course = self._get_course(course_id)
        enrollment = get_enrollment(self.session, user.id, course.id)
        enrollment_data = None
        if enrollment is not None:
            enrollment_data = enrollment.to_dict()
            enrollment_data['progress'] = get_enrollment_progress(enrollment)
        return {
            'course': course.to_dict(),
            'enrollment': enrollment_data,
            'lessons': lesson_gate.get_course_lessons_with_progress(
                self.session, user.id, course.id, self.policy),
        }

    # ─── Levels & history ───────────────────────────────────────────────────

    def _streak_summary(self, level_state, today):
        last_activity = level_state.last_activity_date if level_state else None
        # A streak is still alive until a whole calendar day is missed
        alive = last_activity is not None and (today - last_activity).days <= 1
        current_streak = level_state.current_streak if alive else 0
        return {
            'currentStreak': current_streak,
            'longestStreak': level_state.longest_streak if level_state else 0,
            'lastActivityDate': last_activity.isoformat() if last_activity else None,
            'multiplier': get_streak_multiplier(current_streak, self.policy.streak_bonus_tiers),
        }

    def _level_summary(self, level_state):
        return self.policy.level_info(
            level_state.total_xp if level_state else 0,
            level_state.current_level if level_state else None,
        )

    def level_status(self, user):
        with self._transaction():
            level_state = get_or_create_user_level(self.session, user.id)
            today = self.clock().date()
            daily = get_daily_xp(self.session, user.id, today)
            return {
                'level': self._level_summary(level_state),
                'dailyXP': daily.to_dict() if daily else empty_daily_xp(today),
                'weeklyXP': get_recent_xp(self.session, user.id, today),
                'streak': self._streak_summary(level_state, today),
            }

    def xp_history(self, user, days=7):
        days = safe_int(days, 7)
        if days < 1 or days > MAX_HISTORY_DAYS:
            raise ValidationError(f'Days must be between 1 and {MAX_HISTORY_DAYS}', details={'days': days})

        now = self.clock()
        end = now.date()
        start = end - timedelta(days=days - 1)
        rows = {row.date: row for row in get_xp_history(self.session, user.id, start, end)}

        history = []
        for offset in range(days):
            day = start + timedelta(days=offset)
            history.append(rows[day].to_dict() if day in rows else empty_daily_xp(day))
        return {
            'days': history,
            'totalXP': sum(item['totalXP'] for item in history),
            'transactions': [t.to_dict() for t in get_xp_transactions(
                self.session, user.id, since=datetime.combine(start, time.min, tzinfo=now.tzinfo))],
        }

    def user_stats(self, user_id):
        stats = get_user_course_stats(self.session, user_id)
        level_state = get_user_level(self.session, user_id)
        stats['level'] = self._level_summary(level_state)
        return stats

    def dashboard(self, user):
        """Everything the learner's home screen shows in one read."""
        today = self.clock().date()
        level_state = get_user_level(self.session, user.id)

        def summarize(enrollment):
            data = enrollment.to_dict()
            data['course'] = enrollment.course.to_dict()
            data['progress'] = get_enrollment_progress(enrollment)
            return data

        return {
            'inProgress': [summarize(e) for e in get_in_progress_courses(self.session, user.id)],
            'completed': [summarize(e) for e in get_completed_courses(self.session, user.id)],
            'stats': get_user_course_stats(self.session, user.id),
            'level': self._level_summary(level_state),
            'streak': self._streak_summary(level_state, today),
            'recentXP': get_recent_xp(self.session, user.id, today),
        }
