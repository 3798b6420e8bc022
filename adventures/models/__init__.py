from adventures.models.user import User, Role, parent_student
from adventures.models.gamification import UserLevel, XPTransaction, XPSource, DailyXP
from adventures.models.course import (
    Course, CourseLesson, CourseEnrollment, CourseLessonProgress,
    LessonType, CourseStatus, LessonProgressStatus,
)

__all__ = [
    'User', 'Role', 'parent_student',
    'UserLevel', 'XPTransaction', 'XPSource', 'DailyXP',
    'Course', 'CourseLesson', 'CourseEnrollment', 'CourseLessonProgress',
    'LessonType', 'CourseStatus', 'LessonProgressStatus',
]
