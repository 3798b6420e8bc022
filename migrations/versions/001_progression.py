"""Progression schema: users, courses, lessons, enrollments, lesson progress, levels, XP ledger, daily XP

Revision ID: 001_progression
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa

revision = '001_progression'
down_revision = None
branch_labels = None
depends_on = None

role = sa.Enum('ADMIN', 'TEACHER', 'STUDENT', 'PARENT', name='role')
lesson_type = sa.Enum('VIDEO', 'INTERACTIVE', 'QUIZ', 'GAME', 'READING', 'PROJECT', name='lessontype')
course_status = sa.Enum('NOT_STARTED', 'IN_PROGRESS', 'COMPLETED', name='coursestatus')
lesson_progress_status = sa.Enum('LOCKED', 'UNLOCKED', 'IN_PROGRESS', 'COMPLETED',
                                 name='lessonprogressstatus')
xp_source = sa.Enum('LESSON', 'GAME', 'QUIZ', 'PROJECT', 'REVEAL', name='xpsource')


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True, unique=True),
        sa.Column('name', sa.String(255), nullable=False, server_default=''),
        sa.Column('username', sa.String(100), nullable=True, unique=True),
        sa.Column('role', role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('subscription_status', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table('parent_student',
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table('courses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('slug', sa.String(200), nullable=False, unique=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('subject', sa.String(50), nullable=False, server_default=''),
        sa.Column('is_premium', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('prerequisite_course_ids', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_courses_slug', 'courses', ['slug'])

    op.create_table('course_lessons',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('lesson_type', lesson_type, nullable=False),
        sa.Column('xp_reward', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('required_score', sa.Integer(), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('quiz_data', sa.JSON(), nullable=True),
        sa.UniqueConstraint('course_id', 'order', name='uq_course_lesson_order'),
    )
    op.create_index('ix_course_lessons_course_id', 'course_lessons', ['course_id'])

    op.create_table('course_enrollments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', course_status, nullable=False),
        sa.Column('total_lessons', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completed_lessons', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_lesson_order', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('total_xp_earned', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('certificate_earned', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('enrolled_at', sa.DateTime()),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('last_accessed_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'course_id', name='uq_enrollment_user_course'),
    )
    op.create_index('ix_course_enrollments_user_id', 'course_enrollments', ['user_id'])

    op.create_table('course_lesson_progress',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('enrollment_id', sa.Integer(),
                  sa.ForeignKey('course_enrollments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lesson_id', sa.Integer(), sa.ForeignKey('course_lessons.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', lesson_progress_status, nullable=False),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('time_spent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('xp_earned', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'lesson_id', name='uq_lesson_progress_user_lesson'),
    )
    op.create_index('ix_course_lesson_progress_user_id', 'course_lesson_progress', ['user_id'])
    op.create_index('ix_course_lesson_progress_enrollment_id', 'course_lesson_progress', ['enrollment_id'])

    op.create_table('user_levels',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('total_xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('xp_to_next_level', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('current_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('longest_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_activity_date', sa.Date(), nullable=True),
        sa.Column('updated_at', sa.DateTime()),
        sa.CheckConstraint('total_xp >= 0', name='ck_user_levels_total_xp_non_negative'),
    )
    op.create_index('ix_user_levels_user_id', 'user_levels', ['user_id'])

    op.create_table('xp_transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('source', xp_source, nullable=False),
        sa.Column('reason', sa.String(200), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_xp_transactions_user_id', 'xp_transactions', ['user_id'])

    op.create_table('daily_xp',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('xp_from_lessons', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('xp_from_games', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('xp_from_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lessons_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('games_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('user_id', 'date', name='uq_daily_xp_user_date'),
    )
    op.create_index('ix_daily_xp_user_id', 'daily_xp', ['user_id'])


def downgrade():
    op.drop_table('daily_xp')
    op.drop_table('xp_transactions')
    op.drop_table('user_levels')
    op.drop_table('course_lesson_progress')
    op.drop_table('course_enrollments')
    op.drop_table('course_lessons')
    op.drop_table('courses')
    op.drop_table('parent_student')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (xp_source, lesson_progress_status, course_status, lesson_type, role):
        enum_type.drop(bind, checkfirst=True)
