import enum
from datetime import datetime, timezone
from adventures.extensions import db


class Role(enum.Enum):
    ADMIN = 'admin'
    TEACHER = 'teacher'
    STUDENT = 'student'
    PARENT = 'parent'


parent_student = db.Table(
    'parent_student',
    db.Column('parent_id', db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    db.Column('student_id', db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
)


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=True, index=True)
    name = db.Column(db.String(255), nullable=False, default='')
    username = db.Column(db.String(100), unique=True, nullable=True)  # child profiles log in by username + PIN
    role = db.Column(db.Enum(Role), nullable=False, default=Role.STUDENT)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    subscription_status = db.Column(db.String(20), nullable=True)  # 'active' when premium
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Parent -> child profiles
    children = db.relationship(
        'User', secondary=parent_student,
        primaryjoin=(id == parent_student.c.parent_id),
        secondaryjoin=(id == parent_student.c.student_id),
        backref=db.backref('parents', lazy='dynamic'),
        lazy='dynamic'
    )

    @property
    def is_admin(self):
        return self.role == Role.ADMIN

    @property
    def is_teacher(self):
        return self.role == Role.TEACHER

    @property
    def is_student(self):
        return self.role == Role.STUDENT

    @property
    def is_parent(self):
        return self.role == Role.PARENT

    @property
    def has_premium_access(self):
        return self.subscription_status == 'active' or self.role in (Role.ADMIN, Role.TEACHER)

    def is_parent_of(self, user_id):
        return self.children.filter_by(id=user_id).first() is not None

    def __repr__(self):
        return f'<User {self.id} ({self.role.value})>'
