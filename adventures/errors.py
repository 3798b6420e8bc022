"""Error taxonomy for progression operations.

Every error carries the HTTP status and machine-readable code it maps to, so
the blueprint error handler can render it without knowing the domain.
"""


class ProgressionError(Exception):
    status_code = 500
    code = 'INTERNAL_ERROR'
    default_message = 'An unexpected error occurred'

    def __init__(self, message=None, details=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self):
        body = {'error': self.message, 'code': self.code}
        if self.details is not None:
            body['details'] = self.details
        return body


class AuthenticationError(ProgressionError):
    status_code = 401
    code = 'AUTHENTICATION_ERROR'
    default_message = 'Authentication required'


class AuthorizationError(ProgressionError):
    status_code = 403
    code = 'AUTHORIZATION_ERROR'
    default_message = 'Not authorized'


class ValidationError(ProgressionError):
    status_code = 400
    code = 'VALIDATION_ERROR'
    default_message = 'Invalid input'


class NotFoundError(ProgressionError):
    status_code = 404
    code = 'NOT_FOUND'
    default_message = 'Not found'


class LessonLocked(ProgressionError):
    status_code = 403
    code = 'LESSON_LOCKED'
    default_message = 'Lesson is locked'


class LessonNotStarted(ProgressionError):
    status_code = 400
    code = 'LESSON_NOT_STARTED'
    default_message = 'Lesson has not been started'


class PrerequisitesNotMet(ProgressionError):
    status_code = 403
    code = 'PREREQUISITES_NOT_MET'
    default_message = 'Prerequisites not met'


class EnrollmentNotAllowed(ProgressionError):
    status_code = 403
    code = 'ENROLLMENT_NOT_ALLOWED'
    default_message = 'Cannot enroll in this course'


class InsufficientXP(ProgressionError):
    status_code = 400
    code = 'INSUFFICIENT_XP'
    default_message = 'Insufficient XP'


class InternalError(ProgressionError):
    pass
