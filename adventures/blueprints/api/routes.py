from flask import current_app, jsonify, request
from flask_jwt_extended import current_user, jwt_required

from adventures.blueprints.api import bp
from adventures.errors import NotFoundError, ValidationError
from adventures.extensions import db
from adventures.models.user import User
from adventures.utils.permissions import Action, require


def _service():
    return current_app.extensions['progression']


def _json_body():
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError('Request body must be a JSON object')
    return body


# ─── Lessons ────────────────────────────────────────────────────────────────

@bp.route('/lessons/<int:lesson_id>/start', methods=['POST'])
@jwt_required()
def start_lesson(lesson_id):
    require(current_user, Action.START_LESSON, current_user)
    progress = _service().start_lesson(current_user, lesson_id)
    return jsonify({'progress': progress})


@bp.route('/lessons/<int:lesson_id>/complete', methods=['POST'])
@jwt_required()
def complete_lesson(lesson_id):
    """Submit a lesson result. The lesson must have been started first, so an
    unlocked but unstarted lesson is rejected with LESSON_NOT_STARTED.
    """
    require(current_user, Action.COMPLETE_LESSON, current_user)
    body = _json_body()
    result = _service().complete_lesson(current_user, lesson_id,
                                        score=body.get('score'),
                                        time_spent=body.get('timeSpent', 0))
    if result['passed'] and not result['alreadyCompleted']:
        result['message'] = f"Lesson completed! +{result['xpAwarded']} XP"
    return jsonify(result)


@bp.route('/lessons/<int:lesson_id>/quiz/submit', methods=['POST'])
@jwt_required()
def submit_quiz(lesson_id):
    require(current_user, Action.COMPLETE_LESSON, current_user)
    body = _json_body()
    if 'answers' not in body:
        raise ValidationError('answers is required')
    result = _service().submit_quiz(current_user, lesson_id, body['answers'],
                                    attempt_number=body.get('attemptNumber', 0))
    return jsonify(result)


@bp.route('/lessons/<int:lesson_id>/quiz/reveal', methods=['POST'])
@jwt_required()
def reveal_answer(lesson_id):
    require(current_user, Action.REVEAL_ANSWER, current_user)
    body = _json_body()
    question_id = body.get('questionId')
    if not question_id:
        raise ValidationError('questionId is required')
    return jsonify(_service().reveal_answer(current_user, lesson_id, question_id))


# ─── Courses ────────────────────────────────────────────────────────────────

@bp.route('/courses/<int:course_id>/enroll', methods=['POST'])
@jwt_required()
def enroll(course_id):
    require(current_user, Action.ENROLL, current_user)
    enrollment = _service().enroll(current_user, course_id)
    return jsonify({'enrollment': enrollment}), 201


@bp.route('/courses/user/dashboard')
@jwt_required()
def dashboard():
    require(current_user, Action.VIEW_PROGRESS, current_user)
    return jsonify(_service().dashboard(current_user))


@bp.route('/courses/<int:course_id>/lessons')
@jwt_required()
def course_lessons(course_id):
    require(current_user, Action.VIEW_PROGRESS, current_user)
    return jsonify(_service().course_lessons(current_user, course_id))


# ─── Levels & stats ─────────────────────────────────────────────────────────

@bp.route('/level/status')
@jwt_required()
def level_status():
    require(current_user, Action.VIEW_PROGRESS, current_user)
    return jsonify(_service().level_status(current_user))


@bp.route('/xp/history')
@jwt_required()
def xp_history():
    require(current_user, Action.VIEW_PROGRESS, current_user)
    return jsonify(_service().xp_history(current_user, request.args.get('days', 7)))


@bp.route('/users/<int:user_id>/stats')
@jwt_required()
def user_stats(user_id):
    target = db.session.get(User, user_id)
    if target is None:
        raise NotFoundError('User not found', details={'userId': user_id})
    require(current_user, Action.VIEW_STATS, target)
    return jsonify(_service().user_stats(target.id))
