"""Quiz grading with progressive hints."""

QUESTION_TYPES = ('multiple-choice', 'true-false', 'fill-blank')


def validate_quiz_structure(quiz_data):
    if not isinstance(quiz_data, dict):
        return False
    questions = quiz_data.get('questions')
    if not isinstance(questions, list) or not questions:
        return False
    passing = quiz_data.get('passingScore')
    if isinstance(passing, bool) or not isinstance(passing, (int, float)) or not 0 <= passing <= 100:
        return False

    for question in questions:
        if not isinstance(question, dict):
            return False
        if not question.get('id') or question.get('type') not in QUESTION_TYPES or not question.get('question'):
            return False
        if question['type'] == 'multiple-choice' and not isinstance(question.get('options'), list):
            return False
        if not question.get('explanation') or not isinstance(question.get('hints'), list):
            return False
        points = question.get('points')
        if isinstance(points, bool) or not isinstance(points, (int, float)) or points <= 0:
            return False
    return True


def find_question(quiz_data, question_id):
    for question in quiz_data.get('questions', []):
        if question.get('id') == question_id:
            return question
    return None


def check_answer(question, answer):
    if answer is None:
        return False
    if question['type'] == 'multiple-choice':
        return answer == question['correctAnswer']
    if question['type'] == 'true-false':
        return str(answer).lower() == str(question['correctAnswer']).lower()
    if question['type'] == 'fill-blank':
        return str(answer).strip().lower() == str(question['correctAnswer']).strip().lower()
    return False


def get_next_hint(question, attempt_number):
    """Hint for this attempt, repeating the last hint once they run out."""
    hints = question.get('hints') or []
    if not hints:
        return None
    return hints[min(max(attempt_number, 0), len(hints) - 1)]


def validate_quiz_answers(quiz_data, answers, attempt_number=0):
    results = []
    for question in quiz_data['questions']:
        answer = answers.get(question['id'])
        correct = check_answer(question, answer)
        results.append({
            'questionId': question['id'],
            'correct': correct,
            'userAnswer': answer,
            'explanation': question['explanation'],
            'nextHint': None if correct else get_next_hint(question, attempt_number),
            'pointsEarned': question['points'] if correct else 0,
        })

    total_points = sum(q['points'] for q in quiz_data['questions'])
    earned_points = sum(r['pointsEarned'] for r in results)
    score = round(earned_points / total_points * 100) if total_points else 0
    return {
        'score': score,
        'passed': score >= quiz_data['passingScore'],
        'results': results,
        'totalPoints': total_points,
        'earnedPoints': earned_points,
    }


def can_retry_quiz(quiz_data, current_attempts):
    if not quiz_data.get('allowRetry', True):
        return False
    max_attempts = quiz_data.get('maxAttempts')
    return not (max_attempts and current_attempts >= max_attempts)
