from adventures.models.course import LessonType
from adventures.models.user import Role


def test_requests_without_token_are_rejected(client):
    response = client.get('/api/level/status')
    assert response.status_code == 401
    assert response.get_json()['code'] == 'AUTHENTICATION_ERROR'


def test_inactive_user_token_is_rejected(client, make_user, auth_headers):
    user = make_user(is_active=False)
    response = client.get('/api/level/status', headers=auth_headers(user))
    assert response.status_code == 401


def test_lesson_flow_over_http(client, student, make_course, auth_headers):
    course = make_course(lessons=2, xp_reward=50)
    first, second = course.lessons.all()
    headers = auth_headers(student)

    response = client.post(f'/api/lessons/{first.id}/start', headers=headers)
    assert response.status_code == 200
    assert response.get_json()['progress']['status'] == 'in_progress'

    response = client.post(f'/api/lessons/{first.id}/complete', headers=headers,
                           json={'score': 85, 'timeSpent': 90})
    body = response.get_json()
    assert response.status_code == 200
    assert body['passed']
    assert body['xpAwarded'] == 50
    assert body['nextLesson']['id'] == second.id
    assert body['message'] == 'Lesson completed! +50 XP'

    lessons = client.get(f'/api/courses/{course.id}/lessons', headers=headers).get_json()
    assert [item['isLocked'] for item in lessons['lessons']] == [False, False]
    assert lessons['enrollment']['progress'] == 50

    status = client.get('/api/level/status', headers=headers).get_json()
    assert status['level']['totalXP'] == 50
    assert status['streak']['currentStreak'] == 1


def test_locked_lesson_returns_403(client, student, make_course, auth_headers):
    second = make_course(lessons=2).lessons.all()[1]
    response = client.post(f'/api/lessons/{second.id}/start', headers=auth_headers(student))
    assert response.status_code == 403
    assert response.get_json()['code'] == 'LESSON_LOCKED'


def test_invalid_score_returns_400(client, student, make_course, auth_headers):
    lesson = make_course(lessons=1, lesson_type=LessonType.QUIZ).lessons.first()
    headers = auth_headers(student)
    client.post(f'/api/lessons/{lesson.id}/start', headers=headers)

    for score in (-1, 101):
        response = client.post(f'/api/lessons/{lesson.id}/complete', headers=headers, json={'score': score})
        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION_ERROR'


def test_complete_before_start_returns_400(client, student, make_course, auth_headers):
    lesson = make_course(lessons=1).lessons.first()
    response = client.post(f'/api/lessons/{lesson.id}/complete', headers=auth_headers(student), json={})
    assert response.status_code == 400
    assert response.get_json()['code'] == 'LESSON_NOT_STARTED'


def test_dashboard_endpoint(client, student, make_course, auth_headers):
    lesson = make_course(lessons=2, xp_reward=25).lessons.first()
    client.post(f'/api/lessons/{lesson.id}/start', headers=auth_headers(student))
    client.post(f'/api/lessons/{lesson.id}/complete', headers=auth_headers(student), json={})

    response = client.get('/api/courses/user/dashboard', headers=auth_headers(student))
    assert response.status_code == 200
    data = response.get_json()
    assert len(data['inProgress']) == 1
    assert data['completed'] == []
    assert data['recentXP'] == 25

    assert client.get('/api/courses/user/dashboard').status_code == 401


def test_enroll_with_missing_prerequisites(client, student, make_course, auth_headers):
    basics = make_course(lessons=1, title='Basics')
    advanced = make_course(lessons=1, prerequisite_course_ids=[basics.id])

    response = client.post(f'/api/courses/{advanced.id}/enroll', headers=auth_headers(student))
    assert response.status_code == 403
    body = response.get_json()
    assert body['code'] == 'PREREQUISITES_NOT_MET'
    assert body['details'] == {'missingPrerequisites': ['Basics']}

    response = client.post(f'/api/courses/{basics.id}/enroll', headers=auth_headers(student))
    assert response.status_code == 201
    assert response.get_json()['enrollment']['courseId'] == basics.id


def test_unknown_course_returns_404(client, student, auth_headers):
    response = client.get('/api/courses/999/lessons', headers=auth_headers(student))
    assert response.status_code == 404
    assert response.get_json()['code'] == 'NOT_FOUND'


def test_quiz_submit_and_reveal(client, student, quiz_course, auth_headers):
    intro, quiz_lesson = quiz_course.lessons.all()
    headers = auth_headers(student)
    client.post(f'/api/lessons/{intro.id}/start', headers=headers)
    client.post(f'/api/lessons/{intro.id}/complete', headers=headers, json={})

    response = client.post(f'/api/lessons/{quiz_lesson.id}/quiz/reveal', headers=headers,
                           json={'questionId': 'q2'})
    assert response.status_code == 200
    assert response.get_json()['remainingXP'] == 45

    response = client.post(f'/api/lessons/{quiz_lesson.id}/quiz/reveal', headers=headers, json={})
    assert response.status_code == 400

    client.post(f'/api/lessons/{quiz_lesson.id}/start', headers=headers)
    response = client.post(f'/api/lessons/{quiz_lesson.id}/quiz/submit', headers=headers,
                           json={'answers': {'q1': 1, 'q2': True, 'q3': 'for'}})
    body = response.get_json()
    assert response.status_code == 200
    assert body['quiz']['score'] == 100
    assert body['completion']['xpAwarded'] == 100


def test_reveal_on_lesson_without_quiz_returns_400(client, student, quiz_course, auth_headers):
    intro = quiz_course.lessons.first()
    client.post(f'/api/lessons/{intro.id}/start', headers=auth_headers(student))
    response = client.post(f'/api/lessons/{intro.id}/quiz/reveal', headers=auth_headers(student),
                           json={'questionId': 'q1'})
    assert response.status_code == 400
    assert response.get_json()['code'] == 'VALIDATION_ERROR'


def test_xp_history_endpoint(client, student, auth_headers):
    response = client.get('/api/xp/history?days=5', headers=auth_headers(student))
    assert response.status_code == 200
    assert len(response.get_json()['days']) == 5

    response = client.get('/api/xp/history?days=500', headers=auth_headers(student))
    assert response.status_code == 400


def test_stats_access_rules(client, session, make_user, auth_headers):
    child = make_user(Role.STUDENT)
    stranger = make_user(Role.STUDENT)
    parent = make_user(Role.PARENT)
    parent.children.append(child)
    session.commit()

    assert client.get(f'/api/users/{child.id}/stats', headers=auth_headers(child)).status_code == 200
    assert client.get(f'/api/users/{child.id}/stats', headers=auth_headers(parent)).status_code == 200

    response = client.get(f'/api/users/{child.id}/stats', headers=auth_headers(stranger))
    assert response.status_code == 403
    assert response.get_json()['code'] == 'AUTHORIZATION_ERROR'

    assert client.get('/api/users/999/stats', headers=auth_headers(parent)).status_code == 404
