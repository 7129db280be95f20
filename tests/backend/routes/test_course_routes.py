import pytest

from backend.models.course import Lesson
from backend.models.enrollment import Enrollment
from backend.models.note import Note
from backend.models.progress import Progress
from backend.models.user import Role

COURSE = {'title': 'Full Stack Development', 'description': 'Learn it from scratch', 'price': 100}
LESSON = {'title': 'Intro', 'video_url': 'https://videos.example.com/1', 'duration': 300, 'order': 1}


@pytest.fixture
def instructor(login_as) -> dict[str, str]:
    return login_as('Instructor One', 'instructor1@x.com', Role.instructor)


def _create_course(client, headers, **overrides) -> dict:
    response = client.post('/courses', json={**COURSE, **overrides}, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_instructor_creates_course_owned_by_them(client, instructor) -> None:
    course = _create_course(client, instructor)

    me = client.get('/auth/me', headers=instructor).json()
    assert course['instructor_id'] == me['id']
    assert course['published'] is False


def test_student_cannot_create_course(client, login_as) -> None:
    student = login_as('Student', 'student@x.com')

    response = client.post('/courses', json=COURSE, headers=student)

    assert response.status_code == 403


def test_anonymous_cannot_create_course(client) -> None:
    assert client.post('/courses', json=COURSE).status_code == 401


def test_catalog_lists_only_published_courses(client, instructor) -> None:
    draft = _create_course(client, instructor, title='Draft')
    live = _create_course(client, instructor, title='Live')
    client.put(f"/courses/{live['id']}", json={'published': True}, headers=instructor)

    titles = [course['title'] for course in client.get('/courses').json()]

    assert titles == ['Live']
    assert draft['title'] not in titles


def test_course_detail_includes_lessons_in_order(client, instructor) -> None:
    course = _create_course(client, instructor)
    client.post(f"/courses/{course['id']}/lessons", json={**LESSON, 'title': 'Second', 'order': 2}, headers=instructor)
    client.post(f"/courses/{course['id']}/lessons", json=LESSON, headers=instructor)

    detail = client.get(f"/courses/{course['id']}").json()

    assert [lesson['title'] for lesson in detail['lessons']] == ['Intro', 'Second']


def test_unknown_course_is_not_found(client) -> None:
    response = client.get('/courses/999')

    assert response.status_code == 404
    assert response.json()['detail'] == 'Course not found'


def test_other_instructor_cannot_modify_course(client, instructor, login_as) -> None:
    course = _create_course(client, instructor)
    rival = login_as('Instructor Two', 'instructor2@x.com', Role.instructor)

    assert client.put(f"/courses/{course['id']}", json={'title': 'Mine'}, headers=rival).status_code == 403
    assert client.delete(f"/courses/{course['id']}", headers=rival).status_code == 403
    assert client.post(f"/courses/{course['id']}/lessons", json=LESSON, headers=rival).status_code == 403


def test_admin_can_update_any_course(client, instructor, login_as) -> None:
    course = _create_course(client, instructor)
    admin = login_as('Admin', 'admin@x.com', Role.admin)

    response = client.put(f"/courses/{course['id']}", json={'price': 50, 'published': True}, headers=admin)

    assert response.status_code == 200
    assert response.json()['price'] == 50
    assert response.json()['title'] == COURSE['title']


def test_owner_deletes_course(client, instructor) -> None:
    course = _create_course(client, instructor)

    response = client.delete(f"/courses/{course['id']}", headers=instructor)

    assert response.status_code == 200
    assert client.get(f"/courses/{course['id']}").status_code == 404


@pytest.mark.parametrize(
    'changes',
    [{'title': '   '}, {'description': ''}, {'price': -5}, {'title': '   ', 'price': -5}],
)
def test_update_rejects_blank_text_and_negative_price(client, instructor, changes) -> None:
    course = _create_course(client, instructor)

    response = client.put(f"/courses/{course['id']}", json=changes, headers=instructor)

    assert response.status_code == 400
    detail = client.get(f"/courses/{course['id']}").json()
    assert detail['title'] == COURSE['title']
    assert detail['description'] == COURSE['description']
    assert detail['price'] == COURSE['price']


def test_update_trims_text_fields(client, instructor) -> None:
    course = _create_course(client, instructor)

    response = client.put(f"/courses/{course['id']}", json={'title': '  Renamed  '}, headers=instructor)

    assert response.status_code == 200
    assert response.json()['title'] == 'Renamed'


def test_deleting_course_removes_student_records(app, client, instructor, login_as) -> None:
    course = _create_course(client, instructor)
    lesson = client.post(f"/courses/{course['id']}/lessons", json=LESSON, headers=instructor).json()
    student = login_as('Student', 'student@x.com')
    client.post(f"/students/enroll/{course['id']}", headers=student)
    client.put(f"/students/progress/lessons/{lesson['id']}", json={'completed': True}, headers=student)
    client.post('/students/notes', json={'lesson_id': lesson['id'], 'content': 'key idea', 'timestamp': 12}, headers=student)

    assert client.delete(f"/courses/{course['id']}", headers=instructor).status_code == 200

    db = app.state.session_factory()
    try:
        assert db.query(Enrollment).count() == 0
        assert db.query(Progress).count() == 0
        assert db.query(Note).count() == 0
        assert db.query(Lesson).count() == 0
    finally:
        db.close()
